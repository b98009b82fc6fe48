"""
Contact Value Objects
=====================

SLA policy, priority classification and contact id generation.

Value objects are defined by their attributes rather than an identity.
"""

import re
import secrets
import string
from datetime import datetime, timedelta
from typing import Dict

from pydantic import BaseModel, Field, field_validator

from intake.config import Priority, ServiceCategory, VALID_PRIORITIES


# Response allowance per priority, in hours
SLA_HOURS: Dict[str, int] = {
    Priority.URGENT.value: 1,
    Priority.HIGH.value: 4,
    Priority.MEDIUM.value: 24,
    Priority.LOW.value: 72,
}

DEFAULT_SLA_HOURS = SLA_HOURS[Priority.MEDIUM.value]

# Fixed ordering for priority sorts: higher rank is more pressing
PRIORITY_RANK: Dict[str, int] = {
    Priority.LOW.value: 1,
    Priority.MEDIUM.value: 2,
    Priority.HIGH.value: 3,
    Priority.URGENT.value: 4,
}


class SLAPolicy(BaseModel):
    """
    SLA policy: hours allowed for a first response, by priority.

    Effective deadline = request time + hours for the contact's priority.
    Loaded from YAML when a policy file exists, otherwise the defaults apply.
    """
    sla_hours: Dict[str, int] = Field(
        default_factory=lambda: dict(SLA_HOURS),
        description="Response allowance in hours by priority"
    )

    @field_validator("sla_hours")
    @classmethod
    def validate_sla_hours(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Fill in missing priorities and reject non-positive allowances."""
        for priority, hours in v.items():
            if hours <= 0:
                raise ValueError(f"SLA hours for '{priority}' must be positive")
        for priority in VALID_PRIORITIES:
            v.setdefault(priority, SLA_HOURS[priority])
        return v

    def hours_for(self, priority: str) -> int:
        """Allowance for a priority; unknown priorities get the medium allowance."""
        return self.sla_hours.get(priority, DEFAULT_SLA_HOURS)

    def deadline_for(self, request_timestamp: datetime, priority: str) -> datetime:
        """Compute the SLA deadline anchored at the request time."""
        return request_timestamp + timedelta(hours=self.hours_for(priority))


class PriorityClassifier:
    """
    Maps a service category to a default priority.

    Exact, case-sensitive match; anything unrecognised is low priority.
    """

    BUCKETS: Dict[str, frozenset] = {
        Priority.URGENT.value: frozenset({
            ServiceCategory.TECHNICAL_ISSUE.value,
            ServiceCategory.BILLING_DISPUTE.value,
            ServiceCategory.ACCOUNT_LOCKED.value,
        }),
        Priority.HIGH.value: frozenset({
            ServiceCategory.SUPPORT.value,
            ServiceCategory.COMPLAINT.value,
        }),
        Priority.MEDIUM.value: frozenset({
            ServiceCategory.GENERAL_INQUIRY.value,
            ServiceCategory.PARTNERSHIP.value,
        }),
    }

    @classmethod
    def classify(cls, service: str) -> str:
        for priority, services in cls.BUCKETS.items():
            if service in services:
                return priority
        return Priority.LOW.value


class ContactIdGenerator:
    """Builds candidate ids of the form CT-<year>-<6 uppercase alphanumerics>."""

    PREFIX = "CT"
    SUFFIX_LENGTH = 6
    ALPHABET = string.ascii_uppercase + string.digits
    PATTERN = re.compile(r"^CT-\d{4}-[A-Z0-9]{6}$")

    @classmethod
    def candidate(cls, now: datetime) -> str:
        suffix = "".join(secrets.choice(cls.ALPHABET) for _ in range(cls.SUFFIX_LENGTH))
        return f"{cls.PREFIX}-{now.year:04d}-{suffix}"

    @classmethod
    def is_valid(cls, contact_id: str) -> bool:
        return bool(cls.PATTERN.match(contact_id))
