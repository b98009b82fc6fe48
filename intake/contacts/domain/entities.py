"""
Contact Domain Entities
=======================

Pure Python domain entities for contact intake.

These entities carry the business state of a customer inquiry and are free
of infrastructure concerns.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Optional

from intake.config import CLOSED_STATUSES, ContactStatus


@dataclass
class Contact:
    """
    A customer inquiry submitted through the contact form.

    `id` is the storage handle and stays None until the record is persisted;
    `contact_id` is the customer-facing reference.
    """

    # Identity
    id: Optional[int]
    contact_id: str

    # Submission
    name: str
    email: str
    service: str
    message: str

    # Workflow
    status: str
    priority: str
    sla_deadline: datetime
    request_timestamp: datetime

    # Record lifecycle
    created_at: datetime
    updated_at: datetime

    phone: Optional[str] = None
    handled_by: Optional[int] = None
    admin_notes: Optional[str] = None
    updation_timestamp: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_closed(self) -> bool:
        """Resolved and closed contacts no longer run against their SLA."""
        return self.status in CLOSED_STATUSES

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_overdue(self, now: datetime) -> bool:
        """Check whether the SLA deadline passed while the contact is still open."""
        if self.is_closed or self.sla_deadline is None:
            return False
        return self.sla_deadline < now


@dataclass
class ContactDraft:
    """
    Input for creating a contact.

    The public form fills only the submission fields. Administrative seeding
    may also pin the id, backdate the request or set workflow fields; anything
    left as None is derived by the lifecycle engine.
    """

    name: str
    email: str
    service: str
    message: str
    phone: Optional[str] = None
    priority: Optional[str] = None
    status: str = ContactStatus.NEW.value
    contact_id: Optional[str] = None
    request_timestamp: Optional[datetime] = None
    sla_deadline: Optional[datetime] = None
    handled_by: Optional[int] = None
    admin_notes: Optional[str] = None


_UNSET = object()


@dataclass
class ContactChanges:
    """
    Partial administrative update.

    Fields left at the sentinel are untouched. `handled_by` and `admin_notes`
    may be explicitly cleared by passing None.
    """

    status: object = field(default=_UNSET)
    priority: object = field(default=_UNSET)
    handled_by: object = field(default=_UNSET)
    admin_notes: object = field(default=_UNSET)

    @classmethod
    def from_dict(cls, data: dict) -> "ContactChanges":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def provided(self) -> dict:
        """Fields that were explicitly set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not _UNSET
        }
