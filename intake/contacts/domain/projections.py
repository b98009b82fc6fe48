"""
Contact Projections
===================

Read-side views of a contact computed from the entity and the current time.
"""

from datetime import datetime
from typing import Optional

from intake.contacts.domain.entities import Contact

DISPLAY_FORMAT = "%b %d, %Y %I:%M %p"


def status_label(status: str) -> str:
    """in_progress -> 'In progress'."""
    return status.replace("_", " ").capitalize()


def priority_label(priority: str) -> str:
    return priority.capitalize()


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(DISPLAY_FORMAT)


def sla_status(contact: Contact, now: datetime) -> Optional[str]:
    """
    Human readable SLA position.

    None once the contact is resolved or closed. Hours are truncated; an
    overdue contact always reads at least one hour overdue.
    """
    if contact.is_closed or contact.sla_deadline is None:
        return None

    seconds = (contact.sla_deadline - now).total_seconds()
    hours = int(abs(seconds) // 3600)
    if seconds < 0:
        return f"Overdue by {max(hours, 1)} hours"
    return f"{hours} hours remaining"


def tracking_view(contact: Contact, now: datetime) -> dict:
    """
    Customer-safe view used by the tracking portal.

    Built from an explicit whitelist; administrative fields never appear.
    """
    return {
        "contact_id": contact.contact_id,
        "status": status_label(contact.status),
        "priority": priority_label(contact.priority),
        "submitted_at": format_timestamp(contact.request_timestamp),
        "last_updated": format_timestamp(contact.updation_timestamp),
        "sla_status": sla_status(contact, now),
    }


def admin_view(contact: Contact, now: datetime) -> dict:
    """Full record for the admin API plus derived SLA fields."""
    return {
        "id": contact.id,
        "contact_id": contact.contact_id,
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "service": contact.service,
        "message": contact.message,
        "status": contact.status,
        "priority": contact.priority,
        "sla_deadline": contact.sla_deadline,
        "handled_by": contact.handled_by,
        "admin_notes": contact.admin_notes,
        "request_timestamp": contact.request_timestamp,
        "updation_timestamp": contact.updation_timestamp,
        "created_at": contact.created_at,
        "updated_at": contact.updated_at,
        "is_overdue": contact.is_overdue(now),
        "time_to_sla": sla_status(contact, now),
    }
