"""
Contact Domain Layer
====================

Contains:
- Entities: Contact, ContactDraft, ContactChanges
- Value Objects: SLAPolicy, PriorityClassifier, ContactIdGenerator
- Domain Services: ContactLifecycle
- Projections: customer tracking and admin views

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from intake.contacts.domain.entities import Contact, ContactChanges, ContactDraft
from intake.contacts.domain.lifecycle import ContactLifecycle
from intake.contacts.domain.value_objects import (
    SLA_HOURS,
    PRIORITY_RANK,
    SLAPolicy,
    PriorityClassifier,
    ContactIdGenerator,
)
from intake.contacts.domain import projections

__all__ = [
    # Entities
    "Contact",
    "ContactDraft",
    "ContactChanges",
    # Value Objects & Services
    "SLA_HOURS",
    "PRIORITY_RANK",
    "SLAPolicy",
    "PriorityClassifier",
    "ContactIdGenerator",
    "ContactLifecycle",
    "projections",
]
