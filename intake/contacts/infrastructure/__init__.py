"""
Contact Infrastructure Layer
============================

Infrastructure implementations for the contacts module:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Cache: In-process stats cache
- External: External service integrations (Slack, policy watcher, scheduler)
"""

from intake.contacts.infrastructure.models import ContactModel
from intake.contacts.infrastructure.repositories import SQLAlchemyContactRepository
from intake.contacts.infrastructure.cache import StatsCache
from intake.contacts.infrastructure.external import (
    SLAPolicyManager,
    CircuitBreaker,
    SlackClient,
    SlackMessage,
    OverdueScheduler,
)

__all__ = [
    "ContactModel",
    "SQLAlchemyContactRepository",
    "StatsCache",
    "SLAPolicyManager",
    "CircuitBreaker",
    "SlackClient",
    "SlackMessage",
    "OverdueScheduler",
]
