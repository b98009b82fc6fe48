"""
Contact Application Layer
=========================

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- Query: Validated listing criteria and the pagination envelope
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from intake.contacts.application.dto import (
    ContactCreateRequest,
    ContactUpdateRequest,
    AssignRequest,
    ContactResponse,
    ContactEnvelope,
    CreateContactResponse,
    ListFilters,
    ContactListResponse,
    OverdueResponse,
    TrackingInfo,
    TrackResponse,
    ContactStats,
    StatsResponse,
    MessageResponse,
)
from intake.contacts.application.query import ContactQuery, ContactPage, PageMeta
from intake.contacts.application.services import (
    ContactService,
    IContactRepository,
    IStatsCache,
    ISLAPolicyProvider,
)

__all__ = [
    # DTOs
    "ContactCreateRequest",
    "ContactUpdateRequest",
    "AssignRequest",
    "ContactResponse",
    "ContactEnvelope",
    "CreateContactResponse",
    "ListFilters",
    "ContactListResponse",
    "OverdueResponse",
    "TrackingInfo",
    "TrackResponse",
    "ContactStats",
    "StatsResponse",
    "MessageResponse",
    # Query
    "ContactQuery",
    "ContactPage",
    "PageMeta",
    # Services
    "ContactService",
    # Interfaces
    "IContactRepository",
    "IStatsCache",
    "ISLAPolicyProvider",
]
