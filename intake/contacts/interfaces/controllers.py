"""
Contact Controllers (API Routes)
================================

FastAPI routes for the contact intake and triage endpoints.

Controllers are thin - they delegate to the ContactService and render its
results through the admin or tracking projections.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from intake.config import settings
from intake.contacts.application import (
    AssignRequest,
    ContactCreateRequest,
    ContactEnvelope,
    ContactListResponse,
    ContactQuery,
    ContactResponse,
    ContactService,
    ContactUpdateRequest,
    CreateContactResponse,
    ISLAPolicyProvider,
    IStatsCache,
    ListFilters,
    MessageResponse,
    OverdueResponse,
    StatsResponse,
    TrackResponse,
)
from intake.contacts.domain import (
    Contact,
    ContactChanges,
    ContactDraft,
    ContactLifecycle,
    projections,
)
from intake.contacts.infrastructure import (
    SLAPolicyManager,
    SQLAlchemyContactRepository,
    StatsCache,
)
from intake.core import Clock, system_clock
from intake.infrastructure.database import get_session
from intake.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/contacts", tags=["Contacts"])
utility_router = APIRouter(prefix="/api", tags=["Utility"])

# Process-wide collaborators; main.py loads the policy at startup
stats_cache = StatsCache(ttl_seconds=settings.stats_cache_ttl_seconds)
policy_manager = SLAPolicyManager()


# ========== Example payloads for Swagger ==========

CONTACT_CREATE_EXAMPLE = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "+1 555 0100",
    "service": "technical_issue",
    "message": "The dashboard returns a 500 error since this morning."
}

CONTACT_EXAMPLE = {
    "id": 42,
    "contact_id": "CT-2025-7KQ2ZD",
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "+1 555 0100",
    "service": "technical_issue",
    "message": "The dashboard returns a 500 error since this morning.",
    "status": "new",
    "priority": "urgent",
    "sla_deadline": "2025-03-14T11:00:00Z",
    "handled_by": None,
    "admin_notes": None,
    "request_timestamp": "2025-03-14T10:00:00Z",
    "updation_timestamp": None,
    "created_at": "2025-03-14T10:00:00Z",
    "updated_at": "2025-03-14T10:00:00Z",
    "is_overdue": False,
    "time_to_sla": "0 hours remaining"
}

CREATE_RESPONSE_EXAMPLE = {
    "success": True,
    "message": "Thank you for contacting us! We will get back to you soon.",
    "data": CONTACT_EXAMPLE,
    "contact_id": "CT-2025-7KQ2ZD",
    "priority": "Urgent",
    "sla_deadline": "Mar 14, 2025 11:00 AM",
    "status": 201
}

DUPLICATE_RESPONSE_EXAMPLE = {
    "success": False,
    "message": "Duplicate submission detected. Please wait before submitting again.",
    "contact_id": "CT-2025-7KQ2ZD",
    "status": 429
}

TRACK_RESPONSE_EXAMPLE = {
    "success": True,
    "data": {
        "contact_id": "CT-2025-7KQ2ZD",
        "status": "In progress",
        "priority": "Urgent",
        "submitted_at": "Mar 14, 2025 10:00 AM",
        "last_updated": "Mar 14, 2025 10:20 AM",
        "sla_status": "Overdue by 2 hours"
    },
    "status": 200
}

STATS_RESPONSE_EXAMPLE = {
    "success": True,
    "data": {
        "by_status": {"total": 12, "new": 5, "in_progress": 4, "resolved": 2, "closed": 1},
        "by_priority": {"urgent": 2, "high": 3, "medium": 4, "low": 3},
        "by_time": {"today": 3, "this_week": 8, "this_month": 12},
        "performance": {
            "overdue": 2,
            "high_priority_pending": 4,
            "unassigned": 6,
            "avg_response_time": 95.5
        },
        "recent": {"last_24h": 3, "urgent_today": 1}
    },
    "status": 200
}

NOT_FOUND_EXAMPLE = {
    "success": False,
    "message": "Contact with id 'CT-2025-XXXXXX' not found",
    "status": 404
}


# ========== Dependencies ==========

def get_clock() -> Clock:
    """Time source; overridden in tests."""
    return system_clock


def get_stats_cache() -> IStatsCache:
    return stats_cache


def get_policy_provider() -> ISLAPolicyProvider:
    return policy_manager


async def get_contact_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    cache: IStatsCache = Depends(get_stats_cache),
    policy_provider: ISLAPolicyProvider = Depends(get_policy_provider)
) -> ContactService:
    """Get contact service instance bound to the request session."""
    lifecycle = ContactLifecycle(policy=policy_provider.get_policy(), clock=clock)
    return ContactService(
        repository=SQLAlchemyContactRepository(session),
        lifecycle=lifecycle,
        stats_cache=cache,
        clock=clock,
        duplicate_window_minutes=settings.duplicate_window_minutes,
    )


def _render(contact: Contact, service: ContactService) -> ContactResponse:
    return ContactResponse(**projections.admin_view(contact, service.now()))


async def _list_response(service: ContactService, query: ContactQuery) -> ContactListResponse:
    page = await service.list(query)
    return ContactListResponse(
        data=[_render(contact, service) for contact in page.items],
        meta=page.meta,
        filters=ListFilters(**query.filters_echo()),
    )


# ========== Public Routes ==========

@router.post(
    "",
    response_model=CreateContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a contact request",
    description="""
    Public contact form submission.

    **Service categories**: `technical_issue`, `billing_dispute`, `account_locked`,
    `support`, `complaint`, `general_inquiry`, `partnership`, `sales_inquiry`

    **Priority**: derived from the service unless given explicitly:
    - `urgent`: technical_issue, billing_dispute, account_locked
    - `high`: support, complaint
    - `medium`: general_inquiry, partnership
    - `low`: anything else

    **SLA deadline**: request time + 1h (urgent), 4h (high), 24h (medium), 72h (low)

    The same email sending the same message again within five minutes is
    rejected with **429** and the existing `contact_id`.
    """,
    responses={
        201: {
            "description": "Contact created",
            "content": {"application/json": {"example": CREATE_RESPONSE_EXAMPLE}}
        },
        422: {"description": "Invalid submission"},
        429: {
            "description": "Duplicate submission",
            "content": {"application/json": {"example": DUPLICATE_RESPONSE_EXAMPLE}}
        }
    }
)
async def create_contact(
    request: ContactCreateRequest,
    service: ContactService = Depends(get_contact_service)
):
    draft = ContactDraft(
        name=request.name,
        email=str(request.email),
        phone=request.phone,
        service=request.service,
        message=request.message,
        priority=request.priority,
    )
    contact = await service.submit(draft)

    return CreateContactResponse(
        data=_render(contact, service),
        contact_id=contact.contact_id,
        priority=projections.priority_label(contact.priority),
        sla_deadline=projections.format_timestamp(contact.sla_deadline),
    )


@router.get(
    "/track/{contact_id}",
    response_model=TrackResponse,
    summary="Track a contact request",
    description="""
    Customer-facing status lookup by public contact id.

    Only the contact id, status, priority, submission and update times and
    the SLA position are returned.
    """,
    responses={
        200: {
            "description": "Tracking information",
            "content": {"application/json": {"example": TRACK_RESPONSE_EXAMPLE}}
        },
        404: {
            "description": "Contact not found",
            "content": {"application/json": {"example": NOT_FOUND_EXAMPLE}}
        }
    }
)
async def track_contact(
    contact_id: str,
    service: ContactService = Depends(get_contact_service)
):
    contact = await service.track(contact_id)
    return TrackResponse(data=projections.tracking_view(contact, service.now()))


# ========== Admin Routes ==========

@router.get(
    "",
    response_model=ContactListResponse,
    summary="List contacts",
    description="""
    Paginated admin listing.

    **Filters** (AND-combined): `status`, `priority`, `service`, `search`
    (name, email, contact id or message), `handled_by`, `overdue_only`,
    `high_priority_only`

    **Sorting**: `sort_by` one of created_at, updated_at, name, email, status,
    priority, sla_deadline, contact_id; `sort_order` asc or desc. Priority
    sorts by urgency rank rather than alphabetically.

    **Pagination**: `page` (from 1), `per_page` (default 15, max 100)
    """
)
async def list_contacts(
    contact_status: Optional[str] = Query(None, alias="status", description="new, in_progress, resolved, closed"),
    priority: Optional[str] = Query(None, description="low, medium, high, urgent"),
    service_name: Optional[str] = Query(None, alias="service", description="Service category"),
    search: Optional[str] = Query(None, description="Case-insensitive text search"),
    handled_by: Optional[str] = Query(None, description="Administrator id"),
    overdue_only: Optional[str] = Query(None, description="Only open contacts past their deadline"),
    high_priority_only: Optional[str] = Query(None, description="Only high and urgent contacts"),
    sort_by: Optional[str] = Query(None, description="Sort field"),
    sort_order: Optional[str] = Query(None, description="asc or desc"),
    page: Optional[str] = Query(None, description="Page number"),
    per_page: Optional[str] = Query(None, description="Page size (max 100)"),
    service: ContactService = Depends(get_contact_service)
):
    query = ContactQuery.from_params(
        status=contact_status,
        priority=priority,
        service=service_name,
        search=search,
        handled_by=handled_by,
        overdue_only=overdue_only,
        high_priority_only=high_priority_only,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        per_page=per_page,
    )
    return await _list_response(service, query)


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Dashboard statistics",
    description="""
    Counts by status, priority and time window, plus performance figures.

    Cached for five minutes; any contact write refreshes the figures.
    `avg_response_time` is in minutes and null when no contact was updated yet.
    """,
    responses={
        200: {
            "description": "Statistics",
            "content": {"application/json": {"example": STATS_RESPONSE_EXAMPLE}}
        }
    }
)
async def contact_stats(service: ContactService = Depends(get_contact_service)):
    return StatsResponse(data=await service.stats())


@router.get(
    "/overdue",
    response_model=OverdueResponse,
    summary="Overdue contacts",
    description="Open contacts past their SLA deadline, most overdue first."
)
async def overdue_contacts(service: ContactService = Depends(get_contact_service)):
    contacts = await service.overdue()
    return OverdueResponse(
        data=[_render(contact, service) for contact in contacts],
        count=len(contacts),
    )


@router.get(
    "/priority/{priority}",
    response_model=ContactListResponse,
    summary="List contacts by priority"
)
async def contacts_by_priority(
    priority: str,
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    service: ContactService = Depends(get_contact_service)
):
    query = ContactQuery.from_params(priority=priority, page=page, per_page=per_page)
    return await _list_response(service, query)


@router.get(
    "/status/{contact_status}",
    response_model=ContactListResponse,
    summary="List contacts by status"
)
async def contacts_by_status(
    contact_status: str,
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    service: ContactService = Depends(get_contact_service)
):
    query = ContactQuery.from_params(status=contact_status, page=page, per_page=per_page)
    return await _list_response(service, query)


@router.get(
    "/user/{user_id}",
    response_model=ContactListResponse,
    summary="List contacts handled by an administrator"
)
async def contacts_by_user(
    user_id: str,
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    service: ContactService = Depends(get_contact_service)
):
    query = ContactQuery.from_params(handled_by=user_id, page=page, per_page=per_page)
    return await _list_response(service, query)


@router.get(
    "/{identifier}",
    response_model=ContactEnvelope,
    summary="Get a contact",
    description="Look up by public contact id (`CT-YYYY-XXXXXX`) or numeric id.",
    responses={
        404: {
            "description": "Contact not found",
            "content": {"application/json": {"example": NOT_FOUND_EXAMPLE}}
        }
    }
)
async def show_contact(
    identifier: str,
    service: ContactService = Depends(get_contact_service)
):
    contact = await service.show(identifier)
    return ContactEnvelope(data=_render(contact, service))


@router.api_route(
    "/{contact_pk}",
    methods=["PUT", "PATCH"],
    response_model=ContactEnvelope,
    summary="Update a contact",
    description="""
    Partial administrative update of `status`, `priority`, `handled_by` and
    `admin_notes`. Changing the priority recomputes the SLA deadline from the
    original request time.
    """
)
async def update_contact(
    contact_pk: int,
    request: ContactUpdateRequest,
    service: ContactService = Depends(get_contact_service)
):
    changes = ContactChanges.from_dict(request.changes())
    contact = await service.update(contact_pk, changes)
    return ContactEnvelope(message="Contact updated successfully", data=_render(contact, service))


@router.post(
    "/{contact_pk}/assign",
    response_model=ContactEnvelope,
    summary="Assign a contact",
    description="Hand the contact to an administrator; a `new` contact moves to `in_progress`."
)
async def assign_contact(
    contact_pk: int,
    request: AssignRequest,
    service: ContactService = Depends(get_contact_service)
):
    contact = await service.assign(contact_pk, request.user_id)
    return ContactEnvelope(message="Contact assigned successfully", data=_render(contact, service))


@router.delete(
    "/{contact_pk}",
    response_model=MessageResponse,
    summary="Delete a contact",
    description="Soft delete; the contact disappears from every listing and lookup."
)
async def delete_contact(
    contact_pk: int,
    service: ContactService = Depends(get_contact_service)
):
    await service.delete(contact_pk)
    return MessageResponse(message="Contact deleted successfully")


# ========== Utility Routes ==========

@utility_router.get("/ping", summary="Liveness probe")
async def ping(clock: Clock = Depends(get_clock)):
    return {
        "success": True,
        "message": "pong",
        "timestamp": clock.now().isoformat(),
        "status": 200
    }


@utility_router.get("/endpoints", summary="List API endpoints")
async def list_endpoints(request: Request):
    endpoints: List[dict] = []
    for path, operations in request.app.openapi()["paths"].items():
        if not path.startswith("/api"):
            continue
        endpoints.append({"path": path, "methods": sorted(method.upper() for method in operations)})

    return {"success": True, "data": endpoints, "count": len(endpoints), "status": 200}


# Export routers for inclusion in main app
contacts_router = router
