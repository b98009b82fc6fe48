"""
Contact Application DTOs
========================

Data Transfer Objects for the contacts API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from intake.contacts.application.query import (
    ContactStatusStr,
    PageMeta,
    PriorityStr,
)


# ========== Type Aliases for Literals ==========
ServiceStr = Literal[
    "technical_issue", "billing_dispute", "account_locked", "support",
    "complaint", "general_inquiry", "partnership", "sales_inquiry"
]


# ========== Request DTOs ==========

class ContactCreateRequest(BaseModel):
    """Public contact form submission."""
    name: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(..., max_length=255, description="Reply-to address")
    phone: Optional[str] = Field(None, max_length=20, description="Optional phone number")
    service: ServiceStr = Field(..., description="Service category")
    message: str = Field(..., min_length=1, max_length=2000, description="Inquiry text")
    priority: Optional[PriorityStr] = Field(
        None,
        description="Manual priority override; derived from the service when omitted"
    )


class ContactUpdateRequest(BaseModel):
    """
    Administrative partial update.

    Only fields present in the request body are applied; `handled_by` and
    `admin_notes` can be cleared with an explicit null, `status` and
    `priority` cannot.
    """
    status: Optional[ContactStatusStr] = None
    priority: Optional[PriorityStr] = None
    handled_by: Optional[int] = Field(None, ge=1, description="Administrator id")
    admin_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("status", "priority")
    @classmethod
    def reject_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("may not be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class AssignRequest(BaseModel):
    """Assign a contact to an administrator."""
    user_id: int = Field(..., ge=1, description="Administrator id")


# ========== Response DTOs ==========

class ContactResponse(BaseModel):
    """Contact as seen by administrators."""
    id: int
    contact_id: str
    name: str
    email: str
    phone: Optional[str] = None
    service: str
    message: str
    status: ContactStatusStr
    priority: PriorityStr
    sla_deadline: datetime
    handled_by: Optional[int] = None
    admin_notes: Optional[str] = None
    request_timestamp: datetime
    updation_timestamp: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    is_overdue: bool = False
    time_to_sla: Optional[str] = None


class ContactEnvelope(BaseModel):
    """Single contact wrapped in the standard envelope."""
    success: bool = True
    message: Optional[str] = None
    data: ContactResponse
    status: int = 200


class CreateContactResponse(BaseModel):
    """Response to a public submission."""
    success: bool = True
    message: str = "Thank you for contacting us! We will get back to you soon."
    data: ContactResponse
    contact_id: str
    priority: str = Field(..., description="Priority label, e.g. 'Urgent'")
    sla_deadline: Optional[str] = Field(None, description="Formatted SLA deadline")
    status: int = 201


class ListFilters(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    service: Optional[str] = None
    search: Optional[str] = None
    handled_by: Optional[int] = None
    overdue_only: bool = False
    high_priority_only: bool = False


class ContactListResponse(BaseModel):
    """One page of the admin listing."""
    success: bool = True
    data: List[ContactResponse]
    meta: PageMeta
    filters: ListFilters
    status: int = 200


class OverdueResponse(BaseModel):
    """Overdue contacts, most overdue first."""
    success: bool = True
    data: List[ContactResponse]
    count: int
    status: int = 200


class TrackingInfo(BaseModel):
    """Customer-safe tracking projection."""
    contact_id: str
    status: str
    priority: str
    submitted_at: Optional[str] = None
    last_updated: Optional[str] = None
    sla_status: Optional[str] = None


class TrackResponse(BaseModel):
    success: bool = True
    data: TrackingInfo
    status: int = 200


class StatusCounts(BaseModel):
    total: int
    new: int
    in_progress: int
    resolved: int
    closed: int


class PriorityCounts(BaseModel):
    urgent: int
    high: int
    medium: int
    low: int


class TimeWindowCounts(BaseModel):
    today: int
    this_week: int
    this_month: int


class PerformanceStats(BaseModel):
    overdue: int
    high_priority_pending: int
    unassigned: int
    avg_response_time: Optional[float] = Field(
        None, description="Average minutes from request to last admin update"
    )


class RecentActivity(BaseModel):
    last_24h: int
    urgent_today: int


class ContactStats(BaseModel):
    """Dashboard statistics."""
    by_status: StatusCounts
    by_priority: PriorityCounts
    by_time: TimeWindowCounts
    performance: PerformanceStats
    recent: RecentActivity


class StatsResponse(BaseModel):
    success: bool = True
    data: ContactStats
    status: int = 200


class MessageResponse(BaseModel):
    success: bool = True
    message: str
    status: int = 200
