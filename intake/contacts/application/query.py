"""
Contact Listing Query
=====================

Validated filter, sort and pagination directives for the admin listing, and
the pagination envelope returned with each page.

The SQL translation of a ContactQuery lives in the repository.
"""

import math
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from intake.config import DEFAULT_PER_PAGE, MAX_PER_PAGE
from intake.core import ValidationException

ContactStatusStr = Literal["new", "in_progress", "resolved", "closed"]
PriorityStr = Literal["low", "medium", "high", "urgent"]
SortFieldStr = Literal[
    "created_at", "updated_at", "name", "email",
    "status", "priority", "sla_deadline", "contact_id"
]
SortOrderStr = Literal["asc", "desc"]


class ContactQuery(BaseModel):
    """
    Admin listing criteria.

    All filters are optional and AND-combined; `search` matches name, email,
    contact id or message (any of them, case-insensitive).
    """
    model_config = ConfigDict(frozen=True)

    status: Optional[ContactStatusStr] = None
    priority: Optional[PriorityStr] = None
    service: Optional[str] = Field(None, max_length=100)
    search: Optional[str] = Field(None, max_length=100)
    handled_by: Optional[int] = Field(None, ge=1)
    overdue_only: bool = False
    high_priority_only: bool = False

    sort_by: SortFieldStr = "created_at"
    sort_order: SortOrderStr = "desc"

    page: int = Field(1, ge=1)
    per_page: int = Field(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)

    @classmethod
    def from_params(cls, **params: Any) -> "ContactQuery":
        """
        Build from raw request parameters.

        Blank values count as absent.

        Raises:
            ValidationException: naming each offending parameter
        """
        cleaned = {
            key: value for key, value in params.items()
            if value is not None and value != ""
        }
        try:
            return cls(**cleaned)
        except ValidationError as exc:
            raise ValidationException.from_error_list(
                "Invalid query parameters", exc.errors()
            ) from exc

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def filters_echo(self) -> dict:
        """Filters as reported back to the caller."""
        return {
            "status": self.status,
            "priority": self.priority,
            "service": self.service,
            "search": self.search,
            "handled_by": self.handled_by,
            "overdue_only": self.overdue_only,
            "high_priority_only": self.high_priority_only,
        }


class PageMeta(BaseModel):
    """Pagination envelope."""
    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None
    has_more_pages: bool

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def build(cls, total: int, page: int, per_page: int, count: int) -> "PageMeta":
        """
        Compute the envelope for one page.

        Args:
            total: Matching records across all pages
            page: 1-based page number
            per_page: Page size
            count: Records actually on this page
        """
        last_page = max(1, math.ceil(total / per_page))
        first = (page - 1) * per_page + 1 if count else None
        last = first + count - 1 if first is not None else None
        return cls(
            current_page=page,
            last_page=last_page,
            per_page=per_page,
            total=total,
            from_=first,
            to=last,
            has_more_pages=page < last_page,
        )


class ContactPage(BaseModel):
    """One page of contacts plus its envelope."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: List[Any]
    meta: PageMeta
