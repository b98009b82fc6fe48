"""
Contact Application Services
============================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: ContactService owns the contact use cases
- Dependency Inversion: Depend on abstractions (repositories, cache), not concrete implementations
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple

from intake.config import (
    CLOSED_STATUSES,
    HIGH_PRIORITIES,
    OPEN_STATUSES,
    ContactStatus,
    Priority,
)
from intake.contacts.application.query import ContactPage, ContactQuery, PageMeta
from intake.contacts.domain import (
    Contact,
    ContactChanges,
    ContactDraft,
    ContactLifecycle,
    SLAPolicy,
)
from intake.core import (
    Clock,
    DuplicateSubmissionException,
    ResourceNotFoundException,
    system_clock,
)
from intake.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IContactRepository(ABC):
    """Interface for contact data access. Soft-deleted rows are hidden unless stated."""

    @abstractmethod
    async def get(self, record_id: int) -> Optional[Contact]:
        """Get contact by storage id."""

    @abstractmethod
    async def get_by_contact_id(self, contact_id: str) -> Optional[Contact]:
        """Get contact by its public reference."""

    @abstractmethod
    async def contact_id_exists(self, contact_id: str) -> bool:
        """Check whether any record, deleted or not, uses this contact id."""

    @abstractmethod
    async def find_recent_duplicate(
        self,
        email: str,
        message: str,
        since: datetime
    ) -> Optional[Contact]:
        """Find a contact with the same email and message created after `since`."""

    @abstractmethod
    async def lock_submission(self, email: str) -> None:
        """Serialise concurrent submissions for one email within the transaction."""

    @abstractmethod
    async def add(self, contact: Contact) -> Contact:
        """Persist a new contact and return it with its storage id."""

    @abstractmethod
    async def save(self, contact: Contact) -> Contact:
        """Write back an existing contact."""

    @abstractmethod
    def on_commit(self, callback: Callable[[], None]) -> None:
        """Register a callback for when the surrounding transaction commits."""

    @abstractmethod
    async def list(self, query: ContactQuery, now: datetime) -> Tuple[List[Contact], int]:
        """Return one page of contacts and the total match count."""

    @abstractmethod
    async def overdue(self, now: datetime, since: Optional[datetime] = None) -> List[Contact]:
        """Open contacts past their deadline, earliest deadline first."""

    @abstractmethod
    async def count(self, **criteria: Any) -> int:
        """Count contacts matching simple criteria."""

    @abstractmethod
    async def response_time_samples(self) -> List[Tuple[datetime, datetime]]:
        """(request_timestamp, updation_timestamp) pairs of touched contacts."""


class IStatsCache(ABC):
    """Interface for the cached dashboard statistics."""

    @property
    @abstractmethod
    def version(self) -> int:
        """Current invalidation version."""

    @abstractmethod
    def get(self, now: datetime) -> Optional[dict]:
        """Cached stats if still valid."""

    @abstractmethod
    def put(self, value: dict, now: datetime, version: int) -> None:
        """Store stats computed while `version` was current."""

    @abstractmethod
    def invalidate(self) -> None:
        """Drop cached stats after a write."""


class ISLAPolicyProvider(ABC):
    """Interface for SLA policy access."""

    @abstractmethod
    def get_policy(self) -> SLAPolicy:
        """Get current SLA policy."""


# ========== Application Services ==========

class ContactService:
    """
    Contact use cases: intake, admin triage, tracking and statistics.

    Coordinates between the lifecycle engine and data access. Every write
    invalidates the stats cache, once on flush and again on commit.
    """

    def __init__(
        self,
        repository: IContactRepository,
        lifecycle: ContactLifecycle,
        stats_cache: IStatsCache,
        clock: Clock = system_clock,
        duplicate_window_minutes: int = 5
    ):
        self._repo = repository
        self._lifecycle = lifecycle
        self._stats_cache = stats_cache
        self._clock = clock
        self._duplicate_window = timedelta(minutes=duplicate_window_minutes)

    def now(self) -> datetime:
        return self._clock.now()

    # ---------- Intake ----------

    async def submit(self, draft: ContactDraft) -> Contact:
        """
        Create a contact from a public submission.

        The duplicate check and the insert share the caller's transaction.

        Raises:
            DuplicateSubmissionException: same email and message within the window
        """
        await self._repo.lock_submission(draft.email)

        since = self.now() - self._duplicate_window
        existing = await self._repo.find_recent_duplicate(draft.email, draft.message, since)
        if existing is not None:
            logger.info(
                "Duplicate contact submission rejected",
                extra={"contact_id": existing.contact_id, "service": draft.service}
            )
            raise DuplicateSubmissionException(existing.contact_id)

        contact = await self.create(draft)

        logger.info(
            "New contact form submission",
            extra={
                "contact_id": contact.contact_id,
                "id": contact.id,
                "service": contact.service,
                "priority": contact.priority,
                "sla_deadline": contact.sla_deadline.isoformat(),
            }
        )
        return contact

    async def create(self, draft: ContactDraft) -> Contact:
        """Create a contact without the duplicate guard (administrative seeding)."""
        contact = await self._lifecycle.on_create(draft, self._repo.contact_id_exists)
        contact = await self._repo.add(contact)
        self._invalidate_stats()
        return contact

    # ---------- Admin reads ----------

    async def list(self, query: ContactQuery) -> ContactPage:
        items, total = await self._repo.list(query, self.now())
        meta = PageMeta.build(total=total, page=query.page, per_page=query.per_page, count=len(items))
        return ContactPage(items=items, meta=meta)

    async def show(self, identifier: str) -> Contact:
        """
        Find a contact by public contact id, falling back to the storage id.

        Raises:
            ResourceNotFoundException: no live contact matches
        """
        contact = await self._repo.get_by_contact_id(identifier)
        if contact is None and identifier.isdigit():
            contact = await self._repo.get(int(identifier))
        if contact is None:
            raise ResourceNotFoundException("Contact", identifier)
        return contact

    async def get(self, record_id: int) -> Contact:
        contact = await self._repo.get(record_id)
        if contact is None:
            raise ResourceNotFoundException("Contact", str(record_id))
        return contact

    async def overdue(self) -> List[Contact]:
        return await self._repo.overdue(self.now())

    async def track(self, contact_id: str) -> Contact:
        """Look up a contact for the customer tracking portal."""
        contact = await self._repo.get_by_contact_id(contact_id)
        if contact is None:
            raise ResourceNotFoundException("Contact", contact_id)
        return contact

    # ---------- Admin writes ----------

    async def update(self, record_id: int, changes: ContactChanges) -> Contact:
        existing = await self.get(record_id)
        updated = self._lifecycle.on_update(existing, changes)
        updated = await self._repo.save(updated)
        self._invalidate_stats()

        logger.info(
            "Contact updated",
            extra={
                "contact_id": updated.contact_id,
                "id": updated.id,
                "old_status": existing.status,
                "new_status": updated.status,
                "old_priority": existing.priority,
                "new_priority": updated.priority,
                "handled_by": updated.handled_by,
            }
        )
        return updated

    async def assign(self, record_id: int, user_id: int) -> Contact:
        """Hand a contact to an administrator; a new contact moves to in_progress."""
        existing = await self.get(record_id)
        changes = ContactChanges(handled_by=user_id)
        if existing.status == ContactStatus.NEW.value:
            changes.status = ContactStatus.IN_PROGRESS.value

        updated = self._lifecycle.on_update(existing, changes)
        updated = await self._repo.save(updated)
        self._invalidate_stats()

        logger.info(
            "Contact assigned",
            extra={"contact_id": updated.contact_id, "assigned_to": user_id}
        )
        return updated

    async def delete(self, record_id: int) -> Contact:
        existing = await self.get(record_id)
        deleted = await self._repo.save(self._lifecycle.on_delete(existing))
        self._invalidate_stats()

        logger.info("Contact deleted", extra={"contact_id": deleted.contact_id, "id": record_id})
        return deleted

    # ---------- Statistics ----------

    def _invalidate_stats(self) -> None:
        # Again after commit: stats read before then still see the old rows
        self._stats_cache.invalidate()
        self._repo.on_commit(self._stats_cache.invalidate)

    async def stats(self) -> dict:
        """Dashboard statistics, served from cache until the next write."""
        now = self.now()
        cached = self._stats_cache.get(now)
        if cached is not None:
            return cached

        version = self._stats_cache.version
        stats = await self._compute_stats(now)
        self._stats_cache.put(stats, now, version)
        return stats

    async def _compute_stats(self, now: datetime) -> dict:
        count = self._repo.count

        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)

        by_status = {"total": await count()}
        for status in ContactStatus:
            by_status[status.value] = await count(status=status.value)

        by_priority = {}
        for priority in (Priority.URGENT, Priority.HIGH, Priority.MEDIUM, Priority.LOW):
            by_priority[priority.value] = await count(priority=priority.value)

        samples = await self.response_minutes()
        avg_response = round(sum(samples) / len(samples), 2) if samples else None

        return {
            "by_status": by_status,
            "by_priority": by_priority,
            "by_time": {
                "today": await count(created_from=today),
                "this_week": await count(created_from=week_start),
                "this_month": await count(created_from=month_start),
            },
            "performance": {
                "overdue": await count(overdue_at=now),
                "high_priority_pending": await count(
                    priorities=HIGH_PRIORITIES, statuses=OPEN_STATUSES
                ),
                "unassigned": await count(unassigned=True, exclude_statuses=CLOSED_STATUSES),
                "avg_response_time": avg_response,
            },
            "recent": {
                "last_24h": await count(created_from=now - timedelta(days=1)),
                "urgent_today": await count(priority=Priority.URGENT.value, created_from=today),
            },
        }

    async def response_minutes(self) -> List[float]:
        samples = await self._repo.response_time_samples()
        return [(updated - requested).total_seconds() / 60 for requested, updated in samples]
