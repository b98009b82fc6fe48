"""
Contact Infrastructure Repositories
===================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how contacts are stored,
filtered, sorted and paginated in the database.
"""

from datetime import datetime
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy import and_, asc, case, desc, event, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intake.config import CLOSED_STATUSES, HIGH_PRIORITIES
from intake.contacts.application import ContactQuery, IContactRepository
from intake.contacts.domain import PRIORITY_RANK, Contact
from intake.contacts.infrastructure.models import ContactModel
from intake.core import RepositoryException
from intake.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_PRIORITY_ORDER = case(PRIORITY_RANK, value=ContactModel.priority, else_=0)

_SORT_COLUMNS = {
    "created_at": ContactModel.created_at,
    "updated_at": ContactModel.updated_at,
    "name": ContactModel.name,
    "email": ContactModel.email,
    "status": ContactModel.status,
    "priority": _PRIORITY_ORDER,
    "sla_deadline": ContactModel.sla_deadline,
    "contact_id": ContactModel.contact_id,
}

_SEARCH_COLUMNS = (
    ContactModel.name,
    ContactModel.email,
    ContactModel.contact_id,
    ContactModel.message,
)

_ENTITY_FIELDS = (
    "contact_id", "name", "email", "phone", "service", "message",
    "status", "priority", "sla_deadline", "handled_by", "admin_notes",
    "request_timestamp", "updation_timestamp", "created_at", "updated_at",
    "deleted_at",
)


def _to_entity(model: ContactModel) -> Contact:
    return Contact(id=model.id, **{name: getattr(model, name) for name in _ENTITY_FIELDS})


def _overdue_condition(now: datetime):
    return and_(
        ContactModel.sla_deadline < now,
        ContactModel.status.not_in(CLOSED_STATUSES),
    )


class SQLAlchemyContactRepository(IContactRepository):
    """
    SQLAlchemy implementation of the contact repository.

    Handles persistence of Contact entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _live():
        return ContactModel.deleted_at.is_(None)

    async def _first(self, stmt) -> Optional[Contact]:
        result = await self._session.execute(stmt.limit(1))
        model = result.scalars().first()
        return _to_entity(model) if model else None

    async def get(self, record_id: int) -> Optional[Contact]:
        """Get live contact by storage id."""
        stmt = select(ContactModel).where(ContactModel.id == record_id, self._live())
        return await self._first(stmt)

    async def get_by_contact_id(self, contact_id: str) -> Optional[Contact]:
        """Get live contact by public reference."""
        stmt = select(ContactModel).where(ContactModel.contact_id == contact_id, self._live())
        return await self._first(stmt)

    async def contact_id_exists(self, contact_id: str) -> bool:
        """Check for the id among all rows, soft-deleted included."""
        stmt = select(ContactModel.id).where(ContactModel.contact_id == contact_id)
        result = await self._session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def find_recent_duplicate(
        self,
        email: str,
        message: str,
        since: datetime
    ) -> Optional[Contact]:
        stmt = (
            select(ContactModel)
            .where(
                ContactModel.email == email,
                ContactModel.message == message,
                ContactModel.created_at > since,
                self._live(),
            )
            .order_by(ContactModel.created_at.desc())
        )
        return await self._first(stmt)

    async def lock_submission(self, email: str) -> None:
        """
        Serialise the duplicate check and insert for one submission.

        PostgreSQL takes a transaction-scoped advisory lock keyed by email.
        SQLite has no row or advisory locks, so the transaction is opened with
        BEGIN IMMEDIATE, which holds the database write lock until commit.
        """
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            await self._session.execute(
                select(func.pg_advisory_xact_lock(func.hashtext(email.lower())))
            )
        elif dialect == "sqlite":
            conn = await self._session.connection()
            raw = await conn.get_raw_connection()
            # an open transaction has already written and holds the lock
            if not raw.driver_connection.in_transaction:
                await conn.exec_driver_sql("BEGIN IMMEDIATE")

    async def add(self, contact: Contact) -> Contact:
        """Insert a new contact; the unique index guards contact_id."""
        model = ContactModel(**{name: getattr(contact, name) for name in _ENTITY_FIELDS})
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            logger.error(
                "Contact insert rejected by database",
                extra={"contact_id": contact.contact_id, "error": str(e.orig)}
            )
            raise RepositoryException(
                "Contact could not be stored",
                {"contact_id": contact.contact_id}
            ) from e
        return _to_entity(model)

    async def save(self, contact: Contact) -> Contact:
        """Write back every mutable field of an existing contact."""
        if contact.id is None:
            raise RepositoryException("Cannot save a contact without an id")

        model = await self._session.get(ContactModel, contact.id)
        if model is None:
            raise RepositoryException(f"Contact {contact.id} not found")

        for name in _ENTITY_FIELDS:
            if name != "contact_id":
                setattr(model, name, getattr(contact, name))

        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(
                "Contact could not be updated",
                {"contact_id": contact.contact_id}
            ) from e
        return _to_entity(model)

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run `callback` once the current transaction commits."""
        event.listen(
            self._session.sync_session, "after_commit", lambda session: callback(), once=True
        )

    # ---------- Listing ----------

    def _conditions(self, query: ContactQuery, now: datetime) -> list:
        conditions = [self._live()]

        if query.status:
            conditions.append(ContactModel.status == query.status)
        if query.priority:
            conditions.append(ContactModel.priority == query.priority)
        if query.service:
            conditions.append(ContactModel.service == query.service)
        if query.handled_by is not None:
            conditions.append(ContactModel.handled_by == query.handled_by)
        if query.overdue_only:
            conditions.append(_overdue_condition(now))
        if query.high_priority_only:
            conditions.append(ContactModel.priority.in_(HIGH_PRIORITIES))
        if query.search:
            term = query.search.lower()
            conditions.append(or_(*(
                func.lower(column).contains(term, autoescape=True)
                for column in _SEARCH_COLUMNS
            )))

        return conditions

    async def list(self, query: ContactQuery, now: datetime) -> Tuple[List[Contact], int]:
        """One page of matching contacts plus the total match count."""
        conditions = self._conditions(query, now)

        count_stmt = select(func.count(ContactModel.id)).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        direction = asc if query.sort_order == "asc" else desc
        stmt = (
            select(ContactModel)
            .where(*conditions)
            .order_by(direction(_SORT_COLUMNS[query.sort_by]), direction(ContactModel.id))
            .limit(query.per_page)
            .offset(query.offset)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()], total

    async def overdue(self, now: datetime, since: Optional[datetime] = None) -> List[Contact]:
        stmt = select(ContactModel).where(self._live(), _overdue_condition(now))
        if since is not None:
            stmt = stmt.where(ContactModel.sla_deadline >= since)
        stmt = stmt.order_by(ContactModel.sla_deadline.asc(), ContactModel.id.asc())

        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    # ---------- Aggregates ----------

    async def count(self, **criteria: Any) -> int:
        """
        Count live contacts.

        Supported criteria: status, priority, statuses, priorities,
        exclude_statuses, created_from, overdue_at, unassigned.
        """
        conditions = [self._live()]

        for key, value in criteria.items():
            if key == "status":
                conditions.append(ContactModel.status == value)
            elif key == "priority":
                conditions.append(ContactModel.priority == value)
            elif key == "statuses":
                conditions.append(ContactModel.status.in_(value))
            elif key == "priorities":
                conditions.append(ContactModel.priority.in_(value))
            elif key == "exclude_statuses":
                conditions.append(ContactModel.status.not_in(value))
            elif key == "created_from":
                conditions.append(ContactModel.created_at >= value)
            elif key == "overdue_at":
                conditions.append(_overdue_condition(value))
            elif key == "unassigned":
                if value:
                    conditions.append(ContactModel.handled_by.is_(None))
            else:
                raise ValueError(f"Unsupported count criterion: {key}")

        stmt = select(func.count(ContactModel.id)).where(*conditions)
        return (await self._session.execute(stmt)).scalar_one()

    async def response_time_samples(self) -> List[Tuple[datetime, datetime]]:
        stmt = select(ContactModel.request_timestamp, ContactModel.updation_timestamp).where(
            self._live(),
            ContactModel.updation_timestamp.is_not(None),
        )
        result = await self._session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]
