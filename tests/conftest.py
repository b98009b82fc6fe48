"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from intake.contacts.application import ContactService
from intake.contacts.domain import ContactDraft, ContactLifecycle
from intake.contacts.infrastructure import SQLAlchemyContactRepository, StatsCache
from intake.contacts.infrastructure.models import ContactModel  # noqa: F401
from intake.infrastructure.database import Base, get_session

# Friday; the week started on Monday 2025-03-10
FROZEN_NOW = datetime(2025, 3, 14, 10, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now += timedelta(**kwargs)
        return self._now


@pytest.fixture
def frozen_clock():
    return FrozenClock()


@pytest.fixture
async def db_session():
    """Create a test database session."""
    # Use in-memory SQLite for testing
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def file_session_maker(tmp_path):
    """File-backed database so separate sessions run separate transactions."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'contacts.db'}",
        connect_args={"timeout": 0.2},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def stats_cache():
    return StatsCache(ttl_seconds=300)


@pytest.fixture
def repository(db_session):
    return SQLAlchemyContactRepository(db_session)


@pytest.fixture
def lifecycle(frozen_clock):
    return ContactLifecycle(clock=frozen_clock)


@pytest.fixture
def contact_service(repository, lifecycle, stats_cache, frozen_clock):
    return ContactService(
        repository=repository,
        lifecycle=lifecycle,
        stats_cache=stats_cache,
        clock=frozen_clock,
    )


@pytest.fixture
def make_contact(contact_service, db_session):
    """Factory creating committed contacts through the lifecycle engine."""
    counter = {"n": 0}

    async def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "name": f"Customer {n}",
            "email": f"customer{n}@example.com",
            "service": "general_inquiry",
            "message": f"Question number {n}",
        }
        fields.update(overrides)
        contact = await contact_service.create(ContactDraft(**fields))
        await db_session.commit()
        return contact

    return _make


@pytest.fixture
async def client(db_session, frozen_clock, stats_cache):
    """Create a test client with the session, clock and stats cache overridden."""
    from intake.contacts.interfaces.controllers import get_clock, get_stats_cache
    from intake.main import app

    async def override_session():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: frozen_clock
    app.dependency_overrides[get_stats_cache] = lambda: stats_cache

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
