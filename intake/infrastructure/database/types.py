"""Custom SQLAlchemy types for the application."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, TypeDecorator


class UTCDateTime(TypeDecorator):
    """SQLAlchemy type that always hands back timezone-aware UTC datetimes.

    Usage:
        sla_deadline = mapped_column(UTCDateTime, nullable=True)

    PostgreSQL keeps the offset itself, SQLite stores naive text. Values are
    normalised to UTC before binding and naive results are read back as UTC,
    so comparisons against aware datetimes work on both backends.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        """Convert to UTC before storing."""
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        """Attach UTC to naive values read back from the database."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
