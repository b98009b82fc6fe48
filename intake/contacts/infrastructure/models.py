"""
Contact Infrastructure Models
=============================

SQLAlchemy ORM models for the contacts module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from intake.config import ContactStatus, Priority
from intake.infrastructure.database import Base, UTCDateTime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContactModel(Base):
    """
    Database model for Contact entity.

    Maps to the 'contacts' table. Rows are soft deleted through `deleted_at`.
    """
    __tablename__ = "contacts"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Public reference, unique across live and deleted rows
    contact_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    # Submission
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    service: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Workflow
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ContactStatus.NEW.value)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=Priority.MEDIUM.value)
    sla_deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    handled_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timing
    request_timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updation_timestamp: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("ix_contacts_status", "status"),
        Index("ix_contacts_priority", "priority"),
        Index("ix_contacts_sla_deadline", "sla_deadline"),
        Index("ix_contacts_email_created_at", "email", "created_at"),
    )
