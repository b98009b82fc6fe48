"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="contact-intake", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/contacts",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Policy ==========
    sla_policy_path: Path = Field(
        default=Path("sla_policy.yaml"),
        description="Optional YAML file overriding SLA hours per priority"
    )

    # ========== Intake ==========
    duplicate_window_minutes: int = Field(
        default=5,
        description="Identical email+message submissions inside this window are rejected",
        ge=0
    )
    stats_cache_ttl_seconds: int = Field(
        default=300,
        description="Lifetime of the cached dashboard statistics",
        ge=0
    )

    # ========== Overdue Escalation ==========
    overdue_sweep_interval: int = Field(
        default=0,
        description="Seconds between overdue sweeps (0 disables the job)",
        ge=0
    )

    # ========== Slack Integration ==========
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack webhook URL for overdue notifications"
    )
    slack_channel: str = Field(
        default="#contact-escalations",
        description="Slack channel for overdue notifications"
    )
    slack_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for Slack API calls",
        ge=0.1,
        le=30
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class ContactStatus(str, Enum):
    """Contact workflow statuses."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Priority(str, Enum):
    """Contact priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ServiceCategory(str, Enum):
    """Service categories a customer can pick on the contact form."""
    TECHNICAL_ISSUE = "technical_issue"
    BILLING_DISPUTE = "billing_dispute"
    ACCOUNT_LOCKED = "account_locked"
    SUPPORT = "support"
    COMPLAINT = "complaint"
    GENERAL_INQUIRY = "general_inquiry"
    PARTNERSHIP = "partnership"
    SALES_INQUIRY = "sales_inquiry"


# ========== Lists for validation ==========

VALID_PRIORITIES = [p.value for p in Priority]
VALID_SERVICES = [s.value for s in ServiceCategory]

# Statuses that stop the SLA clock
CLOSED_STATUSES = [ContactStatus.RESOLVED.value, ContactStatus.CLOSED.value]
OPEN_STATUSES = [ContactStatus.NEW.value, ContactStatus.IN_PROGRESS.value]
HIGH_PRIORITIES = [Priority.HIGH.value, Priority.URGENT.value]

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100
