"""
Contact Intake - Main Application
=================================

Contact-form intake and triage API.

Modules:
- Contacts: Public submission, customer tracking, admin triage and statistics

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services, DTOs and the listing query
- Domain: Entities, value objects and the lifecycle engine
- Infrastructure: Database, stats cache, Slack and the policy watcher
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configuration
from intake.config import settings

# Infrastructure
from intake.infrastructure.database import close_database, create_tables, init_database

# Contacts module
from intake.contacts.escalation import OverdueEscalator
from intake.contacts.infrastructure import OverdueScheduler, SlackClient
from intake.contacts.interfaces import contacts_router, utility_router
from intake.contacts.interfaces.controllers import policy_manager

# Shared
from intake.shared.api import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    register_exception_handlers,
)
from intake.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)

# Global service instances
overdue_scheduler: Optional[OverdueScheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load the SLA policy and watch it for changes
    4. Start the overdue escalation job when Slack is configured

    SHUTDOWN:
    1. Stop the scheduler and the policy watcher
    2. Close the Slack client
    3. Close database connections
    """
    global overdue_scheduler

    # === STARTUP ===
    setup_logging(level=settings.log_level, environment=settings.environment, service=settings.app_name)
    logger.info("Starting Contact Intake service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    init_database()
    await create_tables()

    policy_manager.load(settings.sla_policy_path)
    policy_manager.start_watching()

    slack_client = SlackClient()
    if slack_client.enabled and settings.overdue_sweep_interval > 0:
        escalator = OverdueEscalator(slack_client)
        overdue_scheduler = OverdueScheduler(interval_seconds=settings.overdue_sweep_interval)
        await overdue_scheduler.start(escalator.run)
    else:
        logger.info("Overdue escalation disabled")

    logger.info("Contact Intake service started")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Contact Intake service")

    if overdue_scheduler:
        await overdue_scheduler.stop()
        overdue_scheduler = None

    policy_manager.stop_watching()
    await slack_client.close()
    await close_database()

    logger.info("Contact Intake service shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title="Contact Intake API",
        description="""
    ## Contact-form intake and triage

    ### 📨 Public
    - `POST /api/contacts` - Submit a contact request
    - `GET /api/contacts/track/{contact_id}` - Track a request

    ### 🗂️ Admin
    - `GET /api/contacts` - Filter, sort and paginate contacts
    - `GET /api/contacts/stats` - Dashboard statistics
    - `GET /api/contacts/overdue` - Contacts past their SLA
    - `GET|PUT|PATCH|DELETE /api/contacts/{id}` - Manage a contact
    - `POST /api/contacts/{id}/assign` - Assign to an administrator

    ### ⏱️ SLA (hours)

    | Priority | Services | SLA |
    |----------|----------|-----|
    | Urgent | technical_issue, billing_dispute, account_locked | 1 |
    | High | support, complaint | 4 |
    | Medium | general_inquiry, partnership | 24 |
    | Low | anything else | 72 |
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last added runs first: correlation id is set before logging reads it
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(CorrelationIDMiddleware)
    register_exception_handlers(application)

    # === Include Module Routers ===
    application.include_router(contacts_router)
    application.include_router(utility_router)

    @application.get("/health", tags=["Health"], responses={
        200: {
            "description": "Service is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "environment": "development",
                        "checks": {
                            "sla_policy": {"urgent": 1, "high": 4, "medium": 24, "low": 72},
                            "overdue_scheduler": "stopped"
                        }
                    }
                }
            }
        }
    })
    async def health_check():
        """Health check endpoint for load balancers and orchestrators."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": {
                "sla_policy": policy_manager.get_policy().sla_hours,
                "overdue_scheduler": "running" if overdue_scheduler and overdue_scheduler.is_running else "stopped"
            }
        }

    @application.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "Contact Intake",
            "version": settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
            "endpoints": "/api/endpoints"
        }

    return application


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "intake.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
