"""
Shared API Middleware
======================

Common middleware and exception handlers for the FastAPI application.

Every error leaves the service in the same envelope:
``{"success": false, "message": ..., "status": ...}`` plus error specific keys.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from intake.config import settings
from intake.core import (
    ApplicationException,
    DuplicateSubmissionException,
    ResourceNotFoundException,
    ValidationException,
)
from intake.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request. Please try again."


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds correlation ID to requests for tracing.

    Correlation IDs are essential for tracing requests through
    distributed systems and linking logs.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Tracks request metrics for monitoring.

    Records response times and request counts as response headers.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.request_count = 0
        self.total_response_time = 0.0

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        self.request_count += 1

        response = await call_next(request)

        response_time = time.perf_counter() - start_time
        self.total_response_time += response_time

        response.headers["X-Response-Time"] = f"{response_time:.3f}s"
        response.headers["X-Request-Count"] = str(self.request_count)
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests and responses.

    Provides audit trail and debugging information.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = getattr(request.state, "correlation_id", "unknown")
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "response_time_ms": int((time.perf_counter() - start_time) * 1000)
                }
            )
            raise

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "response_time_ms": int((time.perf_counter() - start_time) * 1000)
            }
        )
        return response


def _envelope(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra, "status": status_code}
    )


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    return _envelope(422, exc.message, errors=exc.errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/query validation failures with per-field errors."""
    converted = ValidationException.from_error_list("The given data was invalid.", exc.errors())
    return _envelope(422, converted.message, errors=converted.errors)


async def not_found_handler(request: Request, exc: ResourceNotFoundException) -> JSONResponse:
    return _envelope(404, exc.message)


async def duplicate_submission_handler(
    request: Request,
    exc: DuplicateSubmissionException
) -> JSONResponse:
    return _envelope(429, exc.message, contact_id=exc.contact_id)


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """
    Fallback for application errors without a dedicated handler.

    Details are logged, the caller only sees a generic message.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Request failed with application error",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
            "error_details": exc.details,
        }
    )
    return _envelope(500, GENERIC_ERROR_MESSAGE, correlation_id=correlation_id)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Returns consistent error responses for all exceptions.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    # Don't expose internal details in production
    is_dev = settings.environment == "development"

    return _envelope(
        500,
        "Internal server error",
        correlation_id=correlation_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
        debug_info=str(exc) if is_dev else None
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope handlers; lookup follows the exception MRO."""
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ResourceNotFoundException, not_found_handler)
    app.add_exception_handler(DuplicateSubmissionException, duplicate_submission_handler)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
