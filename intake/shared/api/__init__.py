"""
Shared API
==========

Middleware and exception handlers shared by every router.
"""

from intake.shared.api.middleware import (
    CorrelationIDMiddleware,
    MetricsMiddleware,
    LoggingMiddleware,
    register_exception_handlers,
)

__all__ = [
    "CorrelationIDMiddleware",
    "MetricsMiddleware",
    "LoggingMiddleware",
    "register_exception_handlers",
]
