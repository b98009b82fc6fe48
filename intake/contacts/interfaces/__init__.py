"""
Contact Interfaces Layer
========================

Interface adapters (controllers) for the contacts module.

Contains:
- Controllers: FastAPI route handlers

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from intake.contacts.interfaces.controllers import contacts_router, utility_router

__all__ = ["contacts_router", "utility_router"]
