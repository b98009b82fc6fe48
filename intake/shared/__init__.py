"""
Shared Kernel Module
====================

Generic infrastructure used by every bounded context: structured logging
and the API middleware/error envelope.

DO NOT add contact business logic to the shared kernel.
"""
