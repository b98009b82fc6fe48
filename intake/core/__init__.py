"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from intake.core.clock import Clock, SystemClock, system_clock
from intake.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    DuplicateSubmissionException,
    ContactIdGenerationExhausted,
    ConfigurationException,
)

__all__ = [
    "Clock",
    "SystemClock",
    "system_clock",
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "DuplicateSubmissionException",
    "ContactIdGenerationExhausted",
    "ConfigurationException",
]
