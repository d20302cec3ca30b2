"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from ticket_ai.core.exceptions import (
    ApplicationException,
    ValidationException,
    ResourceNotFoundException,
    ConflictException,
    UnauthorizedException,
    ForbiddenException,
    ConfigurationException,
    ExternalServiceException,
    LLMException,
    TriageParseException,
    NotificationException,
)

__all__ = [
    "ApplicationException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConflictException",
    "UnauthorizedException",
    "ForbiddenException",
    "ConfigurationException",
    "ExternalServiceException",
    "LLMException",
    "TriageParseException",
    "NotificationException",
]
