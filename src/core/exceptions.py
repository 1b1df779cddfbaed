"""
Core Exceptions
================

Custom exceptions for the application.

Integration failures are raised as these types by the infrastructure layer
and turned into JSON error responses at the API boundary.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        self.reason = message
        super().__init__(f"{service_name}: {message}", details)


class WarehouseConnectionException(ExternalServiceException):
    """Opening a warehouse connection failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Snowflake", message, details)


class WarehouseQueryException(ExternalServiceException):
    """A statement failed after the warehouse connection was established."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Snowflake", message, details)
