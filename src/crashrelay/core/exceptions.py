"""
Custom exceptions for CrashRelay service.

Provides structured error handling with appropriate HTTP status codes
and error details for API responses.
"""

from typing import Any, Dict, Optional


class CrashRelayException(Exception):
    """Base exception for CrashRelay service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(CrashRelayException):
    """Raised when an inbound webhook request is not acceptable input."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="validation_error",
            details=details,
        )


class AuthenticationError(CrashRelayException):
    """Raised when the webhook token does not match."""

    def __init__(self, message: str = "invalid authentication token") -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="authentication_error",
        )


class DeliveryError(CrashRelayException):
    """Raised when pushing an event to Humio fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=502,
            error_code="delivery_error",
            details=details,
        )


class ConfigurationError(CrashRelayException):
    """Raised at startup when settings are missing or invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=500,
            error_code="configuration_error",
            details=details,
        )
