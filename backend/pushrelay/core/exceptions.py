"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No credential leaks in error messages

IMPORTANT: NEVER raise the base Exception class. Always use custom exceptions.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHAT: Carries a message, an HTTP status code and free-form context.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        WHAT: ``error`` is the exception class name and is stable across
        releases; clients branch on it.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {
            "password",
            "token",
            "secret",
            "key",
            "api_key",
            "auth_key",
            "p256dh_key",
            "vapid_private_key",
        }
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class InputError(ValidationError):
    """
    Raised when input is malformed or doesn't meet constraints.

    HTTP Status: 400 Bad Request
    """

    default_message = "Invalid input"


class InvalidPayloadError(InputError):
    """
    Raised when a push payload is missing its title or body.

    HTTP Status: 400 Bad Request
    """

    default_message = "Missing required fields: title, body"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class SubscriptionNotFoundError(ResourceNotFoundError):
    """No live subscription has the requested id."""

    default_message = "Subscription not found"


class ResourceAlreadyExistsError(AppException):
    """
    Raised when attempting to create a resource that already exists.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Resource already exists"


class SubscriptionAlreadyExistsError(ResourceAlreadyExistsError):
    """
    Raised when a live subscription already uses the endpoint.

    WHAT: Duplicate endpoints are rejected, not merged. The existing
    subscription id is carried in the context so callers can recover it.
    """

    default_message = "Subscription already exists"


class ResourceGoneError(AppException):
    """
    Raised when a resource existed but is permanently unavailable.

    HTTP Status: 410 Gone
    """

    status_code = 410
    default_message = "Resource is gone"


class SubscriptionGoneError(ResourceGoneError):
    """
    Raised when the push service reports the endpoint as gone.

    WHAT: By the time this is raised the subscription has been removed,
    so its id is no longer usable.
    """

    default_message = "Subscription expired and was removed"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class PushDeliveryError(ExternalServiceError):
    """
    Raised when the push service rejects a delivery for any reason but 410.

    WHAT: The subscription is retained for the next attempt.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Failed to send push notification"


# ============================================================================
# Infrastructure Exceptions
# ============================================================================


class DatabaseError(AppException):
    """
    Raised when database operations fail.

    WHAT: Storage faults are reported with a safe message (no SQL exposed).

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Database error"


class ConfigurationError(AppException):
    """
    Raised when required configuration is missing at startup.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Service is not configured"
