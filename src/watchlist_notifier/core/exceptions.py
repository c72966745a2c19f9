"""
Custom exceptions for the watchlist notifier service.

Provides a hierarchy of business and infrastructure exceptions
for proper error handling and HTTP status code mapping.
"""

from typing import Optional


class NotifierError(Exception):
    """Base exception for all notifier errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Business Errors (4xx)
# =============================================================================

class BusinessError(NotifierError):
    """Base exception for business logic errors (typically 4xx)."""
    pass


class ValidationError(BusinessError):
    """Raised when request validation fails."""

    def __init__(self, field: str, message: str):
        super().__init__(
            f"Validation error on '{field}': {message}",
            {"field": field}
        )
        self.field = field


class UnknownEventError(BusinessError):
    """Raised when an event name has no registered handler."""

    def __init__(self, event_name: str):
        super().__init__(
            f"No handler registered for event: {event_name}",
            {"event_name": event_name}
        )
        self.event_name = event_name


# =============================================================================
# Infrastructure Errors (5xx)
# =============================================================================

class InfrastructureError(NotifierError):
    """Base exception for infrastructure errors (typically 5xx)."""
    pass


class ConfigurationError(InfrastructureError):
    """Raised when a required configuration is missing."""

    def __init__(self, config_name: str, message: Optional[str] = None):
        msg = message or f"Configuration missing: {config_name}"
        super().__init__(msg, {"config_name": config_name})
        self.config_name = config_name


class ExternalServiceError(InfrastructureError):
    """Raised when an external service call fails."""

    def __init__(
        self,
        service_name: str,
        message: str,
        status_code: Optional[int] = None,
        duration_ms: Optional[int] = None,
    ):
        super().__init__(
            f"{service_name} error: {message}",
            {
                "service_name": service_name,
                "status_code": status_code,
                "duration_ms": duration_ms,
            }
        )
        self.service_name = service_name
        self.status_code = status_code
        self.duration_ms = duration_ms


class NewsProviderError(ExternalServiceError):
    """Raised when the Finnhub news API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        duration_ms: Optional[int] = None,
    ):
        super().__init__("Finnhub", message, status_code, duration_ms)


class NewsRequestRejectedError(NewsProviderError):
    """Raised when Finnhub refuses one request (4xx other than 429)."""
    pass


class CompletionError(ExternalServiceError):
    """Raised when the chat completion API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ):
        super().__init__("Completion", message, status_code, duration_ms)
        self.error_code = error_code
        self.details["error_code"] = error_code


class CompletionRequestRejectedError(CompletionError):
    """Raised when the completion API refuses one request (4xx other than 429)."""
    pass


def is_request_rejection(status_code: Optional[int]) -> bool:
    """A 4xx caused by the request itself rather than by provider health."""
    return status_code is not None and 400 <= status_code < 500 and status_code != 429


class MailDeliveryError(ExternalServiceError):
    """Raised when an email cannot be handed to the SMTP server."""

    def __init__(self, message: str, recipient: Optional[str] = None):
        super().__init__("SMTP", message)
        self.recipient = recipient
        self.details["recipient"] = recipient
