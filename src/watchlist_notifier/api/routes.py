"""
Flask API Routes.

Defines all HTTP endpoints for the notifier service. Sign-up events are
pushed to /events; Cloud Scheduler calls /send-daily-news every day at
12:00 UTC.
"""

from typing import Any, Callable, Dict, Tuple

from flask import Blueprint, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from watchlist_notifier import __version__
from watchlist_notifier.api.validation import (
    EventEnvelope,
    SEND_DAILY_NEWS_EVENT,
    USER_CREATED_EVENT,
    UserCreatedEvent,
)
from watchlist_notifier.core.exceptions import (
    BusinessError,
    ConfigurationError,
    ExternalServiceError,
    UnknownEventError,
    ValidationError,
)
from watchlist_notifier.infrastructure.circuit_breaker import all_circuit_breakers
from watchlist_notifier.infrastructure.logging import get_logger
from watchlist_notifier.infrastructure.metrics import metrics_endpoint
from watchlist_notifier.services import (
    DailyDigestService,
    DigestRunResult,
    WelcomeService,
)


logger = get_logger(__name__)


api_bp = Blueprint("api", __name__)

Payload = Tuple[Dict[str, Any], int]


def _error_response(
    message: str,
    status_code: int,
    error_type: str = "error",
) -> Payload:
    """Create standardized error response."""
    return {
        "success": False,
        "error": message,
        "error_type": error_type,
    }, status_code


def _success_response(
    data: Dict[str, Any],
    status_code: int = 200,
) -> Payload:
    """Create standardized success response."""
    return {
        "success": True,
        **data,
    }, status_code


def _parse(model: type, data: Dict[str, Any]) -> BaseModel:
    """Validate a request body, reporting the first failing field."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "body"
        raise ValidationError(location, first["msg"]) from e


# ============================================================================
# Health Check
# ============================================================================

@api_bp.route("/health", methods=["GET"])
def health_check() -> Payload:
    """
    Health check endpoint for Cloud Run startup and liveness probes.

    Returns:
        Health status response, including circuit breaker states.
    """
    return _success_response({
        "status": "healthy",
        "service": "watchlist-notifier",
        "version": __version__,
        "circuits": {
            name: breaker.snapshot()
            for name, breaker in all_circuit_breakers().items()
        },
    })


@api_bp.route("/", methods=["GET"])
def root() -> Payload:
    return health_check()


@api_bp.route("/metrics", methods=["GET"])
def metrics():
    """Prometheus metrics endpoint."""
    return metrics_endpoint()


# ============================================================================
# Event Handlers
# ============================================================================

def _handle_user_created(data: Dict[str, Any]) -> Payload:
    event = _parse(UserCreatedEvent, data)

    result = WelcomeService().handle_user_created(
        email=event.email,
        name=event.name,
        investment_goals=event.investment_goals,
        risk_tolerance=event.risk_tolerance,
        preferred_industry=event.preferred_industry,
        country=event.country,
    )

    return _success_response({
        "event": USER_CREATED_EVENT,
        "email": result.email,
        "message": result.message,
    })


def _digest_response(result: DigestRunResult) -> Payload:
    return _success_response({
        "message": result.message,
        "date": result.date,
        "user_count": result.user_count,
        "sent_count": result.sent_count,
        "skipped_count": result.skipped_count,
        "failed_count": result.failed_count,
        "results": [o.to_dict() for o in result.outcomes],
    })


def _handle_send_daily_news(data: Dict[str, Any]) -> Payload:
    return _digest_response(DailyDigestService().run())


EVENT_HANDLERS: Dict[str, Callable[[Dict[str, Any]], Payload]] = {
    USER_CREATED_EVENT: _handle_user_created,
    SEND_DAILY_NEWS_EVENT: _handle_send_daily_news,
}


@api_bp.route("/events", methods=["POST"])
def receive_event() -> Payload:
    """
    Receive an application event.

    Request Body:
        name (str): Event name (app/user.created, app/send.daily.news).
        data (dict): Event payload.

    Returns:
        Handler result.
    """
    envelope = _parse(EventEnvelope, request.get_json(silent=True) or {})

    handler = EVENT_HANDLERS.get(envelope.name)
    if handler is None:
        raise UnknownEventError(envelope.name)

    logger.info(
        f"Handling event {envelope.name}",
        extra={"extra_fields": {"event_name": envelope.name}}
    )

    return handler(envelope.data)


@api_bp.route("/send-daily-news", methods=["POST"])
def send_daily_news() -> Payload:
    """
    Run the daily news digest (Cloud Scheduler target, 0 12 * * *).

    Returns:
        Digest run summary.
    """
    return _digest_response(DailyDigestService().run())


# ============================================================================
# Error Handlers
# ============================================================================

@api_bp.errorhandler(ValidationError)
def handle_validation_error(error: ValidationError) -> Payload:
    return _error_response(str(error), 400, "validation_error")


@api_bp.errorhandler(UnknownEventError)
def handle_unknown_event(error: UnknownEventError) -> Payload:
    logger.warning(
        f"Unknown event: {error.event_name}",
        extra={"extra_fields": {"event_name": error.event_name}}
    )
    return _error_response(str(error), 400, "unknown_event")


@api_bp.errorhandler(BusinessError)
def handle_business_error(error: BusinessError) -> Payload:
    """Handle business logic errors (4xx)."""
    logger.warning(
        f"Business error: {error}",
        extra={"extra_fields": {"error_type": type(error).__name__}}
    )
    return _error_response(str(error), 400, type(error).__name__)


@api_bp.errorhandler(ConfigurationError)
def handle_configuration_error(error: ConfigurationError) -> Payload:
    logger.error(
        f"Configuration error: {error}",
        extra={"extra_fields": {"config_name": error.config_name}}
    )
    return _error_response(str(error), 503, "configuration_error")


@api_bp.errorhandler(ExternalServiceError)
def handle_external_service_error(error: ExternalServiceError) -> Payload:
    """Handle external service errors (5xx)."""
    logger.error(
        f"External service error: {error}",
        extra={"extra_fields": {
            "error_type": type(error).__name__,
            "service_name": error.service_name,
        }}
    )
    return _error_response(str(error), 503, "external_service_error")


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error: Exception):
    """Handle unexpected errors (500)."""
    if isinstance(error, HTTPException):
        return error

    logger.exception(
        f"Unexpected error: {error}",
        extra={"extra_fields": {"error_type": type(error).__name__}}
    )
    return _error_response(
        "An unexpected error occurred",
        500,
        "internal_error",
    )
