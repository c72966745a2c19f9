"""
Infrastructure Layer.

This layer contains all external dependencies and adapters:
- Logging configuration and metrics
- Firestore repositories
- HTTP clients (Finnhub, chat completion)
- Email templates and SMTP delivery
"""

from watchlist_notifier.infrastructure.logging import (
    get_logger,
    log_duration,
    log_request_context,
    logger,
    StructuredLogger,
)


__all__ = [
    "get_logger",
    "log_duration",
    "log_request_context",
    "logger",
    "StructuredLogger",
]
