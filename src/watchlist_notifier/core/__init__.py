"""Core package - Pure business logic with no external dependencies."""

from watchlist_notifier.core.exceptions import (
    BusinessError,
    CompletionError,
    CompletionRequestRejectedError,
    ConfigurationError,
    ExternalServiceError,
    InfrastructureError,
    MailDeliveryError,
    NewsProviderError,
    NewsRequestRejectedError,
    NotifierError,
    UnknownEventError,
    ValidationError,
)
from watchlist_notifier.core.news import (
    NewsArticle,
    clean_symbols,
    format_article,
    format_digest_date,
    is_valid_article,
    now_utc,
    select_general,
    select_round_robin,
)
from watchlist_notifier.core.personalization import build_welcome_intro

__all__ = [
    # News
    "NewsArticle",
    "clean_symbols",
    "format_article",
    "format_digest_date",
    "is_valid_article",
    "now_utc",
    "select_general",
    "select_round_robin",
    # Personalization
    "build_welcome_intro",
    # Exceptions
    "BusinessError",
    "CompletionError",
    "CompletionRequestRejectedError",
    "ConfigurationError",
    "ExternalServiceError",
    "InfrastructureError",
    "MailDeliveryError",
    "NewsProviderError",
    "NewsRequestRejectedError",
    "NotifierError",
    "UnknownEventError",
    "ValidationError",
]
