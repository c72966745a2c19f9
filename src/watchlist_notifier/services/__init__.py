"""
Services Layer.

Business logic orchestration:
- Welcome email on sign-up
- Daily news digest
- News selection and summarization
- Completion API connectivity check
"""

from watchlist_notifier.services.diagnostics import (
    CompletionCheckResult,
    check_completion_api,
)
from watchlist_notifier.services.digest import (
    DailyDigestService,
    DigestRunResult,
    DigestStatus,
    UserDigestOutcome,
)
from watchlist_notifier.services.news import NewsService
from watchlist_notifier.services.summarizer import NewsSummarizer
from watchlist_notifier.services.welcome import WelcomeResult, WelcomeService


__all__ = [
    "CompletionCheckResult",
    "check_completion_api",
    "DailyDigestService",
    "DigestRunResult",
    "DigestStatus",
    "UserDigestOutcome",
    "NewsService",
    "NewsSummarizer",
    "WelcomeResult",
    "WelcomeService",
]
