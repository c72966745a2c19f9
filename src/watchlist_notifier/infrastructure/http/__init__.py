"""
HTTP Client Package.

External service clients:
- Finnhub news API
- Chat completion API
"""

from watchlist_notifier.infrastructure.http.completion_client import (
    CompletionClient,
    CompletionResult,
    get_completion_client,
)
from watchlist_notifier.infrastructure.http.finnhub_client import (
    FinnhubClient,
    get_finnhub_client,
)


__all__ = [
    # Completion
    "CompletionClient",
    "CompletionResult",
    "get_completion_client",
    # Finnhub
    "FinnhubClient",
    "get_finnhub_client",
]
