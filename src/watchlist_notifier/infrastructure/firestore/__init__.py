"""
Firestore Infrastructure Package.

Exports:
- Data models (NewsRecipient, WatchlistItem)
- Repositories (UserRepository, WatchlistRepository)
"""

from watchlist_notifier.infrastructure.firestore.models import (
    NewsRecipient,
    WatchlistItem,
)
from watchlist_notifier.infrastructure.firestore.repositories import (
    FirestoreClient,
    UserRepository,
    WatchlistRepository,
)


__all__ = [
    # Models
    "NewsRecipient",
    "WatchlistItem",
    # Repositories
    "FirestoreClient",
    "UserRepository",
    "WatchlistRepository",
]
