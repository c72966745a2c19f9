"""
Firestore Repositories.

Repository pattern implementation for the users and watchlist
collections shared with the web app.
"""

from typing import List, Optional

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from watchlist_notifier.config import settings
from watchlist_notifier.infrastructure.firestore.models import (
    NewsRecipient,
    WatchlistItem,
)
from watchlist_notifier.infrastructure.logging import get_logger, log_duration


logger = get_logger(__name__)


class FirestoreClient:
    """Firestore client singleton."""

    _instance: Optional[firestore.Client] = None

    @classmethod
    def get_client(cls) -> firestore.Client:
        """Get or create Firestore client."""
        if cls._instance is None:
            cls._instance = firestore.Client()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset client (for testing)."""
        cls._instance = None


class UserRepository:
    """Repository for user documents."""

    def __init__(self, client: Optional[firestore.Client] = None) -> None:
        self._client = client or FirestoreClient.get_client()
        self._collection_name = settings.firestore.users_collection

    @property
    def collection(self):
        """Get the users collection reference."""
        return self._client.collection(self._collection_name)

    @log_duration("fetch_news_recipients")
    def get_all_for_news_email(self) -> List[NewsRecipient]:
        """
        Get every user that can receive the news digest.

        Users without an email address are left out.

        Returns:
            List of NewsRecipient.
        """
        recipients = []
        skipped = 0

        for doc in self.collection.stream():
            recipient = NewsRecipient.from_firestore(doc.id, doc.to_dict() or {})
            if not recipient.email:
                skipped += 1
                continue
            recipients.append(recipient)

        logger.info(
            f"Loaded {len(recipients)} news email recipients",
            extra={"extra_fields": {
                "recipient_count": len(recipients),
                "skipped_without_email": skipped,
            }}
        )

        return recipients

    def get_id_by_email(self, email: str) -> Optional[str]:
        """
        Resolve a user document ID from an email address.

        Returns:
            The user ID, or None if no user has this email.
        """
        query = self.collection.where("email", "==", email).limit(1)

        for doc in query.stream():
            data = doc.to_dict() or {}
            return str(data.get("id") or doc.id)

        return None


class WatchlistRepository:
    """Repository for watchlist item documents."""

    def __init__(
        self,
        client: Optional[firestore.Client] = None,
        user_repository: Optional[UserRepository] = None,
    ) -> None:
        self._client = client or FirestoreClient.get_client()
        self._collection_name = settings.firestore.watchlist_collection
        self._user_repo = user_repository or UserRepository(self._client)

    @property
    def collection(self):
        """Get the watchlist collection reference."""
        return self._client.collection(self._collection_name)

    def get_items_for_user(self, user_id: str) -> List[WatchlistItem]:
        query = self.collection.where("user_id", "==", user_id)
        return [
            WatchlistItem.from_firestore(doc.id, doc.to_dict() or {})
            for doc in query.stream()
        ]

    def get_symbols_by_email(self, email: str) -> List[str]:
        """
        Get the watchlist symbols of the user owning an email address.

        Lookup failures are logged and reported as an empty watchlist so
        the caller can fall back to general market news.

        Args:
            email: The user's email address.

        Returns:
            Upper-cased symbols, empty if the user is unknown.
        """
        try:
            user_id = self._user_repo.get_id_by_email(email)
            if not user_id:
                logger.info(
                    "No user found for watchlist lookup",
                    extra={"extra_fields": {"email": email}}
                )
                return []

            return [
                item.symbol
                for item in self.get_items_for_user(user_id)
                if item.symbol
            ]

        except gcp_exceptions.GoogleAPIError as e:
            logger.error(
                f"Failed to load watchlist symbols: {e}",
                extra={"extra_fields": {
                    "email": email,
                    "error_type": type(e).__name__,
                }}
            )
            return []
