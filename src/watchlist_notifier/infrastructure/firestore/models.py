"""
Firestore Data Models.

Domain models representing Firestore documents.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NewsRecipient:
    """
    A user who receives the daily news digest.

    Attributes:
        id: Firestore document ID of the user.
        email: Delivery address.
        name: Display name used in the greeting.
        country: Country selected at sign-up.
    """
    id: str
    email: str
    name: str = ""
    country: Optional[str] = None

    @classmethod
    def from_firestore(cls, doc_id: str, data: Dict[str, Any]) -> "NewsRecipient":
        """
        Create a NewsRecipient from a user document.

        Args:
            doc_id: Document ID.
            data: Document data dictionary.

        Returns:
            NewsRecipient instance.
        """
        return cls(
            id=str(data.get("id") or doc_id),
            email=str(data.get("email", "")).strip(),
            name=data.get("name") or "",
            country=data.get("country"),
        )


@dataclass(frozen=True)
class WatchlistItem:
    """A stock the user is watching."""
    doc_id: str
    user_id: str
    symbol: str

    @classmethod
    def from_firestore(cls, doc_id: str, data: Dict[str, Any]) -> "WatchlistItem":
        return cls(
            doc_id=doc_id,
            user_id=str(data.get("user_id") or data.get("userId") or ""),
            symbol=str(data.get("symbol", "")).strip().upper(),
        )
