"""Configuration package."""

from watchlist_notifier.config.settings import (
    Settings,
    CompletionSettings,
    DigestSettings,
    FinnhubSettings,
    FirestoreSettings,
    MailSettings,
    settings,
)

__all__ = [
    "Settings",
    "CompletionSettings",
    "DigestSettings",
    "FinnhubSettings",
    "FirestoreSettings",
    "MailSettings",
    "settings",
]
