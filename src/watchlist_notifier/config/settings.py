"""
Application configuration.

Centralizes environment variables, constants, and settings
using dataclasses for type safety and immutability.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class FirestoreSettings:
    """Firestore collection settings."""

    users_collection: str = field(
        default_factory=lambda: os.environ.get("USERS_COLLECTION", "users")
    )
    watchlist_collection: str = field(
        default_factory=lambda: os.environ.get("WATCHLIST_COLLECTION", "watchlist")
    )


@dataclass(frozen=True)
class FinnhubSettings:
    """Finnhub news API settings."""

    base_url: str = field(
        default_factory=lambda: os.environ.get(
            "FINNHUB_BASE_URL", "https://finnhub.io/api/v1"
        ).rstrip("/")
    )
    api_key: str = field(
        default_factory=lambda: os.environ.get("FINNHUB_API_KEY", "")
    )
    timeout_seconds: int = 10

    @property
    def is_configured(self) -> bool:
        """Check if Finnhub is properly configured."""
        return bool(self.base_url and self.api_key)


@dataclass(frozen=True)
class CompletionSettings:
    """Chat completion API settings (used for news summaries)."""

    api_url: str = field(
        default_factory=lambda: os.environ.get(
            "COMPLETION_API_URL", "https://api.openai.com/v1/chat/completions"
        )
    )
    api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "")
    )
    model: str = field(
        default_factory=lambda: os.environ.get("COMPLETION_MODEL", "gpt-3.5-turbo")
    )
    timeout_seconds: int = 60

    @property
    def is_configured(self) -> bool:
        """Check if the completion API is properly configured."""
        return bool(self.api_url and self.api_key)


@dataclass(frozen=True)
class MailSettings:
    """SMTP delivery and branding settings."""

    smtp_host: str = field(
        default_factory=lambda: os.environ.get("SMTP_HOST", "smtp.gmail.com")
    )
    smtp_port: int = field(
        default_factory=lambda: int(os.environ.get("SMTP_PORT", 587))
    )
    smtp_username: str = field(
        default_factory=lambda: os.environ.get("SMTP_USERNAME", "")
    )
    smtp_password: str = field(
        default_factory=lambda: os.environ.get("SMTP_PASSWORD", "")
    )
    use_tls: bool = field(
        default_factory=lambda: _env_bool("SMTP_USE_TLS", "true")
    )
    from_address: str = field(
        default_factory=lambda: os.environ.get("MAIL_FROM_ADDRESS", "")
    )
    app_name: str = field(
        default_factory=lambda: os.environ.get("APP_NAME", "Signalist")
    )
    app_url: str = field(
        default_factory=lambda: os.environ.get("APP_URL", "https://signalist.app").rstrip("/")
    )
    timeout_seconds: int = 30

    @property
    def is_configured(self) -> bool:
        """Check if SMTP delivery is properly configured."""
        return bool(self.smtp_host and self.sender_address)

    @property
    def sender_address(self) -> str:
        """Envelope sender, falling back to the SMTP login."""
        return self.from_address or self.smtp_username


@dataclass(frozen=True)
class DigestSettings:
    """Daily news digest settings."""

    max_articles: int = 6
    company_news_lookback_days: int = 5
    max_workers: int = field(
        default_factory=lambda: int(os.environ.get("DIGEST_MAX_WORKERS", 8))
    )


@dataclass(frozen=True)
class Settings:
    """Main application settings."""

    firestore: FirestoreSettings = field(default_factory=FirestoreSettings)
    finnhub: FinnhubSettings = field(default_factory=FinnhubSettings)
    completion: CompletionSettings = field(default_factory=CompletionSettings)
    mail: MailSettings = field(default_factory=MailSettings)
    digest: DigestSettings = field(default_factory=DigestSettings)
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", 8080)))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))


# Singleton settings instance
settings = Settings()
