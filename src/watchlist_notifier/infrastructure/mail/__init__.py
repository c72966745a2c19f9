"""
Mail Package.

Template rendering and SMTP delivery.
"""

from watchlist_notifier.infrastructure.mail.sender import EmailSender
from watchlist_notifier.infrastructure.mail.smtp_mailer import SmtpMailer, get_mailer
from watchlist_notifier.infrastructure.mail.templates import (
    render_news_fallback,
    render_news_summary_email,
    render_welcome_email,
)


__all__ = [
    "EmailSender",
    "SmtpMailer",
    "get_mailer",
    "render_news_fallback",
    "render_news_summary_email",
    "render_welcome_email",
]
