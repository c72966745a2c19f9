"""
Notification Emails.

Subject lines, sender names and templates for the two emails the
service sends.
"""

from typing import Optional

from watchlist_notifier.config import settings
from watchlist_notifier.infrastructure.mail.smtp_mailer import SmtpMailer, get_mailer
from watchlist_notifier.infrastructure.mail.templates import (
    render_news_summary_email,
    render_welcome_email,
)


class EmailSender:
    """Renders and sends the welcome and daily digest emails."""

    def __init__(
        self,
        mailer: Optional[SmtpMailer] = None,
        app_name: Optional[str] = None,
    ) -> None:
        self._mailer = mailer or get_mailer()
        self._app_name = app_name or settings.mail.app_name

    def send_welcome_email(self, email: str, name: str, intro: str) -> str:
        """
        Send the sign-up welcome email.

        Returns:
            Message-ID of the sent email.
        """
        return self._mailer.send(
            to=email,
            subject=f"Welcome to {self._app_name} - your stock market toolkit is ready!",
            html=render_welcome_email(name=name, intro=intro),
            text=f"Thanks for joining {self._app_name}\n\n{intro}",
            sender_name=self._app_name,
        )

    def send_news_summary_email(self, email: str, date: str, news_content: str) -> str:
        """
        Send the daily market news digest.

        Returns:
            Message-ID of the sent email.
        """
        return self._mailer.send(
            to=email,
            subject=f"Market News Summary Today - {date}",
            html=render_news_summary_email(date=date, news_content=news_content),
            text=f"Your market news summary for {date} from {self._app_name}.",
            sender_name=f"{self._app_name} News",
        )
