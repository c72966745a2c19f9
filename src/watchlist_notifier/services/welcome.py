"""
Welcome Email Service.

Handles the user sign-up event.
"""

from dataclasses import dataclass
from typing import Optional

from watchlist_notifier.config import settings
from watchlist_notifier.core.personalization import build_welcome_intro
from watchlist_notifier.infrastructure.logging import get_logger, log_duration
from watchlist_notifier.infrastructure.mail import EmailSender
from watchlist_notifier.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


@dataclass(frozen=True)
class WelcomeResult:
    """Result of handling a sign-up event."""
    email: str
    success: bool
    message: str
    message_id: Optional[str] = None


class WelcomeService:
    """Sends the personalized welcome email to a new user."""

    def __init__(self, email_sender: Optional[EmailSender] = None) -> None:
        self._sender = email_sender or EmailSender()

    @log_duration("send_welcome_email")
    def handle_user_created(
        self,
        email: str,
        name: str,
        investment_goals: Optional[str] = None,
        risk_tolerance: Optional[str] = None,
        preferred_industry: Optional[str] = None,
        country: Optional[str] = None,
    ) -> WelcomeResult:
        """
        Build the intro from the sign-up profile and send the welcome email.

        Delivery errors propagate so the caller's trigger can retry.

        Returns:
            WelcomeResult for the user.

        Raises:
            MailDeliveryError: If the email cannot be sent.
        """
        intro = build_welcome_intro(
            preferred_industry=preferred_industry,
            investment_goals=investment_goals,
            risk_tolerance=risk_tolerance,
            app_name=settings.mail.app_name,
        )

        logger.info(
            "Sending welcome email",
            extra={"extra_fields": {
                "email": email,
                "investment_goals": investment_goals,
                "risk_tolerance": risk_tolerance,
                "country": country,
            }}
        )

        message_id = self._sender.send_welcome_email(email=email, name=name, intro=intro)
        get_metrics().welcome_emails_sent_total.inc()

        return WelcomeResult(
            email=email,
            success=True,
            message="Welcome email process completed",
            message_id=message_id,
        )
