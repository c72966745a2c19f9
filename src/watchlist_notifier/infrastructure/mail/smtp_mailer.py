"""
SMTP Mailer.

Hands rendered emails to the configured SMTP relay.
"""

import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from watchlist_notifier.config import MailSettings, settings
from watchlist_notifier.core.exceptions import ConfigurationError, MailDeliveryError
from watchlist_notifier.infrastructure.logging import get_logger, log_duration
from watchlist_notifier.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


class SmtpMailer:
    """
    Sends multipart (text + HTML) emails over SMTP.

    A new connection is opened per message so the mailer can be shared
    across the digest worker threads.
    """

    def __init__(self, mail_settings: Optional[MailSettings] = None) -> None:
        self._settings = mail_settings or settings.mail

    def build_message(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((
            sender_name or self._settings.app_name,
            self._settings.sender_address,
        ))
        message["To"] = to
        message["Message-ID"] = make_msgid()

        message.set_content(text or f"{subject}\n\nOpen this email in an HTML capable client.")
        message.add_alternative(html, subtype="html")
        return message

    @log_duration("smtp_send")
    def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> str:
        """
        Send an email.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: HTML body.
            text: Plain-text alternative.
            sender_name: Display name for the From header.

        Returns:
            The Message-ID of the sent email.

        Raises:
            ConfigurationError: If no SMTP relay or sender is configured.
            MailDeliveryError: If the SMTP exchange fails.
        """
        if not self._settings.is_configured:
            raise ConfigurationError("SMTP_HOST/MAIL_FROM_ADDRESS")

        message = self.build_message(to, subject, html, text, sender_name)
        cfg = self._settings

        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout_seconds) as server:
                if cfg.use_tls:
                    server.starttls()
                if cfg.smtp_username and cfg.smtp_password:
                    server.login(cfg.smtp_username, cfg.smtp_password)
                server.send_message(message)

        except (smtplib.SMTPException, OSError) as e:
            get_metrics().external_requests_total.inc(service="smtp", status="error")
            logger.error(
                f"SMTP delivery failed: {e}",
                extra={"extra_fields": {
                    "recipient": to,
                    "error_type": type(e).__name__,
                }}
            )
            raise MailDeliveryError(str(e), recipient=to) from e

        get_metrics().external_requests_total.inc(service="smtp", status="success")
        logger.info(
            "Email sent",
            extra={"extra_fields": {
                "recipient": to,
                "subject": subject,
                "message_id": message["Message-ID"],
            }}
        )
        return message["Message-ID"]


# Global mailer instance
_mailer: Optional[SmtpMailer] = None


def get_mailer() -> SmtpMailer:
    """Get global mailer instance."""
    global _mailer
    if _mailer is None:
        _mailer = SmtpMailer()
    return _mailer
