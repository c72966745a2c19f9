"""
Daily News Digest Service.

Runs the daily digest for every user:

1. load-users: everyone with an email address
2. fetch-user-news: watchlist news, or general market news as fallback
3. summarize-news: articles -> HTML fragment
4. send-emails: concurrent, unordered delivery

A failure for one user never stops the others. A user with no articles,
or whose summary failed, is skipped.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from watchlist_notifier.config import settings
from watchlist_notifier.core.news import NewsArticle, format_digest_date, now_utc
from watchlist_notifier.infrastructure.firestore import (
    NewsRecipient,
    UserRepository,
    WatchlistRepository,
)
from watchlist_notifier.infrastructure.logging import get_logger, log_duration
from watchlist_notifier.infrastructure.mail import EmailSender
from watchlist_notifier.infrastructure.metrics import get_metrics
from watchlist_notifier.services.news import NewsService
from watchlist_notifier.services.summarizer import NewsSummarizer


logger = get_logger(__name__)


class DigestStatus(str, Enum):
    """Outcome of the digest for one user."""
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class UserNews:
    """Articles selected for one user."""
    recipient: NewsRecipient
    articles: List[NewsArticle] = field(default_factory=list)


@dataclass(frozen=True)
class UserSummary:
    """Digest body for one user; None when there is nothing to send."""
    recipient: NewsRecipient
    article_count: int
    news_content: Optional[str] = None
    skip_reason: Optional[str] = None


@dataclass(frozen=True)
class UserDigestOutcome:
    """Per-user result of a digest run."""
    email: str
    article_count: int
    status: DigestStatus
    reason: Optional[str] = None
    message_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "article_count": self.article_count,
            "status": self.status.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class DigestRunResult:
    """Result of a full digest run."""
    success: bool
    message: str
    date: Optional[str] = None
    outcomes: List[UserDigestOutcome] = field(default_factory=list)

    def count(self, status: DigestStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def user_count(self) -> int:
        return len(self.outcomes)

    @property
    def sent_count(self) -> int:
        return self.count(DigestStatus.SENT)

    @property
    def skipped_count(self) -> int:
        return self.count(DigestStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self.count(DigestStatus.FAILED)


class DailyDigestService:
    """
    Service for the daily personalized news digest.

    Responsible for:
    - Loading digest recipients
    - Selecting news per user with general news fallback
    - Summarizing and sending, isolating failures per user
    """

    def __init__(
        self,
        user_repository: Optional[UserRepository] = None,
        watchlist_repository: Optional[WatchlistRepository] = None,
        news_service: Optional[NewsService] = None,
        summarizer: Optional[NewsSummarizer] = None,
        email_sender: Optional[EmailSender] = None,
        max_articles: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._user_repo = user_repository or UserRepository()
        self._watchlist_repo = watchlist_repository or WatchlistRepository()
        self._news = news_service or NewsService()
        self._summarizer = summarizer or NewsSummarizer()
        self._sender = email_sender or EmailSender()
        self._max_articles = max_articles or settings.digest.max_articles
        self._max_workers = max_workers or settings.digest.max_workers

    def fetch_user_news(self, recipient: NewsRecipient) -> UserNews:
        """
        Select the articles for one user.

        Watchlist news first, general market news when that yields nothing.
        Any error results in an empty selection for this user only.
        """
        try:
            symbols = self._watchlist_repo.get_symbols_by_email(recipient.email)
            articles = self._news.get_news(symbols)[:self._max_articles]

            if not articles:
                articles = self._news.get_news()[:self._max_articles]

            return UserNews(recipient=recipient, articles=articles)

        except Exception as e:
            logger.error(
                f"Failed to fetch news for user: {e}",
                extra={"extra_fields": {
                    "email": recipient.email,
                    "error_type": type(e).__name__,
                }}
            )
            return UserNews(recipient=recipient, articles=[])

    def summarize_user_news(self, user_news: UserNews) -> UserSummary:
        """Summarize one user's articles; failures leave the content empty."""
        recipient = user_news.recipient
        article_count = len(user_news.articles)

        if not user_news.articles:
            return UserSummary(recipient, 0, skip_reason="no_articles")

        try:
            content = self._summarizer.summarize(user_news.articles)
            return UserSummary(recipient, article_count, news_content=content)

        except Exception as e:
            logger.error(
                f"Failed to summarize news for user: {e}",
                extra={"extra_fields": {
                    "email": recipient.email,
                    "article_count": article_count,
                    "error_type": type(e).__name__,
                }}
            )
            return UserSummary(recipient, article_count, skip_reason="summary_failed")

    def _send_one(self, summary: UserSummary, date: str) -> UserDigestOutcome:
        email = summary.recipient.email
        try:
            message_id = self._sender.send_news_summary_email(
                email=email,
                date=date,
                news_content=summary.news_content,
            )
        except Exception as e:
            logger.error(
                f"Failed to send digest email: {e}",
                extra={"extra_fields": {
                    "email": email,
                    "error_type": type(e).__name__,
                }}
            )
            return UserDigestOutcome(
                email=email,
                article_count=summary.article_count,
                status=DigestStatus.FAILED,
                reason=str(e),
            )

        return UserDigestOutcome(
            email=email,
            article_count=summary.article_count,
            status=DigestStatus.SENT,
            message_id=message_id,
        )

    def send_emails(self, summaries: List[UserSummary], date: str) -> List[UserDigestOutcome]:
        """
        Dispatch all digest emails concurrently.

        Outcomes are returned in completion order. Users without content
        are reported as skipped and never reach the mailer.
        """
        outcomes: List[UserDigestOutcome] = []
        to_send: List[UserSummary] = []

        for summary in summaries:
            if summary.news_content:
                to_send.append(summary)
            else:
                outcomes.append(UserDigestOutcome(
                    email=summary.recipient.email,
                    article_count=summary.article_count,
                    status=DigestStatus.SKIPPED,
                    reason=summary.skip_reason,
                ))

        if not to_send:
            return outcomes

        workers = max(1, min(self._max_workers, len(to_send)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="digest-send") as executor:
            futures = [executor.submit(self._send_one, s, date) for s in to_send]
            for future in as_completed(futures):
                outcomes.append(future.result())

        return outcomes

    @log_duration("daily_news_digest")
    def run(self, now: Optional[datetime] = None) -> DigestRunResult:
        """
        Run the digest for every user.

        Args:
            now: Reference time for the digest date.

        Returns:
            DigestRunResult with per-user outcomes.
        """
        metrics = get_metrics()
        metrics.digest_runs_total.inc()

        recipients = self._user_repo.get_all_for_news_email()
        if not recipients:
            logger.info("No users found for news email")
            return DigestRunResult(success=True, message="No users found for news email")

        date = format_digest_date(now or now_utc())
        logger.info(
            f"Starting daily digest for {len(recipients)} users",
            extra={"extra_fields": {"user_count": len(recipients), "date": date}}
        )

        user_news = [self.fetch_user_news(r) for r in recipients]
        summaries = [self.summarize_user_news(n) for n in user_news]
        outcomes = self.send_emails(summaries, date)

        result = DigestRunResult(
            success=True,
            message="Daily news summary emails sent successfully",
            date=date,
            outcomes=outcomes,
        )

        for status in DigestStatus:
            count = result.count(status)
            if count:
                metrics.digest_emails_total.inc(count, status=status.value)

        logger.info(
            f"Daily digest complete: {result.sent_count} sent, "
            f"{result.skipped_count} skipped, {result.failed_count} failed",
            extra={"extra_fields": {
                "user_count": result.user_count,
                "sent_count": result.sent_count,
                "skipped_count": result.skipped_count,
                "failed_count": result.failed_count,
            }}
        )

        return result
