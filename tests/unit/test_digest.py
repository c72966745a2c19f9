"""
Tests for Daily Digest Service.

Tests per-user isolation, skipping and the concurrent send step.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from watchlist_notifier.core.exceptions import (
    CompletionError,
    MailDeliveryError,
    NewsProviderError,
)
from watchlist_notifier.infrastructure.circuit_breaker import CircuitState
from watchlist_notifier.infrastructure.firestore import NewsRecipient
from watchlist_notifier.infrastructure.http import FinnhubClient
from watchlist_notifier.infrastructure.metrics import get_metrics
from watchlist_notifier.services.digest import (
    DailyDigestService,
    DigestStatus,
    UserNews,
)
from watchlist_notifier.services.news import NewsService


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestDailyDigestService:
    """Tests for DailyDigestService."""

    @pytest.fixture
    def mock_user_repo(self):
        return MagicMock()

    @pytest.fixture
    def mock_watchlist_repo(self):
        repo = MagicMock()
        repo.get_symbols_by_email.return_value = ["AAPL"]
        return repo

    @pytest.fixture
    def mock_news(self):
        return MagicMock()

    @pytest.fixture
    def mock_summarizer(self):
        summarizer = MagicMock()
        summarizer.summarize.return_value = "<p>Summary</p>"
        return summarizer

    @pytest.fixture
    def mock_sender(self):
        sender = MagicMock()
        sender.send_news_summary_email.return_value = "<msg@example.com>"
        return sender

    @pytest.fixture
    def service(
        self,
        mock_user_repo,
        mock_watchlist_repo,
        mock_news,
        mock_summarizer,
        mock_sender,
    ):
        """Create digest service with mock dependencies."""
        return DailyDigestService(
            user_repository=mock_user_repo,
            watchlist_repository=mock_watchlist_repo,
            news_service=mock_news,
            summarizer=mock_summarizer,
            email_sender=mock_sender,
            max_articles=6,
            max_workers=4,
        )

    def test_no_users(self, service, mock_user_repo, mock_sender):
        mock_user_repo.get_all_for_news_email.return_value = []

        result = service.run(now=NOW)

        assert result.success is True
        assert result.message == "No users found for news email"
        assert result.outcomes == []
        mock_sender.send_news_summary_email.assert_not_called()

    def test_sends_to_every_user(
        self,
        service,
        mock_user_repo,
        mock_news,
        mock_sender,
        sample_recipients,
        sample_articles,
    ):
        mock_user_repo.get_all_for_news_email.return_value = sample_recipients
        mock_news.get_news.return_value = sample_articles

        result = service.run(now=NOW)

        assert result.success is True
        assert result.message == "Daily news summary emails sent successfully"
        assert result.date == "Monday, October 19, 2026"
        assert result.sent_count == 3
        assert mock_sender.send_news_summary_email.call_count == 3

        recipients = {
            call.kwargs["email"]
            for call in mock_sender.send_news_summary_email.call_args_list
        }
        assert recipients == {"a@example.com", "b@example.com", "c@example.com"}
        mock_sender.send_news_summary_email.assert_any_call(
            email="a@example.com",
            date="Monday, October 19, 2026",
            news_content="<p>Summary</p>",
        )

    def test_one_user_failure_does_not_abort_others(
        self,
        service,
        mock_user_repo,
        mock_watchlist_repo,
        mock_news,
        mock_summarizer,
        mock_sender,
        sample_recipients,
        sample_articles,
    ):
        """News, summary and send failures stay with their own user."""
        mock_user_repo.get_all_for_news_email.return_value = sample_recipients

        def symbols_for(email):
            if email == "a@example.com":
                raise NewsProviderError("down")
            return [email[0].upper()]

        mock_watchlist_repo.get_symbols_by_email.side_effect = symbols_for
        mock_news.get_news.return_value = sample_articles

        def send(email, date, news_content):
            if email == "c@example.com":
                raise MailDeliveryError("relay refused", recipient=email)
            return "<id>"

        mock_sender.send_news_summary_email.side_effect = send

        result = service.run(now=NOW)

        by_email = {o.email: o for o in result.outcomes}
        assert result.success is True
        assert by_email["a@example.com"].status == DigestStatus.SKIPPED
        assert by_email["a@example.com"].reason == "no_articles"
        assert by_email["b@example.com"].status == DigestStatus.SENT
        assert by_email["c@example.com"].status == DigestStatus.FAILED
        assert (result.sent_count, result.skipped_count, result.failed_count) == (1, 1, 1)

    def test_user_with_zero_articles_gets_no_email(
        self,
        service,
        mock_user_repo,
        mock_news,
        mock_summarizer,
        mock_sender,
        sample_recipient,
    ):
        """Empty after the general fallback means nothing is summarized or sent."""
        mock_user_repo.get_all_for_news_email.return_value = [sample_recipient]
        mock_news.get_news.return_value = []

        result = service.run(now=NOW)

        assert mock_news.get_news.call_count == 2
        mock_news.get_news.assert_called_with()
        mock_summarizer.summarize.assert_not_called()
        mock_sender.send_news_summary_email.assert_not_called()
        assert result.skipped_count == 1

    def test_summary_failure_skips_user(
        self,
        service,
        mock_user_repo,
        mock_news,
        mock_summarizer,
        mock_sender,
        sample_recipient,
        sample_articles,
    ):
        mock_user_repo.get_all_for_news_email.return_value = [sample_recipient]
        mock_news.get_news.return_value = sample_articles
        mock_summarizer.summarize.side_effect = CompletionError("quota", status_code=429)

        result = service.run(now=NOW)

        assert result.outcomes[0].status == DigestStatus.SKIPPED
        assert result.outcomes[0].reason == "summary_failed"
        assert result.outcomes[0].article_count == 2
        mock_sender.send_news_summary_email.assert_not_called()

    def test_fetch_user_news_truncates_to_max_articles(
        self,
        service,
        mock_news,
        sample_recipient,
        sample_article,
    ):
        mock_news.get_news.return_value = [sample_article] * 9

        user_news = service.fetch_user_news(sample_recipient)

        assert len(user_news.articles) == 6
        mock_news.get_news.assert_called_once_with(["AAPL"])

    def test_summarize_user_news_without_articles(self, service, sample_recipient, mock_summarizer):
        summary = service.summarize_user_news(UserNews(recipient=sample_recipient))

        assert summary.news_content is None
        assert summary.skip_reason == "no_articles"
        mock_summarizer.summarize.assert_not_called()

    def test_records_metrics(
        self,
        service,
        mock_user_repo,
        mock_news,
        sample_recipients,
        sample_articles,
    ):
        mock_user_repo.get_all_for_news_email.return_value = sample_recipients
        mock_news.get_news.return_value = sample_articles

        service.run(now=NOW)

        metrics = get_metrics()
        assert metrics.digest_runs_total.value() == 1
        assert metrics.digest_emails_total.value(status="sent") == 3
        assert metrics.digest_emails_total.value(status="failed") == 0

    def test_outcome_to_dict(
        self,
        service,
        mock_user_repo,
        mock_news,
        sample_recipient,
        sample_articles,
    ):
        mock_user_repo.get_all_for_news_email.return_value = [sample_recipient]
        mock_news.get_news.return_value = sample_articles

        result = service.run(now=NOW)

        assert result.outcomes[0].to_dict() == {
            "email": "jane@example.com",
            "article_count": 2,
            "status": "sent",
            "reason": None,
        }


class TestDigestWithFinnhub:
    """Digest runs against a real NewsService and FinnhubClient."""

    @staticmethod
    def _response(payload, status_code=200):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = payload
        response.text = ""
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
        return response

    @pytest.fixture
    def finnhub(self, raw_news):
        client = FinnhubClient(base_url="https://finnhub.test/api/v1", api_key="secret", timeout=5)
        client._session = MagicMock()

        def get(url, params, timeout):
            if url.endswith("/company-news"):
                if params["symbol"].endswith(".PA"):
                    return self._response({"error": "You don't have access to this resource."}, 403)
                return self._response([raw_news(f"{params['symbol']} news", 1760000000, news_id=1)])
            return self._response([raw_news("Market news", 1760000000, news_id=99)])

        client.session.get.side_effect = get
        return client

    def test_refused_symbols_do_not_block_other_users(self, finnhub):
        """403s for one user's watchlist leave the breaker closed for everyone else."""
        users = MagicMock()
        users.get_all_for_news_email.return_value = [
            NewsRecipient(id="fr", email="fr@example.com"),
            NewsRecipient(id="us", email="us@example.com"),
        ]
        watchlists = MagicMock()
        watchlists.get_symbols_by_email.side_effect = lambda email: (
            ["AI.PA", "MC.PA", "OR.PA", "SAN.PA", "TTE.PA"] if email.startswith("fr") else ["AAPL"]
        )
        summarizer = MagicMock()
        summarizer.summarize.return_value = "<p>Summary</p>"
        sender = MagicMock()

        service = DailyDigestService(
            user_repository=users,
            watchlist_repository=watchlists,
            news_service=NewsService(finnhub_client=finnhub, max_articles=6, lookback_days=5),
            summarizer=summarizer,
            email_sender=sender,
            max_workers=2,
        )

        result = service.run(now=NOW)

        by_email = {o.email: o for o in result.outcomes}
        assert by_email["us@example.com"].status == DigestStatus.SENT
        assert by_email["fr@example.com"].status == DigestStatus.SENT
        assert finnhub._breaker.state == CircuitState.CLOSED

        articles_for_us = summarizer.summarize.call_args_list[1].args[0]
        assert [a.headline for a in articles_for_us] == ["AAPL news"]
