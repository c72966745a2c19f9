"""
Tests for the Finnhub Client.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from watchlist_notifier.core.exceptions import NewsProviderError, NewsRequestRejectedError
from watchlist_notifier.infrastructure.circuit_breaker import CircuitState
from watchlist_notifier.infrastructure.http.finnhub_client import FinnhubClient
from watchlist_notifier.infrastructure.metrics import get_metrics


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = ""
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    return response


class TestFinnhubClient:
    """Tests for FinnhubClient."""

    @pytest.fixture
    def client(self):
        client = FinnhubClient(base_url="https://finnhub.test/api/v1/", api_key="secret", timeout=5)
        client._session = MagicMock()
        return client

    def test_company_news_request(self, client):
        client.session.get.return_value = _response([{"id": 1}, "junk"])

        items = client.get_company_news("AAPL", date(2026, 10, 14), date(2026, 10, 19))

        assert items == [{"id": 1}]
        client.session.get.assert_called_once_with(
            "https://finnhub.test/api/v1/company-news",
            params={"symbol": "AAPL", "from": "2026-10-14", "to": "2026-10-19", "token": "secret"},
            timeout=5,
        )
        assert get_metrics().external_requests_total.value(service="finnhub", status="success") == 1

    def test_market_news_request(self, client):
        client.session.get.return_value = _response(None)

        assert client.get_market_news() == []
        args, kwargs = client.session.get.call_args
        assert args[0] == "https://finnhub.test/api/v1/news"
        assert kwargs["params"]["category"] == "general"

    def test_missing_api_key(self):
        client = FinnhubClient(api_key="")

        with pytest.raises(NewsProviderError, match="FINNHUB_API_KEY"):
            client.get_market_news()

    def test_http_error_carries_status(self, client):
        client.session.get.return_value = _response({"error": "limit"}, status_code=403)

        with pytest.raises(NewsProviderError) as exc_info:
            client.get_market_news()

        assert exc_info.value.status_code == 403

    def test_timeout(self, client):
        client.session.get.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(NewsProviderError, match="timeout"):
            client.get_market_news()

    def test_unexpected_payload(self, client):
        client.session.get.return_value = _response({"not": "a list"})

        with pytest.raises(NewsProviderError, match="Unexpected payload"):
            client.get_market_news()

    def test_open_circuit_rejects_calls(self, client):
        client.session.get.side_effect = requests.exceptions.ConnectionError("refused")

        for _ in range(5):
            with pytest.raises(NewsProviderError):
                client.get_market_news()

        assert client._breaker.state == CircuitState.OPEN

        with pytest.raises(NewsProviderError, match="open"):
            client.get_market_news()

        assert client.session.get.call_count == 5
        assert get_metrics().external_requests_total.value(service="finnhub", status="rejected") == 1

    def test_refused_requests_do_not_open_circuit(self, client):
        """A 4xx depends on the request, so the breaker stays closed."""
        client.session.get.return_value = _response({"error": "no access"}, status_code=403)

        for _ in range(6):
            with pytest.raises(NewsRequestRejectedError):
                client.get_company_news("AI.PA", date(2026, 10, 14), date(2026, 10, 19))

        assert client._breaker.state == CircuitState.CLOSED

    def test_rate_limit_counts_as_failure(self, client):
        client.session.get.return_value = _response({"error": "limit"}, status_code=429)

        for _ in range(5):
            with pytest.raises(NewsProviderError) as exc_info:
                client.get_market_news()
            assert not isinstance(exc_info.value, NewsRequestRejectedError)

        assert client._breaker.state == CircuitState.OPEN
