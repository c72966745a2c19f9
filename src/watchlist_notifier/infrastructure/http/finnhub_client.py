"""
Finnhub News API Client.

Fetches company news for watchlist symbols and general market news.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from watchlist_notifier.config import settings
from watchlist_notifier.core.exceptions import (
    NewsProviderError,
    NewsRequestRejectedError,
    is_request_rejection,
)
from watchlist_notifier.infrastructure.circuit_breaker import (
    CircuitBreakerConfig,
    CircuitBreakerOpenError,
    get_circuit_breaker,
)
from watchlist_notifier.infrastructure.logging import get_logger, log_duration
from watchlist_notifier.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


class FinnhubClient:
    """
    Client for the Finnhub REST API.

    Uses connection pooling and retry logic for resilience. Every call
    goes through the shared "finnhub" circuit breaker.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Initialize Finnhub client.

        Args:
            base_url: Finnhub API base URL.
            api_key: Finnhub API token.
            timeout: Request timeout in seconds.
        """
        self._base_url = (base_url or settings.finnhub.base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.finnhub.api_key
        self._timeout = timeout or settings.finnhub.timeout_seconds
        self._session: Optional[requests.Session] = None
        self._breaker = get_circuit_breaker(
            "finnhub",
            CircuitBreakerConfig(
                failure_threshold=5,
                timeout_seconds=60.0,
                excluded_exceptions=(NewsRequestRejectedError,),
            ),
        )

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retry logic."""
        if self._session is None:
            self._session = requests.Session()

            retry_strategy = Retry(
                total=3,
                backoff_factor=0.5,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["GET"],
            )

            adapter = HTTPAdapter(
                max_retries=retry_strategy,
                pool_connections=10,
                pool_maxsize=10,
            )

            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

            self._session.headers.update({"Accept": "application/json"})

        return self._session

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Any:
        if not self._api_key:
            raise NewsProviderError("FINNHUB_API_KEY is not configured")
        try:
            return self._breaker.call(self._do_get, endpoint, params)
        except CircuitBreakerOpenError as e:
            get_metrics().external_requests_total.inc(service="finnhub", status="rejected")
            raise NewsProviderError(str(e)) from e

    def _do_get(self, endpoint: str, params: Dict[str, Any]) -> Any:
        """
        Make a GET request to the Finnhub API.

        Raises:
            NewsProviderError: If request fails.
        """
        url = f"{self._base_url}/{endpoint.lstrip('/')}"
        query = {**params, "token": self._api_key}

        try:
            response = self.session.get(url, params=query, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()

        except requests.exceptions.Timeout as e:
            get_metrics().external_requests_total.inc(service="finnhub", status="timeout")
            logger.error(
                f"Finnhub timeout: {endpoint}",
                extra={"extra_fields": {
                    "endpoint": endpoint,
                    "timeout": self._timeout,
                }}
            )
            raise NewsProviderError(f"Finnhub timeout: {e}") from e

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code
            get_metrics().external_requests_total.inc(service="finnhub", status="http_error")
            logger.error(
                f"Finnhub HTTP error: {status_code}",
                extra={"extra_fields": {
                    "endpoint": endpoint,
                    "status_code": status_code,
                    "response_body": e.response.text[:500] if e.response.text else None,
                }}
            )
            error_class = (
                NewsRequestRejectedError if is_request_rejection(status_code) else NewsProviderError
            )
            raise error_class(
                f"Finnhub error {status_code} on {endpoint}",
                status_code=status_code,
            ) from e

        except requests.exceptions.RequestException as e:
            get_metrics().external_requests_total.inc(service="finnhub", status="error")
            logger.error(
                f"Finnhub request failed: {e}",
                extra={"extra_fields": {
                    "endpoint": endpoint,
                    "error_type": type(e).__name__,
                }}
            )
            raise NewsProviderError(f"Finnhub request failed: {e}") from e

        except ValueError as e:
            get_metrics().external_requests_total.inc(service="finnhub", status="error")
            raise NewsProviderError(f"Finnhub returned invalid JSON on {endpoint}") from e

        get_metrics().external_requests_total.inc(service="finnhub", status="success")
        return payload

    @staticmethod
    def _as_list(payload: Any, endpoint: str) -> List[Dict[str, Any]]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise NewsProviderError(f"Unexpected payload from {endpoint}: {type(payload).__name__}")
        return [item for item in payload if isinstance(item, dict)]

    @log_duration("finnhub_company_news")
    def get_company_news(
        self,
        symbol: str,
        from_date: date,
        to_date: date,
    ) -> List[Dict[str, Any]]:
        """
        Get company news for a symbol over a date range.

        Args:
            symbol: Ticker symbol.
            from_date: First day (inclusive).
            to_date: Last day (inclusive).

        Returns:
            Raw Finnhub news items.

        Raises:
            NewsProviderError: If the request fails.
        """
        payload = self._get("company-news", {
            "symbol": symbol,
            "from": from_date.isoformat(),
            "to": to_date.isoformat(),
        })
        items = self._as_list(payload, "company-news")

        logger.debug(
            f"Fetched {len(items)} company news items for {symbol}",
            extra={"extra_fields": {"symbol": symbol, "count": len(items)}}
        )

        return items

    @log_duration("finnhub_market_news")
    def get_market_news(self, category: str = "general") -> List[Dict[str, Any]]:
        """
        Get general market news.

        Args:
            category: Finnhub news category.

        Returns:
            Raw Finnhub news items.

        Raises:
            NewsProviderError: If the request fails.
        """
        payload = self._get("news", {"category": category})
        return self._as_list(payload, "news")

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "FinnhubClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# Global client instance
_finnhub_client: Optional[FinnhubClient] = None


def get_finnhub_client() -> FinnhubClient:
    """Get global Finnhub client instance."""
    global _finnhub_client
    if _finnhub_client is None:
        _finnhub_client = FinnhubClient()
    return _finnhub_client
