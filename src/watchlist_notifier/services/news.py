"""
News Service.

Selects the articles for a user's digest from their watchlist, falling
back to general market news.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from watchlist_notifier.config import settings
from watchlist_notifier.core.exceptions import NewsProviderError
from watchlist_notifier.core.news import (
    NewsArticle,
    clean_symbols,
    now_utc,
    select_general,
    select_round_robin,
)
from watchlist_notifier.infrastructure.http import FinnhubClient, get_finnhub_client
from watchlist_notifier.infrastructure.logging import get_logger


logger = get_logger(__name__)


class NewsService:
    """
    Service for fetching digest news.

    Responsible for:
    - Fetching company news for each watchlist symbol
    - Picking articles round-robin across symbols
    - Falling back to general market news
    """

    def __init__(
        self,
        finnhub_client: Optional[FinnhubClient] = None,
        max_articles: Optional[int] = None,
        lookback_days: Optional[int] = None,
    ) -> None:
        self._finnhub = finnhub_client or get_finnhub_client()
        self._max_articles = max_articles or settings.digest.max_articles
        self._lookback_days = lookback_days or settings.digest.company_news_lookback_days

    def _fetch_per_symbol(self, symbols: List[str], now: datetime) -> Dict[str, List[dict]]:
        """Company news per symbol; a failing symbol contributes nothing."""
        to_date = now.date()
        from_date = to_date - timedelta(days=self._lookback_days)
        per_symbol: Dict[str, List[dict]] = {}

        for symbol in symbols:
            try:
                per_symbol[symbol] = self._finnhub.get_company_news(symbol, from_date, to_date)
            except NewsProviderError as e:
                logger.warning(
                    f"Company news unavailable for {symbol}: {e}",
                    extra={"extra_fields": {
                        "symbol": symbol,
                        "status_code": e.status_code,
                    }}
                )
                per_symbol[symbol] = []

        return per_symbol

    def get_news(
        self,
        symbols: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
    ) -> List[NewsArticle]:
        """
        Get up to max_articles news articles.

        With symbols, company news is picked round-robin across them,
        newest first. Without symbols, or when none of them has usable
        news, general market news is returned instead.

        Args:
            symbols: Watchlist symbols (any case, duplicates allowed).
            now: Reference time for the company news window.

        Returns:
            List of NewsArticle, possibly empty.

        Raises:
            NewsProviderError: If general market news cannot be fetched.
        """
        cleaned = clean_symbols(symbols)
        now = now or now_utc()

        if cleaned:
            per_symbol = self._fetch_per_symbol(cleaned, now)
            articles = select_round_robin(per_symbol, cleaned, self._max_articles)
            if articles:
                logger.info(
                    f"Selected {len(articles)} company news articles",
                    extra={"extra_fields": {
                        "symbols": cleaned,
                        "article_count": len(articles),
                    }}
                )
                return articles

        articles = select_general(self._finnhub.get_market_news("general"), self._max_articles)
        logger.info(
            f"Selected {len(articles)} general market news articles",
            extra={"extra_fields": {
                "symbols": cleaned,
                "article_count": len(articles),
            }}
        )
        return articles
