"""
News Article Selection.

Pure helpers that turn raw Finnhub news items into the articles used by
the daily digest: symbol cleanup, validation, formatting, and the
round-robin pick across a watchlist.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence


COMPANY_SUMMARY_LENGTH = 200
GENERAL_SUMMARY_LENGTH = 150


@dataclass(frozen=True)
class NewsArticle:
    """A news item ready to be summarized."""
    id: str
    headline: str
    summary: str
    source: str
    url: str
    datetime: int
    category: str
    related: str
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def format_digest_date(moment: Optional[datetime] = None) -> str:
    """
    Format a date the way it appears in the digest subject line.

    Example: "Monday, October 19, 2026". Naive datetimes are treated as UTC.
    """
    moment = moment or now_utc()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year}"


def clean_symbols(symbols: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Upper-case, strip and dedupe symbols, keeping first-seen order."""
    cleaned: List[str] = []
    for symbol in symbols or []:
        value = (symbol or "").strip().upper()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def is_valid_article(raw: Mapping[str, Any]) -> bool:
    """An article is usable only with a headline, summary, url and timestamp."""
    return bool(
        raw.get("headline")
        and raw.get("summary")
        and raw.get("url")
        and raw.get("datetime")
    )


def _truncate(text: str, length: int) -> str:
    return text.strip()[:length] + "..."


def format_article(
    raw: Mapping[str, Any],
    is_company_news: bool,
    symbol: Optional[str] = None,
    index: int = 0,
) -> NewsArticle:
    """
    Normalize a raw Finnhub item.

    Company news is tied to the watchlist symbol it was fetched for,
    general news keeps the provider's category and related tickers.
    """
    timestamp = int(raw.get("datetime") or 0)

    if is_company_news:
        article_id = f"{symbol}-{raw.get('id') or timestamp}-{index}"
        summary = _truncate(str(raw.get("summary", "")), COMPANY_SUMMARY_LENGTH)
        source = raw.get("source") or "Company News"
        category = "company"
        related = symbol or ""
    else:
        article_id = str(raw.get("id") or f"market-{timestamp}-{index}")
        summary = _truncate(str(raw.get("summary", "")), GENERAL_SUMMARY_LENGTH)
        source = raw.get("source") or "Market News"
        category = raw.get("category") or "general"
        related = raw.get("related") or ""

    return NewsArticle(
        id=article_id,
        headline=str(raw.get("headline", "")).strip(),
        summary=summary,
        source=source,
        url=str(raw.get("url", "")),
        datetime=timestamp,
        category=category,
        related=related,
        image=raw.get("image") or None,
    )


def select_round_robin(
    per_symbol: Mapping[str, Sequence[Mapping[str, Any]]],
    symbols: Sequence[str],
    max_articles: int,
) -> List[NewsArticle]:
    """
    Pick articles across symbols, one per round.

    Round r takes the next valid article of symbols[r % len(symbols)].
    There are at most max_articles rounds; a symbol with nothing left
    simply skips its turn. The result is newest first.
    """
    if not symbols or max_articles <= 0:
        return []

    queues = {
        symbol: [raw for raw in per_symbol.get(symbol, []) if is_valid_article(raw)]
        for symbol in symbols
    }
    collected: List[NewsArticle] = []

    for round_index in range(max_articles):
        symbol = symbols[round_index % len(symbols)]
        queue = queues.get(symbol)
        if not queue:
            continue
        raw = queue.pop(0)
        collected.append(format_article(raw, True, symbol, round_index))

    collected.sort(key=lambda article: article.datetime, reverse=True)
    return collected


def select_general(
    raw_items: Iterable[Mapping[str, Any]],
    max_articles: int,
) -> List[NewsArticle]:
    """Dedupe general market news and keep the first max_articles valid items."""
    seen = set()
    unique: List[Mapping[str, Any]] = []

    for raw in raw_items:
        key = f"{raw.get('id')}-{raw.get('url')}-{raw.get('headline')}"
        if key in seen:
            continue
        seen.add(key)
        if is_valid_article(raw):
            unique.append(raw)
        if len(unique) >= max_articles:
            break

    return [
        format_article(raw, False, index=index)
        for index, raw in enumerate(unique)
    ]
