"""
News Summarizer.

Turns a user's selected articles into the HTML body of the digest.
"""

import json
import re
from typing import List, Optional, Sequence

from watchlist_notifier.config import settings
from watchlist_notifier.core.html_sanitizer import sanitize_html_fragment
from watchlist_notifier.core.news import NewsArticle
from watchlist_notifier.infrastructure.http import CompletionClient, get_completion_client
from watchlist_notifier.infrastructure.logging import get_logger
from watchlist_notifier.infrastructure.mail import render_news_fallback
from watchlist_notifier.services.prompts import (
    NEWS_SUMMARY_EMAIL_PROMPT,
    NEWS_SUMMARY_SYSTEM_PROMPT,
)


logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?|\n?```\s*$")

NO_NEWS_CONTENT = "<p>No market news.</p>"


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around the whole response."""
    return _CODE_FENCE.sub("", text.strip()).strip()


class NewsSummarizer:
    """
    Summarizes articles with the chat completion API.

    When the completion API is not configured the articles are rendered
    with the local fallback template instead.
    """

    def __init__(
        self,
        completion_client: Optional[CompletionClient] = None,
        app_name: Optional[str] = None,
    ) -> None:
        self._client = completion_client or get_completion_client()
        self._app_name = app_name or settings.mail.app_name

    def build_prompt(self, articles: Sequence[NewsArticle]) -> str:
        news_data = json.dumps([a.to_dict() for a in articles], indent=2, ensure_ascii=False)
        return NEWS_SUMMARY_EMAIL_PROMPT.format(news_data=news_data)

    def summarize(self, articles: Sequence[NewsArticle]) -> str:
        """
        Produce the digest HTML fragment for a list of articles.

        Model output is reduced to allow-listed tags and safe links.

        Raises:
            CompletionError: If the completion API call fails.
        """
        articles: List[NewsArticle] = list(articles)

        if not self._client.is_configured:
            logger.debug(
                "Completion API not configured, using template summary",
                extra={"extra_fields": {"article_count": len(articles)}}
            )
            return render_news_fallback(articles)

        result = self._client.complete(
            self.build_prompt(articles),
            system=NEWS_SUMMARY_SYSTEM_PROMPT.format(app_name=self._app_name),
            max_tokens=1500,
            temperature=0.4,
        )

        content = sanitize_html_fragment(strip_code_fences(result.text))
        return content.strip() or NO_NEWS_CONTENT
