"""
Email Template Rendering.

Jinja2 environment over the package's templates/email directory.
"""

from typing import Any, Dict, Iterable, Optional

from jinja2 import Environment, PackageLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup

from watchlist_notifier.config import settings
from watchlist_notifier.core.exceptions import ConfigurationError
from watchlist_notifier.core.news import NewsArticle
from watchlist_notifier.infrastructure.logging import get_logger


logger = get_logger(__name__)

WELCOME_TEMPLATE = "email/welcome.html"
NEWS_SUMMARY_TEMPLATE = "email/news_summary.html"
NEWS_FALLBACK_TEMPLATE = "email/news_summary_fallback.html"

_env: Optional[Environment] = None


def get_environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("watchlist_notifier", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def _render(template: str, context: Dict[str, Any]) -> str:
    base_context = {
        "app_name": settings.mail.app_name,
        "app_url": settings.mail.app_url,
    }
    try:
        return get_environment().get_template(template).render(**base_context, **context)
    except TemplateNotFound as e:
        logger.error(
            f"Email template {template} not found",
            extra={"extra_fields": {"template": template}}
        )
        raise ConfigurationError(template, f"Email template not found: {template}") from e


def render_welcome_email(name: str, intro: str) -> str:
    """Render the welcome email. Both values are escaped."""
    return _render(WELCOME_TEMPLATE, {"name": name, "intro": intro})


def render_news_summary_email(date: str, news_content: str) -> str:
    """
    Render the daily digest email.

    news_content is inserted as-is. It must be trusted HTML: either the
    fallback template output or model output passed through
    sanitize_html_fragment.
    """
    return _render(NEWS_SUMMARY_TEMPLATE, {
        "date": date,
        "news_content": Markup(news_content),
    })


def render_news_fallback(articles: Iterable[NewsArticle]) -> str:
    """Render articles as a plain HTML list, without any model involved."""
    return _render(NEWS_FALLBACK_TEMPLATE, {"articles": list(articles)}).strip()
