"""
Test Configuration and Fixtures.

Provides shared fixtures for all tests.
"""

from typing import Callable, Generator, List
from unittest.mock import MagicMock, patch

import pytest
from flask import Flask
from flask.testing import FlaskClient

from watchlist_notifier.app import create_app
from watchlist_notifier.core.news import NewsArticle
from watchlist_notifier.infrastructure.circuit_breaker import reset_circuit_breakers
from watchlist_notifier.infrastructure.firestore import NewsRecipient
from watchlist_notifier.infrastructure.metrics import reset_metrics


@pytest.fixture(autouse=True)
def clean_registries() -> Generator[None, None, None]:
    """Start every test with fresh metrics and circuit breakers."""
    reset_metrics()
    reset_circuit_breakers()
    yield
    reset_metrics()
    reset_circuit_breakers()


@pytest.fixture
def app() -> Flask:
    """Create test Flask application."""
    test_config = {
        "TESTING": True,
    }
    return create_app(test_config)


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def mock_firestore() -> Generator[MagicMock, None, None]:
    """Mock Firestore client."""
    with patch(
        "watchlist_notifier.infrastructure.firestore.repositories.FirestoreClient.get_client"
    ) as mock:
        mock_client = MagicMock()
        mock.return_value = mock_client
        yield mock_client


@pytest.fixture
def sample_recipient() -> NewsRecipient:
    """Create a sample digest recipient."""
    return NewsRecipient(
        id="user-123",
        email="jane@example.com",
        name="Jane",
        country="US",
    )


@pytest.fixture
def sample_recipients() -> List[NewsRecipient]:
    """Three digest recipients."""
    return [
        NewsRecipient(id="user-1", email="a@example.com", name="Ann"),
        NewsRecipient(id="user-2", email="b@example.com", name="Bob"),
        NewsRecipient(id="user-3", email="c@example.com", name="Cid"),
    ]


@pytest.fixture
def raw_news() -> Callable[..., dict]:
    """Factory for raw Finnhub news items."""
    def make(
        headline: str,
        timestamp: int,
        news_id: int = 1,
        summary: str = "Shares moved after the latest quarterly report.",
        **extra,
    ) -> dict:
        return {
            "id": news_id,
            "headline": headline,
            "summary": summary,
            "url": f"https://news.example.com/story/{news_id}",
            "datetime": timestamp,
            "source": "Reuters",
            "category": "company",
            "related": "",
            "image": "",
            **extra,
        }
    return make


@pytest.fixture
def sample_article() -> NewsArticle:
    """Create a sample formatted article."""
    return NewsArticle(
        id="AAPL-101-0",
        headline="Apple beats estimates",
        summary="Revenue rose 8% year over year...",
        source="Reuters",
        url="https://news.example.com/story/101",
        datetime=1760000000,
        category="company",
        related="AAPL",
    )


@pytest.fixture
def sample_articles(sample_article: NewsArticle) -> List[NewsArticle]:
    """Two formatted articles."""
    return [
        sample_article,
        NewsArticle(
            id="MSFT-202-1",
            headline="Microsoft expands cloud deal",
            summary="The agreement covers five years...",
            source="Bloomberg",
            url="https://news.example.com/story/202",
            datetime=1759990000,
            category="company",
            related="MSFT",
        ),
    ]
