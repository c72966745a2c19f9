"""
Tests for News Summarizer.
"""

import json
from unittest.mock import MagicMock

import pytest

from watchlist_notifier.core.exceptions import CompletionError
from watchlist_notifier.infrastructure.http.completion_client import CompletionResult
from watchlist_notifier.services.summarizer import (
    NO_NEWS_CONTENT,
    NewsSummarizer,
    strip_code_fences,
)


class TestStripCodeFences:
    """Tests for strip_code_fences function."""

    def test_removes_html_fence(self):
        assert strip_code_fences("```html\n<p>Hi</p>\n```") == "<p>Hi</p>"

    def test_leaves_plain_html_alone(self):
        assert strip_code_fences("  <h3>Title</h3>\n<p>Body</p> ") == "<h3>Title</h3>\n<p>Body</p>"


class TestNewsSummarizer:
    """Tests for NewsSummarizer."""

    @pytest.fixture
    def mock_client(self):
        client = MagicMock()
        client.is_configured = True
        return client

    @pytest.fixture
    def summarizer(self, mock_client):
        return NewsSummarizer(completion_client=mock_client, app_name="Signalist")

    def test_prompt_embeds_articles_as_json(self, summarizer, sample_articles):
        prompt = summarizer.build_prompt(sample_articles)

        start = prompt.index("[")
        end = prompt.rindex("]") + 1
        data = json.loads(prompt[start:end])
        assert [item["headline"] for item in data] == [
            "Apple beats estimates",
            "Microsoft expands cloud deal",
        ]

    def test_uses_completion_api(self, summarizer, mock_client, sample_articles):
        mock_client.complete.return_value = CompletionResult(text="```html\n<h3>Apple</h3>\n```")

        content = summarizer.summarize(sample_articles)

        assert content == "<h3>Apple</h3>"
        kwargs = mock_client.complete.call_args.kwargs
        assert "Signalist" in kwargs["system"]
        assert kwargs["max_tokens"] == 1500

    def test_model_markup_is_sanitized(self, summarizer, mock_client, sample_articles):
        mock_client.complete.return_value = CompletionResult(
            text=(
                '<h3 onclick="steal()">Apple</h3><script>alert(1)</script>'
                '<a href="javascript:alert(1)">bad</a> <a href="https://news.example.com/a">good</a>'
            )
        )

        content = summarizer.summarize(sample_articles)

        assert content == (
            '<h3>Apple</h3><a>bad</a> <a href="https://news.example.com/a">good</a>'
        )

    def test_empty_model_output_becomes_placeholder(self, summarizer, mock_client, sample_articles):
        mock_client.complete.return_value = CompletionResult(text="``````")

        assert summarizer.summarize(sample_articles) == NO_NEWS_CONTENT

    def test_completion_error_propagates(self, summarizer, mock_client, sample_articles):
        mock_client.complete.side_effect = CompletionError("timeout")

        with pytest.raises(CompletionError):
            summarizer.summarize(sample_articles)

    def test_unconfigured_client_renders_template(self, summarizer, mock_client, sample_articles):
        mock_client.is_configured = False

        content = summarizer.summarize(sample_articles)

        mock_client.complete.assert_not_called()
        assert "Apple beats estimates" in content
        assert "https://news.example.com/story/202" in content
