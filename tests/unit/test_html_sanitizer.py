"""
Tests for the HTML Fragment Sanitizer.
"""

import pytest

from watchlist_notifier.core.html_sanitizer import is_safe_url, sanitize_html_fragment


class TestSanitizeHtmlFragment:
    """Tests for sanitize_html_fragment function."""

    def test_keeps_allowed_formatting(self):
        fragment = "<h3>Apple</h3><p>Shares <strong>rose</strong> 3%.</p><ul><li>One</li></ul><br>"

        assert sanitize_html_fragment(fragment) == fragment

    def test_removes_script_and_its_contents(self):
        fragment = "<p>Hi</p><script>document.location='https://evil.test'</script><p>Bye</p>"

        assert sanitize_html_fragment(fragment) == "<p>Hi</p><p>Bye</p>"

    def test_removes_nested_dropped_tags(self):
        fragment = "<div><style>p{}</style><iframe src='x'><p>inner</p></iframe>ok</div>"

        assert sanitize_html_fragment(fragment) == "<div>ok</div>"

    def test_drops_attributes(self):
        fragment = '<p style="color:red" onclick="steal()">Hi</p><img src=x onerror="steal()">'

        assert sanitize_html_fragment(fragment) == "<p>Hi</p>"

    def test_keeps_safe_links_only(self):
        fragment = (
            '<a href="https://news.example.com/1" target="_blank">Read</a>'
            '<a href="javascript:alert(1)">Click</a>'
            '<a href=" JaVaScRiPt:alert(1)">Again</a>'
        )

        assert sanitize_html_fragment(fragment) == (
            '<a href="https://news.example.com/1">Read</a><a>Click</a><a>Again</a>'
        )

    def test_reescapes_text(self):
        assert sanitize_html_fragment("<p>AT&amp;T &lt;b&gt;</p>") == "<p>AT&amp;T &lt;b&gt;</p>"

    def test_removes_comments(self):
        assert sanitize_html_fragment("<p>a<!-- <script>x</script> -->b</p>") == "<p>ab</p>"

    def test_closes_unclosed_tags(self):
        assert sanitize_html_fragment("<div><p>Open") == "<div><p>Open</p></div>"

    def test_ignores_stray_end_tags(self):
        assert sanitize_html_fragment("</p>text</div>") == "text"


@pytest.mark.parametrize("url,expected", [
    ("https://news.example.com", True),
    ("http://news.example.com", True),
    ("mailto:support@example.com", True),
    ("javascript:alert(1)", False),
    ("data:text/html;base64,PHNjcmlwdD4=", False),
    ("/relative/path", False),
    ("", False),
    (None, False),
])
def test_is_safe_url(url, expected):
    assert is_safe_url(url) is expected
