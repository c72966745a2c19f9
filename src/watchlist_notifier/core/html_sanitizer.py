"""
HTML Fragment Sanitizer.

Reduces generated digest HTML to a small allow-list of formatting tags.
Attributes are dropped except absolute http(s)/mailto links on <a>.
"""

from html import escape
from html.parser import HTMLParser
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlsplit


ALLOWED_TAGS = frozenset({
    "a", "b", "br", "div", "em", "h2", "h3", "h4", "hr",
    "i", "li", "ol", "p", "span", "strong", "ul",
})
VOID_TAGS = frozenset({"br", "hr"})

# Tags removed together with everything inside them
DROPPED_TAGS = frozenset({
    "embed", "form", "iframe", "noscript", "object", "script", "style", "svg", "template",
})

ALLOWED_URL_SCHEMES = frozenset({"http", "https", "mailto"})


def is_safe_url(url: Optional[str]) -> bool:
    """Only absolute http, https and mailto URLs are kept."""
    if not url:
        return False
    return urlsplit(url.strip()).scheme.lower() in ALLOWED_URL_SCHEMES


class _FragmentSanitizer(HTMLParser):

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._parts: List[str] = []
        self._open: List[str] = []
        self._dropped_depth = 0

    def handle_starttag(self, tag: str, attrs: Sequence[Tuple[str, Optional[str]]]) -> None:
        if tag in DROPPED_TAGS:
            self._dropped_depth += 1
            return
        if self._dropped_depth or tag not in ALLOWED_TAGS:
            return

        rendered_attrs = ""
        if tag == "a":
            href = dict(attrs).get("href")
            if is_safe_url(href):
                rendered_attrs = f' href="{escape(href.strip(), quote=True)}"'

        self._parts.append(f"<{tag}{rendered_attrs}>")
        if tag not in VOID_TAGS:
            self._open.append(tag)

    def handle_endtag(self, tag: str) -> None:
        if tag in DROPPED_TAGS:
            self._dropped_depth = max(0, self._dropped_depth - 1)
            return
        if self._dropped_depth or tag not in self._open:
            return

        while self._open:
            open_tag = self._open.pop()
            self._parts.append(f"</{open_tag}>")
            if open_tag == tag:
                break

    def handle_data(self, data: str) -> None:
        if not self._dropped_depth:
            self._parts.append(escape(data, quote=False))

    def result(self) -> str:
        closing = [f"</{tag}>" for tag in reversed(self._open)]
        return "".join(self._parts + closing)


def sanitize_html_fragment(fragment: str) -> str:
    """
    Keep only allow-listed markup from an untrusted HTML fragment.

    Text is preserved and re-escaped, comments are removed, and unclosed
    allowed tags are closed at the end of the fragment.
    """
    parser = _FragmentSanitizer()
    parser.feed(fragment)
    parser.close()
    return parser.result()
