"""Optional base class for site extractors."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from declutter.items import ExtractedContent


def preview(text: str, limit: int = 50) -> str:
    """First *limit* characters of *text*, with ``...`` when it was cut."""
    return text[:limit] + "..." if len(text) > limit else text


def blockquote_thread(comments: Iterable[tuple[int, str]]) -> str:
    """Nest rendered comments by depth, one ``<blockquote>`` per comment.

    Each item is ``(depth, html)``. A comment closes the blockquotes of its
    siblings and their replies, then opens its own inside its parent's.
    """
    parts: list[str] = []
    open_depths: list[int] = []
    for depth, html in comments:
        while open_depths and open_depths[-1] >= depth:
            parts.append("</blockquote>")
            open_depths.pop()
        parts.append(f"<blockquote>{html}")
        open_depths.append(depth)
    parts.extend("</blockquote>" for _ in open_depths)
    return "".join(parts)


class SiteExtractorBase:
    """Holds the document, URL and schema items; subclasses implement the rest."""

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        self.soup = soup
        self.url = url or ""
        self.schema_items = list(schema_items or [])

    @property
    def host(self) -> str:
        try:
            return (urlparse(self.url).hostname or "").lower()
        except ValueError:
            return ""

    def on_host(self, *domains: str) -> bool:
        """True if the URL's host is one of *domains* or a subdomain of one."""
        host = self.host
        return any(host == domain or host.endswith("." + domain) for domain in domains)

    def can_extract(self) -> bool:
        raise NotImplementedError

    def extract(self) -> ExtractedContent:
        raise NotImplementedError

    # -- helpers ------------------------------------------------------------

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        return (root or self.soup).select_one(selector)

    def text_of(self, selector: str, root: Tag | None = None) -> str:
        el = self.select_one(selector, root)
        return el.get_text().strip() if el is not None else ""

    def attr_of(self, selector: str, attr: str, root: Tag | None = None) -> str:
        el = self.select_one(selector, root)
        if el is None:
            return ""
        value = el.get(attr)
        if isinstance(value, list):
            return " ".join(value)
        return str(value) if value is not None else ""

    def page_title(self) -> str:
        title = self.soup.find("title")
        return title.get_text().strip() if title is not None else ""

    @staticmethod
    def inner_html(el: Tag | None) -> str:
        if el is None:
            return ""
        return el.decode_contents()
