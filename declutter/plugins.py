"""declutter.plugins: registry of site-specific extractors.

Usage::

    from declutter import register_extractor

    class DocsExtractor:
        def __init__(self, soup, url, schema_items):
            self.soup = soup

        def can_extract(self) -> bool:
            return self.soup.select_one("div.docs-body") is not None

        def extract(self) -> ExtractedContent:
            ...

    register_extractor(DocsExtractor)

Extractors follow a ``runtime_checkable`` ``Protocol`` so you can use
``isinstance()`` checks in tests without inheriting from a base class.
Registered classes are tried in registration order and the first whose
``can_extract()`` returns True handles the page.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from bs4 import BeautifulSoup

from declutter.items import ExtractedContent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Protocol definition
# ---------------------------------------------------------------------------

@runtime_checkable
class SiteExtractor(Protocol):
    """A site-specific extractor instantiated per document."""

    def can_extract(self) -> bool:
        """Return True if this extractor recognizes the document."""
        ...

    def extract(self) -> ExtractedContent:
        """Return the content HTML and variables that override metadata."""
        ...


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ExtractorRegistry:
    """Ordered, de-duplicated list of extractor classes."""

    def __init__(self) -> None:
        self._extractors: list[type] = []

    def register(self, extractor_cls: type) -> None:
        if extractor_cls not in self._extractors:
            self._extractors.append(extractor_cls)

    @property
    def extractors(self) -> list[type]:
        return list(self._extractors)

    def __len__(self) -> int:
        return len(self._extractors)

    def find_extractor(
        self,
        soup: BeautifulSoup,
        url: str,
        schema_items: list[dict[str, Any]],
    ) -> SiteExtractor | None:
        """Instantiate each class in order and return the first that matches.

        A class whose constructor or ``can_extract()`` raises counts as
        "no match".
        """
        for extractor_cls in self._extractors:
            try:
                extractor = extractor_cls(soup, url, schema_items)
                if extractor.can_extract():
                    logger.debug("Extractor %s matched %s", extractor_cls.__name__, url or "<no url>")
                    return extractor
            except Exception as exc:
                logger.warning("Extractor %s failed during detection: %s", extractor_cls.__name__, exc)
        return None


def build_registry() -> ExtractorRegistry:
    """Return a new registry holding the built-in site extractors."""
    from declutter.sites import (
        ChatGPTExtractor,
        ClaudeExtractor,
        GeminiExtractor,
        GitHubExtractor,
        GrokExtractor,
        HackerNewsExtractor,
        RedditExtractor,
        TwitterExtractor,
        YouTubeExtractor,
    )

    registry = ExtractorRegistry()
    for extractor_cls in (
        GitHubExtractor,
        TwitterExtractor,
        YouTubeExtractor,
        RedditExtractor,
        HackerNewsExtractor,
        ChatGPTExtractor,
        ClaudeExtractor,
        GrokExtractor,
        GeminiExtractor,
    ):
        registry.register(extractor_cls)
    return registry


# ---------------------------------------------------------------------------
# Module-level default registry
# ---------------------------------------------------------------------------

_default: ExtractorRegistry | None = None


def default_registry() -> ExtractorRegistry:
    """Return the process-wide registry, building it on first use."""
    global _default
    if _default is None:
        _default = build_registry()
    return _default


def register_extractor(extractor_cls: type) -> None:
    """Add *extractor_cls* to the default registry (idempotent)."""
    default_registry().register(extractor_cls)


def reset_default_registry() -> None:
    """Drop the default registry so the next call rebuilds it. Primarily for tests."""
    global _default
    _default = None


def extractor_type_name(extractor: object) -> str:
    """``HackerNewsExtractor`` -> ``hackernews``."""
    cls = extractor if isinstance(extractor, type) else type(extractor)
    return cls.__name__.removesuffix("Extractor").lower()
