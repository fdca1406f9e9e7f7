"""Heuristic content scoring.

``score_element`` rewards text, paragraphs and article-like signals and
penalizes link and image density; it ranks candidates for the main content.
``score_and_remove`` uses a separate, penalty-only score to drop navigation
lists, share widgets and similar blocks that selector removal misses.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Collection, Iterable
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from declutter.extractors.selectors import (
    BLOCK_ELEMENTS,
    FOOTNOTE_INLINE_REFERENCES,
    FOOTNOTE_LIST_SELECTORS,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_SCORE = 50.0

_CONTENT_INDICATORS: tuple[str, ...] = (
    "admonition",
    "article",
    "content",
    "entry",
    "image",
    "img",
    "font",
    "figure",
    "figcaption",
    "pre",
    "main",
    "post",
    "story",
    "table",
)

_NAVIGATION_INDICATORS: tuple[str, ...] = (
    "advertisement",
    "all rights reserved",
    "banner",
    "cookie",
    "comments",
    "copyright",
    "follow me",
    "follow us",
    "footer",
    "header",
    "homepage",
    "login",
    "menu",
    "more articles",
    "more like this",
    "most read",
    "nav",
    "navigation",
    "newsletter",
    "popular",
    "privacy",
    "recommended",
    "register",
    "related",
    "responses",
    "share",
    "sidebar",
    "sign in",
    "sign up",
    "signup",
    "social",
    "sponsored",
    "subscribe",
    "terms",
    "trending",
)

_NON_CONTENT_PATTERNS: tuple[str, ...] = (
    "ad",
    "banner",
    "cookie",
    "copyright",
    "footer",
    "header",
    "homepage",
    "menu",
    "nav",
    "newsletter",
    "popular",
    "privacy",
    "recommended",
    "related",
    "rights",
    "share",
    "sidebar",
    "social",
    "sponsored",
    "subscribe",
    "terms",
    "trending",
    "widget",
)

_CONTENT_ROLES: frozenset[str] = frozenset({"article", "main", "contentinfo"})

_DATE_RE = re.compile(
    r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},?\s+\d{4}\b",
    re.IGNORECASE,
)
_AUTHOR_RE = re.compile(r"\b(?:by|written by|author:)\s+[A-Za-z\s]+\b", re.IGNORECASE)

_FOOTNOTE_REFERENCE_SELECTOR = ", ".join(FOOTNOTE_INLINE_REFERENCES)
_FOOTNOTE_LIST_SELECTOR = ", ".join(FOOTNOTE_LIST_SELECTORS)


class ScoredElement(NamedTuple):
    element: Tag
    score: float


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _attr(el: Tag, name: str) -> str:
    value = el.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return str(value) if value is not None else ""


def _attr_lower(el: Tag, name: str) -> str:
    return _attr(el, name).lower()


def _word_count(el: Tag) -> int:
    return len(el.get_text(separator=" ").split())


def _has_match(el: Tag, selector: str) -> bool:
    return el.select_one(selector) is not None


def link_density(el: Tag) -> float:
    """Ratio of anchor text length to total text length."""
    text_length = len(el.get_text(strip=True))
    if not text_length:
        return 0.0
    link_length = sum(len(a.get_text(strip=True)) for a in el.find_all("a"))
    return link_length / text_length


def _is_center_layout_cell(cell: Tag) -> bool:
    table = cell.find_parent("table")
    if table is None:
        return False
    try:
        width = int(_attr_lower(table, "width") or "0")
    except ValueError:
        width = 0
    table_class = _attr_lower(table, "class")
    is_layout = (
        width > 400
        or _attr_lower(table, "align") == "center"
        or "content" in table_class
        or "article" in table_class
    )
    if not is_layout:
        return False
    cells = table.find_all("td")
    index = next((i for i, c in enumerate(cells) if c is cell), -1)
    return 0 < index < len(cells) - 1


# ---------------------------------------------------------------------------
# Main-content scoring
# ---------------------------------------------------------------------------

def score_element(el: Tag) -> float:
    """Score how likely *el* is to hold the main content.  Never negative."""
    text = el.get_text(separator=" ").strip()
    words = len(text.split())
    score = float(words)

    score += len(el.find_all("p")) * 10
    score -= len(el.find_all("a")) / max(words, 1) * 5
    score -= len(el.find_all("img")) / max(words, 1) * 3

    style = _attr(el, "style")
    if "float: right" in style or "text-align: right" in style or _attr(el, "align") == "right":
        score += 5

    if _DATE_RE.search(text):
        score += 10
    if _AUTHOR_RE.search(text):
        score += 10

    class_name = _attr_lower(el, "class")
    if "content" in class_name or "article" in class_name or "post" in class_name:
        score += 15

    if _has_match(el, _FOOTNOTE_REFERENCE_SELECTOR):
        score += 10
    if _has_match(el, _FOOTNOTE_LIST_SELECTOR):
        score += 10

    score -= len(el.find_all("table")) * 5

    if el.name == "td" and _is_center_layout_cell(el):
        score += 10

    return max(score, 0.0)


def rank_elements(candidates: Iterable[Tag]) -> list[ScoredElement]:
    """Score *candidates*, highest first; ties keep document order."""
    scored = [ScoredElement(el, score_element(el)) for el in candidates]
    # sorted() is stable, so equal scores stay in their original order.
    return sorted(scored, key=lambda s: s.score, reverse=True)


def find_best_element(
    candidates: Iterable[Tag],
    min_score: float = DEFAULT_MIN_SCORE,
) -> Tag | None:
    """Highest-scoring candidate whose score exceeds *min_score*, else None."""
    best: Tag | None = None
    best_score = 0.0
    for el in candidates:
        score = score_element(el)
        if score > best_score:
            best, best_score = el, score
    return best if best_score > min_score else None


# ---------------------------------------------------------------------------
# Non-content block removal
# ---------------------------------------------------------------------------

def is_likely_content(el: Tag) -> bool:
    if _attr_lower(el, "role") in _CONTENT_ROLES:
        return True

    class_name = _attr_lower(el, "class")
    el_id = _attr_lower(el, "id")
    if any(ind in class_name or ind in el_id for ind in _CONTENT_INDICATORS):
        return True

    words = _word_count(el)
    paragraphs = len(el.find_all("p"))
    return (
        (words > 50 and paragraphs > 1)
        or words > 100
        or (words > 30 and paragraphs > 0)
    )


def score_non_content_block(el: Tag) -> float:
    """Penalty-only score; below zero means the block looks like chrome."""
    if _has_match(el, _FOOTNOTE_LIST_SELECTOR):
        return 0.0

    text = el.get_text(separator=" ").strip()
    words = len(text.split())
    if words < 3:
        return 0.0

    score = 0.0
    lower_text = text.lower()
    for indicator in _NAVIGATION_INDICATORS:
        if indicator in lower_text:
            score -= 10

    links = len(el.find_all("a"))
    if links / max(words, 1) > 0.5:
        score -= 15

    lists = len(el.find_all(["ul", "ol"]))
    if lists > 0 and links > lists * 3:
        score -= 10

    class_name = _attr_lower(el, "class")
    el_id = _attr_lower(el, "id")
    for pattern in _NON_CONTENT_PATTERNS:
        if pattern in class_name or pattern in el_id:
            score -= 8

    return score


def score_and_remove(soup: BeautifulSoup | Tag, protected: Collection[Tag] = ()) -> int:
    """Remove block elements that score as non-content.  Returns the count removed.

    Elements in *protected* are never removed.
    """
    start = time.perf_counter()
    protected_ids = {id(p) for p in protected}
    to_remove: list[Tag] = []
    for el in soup.find_all(list(BLOCK_ELEMENTS)):
        if id(el) in protected_ids or is_likely_content(el):
            continue
        if score_non_content_block(el) < 0:
            to_remove.append(el)

    removed = 0
    for el in to_remove:
        # Already gone with an earlier ancestor.
        if el.decomposed:
            continue
        el.decompose()
        removed += 1

    logger.debug(
        "Removed %d non-content blocks in %.2fms",
        removed, (time.perf_counter() - start) * 1000,
    )
    return removed
