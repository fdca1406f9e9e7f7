"""Main content location with a three-step cascade.

Step 1: entry-point selectors  (trusted markup such as ``article`` or ``main``)
Step 2: table layout cells     (best ``<td>`` in old table-based pages)
Step 3: content scoring        (best ``div``/``section``/``article``/``main``)
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from declutter.extractors.scoring import DEFAULT_MIN_SCORE, find_best_element, score_element
from declutter.extractors.selectors import ENTRY_POINT_SELECTORS

logger = logging.getLogger(__name__)

MIN_CONTENT_SCORE = DEFAULT_MIN_SCORE

_SCORING_CANDIDATES: tuple[str, ...] = ("div", "section", "article", "main")


class MainContent(NamedTuple):
    element: Tag
    method: str  # "entry_point" | "table" | "scoring"


def count_words(html: str) -> int:
    """Whitespace-delimited words in the text of an HTML fragment."""
    if not html or not html.strip():
        return 0
    try:
        soup = BeautifulSoup(html, "lxml")
        return len(soup.get_text(separator=" ").split())
    except Exception:
        return len(html.split())


def find_entry_point(soup: BeautifulSoup) -> Tag | None:
    for selector in ENTRY_POINT_SELECTORS:
        try:
            el = soup.select_one(selector)
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
            continue
        if el is not None:
            logger.debug("Main content found by entry point %r", selector)
            return el
    return None


def find_table_content(soup: BeautifulSoup, min_score: float = MIN_CONTENT_SCORE) -> Tag | None:
    """Best-scoring ``<td>`` across all tables, if it beats *min_score*."""
    best: Tag | None = None
    best_score = 0.0
    seen: set[int] = set()
    for table in soup.find_all("table"):
        for cell in table.find_all("td"):
            # Nested tables would otherwise score the same cell twice.
            if id(cell) in seen:
                continue
            seen.add(id(cell))
            score = score_element(cell)
            if score > best_score:
                best, best_score = cell, score
    return best if best_score > min_score else None


def find_main_content(soup: BeautifulSoup, min_score: float = MIN_CONTENT_SCORE) -> MainContent | None:
    """Locate the main content region, or None when every step fails."""
    el = find_entry_point(soup)
    if el is not None:
        return MainContent(el, "entry_point")

    el = find_table_content(soup, min_score)
    if el is not None:
        logger.debug("Main content found by table layout detection")
        return MainContent(el, "table")

    el = find_best_element(soup.find_all(list(_SCORING_CANDIDATES)), min_score)
    if el is not None:
        logger.debug("Main content found by scoring")
        return MainContent(el, "scoring")

    return None
