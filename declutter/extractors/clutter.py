"""Selector, hidden-element and small-image clutter removal.

All passes mutate the soup in place, return how many elements they removed
and never remove an element listed in ``protected`` (the main content and
its ancestors).
"""

from __future__ import annotations

import logging
from collections.abc import Collection

from bs4 import BeautifulSoup, Tag

from declutter.extractors.selectors import EXACT_SELECTORS, PARTIAL_SELECTORS, TEST_ATTRIBUTES

logger = logging.getLogger(__name__)

MIN_IMAGE_DIMENSION = 33

_HIDDEN_STYLES: tuple[str, ...] = (
    "display:none",
    "display: none",
    "visibility:hidden",
    "visibility: hidden",
    "opacity:0",
    "opacity: 0",
)

_PARTIAL_PATTERNS: tuple[str, ...] = tuple(p.lower() for p in PARTIAL_SELECTORS)


def _attr(el: Tag, name: str) -> str:
    value = el.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return str(value) if value is not None else ""


def _remove(el: Tag, protected_ids: set[int]) -> bool:
    if el.decomposed or id(el) in protected_ids:
        return False
    el.decompose()
    return True


# ---------------------------------------------------------------------------
# Selector removal
# ---------------------------------------------------------------------------

def matches_partial_selector(el: Tag) -> bool:
    """True when any test attribute contains a clutter substring.

    Attributes are checked in ``TEST_ATTRIBUTES`` order and the first hit
    decides.
    """
    for attr in TEST_ATTRIBUTES:
        value = _attr(el, attr).lower()
        if value and any(pattern in value for pattern in _PARTIAL_PATTERNS):
            return True
    return False


def remove_by_selector(
    soup: BeautifulSoup | Tag,
    remove_exact: bool = True,
    remove_partial: bool = True,
    protected: Collection[Tag] = (),
) -> int:
    protected_ids = {id(p) for p in protected}
    removed = 0

    if remove_exact:
        for selector in EXACT_SELECTORS:
            try:
                matches = soup.select(selector)
            except Exception as exc:
                logger.debug("CSS selector %r failed: %s", selector, exc)
                continue
            for el in matches:
                if _remove(el, protected_ids):
                    removed += 1

    if remove_partial:
        for el in list(soup.find_all(True)):
            if el.decomposed or id(el) in protected_ids:
                continue
            if matches_partial_selector(el) and _remove(el, protected_ids):
                removed += 1

    logger.debug(
        "Selector removal (exact=%s, partial=%s) removed %d elements",
        remove_exact, remove_partial, removed,
    )
    return removed


# ---------------------------------------------------------------------------
# Hidden elements
# ---------------------------------------------------------------------------

def is_hidden(el: Tag) -> bool:
    style = _attr(el, "style").lower()
    return bool(style) and any(hidden in style for hidden in _HIDDEN_STYLES)


def remove_hidden_elements(soup: BeautifulSoup | Tag, protected: Collection[Tag] = ()) -> int:
    protected_ids = {id(p) for p in protected}
    removed = 0
    for el in list(soup.find_all(style=True)):
        if is_hidden(el) and _remove(el, protected_ids):
            removed += 1
    logger.debug("Removed %d hidden elements", removed)
    return removed


# ---------------------------------------------------------------------------
# Small images
# ---------------------------------------------------------------------------

def _dimension(el: Tag, name: str) -> int:
    try:
        return int(_attr(el, name).strip() or "0")
    except ValueError:
        return 0


def element_identifier(el: Tag) -> str:
    """Stable key for an ``img``/``svg`` so copies of the same asset match.

    Images prefer their source (``data-src``, ``src``, ``srcset``,
    ``data-srcset``); everything falls back to ``id``, then an svg
    ``viewBox``, then ``class``.
    """
    if el.name == "img":
        for attr, prefix in (
            ("data-src", "src"),
            ("src", "src"),
            ("srcset", "srcset"),
            ("data-srcset", "srcset"),
        ):
            value = _attr(el, attr)
            if value:
                return f"{prefix}:{value}"

    el_id = _attr(el, "id")
    if el_id:
        return f"id:{el_id}"

    if el.name == "svg":
        # The HTML parser lowercases attribute names.
        view_box = _attr(el, "viewBox") or _attr(el, "viewbox")
        if view_box:
            return f"viewBox:{view_box}"

    class_name = _attr(el, "class")
    if class_name:
        return f"class:{class_name}"
    return ""


def is_small_image(el: Tag) -> bool:
    width = _dimension(el, "width")
    height = _dimension(el, "height")
    return 0 < width < MIN_IMAGE_DIMENSION or 0 < height < MIN_IMAGE_DIMENSION


def find_small_images(soup: BeautifulSoup | Tag) -> set[str]:
    """Identifiers of every undersized ``img``/``svg`` in *soup*."""
    found: set[str] = set()
    for el in soup.find_all(["img", "svg"]):
        if is_small_image(el):
            identifier = element_identifier(el)
            if identifier:
                found.add(identifier)
    logger.debug("Found %d small images", len(found))
    return found


def remove_small_images(
    soup: BeautifulSoup | Tag,
    identifiers: set[str],
    protected: Collection[Tag] = (),
) -> int:
    """Remove every ``img``/``svg`` whose identifier is in *identifiers*."""
    if not identifiers:
        return 0
    protected_ids = {id(p) for p in protected}
    removed = 0
    for el in list(soup.find_all(["img", "svg"])):
        if el.decomposed:
            continue
        identifier = element_identifier(el)
        if identifier and identifier in identifiers and _remove(el, protected_ids):
            removed += 1
    logger.debug("Removed %d small images", removed)
    return removed


# ---------------------------------------------------------------------------
# Mobile styles
# ---------------------------------------------------------------------------

def apply_mobile_styles(soup: BeautifulSoup | Tag) -> int:
    """Media-query hook run before content location.

    Stylesheets are not evaluated, so no mobile-only rules are applied and
    the return value (elements changed) is always 0.
    """
    return 0
