"""Normalize the main content element in place.

Always applied: non-breaking spaces, HTML comments, heading levels, attribute
allow-listing, empty elements, trailing headings and runs of ``<br>``.
Role, code, image, math and footnote handling are opt-in through the
``process_*`` flags of :class:`~declutter.items.ParseOptions`.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from declutter.extractors.selectors import (
    ALLOWED_ATTRIBUTES,
    ALLOWED_ATTRIBUTES_DEBUG,
    ALLOWED_EMPTY_ELEMENTS,
    FOOTNOTE_INLINE_REFERENCES,
    FOOTNOTE_LIST_SELECTORS,
)
from declutter.items import (
    CodeOptions,
    FootnoteOptions,
    HeadingOptions,
    ImageOptions,
    MathOptions,
    Metadata,
    ParseOptions,
    RoleOptions,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_HEADINGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")
_PERMALINK_TEXTS: frozenset[str] = frozenset({"#", "¶", "§", "🔗", "link"})

_LANGUAGE_CLASS_RE = re.compile(
    r"^(?:language|lang|highlight-source|highlight|brush:?)-?(?P<lang>[\w+#.-]+)$",
    re.IGNORECASE,
)
_LINE_NUMBER_SELECTORS: tuple[str, ...] = (
    ".line-numbers",
    ".line-number",
    ".lineno",
    ".linenos",
    ".gutter",
    '[class*="line-numbers-rows"]',
)

_MATH_PREVIEW_SELECTORS: tuple[str, ...] = (
    ".MathJax_Preview",
    ".MathJax",
    ".MathJax_Display",
    "mjx-container",
)

_TRACKING_HINTS: tuple[str, ...] = ("pixel", "tracking", "beacon", "spacer")


def _attr(el: Tag, name: str) -> str:
    value = el.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return str(value) if value is not None else ""


def _normalize_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.replace("\xa0", " ")).strip().lower()


def _inside(el: Tag, names: tuple[str, ...]) -> bool:
    return el.find_parent(list(names)) is not None


# ---------------------------------------------------------------------------
# Always-on steps
# ---------------------------------------------------------------------------

def standardize_spaces(element: Tag) -> None:
    """Replace non-breaking spaces in text nodes outside ``pre``/``code``."""
    for text in list(element.find_all(string=True)):
        if isinstance(text, Comment) or "\xa0" not in text:
            continue
        if text.parent is not None and (text.parent.name in ("pre", "code") or _inside(text.parent, ("pre", "code"))):
            continue
        text.replace_with(NavigableString(text.replace("\xa0", " ")))


def remove_html_comments(element: Tag) -> int:
    comments = element.find_all(string=lambda s: isinstance(s, Comment))
    for comment in comments:
        comment.extract()
    return len(comments)


def standardize_headings(element: Tag, title: str) -> None:
    """Demote ``h1`` to ``h2`` and drop a leading ``h2`` that repeats the title."""
    for h1 in element.find_all("h1"):
        h1.name = "h2"
    if element.name == "h1":
        element.name = "h2"

    first_h2 = element.find("h2")
    normalized_title = _normalize_text(title)
    if first_h2 is not None and normalized_title and _normalize_text(first_h2.get_text()) == normalized_title:
        first_h2.decompose()


def strip_unwanted_attributes(element: Tag, debug: bool = False) -> int:
    """Remove attributes outside the allow-list; debug mode also keeps class, id and data-*."""
    stripped = 0
    for el in [element, *element.find_all(True)]:
        if el.name == "svg" or _inside(el, ("svg",)):
            continue
        for name in list(el.attrs):
            value = _attr(el, name)
            lower = name.lower()
            if lower == "id" and (value.startswith(("fn:", "fnref:")) or value == "footnotes"):
                continue
            if lower == "class" and (
                (el.name == "code" and value.startswith("language-")) or value == "footnote-backref"
            ):
                continue
            if lower in ALLOWED_ATTRIBUTES:
                continue
            if debug and (lower in ALLOWED_ATTRIBUTES_DEBUG or lower.startswith("data-")):
                continue
            del el[name]
            stripped += 1
    logger.debug("Stripped %d attributes", stripped)
    return stripped


def _only_comma_spans(el: Tag) -> bool:
    children = [c for c in el.children if isinstance(c, Tag)]
    if not children:
        return False
    return all(c.name == "span" and c.get_text().strip() in ("", ",") for c in children)


def _is_empty(el: Tag) -> bool:
    if el.name in ALLOWED_EMPTY_ELEMENTS:
        return False
    if el.name == "div" and _only_comma_spans(el):
        return True
    if any(isinstance(child, Tag) for child in el.children):
        return False
    text = el.get_text()
    return not text.strip() and "\xa0" not in text


def remove_empty_elements(element: Tag) -> int:
    """Repeatedly remove elements with no text and no children."""
    removed = 0
    while True:
        empties = [el for el in element.find_all(True) if _is_empty(el)]
        if not empties:
            break
        for el in empties:
            if not el.decomposed:
                el.decompose()
                removed += 1
    logger.debug("Removed %d empty elements", removed)
    return removed


def remove_trailing_headings(element: Tag) -> int:
    """Drop headings with no text-bearing element after them."""
    removed = 0
    for heading in element.find_all(list(_HEADINGS)):
        if heading.decomposed:
            continue
        if not any(sib.get_text().strip() for sib in heading.find_next_siblings()):
            heading.decompose()
            removed += 1
    return removed


def strip_extra_br(element: Tag) -> int:
    """Keep at most two consecutive ``<br>`` elements."""
    to_remove: list[Tag] = []
    consecutive = 0
    for br in element.find_all("br"):
        nxt = br.next_sibling
        # Whitespace between tags does not break a run.
        while isinstance(nxt, NavigableString) and not nxt.strip():
            nxt = nxt.next_sibling
        if isinstance(nxt, Tag) and nxt.name == "br":
            consecutive += 1
            if consecutive >= 2:
                to_remove.append(br)
        else:
            consecutive = 0
    for br in to_remove:
        br.decompose()
    return len(to_remove)


# ---------------------------------------------------------------------------
# Opt-in transformers
# ---------------------------------------------------------------------------

def process_roles(element: Tag, options: RoleOptions) -> int:
    """Turn ARIA-role ``div`` soup into real paragraphs and lists."""
    converted = 0
    if options.convert_paragraphs:
        for el in element.select('div[role="paragraph"], div[data-testid^="paragraph"]'):
            el.name = "p"
            el.attrs.pop("role", None)
            converted += 1
    if options.convert_lists:
        for el in element.select('div[role="list"]'):
            el.name = "ul"
            el.attrs.pop("role", None)
            converted += 1
        for el in element.select('div[role="listitem"]'):
            el.name = "li"
            el.attrs.pop("role", None)
            converted += 1
    return converted


def _code_language(code: Tag) -> str:
    lang = _attr(code, "data-lang") or _attr(code, "data-language")
    if lang:
        return lang.lower()
    candidates = [code]
    if code.parent is not None and code.parent.name == "pre":
        candidates.append(code.parent)
    for el in candidates:
        classes = el.get("class") or []
        for cls in classes:
            match = _LANGUAGE_CLASS_RE.match(cls)
            if match:
                return match.group("lang").lower()
    return ""


def process_code(element: Tag, options: CodeOptions) -> int:
    """Normalize code language classes to ``language-x`` and drop line-number gutters."""
    touched = 0
    if options.strip_line_numbers:
        for pre in element.find_all("pre"):
            for selector in _LINE_NUMBER_SELECTORS:
                for el in pre.select(selector):
                    if not el.decomposed:
                        el.decompose()
                        touched += 1
    if options.detect_language:
        for code in element.find_all("code"):
            lang = _code_language(code)
            if lang:
                code["class"] = [f"language-{lang}"]
                touched += 1
    return touched


def _is_tracking_pixel(img: Tag) -> bool:
    if _attr(img, "width") == "1" and _attr(img, "height") == "1":
        return True
    src = _attr(img, "src").lower()
    return any(hint in src for hint in _TRACKING_HINTS)


def process_images(element: Tag, options: ImageOptions) -> int:
    """Promote lazy-loaded sources and drop tracking pixels."""
    touched = 0
    for img in element.find_all("img"):
        if options.remove_tracking_pixels and _is_tracking_pixel(img):
            img.decompose()
            touched += 1
            continue
        if options.promote_lazy_sources:
            src = _attr(img, "src")
            data_src = _attr(img, "data-src")
            if data_src and (not src or src.startswith("data:")):
                img["src"] = data_src
                touched += 1
            data_srcset = _attr(img, "data-srcset")
            if data_srcset and not _attr(img, "srcset"):
                img["srcset"] = data_srcset
    return touched


def _math_tag(soup: BeautifulSoup, latex: str, display: bool) -> Tag:
    math = soup.new_tag("math")
    math["data-latex"] = latex.strip()
    math["display"] = "block" if display else "inline"
    math.string = latex.strip()
    return math


def process_math(element: Tag, soup: BeautifulSoup, options: MathOptions) -> int:
    """Replace KaTeX markup and TeX ``<script>`` blocks with ``<math data-latex>``."""
    converted = 0
    if options.extract_latex:
        for katex in element.select(".katex"):
            if katex.decomposed:
                continue
            annotation = katex.select_one('annotation[encoding="application/x-tex"]')
            if annotation is None:
                continue
            display = katex.find_parent(class_="katex-display") is not None
            target = katex.find_parent(class_="katex-display") or katex
            target.replace_with(_math_tag(soup, annotation.get_text(), display))
            converted += 1

    if options.cleanup_scripts:
        for selector in _MATH_PREVIEW_SELECTORS:
            for el in element.select(selector):
                if not el.decomposed:
                    el.decompose()

    if options.extract_latex:
        for script in element.select('script[type^="math/tex"]'):
            display = "mode=display" in _attr(script, "type")
            script.replace_with(_math_tag(soup, script.get_text(), display))
            converted += 1
    return converted


def process_footnotes(element: Tag, soup: BeautifulSoup, options: FootnoteOptions) -> int:
    """Renumber footnotes as ``fn:N`` / ``fnref:N`` and link references to them."""
    prefix = options.footnote_prefix
    footnote_list = None
    for selector in FOOTNOTE_LIST_SELECTORS:
        footnote_list = element.select_one(selector)
        if footnote_list is not None:
            break
    if footnote_list is None:
        return 0

    if footnote_list.name not in ("ol", "ul"):
        footnote_list = footnote_list.find(["ol", "ul"]) or footnote_list
    footnote_list["id"] = "footnotes"

    numbers: dict[str, int] = {}
    for n, item in enumerate(footnote_list.find_all("li", recursive=False), start=1):
        old_id = _attr(item, "id")
        if old_id:
            numbers[old_id] = n
        item["id"] = f"{prefix}:{n}"

    linked = 0
    for ref in element.select(", ".join(FOOTNOTE_INLINE_REFERENCES)):
        if ref.decomposed or ref.find_parent(id="footnotes") is not None:
            continue
        anchor = ref if ref.name == "a" else ref.find("a")
        if anchor is None:
            continue
        target = _attr(anchor, "href").lstrip("#")
        n = numbers.get(target)
        if n is None:
            continue
        anchor["href"] = f"#{prefix}:{n}"
        anchor["id"] = f"{prefix}ref:{n}"
        if options.wrap_references_in_sup and anchor.parent is not None and anchor.parent.name != "sup":
            anchor.wrap(soup.new_tag("sup"))
        linked += 1
    return linked


def remove_images(element: Tag) -> int:
    images = element.find_all(["img", "picture", "svg", "video"])
    for el in images:
        if not el.decomposed:
            el.decompose()
    return len(images)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def standardize_content(
    element: Tag,
    metadata: Metadata,
    soup: BeautifulSoup,
    options: ParseOptions | None = None,
) -> None:
    """Run every standardization step on *element* in place."""
    options = options or ParseOptions()

    standardize_spaces(element)
    remove_html_comments(element)

    if options.process_headings:
        _remove_heading_permalinks(element, options.heading_options)
    standardize_headings(element, metadata.title)

    if options.process_footnotes:
        process_footnotes(element, soup, options.footnote_options)
    if options.process_roles:
        process_roles(element, options.role_options)
    if options.process_code:
        process_code(element, options.code_options)
    if options.process_images:
        process_images(element, options.image_options)
    if options.process_math:
        process_math(element, soup, options.math_options)
    if options.remove_images:
        remove_images(element)

    strip_unwanted_attributes(element, debug=options.debug)
    if not options.debug:
        remove_empty_elements(element)
    remove_trailing_headings(element)
    strip_extra_br(element)


def _remove_heading_permalinks(element: Tag, options: HeadingOptions) -> int:
    if not options.remove_permalinks:
        return 0
    removed = 0
    for heading in element.find_all(list(_HEADINGS)):
        for anchor in heading.find_all("a"):
            text = anchor.get_text().strip().lower()
            if text in _PERMALINK_TEXTS or (not text and _attr(anchor, "href").startswith("#")):
                anchor.decompose()
                removed += 1
    return removed
