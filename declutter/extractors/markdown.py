"""Convert cleaned content HTML to Markdown."""

from __future__ import annotations

import logging
import re

from markdownify import MarkdownConverter

logger = logging.getLogger(__name__)

_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)


class MarkdownConversionError(RuntimeError):
    """Raised when markdownify cannot convert a fragment."""


class _ContentConverter(MarkdownConverter):
    """markdownify converter that keeps ``<math data-latex>`` as TeX."""

    def convert_math(self, el, text, *args, **kwargs):
        latex = el.get("data-latex") or text
        if not latex:
            return ""
        if el.get("display") == "block":
            return f"\n\n$$\n{latex.strip()}\n$$\n\n"
        return f"${latex.strip()}$"


def convert_html(html: str) -> str:
    """Convert *html* to Markdown with ATX headings and fenced code.

    Trailing whitespace is stripped and runs of blank lines are collapsed.
    Raises :class:`MarkdownConversionError` if markdownify fails.
    """
    if not html or not html.strip():
        return ""

    try:
        md = _ContentConverter(
            heading_style="ATX",
            bullets="-",
            code_language_callback=_detect_lang,
            strip=["script", "style"],
        ).convert(html)
    except Exception as exc:
        raise MarkdownConversionError(f"Markdown conversion failed: {exc}") from exc

    md = _TRAILING_WHITESPACE_RE.sub("", md)
    md = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", md)
    return md.strip()


def _detect_lang(el: object) -> str:
    """Language hint for a fenced code block from ``language-*`` classes."""
    candidates = [el]
    code = getattr(el, "code", None)
    if code is not None:
        candidates.append(code)
    for candidate in candidates:
        getter = getattr(candidate, "get", None)
        classes = (getter("class") if getter else None) or []
        for cls in classes:
            if isinstance(cls, str) and cls.startswith("language-"):
                return cls[len("language-"):]
    return ""
