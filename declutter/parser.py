"""declutter.parser: the ``ContentParser`` orchestrator.

Runs one document through site-extractor detection or the generic pipeline
(locate main content, remove clutter, standardize), retrying once without
partial-selector removal when the first pass yields too few words.

Usage::

    from declutter import ContentParser

    parser = ContentParser(html, {"url": "https://example.com/post"})
    result = parser.parse()
    print(result.title, result.word_count)

    # Per-call overrides win over the instance options field by field
    result = parser.parse({"markdown": True})
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from bs4 import BeautifulSoup
from pydantic import ValidationError

from declutter.debug import Debugger
from declutter.extractors.clutter import (
    apply_mobile_styles,
    find_small_images,
    remove_by_selector,
    remove_hidden_elements,
    remove_small_images,
)
from declutter.extractors.main_content import count_words, find_main_content
from declutter.extractors.markdown import MarkdownConversionError, convert_html
from declutter.extractors.metadata import collect_meta_tags, extract_metadata, get_document_url
from declutter.extractors.schema_org import extract_schema_org
from declutter.extractors.scoring import score_and_remove
from declutter.extractors.standardize import standardize_content
from declutter.items import Metadata, MetaTag, ParseOptions, ParseResult, merge_options
from declutter.plugins import ExtractorRegistry, default_registry, extractor_type_name

logger = logging.getLogger(__name__)

RETRY_WORD_THRESHOLD = 200

# Metadata fields a site extractor may override through its variables.
_VARIABLE_FIELDS: tuple[str, ...] = ("title", "author", "published", "description", "image", "site")


class ParseError(ValueError):
    """Raised when the input cannot be parsed (not text, or invalid options)."""


def _coerce_options(options: ParseOptions | Mapping[str, Any] | None) -> ParseOptions | None:
    if options is None or isinstance(options, ParseOptions):
        return options
    try:
        return ParseOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise ParseError(f"Invalid parse options: {exc}") from exc


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class ContentParser:
    """Extract the main content and metadata from one HTML document.

    Args:
        html:     The document markup (``str`` or UTF-8 ``bytes``).
        options:  Instance-level :class:`ParseOptions` or a mapping of them.
        registry: Site extractors to try; defaults to the process-wide registry.
    """

    def __init__(
        self,
        html: str | bytes,
        options: ParseOptions | Mapping[str, Any] | None = None,
        registry: ExtractorRegistry | None = None,
    ) -> None:
        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")
        if not isinstance(html, str):
            raise ParseError(f"Expected HTML as str or bytes, got {type(html).__name__}")
        self.html = html
        self.options = _coerce_options(options) or ParseOptions()
        self.registry = registry
        self._pristine = self._new_soup()

    def _new_soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "lxml")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, overrides: ParseOptions | Mapping[str, Any] | None = None) -> ParseResult:
        """Parse the document, retrying once without partial selectors on low yield."""
        overrides = _coerce_options(overrides)
        result = self._parse_internal(overrides)

        if result.word_count < RETRY_WORD_THRESHOLD:
            logger.debug(
                "First pass yielded %d words (< %d), retrying without partial selectors",
                result.word_count, RETRY_WORD_THRESHOLD,
            )
            retry_layer = merge_options(overrides, ParseOptions(remove_partial_selectors=False))
            retry = self._parse_internal(retry_layer)
            if retry.word_count > result.word_count:
                logger.debug("Retry recovered %d words, using it", retry.word_count)
                result = retry

        return self._apply_markdown(result, merge_options(self.options, overrides))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _parse_internal(self, overrides: ParseOptions | None = None) -> ParseResult:
        start = time.perf_counter()
        options = merge_options(self.options, overrides)
        debugger = Debugger(options.debug)

        # Structured data and meta tags always come from the untouched tree.
        schema_items = extract_schema_org(self._pristine)
        meta_tags = collect_meta_tags(self._pristine)
        metadata = extract_metadata(self._pristine, schema_items, meta_tags, options.url)
        effective_url = options.url or get_document_url(self._pristine, schema_items, meta_tags)

        soup = self._new_soup()
        registry = self.registry if self.registry is not None else default_registry()
        extractor = registry.find_extractor(soup, effective_url, schema_items)
        if extractor is not None:
            debugger.start_timer("extractor")
            try:
                extracted = extractor.extract()
            except Exception as exc:
                logger.warning(
                    "Extractor %s failed, falling back to generic extraction: %s",
                    type(extractor).__name__, exc,
                )
            else:
                debugger.end_timer("extractor")
                name = extractor_type_name(extractor)
                debugger.set_extractor_used(name)
                debugger.add_step("extractor", f"Content extracted by {type(extractor).__name__}")
                content = extracted.content_html
                variables = {
                    key: value
                    for key, value in extracted.variables.items()
                    if key in _VARIABLE_FIELDS and value
                }
                fields = {
                    **metadata.model_dump(),
                    **variables,
                    "word_count": count_words(content),
                    "parse_time": _elapsed_ms(start),
                }
                return ParseResult(
                    **fields,
                    content=content,
                    extractor_type=name,
                    meta_tags=meta_tags,
                    debug_info=debugger.info(),
                )
            # The extractor may have mutated the tree before failing.
            soup = self._new_soup()

        try:
            return self._run_pipeline(soup, metadata, meta_tags, options, debugger, start)
        except Exception:
            logger.exception("Generic extraction failed, falling back to the document body")
            debugger.add_step("fallback", "Pipeline failed; returned the document body")
            return self._body_result(metadata, meta_tags, debugger, start)

    def _run_pipeline(
        self,
        soup: BeautifulSoup,
        metadata: Metadata,
        meta_tags: list[MetaTag],
        options: ParseOptions,
        debugger: Debugger,
        start: float,
    ) -> ParseResult:
        original_count = len(soup.find_all(True))

        apply_mobile_styles(soup)
        small_images = find_small_images(soup)

        debugger.start_timer("find_main_content")
        main = find_main_content(soup)
        debugger.end_timer("find_main_content")
        if main is None:
            logger.debug("No main content found, returning the document body")
            debugger.add_step("find_main_content", "No main content candidate found")
            return self._body_result(metadata, meta_tags, debugger, start)
        debugger.add_step("find_main_content", f"Main content located by {main.method}", details=main.element.name)

        protected = [main.element, *main.element.parents]

        debugger.start_timer("remove_small_images")
        removed = remove_small_images(soup, small_images, protected)
        debugger.end_timer("remove_small_images")
        debugger.add_step("remove_small_images", "Removed undersized images", removed)

        debugger.start_timer("remove_hidden_elements")
        removed = remove_hidden_elements(soup, protected)
        debugger.end_timer("remove_hidden_elements")
        debugger.add_step("remove_hidden_elements", "Removed hidden elements", removed)

        debugger.start_timer("score_and_remove")
        removed = score_and_remove(soup, protected)
        debugger.end_timer("score_and_remove")
        debugger.add_step("score_and_remove", "Removed non-content blocks", removed)

        if options.remove_exact_selectors or options.remove_partial_selectors:
            debugger.start_timer("remove_by_selector")
            removed = remove_by_selector(
                soup,
                remove_exact=options.remove_exact_selectors,
                remove_partial=options.remove_partial_selectors,
                protected=protected,
            )
            debugger.end_timer("remove_by_selector")
            debugger.add_step("remove_by_selector", "Removed clutter by selector", removed)

        debugger.start_timer("standardize")
        standardize_content(main.element, metadata, soup, options)
        debugger.end_timer("standardize")
        debugger.add_step("standardize", "Standardized main content")

        content = str(main.element)
        word_count = count_words(content)
        final_count = len(soup.find_all(True))

        debugger.add_step("standard_parsing", "Generic extraction pipeline completed")
        debugger.set_statistics(
            original_element_count=original_count,
            final_element_count=final_count,
            removed_element_count=original_count - final_count,
            word_count=word_count,
            character_count=len(content),
            image_count=len(soup.find_all("img")),
            link_count=len(soup.find_all("a")),
        )

        return ParseResult(
            **{**metadata.model_dump(), "word_count": word_count, "parse_time": _elapsed_ms(start)},
            content=content,
            meta_tags=meta_tags,
            debug_info=debugger.info(),
        )

    def _body_result(
        self,
        metadata: Metadata,
        meta_tags: list[MetaTag],
        debugger: Debugger,
        start: float,
    ) -> ParseResult:
        body = self._pristine.body
        content = body.decode_contents() if body is not None else str(self._pristine)
        return ParseResult(
            **{**metadata.model_dump(), "word_count": count_words(content), "parse_time": _elapsed_ms(start)},
            content=content,
            meta_tags=meta_tags,
            debug_info=debugger.info(),
        )

    @staticmethod
    def _apply_markdown(result: ParseResult, options: ParseOptions) -> ParseResult:
        if not (options.markdown or options.separate_markdown):
            return result
        try:
            markdown = convert_html(result.content)
        except MarkdownConversionError as exc:
            logger.warning("Markdown conversion failed, keeping HTML content: %s", exc)
            return result
        if options.separate_markdown:
            return result.model_copy(update={"content_markdown": markdown})
        return result.model_copy(update={"content": markdown})
