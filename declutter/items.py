"""Pydantic models for parse options, extracted metadata and parse results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Results are immutable once built and serialize with camelCase keys.
_RESULT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)

_OPTIONS_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class CodeOptions(BaseModel):
    model_config = _OPTIONS_CONFIG

    detect_language: bool = True
    strip_line_numbers: bool = True


class ImageOptions(BaseModel):
    model_config = _OPTIONS_CONFIG

    promote_lazy_sources: bool = True
    remove_tracking_pixels: bool = True


class HeadingOptions(BaseModel):
    model_config = _OPTIONS_CONFIG

    remove_permalinks: bool = True


class MathOptions(BaseModel):
    model_config = _OPTIONS_CONFIG

    extract_latex: bool = True
    cleanup_scripts: bool = True


class FootnoteOptions(BaseModel):
    model_config = _OPTIONS_CONFIG

    footnote_prefix: str = "fn"
    wrap_references_in_sup: bool = True


class RoleOptions(BaseModel):
    model_config = _OPTIONS_CONFIG

    convert_paragraphs: bool = True
    convert_lists: bool = True


class ParseOptions(BaseModel):
    """Recognized parse options.

    Unknown keys are rejected.  Only fields that were explicitly set take part
    in :func:`merge_options`, so a layer never resets a field it did not
    mention.
    """

    model_config = _OPTIONS_CONFIG

    debug: bool = False
    url: str = ""
    markdown: bool = False
    separate_markdown: bool = False
    remove_exact_selectors: bool = True
    remove_partial_selectors: bool = True
    remove_images: bool = False

    process_code: bool = False
    process_images: bool = False
    process_headings: bool = False
    process_math: bool = False
    process_footnotes: bool = False
    process_roles: bool = False

    code_options: CodeOptions = Field(default_factory=CodeOptions)
    image_options: ImageOptions = Field(default_factory=ImageOptions)
    heading_options: HeadingOptions = Field(default_factory=HeadingOptions)
    math_options: MathOptions = Field(default_factory=MathOptions)
    footnote_options: FootnoteOptions = Field(default_factory=FootnoteOptions)
    role_options: RoleOptions = Field(default_factory=RoleOptions)


def _merge_model(base: BaseModel, layer: BaseModel) -> BaseModel:
    updates: dict[str, Any] = {}
    for name in layer.model_fields_set:
        value = getattr(layer, name)
        current = getattr(base, name)
        if isinstance(value, BaseModel) and isinstance(current, BaseModel):
            value = _merge_model(current, value)
        updates[name] = value
    return base.model_copy(update=updates) if updates else base


def merge_options(*layers: ParseOptions | None) -> ParseOptions:
    """Merge option layers field by field; later layers win.

    Starts from the defaults (exact and partial selector removal on) and
    applies, for each layer, only the fields that layer explicitly set.
    Nested option records merge the same way, one level down.
    """
    merged = ParseOptions()
    for layer in layers:
        if layer is not None:
            merged = _merge_model(merged, layer)
    return merged


# ---------------------------------------------------------------------------
# Debug information
# ---------------------------------------------------------------------------

class ProcessingStep(BaseModel):
    model_config = _RESULT_CONFIG

    step: str
    description: str
    elements_affected: int = 0
    duration_ms: float = 0.0
    details: str | None = None


class Statistics(BaseModel):
    model_config = _RESULT_CONFIG

    original_element_count: int = 0
    final_element_count: int = 0
    removed_element_count: int = 0
    word_count: int = 0
    character_count: int = 0
    image_count: int = 0
    link_count: int = 0


class DebugInfo(BaseModel):
    model_config = _RESULT_CONFIG

    processing_steps: list[ProcessingStep] = Field(default_factory=list)
    timings: dict[str, float] = Field(default_factory=dict)
    statistics: Statistics = Field(default_factory=Statistics)
    extractor_used: str | None = None


# ---------------------------------------------------------------------------
# Extraction records
# ---------------------------------------------------------------------------

class MetaTag(BaseModel):
    model_config = _RESULT_CONFIG

    name: str | None = None
    property: str | None = None
    content: str


class ExtractedContent(BaseModel):
    """Output of a site extractor.

    ``variables`` may carry ``title``, ``author``, ``published``,
    ``description``, ``image`` and ``site``; empty values are ignored when
    they are merged over the generic metadata.
    """

    model_config = _RESULT_CONFIG

    content_html: str
    variables: dict[str, str] = Field(default_factory=dict)


class Metadata(BaseModel):
    model_config = _RESULT_CONFIG

    title: str = ""
    description: str = ""
    domain: str = ""
    favicon: str = ""
    image: str = ""
    published: str = ""
    author: str = ""
    site: str = ""
    schema_org_data: list[dict[str, Any]] = Field(default_factory=list)
    word_count: int = 0
    parse_time: int = 0  # milliseconds


class ParseResult(Metadata):
    """Outcome of one parse call.

    ``content_markdown`` is set only when Markdown output was requested,
    ``extractor_type`` only when a site extractor produced the content and
    ``debug_info`` only in debug mode.
    """

    content: str = ""
    content_markdown: str | None = None
    extractor_type: str | None = None
    meta_tags: list[MetaTag] = Field(default_factory=list)
    debug_info: DebugInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
