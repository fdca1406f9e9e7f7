"""Extraction sub-package: main content location, clutter removal and metadata."""

from .clutter import find_small_images, remove_by_selector, remove_hidden_elements, remove_small_images
from .main_content import count_words, find_main_content
from .markdown import MarkdownConversionError, convert_html
from .metadata import collect_meta_tags, extract_metadata
from .schema_org import extract_schema_org
from .scoring import find_best_element, score_and_remove, score_element
from .standardize import standardize_content

__all__ = [
    "MarkdownConversionError",
    "collect_meta_tags",
    "convert_html",
    "count_words",
    "extract_metadata",
    "extract_schema_org",
    "find_best_element",
    "find_main_content",
    "find_small_images",
    "remove_by_selector",
    "remove_hidden_elements",
    "remove_small_images",
    "score_and_remove",
    "score_element",
    "standardize_content",
]
