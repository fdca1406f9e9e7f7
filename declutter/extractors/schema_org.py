"""schema.org structured data from ``<script type="application/ld+json">`` blocks.

Each block is cleaned, parsed, expanded with JSON-LD 1.1 and compacted against
the schema.org context.  ``@graph`` containers are flattened so every node
becomes its own item.  A broken block is logged and skipped; it never affects
the other blocks on the page.

Remote contexts are served by an offline document loader, so extraction never
touches the network.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pyld import jsonld

logger = logging.getLogger(__name__)

SCHEMA_ORG_CONTEXT = "https://schema.org/"

_SCHEMA_ORG_CONTEXT_DOCUMENT: dict[str, Any] = {
    "@context": {
        "@vocab": "http://schema.org/",
        "schema": "http://schema.org/",
    },
}

_COMMON_PROPERTIES: tuple[str, ...] = (
    "name",
    "description",
    "url",
    "image",
    "author",
    "publisher",
)

# ---------------------------------------------------------------------------
# Cleaning
# ---------------------------------------------------------------------------

_HTML_COMMENT_WRAPPER_RE = re.compile(r"^\s*<!--|-->\s*$")
_HTML_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_JS_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/|^\s*//.*$", re.MULTILINE)
_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[([\s\S]*?)\]\]>\s*$")
_COMMENT_MARKER_RE = re.compile(r"^\s*(\*/|/\*)\s*|\s*(\*/|/\*)\s*$")


def clean_json_ld(raw: str) -> str:
    """Strip comments and CDATA wrappers from a JSON-LD script body.

    Returns ``""`` when what is left is not wrapped in ``{...}`` or ``[...]``.
    """
    content = _HTML_COMMENT_WRAPPER_RE.sub("", raw)
    content = _HTML_COMMENT_RE.sub("", content)
    content = _JS_COMMENT_RE.sub("", content)
    match = _CDATA_RE.match(content)
    if match:
        content = match.group(1)
    content = _COMMENT_MARKER_RE.sub("", content).strip()

    if not content:
        return ""
    if (content[0], content[-1]) in (("{", "}"), ("[", "]")):
        return content
    logger.debug("Rejecting JSON-LD block that is not an object or array: %.50r", content)
    return ""


# ---------------------------------------------------------------------------
# JSON-LD processing
# ---------------------------------------------------------------------------

def _load_document(url: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
    """Offline loader: any schema.org context URL resolves to a bundled context."""
    host = (urlparse(url).hostname or "").lower()
    if host == "schema.org" or host.endswith(".schema.org"):
        return {
            "contentType": "application/ld+json",
            "contextUrl": None,
            "documentUrl": url,
            "document": copy.deepcopy(_SCHEMA_ORG_CONTEXT_DOCUMENT),
        }
    raise jsonld.JsonLdError(
        f"Remote context {url!r} is not available offline.",
        "jsonld.LoadDocumentError",
        {"url": url},
        code="loading remote context failed",
    )


def _jsonld_options() -> dict[str, Any]:
    return {"documentLoader": _load_document, "processingMode": "json-ld-1.1"}


def process_json_ld(data: Any) -> Any:
    """Expand *data* and compact it against schema.org.

    Falls back to the expanded form when compaction fails.
    """
    expanded = jsonld.expand(data, _jsonld_options())
    if not expanded:
        return expanded
    try:
        return jsonld.compact(expanded, {"@context": SCHEMA_ORG_CONTEXT}, _jsonld_options())
    except Exception as exc:
        logger.debug("schema.org compaction failed, keeping expanded form: %s", exc)
        return expanded


# ---------------------------------------------------------------------------
# Item validation
# ---------------------------------------------------------------------------

def is_valid_schema_item(item: Any) -> bool:
    """A schema item needs a type, a URL-like ``@id`` or two common properties."""
    if not isinstance(item, dict):
        return False

    item_type = item.get("@type", item.get("type"))
    # A declared type or string @id decides on its own, even when empty.
    if isinstance(item_type, (str, list)):
        return bool(item_type)

    item_id = item.get("@id")
    if isinstance(item_id, str):
        return "schema.org" in item_id or "http" in item_id

    return sum(1 for prop in _COMMON_PROPERTIES if prop in item) >= 2


def flatten_schema_items(data: Any) -> list[dict[str, Any]]:
    """Split *data* into its individual nodes and keep the valid ones."""
    if isinstance(data, dict):
        if "@graph" in data:
            graph = data["@graph"]
            candidates = list(graph) if isinstance(graph, list) else [graph]
        else:
            candidates = [data]
    elif isinstance(data, list):
        candidates = list(data)
    else:
        candidates = [data]
    return [item for item in candidates if is_valid_schema_item(item)]


def schema_types(items: list[dict[str, Any]]) -> set[str]:
    found: set[str] = set()
    for item in items:
        item_type = item.get("@type", item.get("type"))
        if isinstance(item_type, str):
            found.add(item_type)
        elif isinstance(item_type, list):
            found.update(t for t in item_type if isinstance(t, str))
    return found


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_schema_org(soup: BeautifulSoup) -> list[dict[str, Any]]:
    """Return every valid schema.org item on the page, in document order."""
    items: list[dict[str, Any]] = []
    for index, script in enumerate(soup.select('script[type="application/ld+json" i]')):
        raw = script.get_text().strip()
        if not raw:
            continue
        cleaned = clean_json_ld(raw)
        if not cleaned:
            continue
        try:
            processed = process_json_ld(json.loads(cleaned))
        except Exception as exc:
            logger.debug(
                "Skipping JSON-LD block %d: %s (content: %.100r)", index, exc, cleaned,
            )
            continue
        items.extend(flatten_schema_items(processed))

    logger.debug(
        "Extracted %d schema.org items (%d distinct types)",
        len(items), len(schema_types(items)),
    )
    return items
