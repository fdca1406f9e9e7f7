"""Deterministic metadata extraction from meta tags, schema.org items and the DOM.

Each field walks a fixed fallback chain and takes the first non-empty value:

    title        og:title → twitter:title → schema headline → <meta name=title>
                 → sailthru.title → <title>, then the site name is trimmed off
    description  <meta name/property=description> → og:description
                 → schema description → twitter:description → sailthru.description
    image        og:image → twitter:image → schema image.url / image → sailthru.image.*
    published    schema datePublished → article:published_time → sailthru.date
                 → <meta name=date> → <time datetime>
    author       author meta tags → schema author names → DOM bylines
                 → copyright / publisher style fallbacks
    site         schema publisher.name → og:site_name → … → author
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any
from urllib.parse import urljoin, urlparse

import dateparser
from bs4 import BeautifulSoup, Tag

from declutter.items import Metadata, MetaTag

logger = logging.getLogger(__name__)

_MAX_AUTHORS = 10

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")
_INDEX_RE = re.compile(r"^\[(\d+)\]$")


def _safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def _first(*values: str) -> str:
    """Return the first non-empty value."""
    for v in values:
        if v:
            return v
    return ""


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def normalize_date(raw: str) -> str:
    """Normalize *raw* to ISO 8601, keeping the original text if it cannot be parsed."""
    if not raw:
        return ""
    cleaned = _WHITESPACE_RE.sub(" ", raw.strip())
    try:
        parsed = dateparser.parse(
            cleaned,
            settings={
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", cleaned, exc)
        return cleaned
    if parsed is None or not (1990 <= parsed.year <= 2099):
        return cleaned
    return parsed.isoformat()


# ---------------------------------------------------------------------------
# Meta tags
# ---------------------------------------------------------------------------

def collect_meta_tags(soup: BeautifulSoup) -> list[MetaTag]:
    """Collect every ``<meta>`` with non-empty content, entity-decoded."""
    tags: list[MetaTag] = []
    for el in soup.find_all("meta"):
        content = el.get("content")
        if not content:
            continue
        name = el.get("name")
        prop = el.get("property")
        tags.append(
            MetaTag(
                name=_safe_str(name) if name is not None else None,
                property=_safe_str(prop) if prop is not None else None,
                content=html.unescape(_safe_str(content)),
            ),
        )
    return tags


def get_meta_content(meta_tags: list[MetaTag], attr: str, value: str) -> str:
    """Content of the first tag whose *attr* (``name`` or ``property``) equals *value*."""
    for tag in meta_tags:
        if getattr(tag, attr, None) == value:
            return tag.content
    return ""


# ---------------------------------------------------------------------------
# schema.org property lookup
# ---------------------------------------------------------------------------

def _search_schema(data: Any, props: list[str], exact: bool) -> list[str]:
    if isinstance(data, str):
        return [data] if not props else []
    if isinstance(data, bool) or data is None:
        return []

    if isinstance(data, list):
        if props:
            match = _INDEX_RE.match(props[0])
            if match:
                index = int(match.group(1))
                if index < len(data):
                    return _search_schema(data[index], props[1:], exact)
                return []
            if props[0] == "[]":
                props = props[1:]
        if not props:
            scalars = [
                str(item) for item in data
                if isinstance(item, (str, int, float)) and not isinstance(item, bool)
            ]
            if len(scalars) == len(data):
                return scalars
        results: list[str] = []
        for item in data:
            results.extend(_search_schema(item, props, exact))
        return results

    if isinstance(data, dict):
        if not props:
            name = data.get("name")
            return [name] if isinstance(name, str) else []

        current, remaining = props[0], props[1:]
        if current in data:
            return _search_schema(data[current], remaining, True)

        # "WebSite.url" style lookups qualify the path by @type.
        item_type = data.get("@type")
        types = item_type if isinstance(item_type, list) else [item_type]
        if remaining and current in types:
            return _search_schema(data, remaining, True)

        if not exact:
            nested: list[str] = []
            for value in data.values():
                if isinstance(value, (dict, list)):
                    nested.extend(_search_schema(value, props, False))
            return nested

    return []


def get_schema_property(items: list[dict[str, Any]], path: str) -> str:
    """Look up a dotted *path* (``author.name``, ``image.[0]``) in schema items.

    Tries an exact walk first, then a nested search.  Multiple hits are
    joined with ``", "``.
    """
    if not items:
        return ""
    props = path.split(".")
    results = _search_schema(items, props, True)
    if not results:
        results = _search_schema(items, props, False)
    return ", ".join(r for r in results if r)


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------

def _split_names(value: str) -> list[str]:
    names = []
    for part in value.split(","):
        cleaned = part.strip().rstrip(",").strip()
        if cleaned:
            names.append(cleaned)
    return names


def get_author(soup: BeautifulSoup, items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    authors = _first(
        get_meta_content(meta_tags, "name", "sailthru.author"),
        get_meta_content(meta_tags, "property", "author"),
        get_meta_content(meta_tags, "name", "author"),
        get_meta_content(meta_tags, "name", "byl"),
        get_meta_content(meta_tags, "name", "authorList"),
    )
    if authors:
        return authors

    schema_authors = _first(
        get_schema_property(items, "author.name"),
        get_schema_property(items, "author.[].name"),
    )
    names = _dedupe(_split_names(schema_authors))
    if names:
        return ", ".join(names[:_MAX_AUTHORS])

    dom_names: list[str] = []
    for selector in ('[itemprop="author"]', ".author", '[href*="author"]', ".authors a"):
        for el in soup.select(selector):
            for name in _split_names(el.get_text(" ", strip=True)):
                if name.lower() not in ("author", "authors"):
                    dom_names.append(name)
    dom_names = _dedupe(dom_names)
    if dom_names:
        return ", ".join(dom_names[:_MAX_AUTHORS])

    return _first(
        get_meta_content(meta_tags, "name", "copyright"),
        get_schema_property(items, "copyrightHolder.name"),
        get_meta_content(meta_tags, "property", "og:site_name"),
        get_schema_property(items, "publisher.name"),
        get_schema_property(items, "sourceOrganization.name"),
        get_schema_property(items, "isPartOf.name"),
        get_meta_content(meta_tags, "name", "twitter:creator"),
        get_meta_content(meta_tags, "name", "application-name"),
    )


def get_site(soup: BeautifulSoup, items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    site = _first(
        get_schema_property(items, "publisher.name"),
        get_meta_content(meta_tags, "property", "og:site_name"),
        get_schema_property(items, "WebSite.name"),
        get_schema_property(items, "sourceOrganization.name"),
        get_meta_content(meta_tags, "name", "copyright"),
        get_schema_property(items, "copyrightHolder.name"),
        get_schema_property(items, "isPartOf.name"),
        get_meta_content(meta_tags, "name", "application-name"),
    )
    return site or get_author(soup, items, meta_tags)


def clean_title(title: str, site_name: str) -> str:
    """Drop a leading or trailing ``| Site Name`` from *title*."""
    if not title or not site_name:
        return title
    escaped = re.escape(site_name)
    for pattern in (
        rf"\s*[\|\-–—]\s*{escaped}\s*$",
        rf"^\s*{escaped}\s*[\|\-–—]\s*",
    ):
        regex = re.compile(pattern, re.IGNORECASE)
        if regex.search(title):
            title = regex.sub("", title)
            break
    return title.strip()


def get_title(soup: BeautifulSoup, items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    raw = _first(
        get_meta_content(meta_tags, "property", "og:title"),
        get_meta_content(meta_tags, "name", "twitter:title"),
        get_schema_property(items, "headline"),
        get_meta_content(meta_tags, "name", "title"),
        get_meta_content(meta_tags, "name", "sailthru.title"),
    )
    if not raw:
        title_el = soup.find("title")
        if isinstance(title_el, Tag):
            raw = title_el.get_text().strip()
    return clean_title(raw, get_site(soup, items, meta_tags))


def get_description(items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    return _first(
        get_meta_content(meta_tags, "name", "description"),
        get_meta_content(meta_tags, "property", "description"),
        get_meta_content(meta_tags, "property", "og:description"),
        get_schema_property(items, "description"),
        get_meta_content(meta_tags, "name", "twitter:description"),
        get_meta_content(meta_tags, "name", "sailthru.description"),
    )


def get_image(items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    return _first(
        get_meta_content(meta_tags, "property", "og:image"),
        get_meta_content(meta_tags, "name", "twitter:image"),
        get_schema_property(items, "image.url"),
        get_schema_property(items, "image"),
        get_meta_content(meta_tags, "name", "sailthru.image.full"),
        get_meta_content(meta_tags, "name", "sailthru.image.thumb"),
    )


def get_favicon(soup: BeautifulSoup, base_url: str, meta_tags: list[MetaTag]) -> str:
    favicon = ""
    icon = soup.select_one('link[rel*="icon"]')
    if icon is not None:
        favicon = _safe_str(icon.get("href"))
    favicon = _first(
        favicon,
        get_meta_content(meta_tags, "name", "msapplication-TileImage"),
        "/favicon.ico",
    )
    if favicon.startswith("http") or not base_url:
        return favicon
    try:
        return urljoin(base_url, favicon)
    except ValueError:
        logger.debug("Cannot resolve favicon %r against %r", favicon, base_url)
        return favicon


def get_published(soup: BeautifulSoup, items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    raw = _first(
        get_schema_property(items, "datePublished"),
        get_meta_content(meta_tags, "property", "article:published_time"),
        get_meta_content(meta_tags, "name", "sailthru.date"),
        get_meta_content(meta_tags, "name", "date"),
    )
    if not raw:
        time_el = soup.select_one("time[datetime]")
        if time_el is not None:
            raw = _safe_str(time_el.get("datetime"))
    return normalize_date(raw)


def get_document_url(soup: BeautifulSoup, items: list[dict[str, Any]], meta_tags: list[MetaTag]) -> str:
    """The page's own URL as declared by its markup, or ``""``."""
    url = _first(
        get_meta_content(meta_tags, "property", "og:url"),
        get_meta_content(meta_tags, "property", "twitter:url"),
        get_meta_content(meta_tags, "name", "twitter:url"),
        get_schema_property(items, "url"),
        get_schema_property(items, "mainEntityOfPage.url"),
        get_schema_property(items, "mainEntity.url"),
        get_schema_property(items, "WebSite.url"),
    )
    if url:
        # Several schema hits come back joined; keep the first.
        return url.split(", ")[0]
    for selector in ('link[rel="canonical"]', "base[href]"):
        el = soup.select_one(selector)
        if el is not None and el.get("href"):
            return _safe_str(el.get("href"))
    return ""


def domain_of(url: str) -> str:
    """Host of *url* without a leading ``www.``; ``""`` for malformed URLs."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        logger.debug("Malformed document URL %r", url)
        return ""
    return host.removeprefix("www.")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(
    soup: BeautifulSoup,
    schema_items: list[dict[str, Any]],
    meta_tags: list[MetaTag],
    url: str = "",
) -> Metadata:
    """Build :class:`Metadata` for *soup*; ``word_count`` and ``parse_time`` stay 0."""
    document_url = url or get_document_url(soup, schema_items, meta_tags)
    return Metadata(
        title=get_title(soup, schema_items, meta_tags),
        description=get_description(schema_items, meta_tags),
        domain=domain_of(document_url) if document_url else "",
        favicon=get_favicon(soup, document_url, meta_tags),
        image=get_image(schema_items, meta_tags),
        published=get_published(soup, schema_items, meta_tags),
        author=get_author(soup, schema_items, meta_tags),
        site=get_site(soup, schema_items, meta_tags),
        schema_org_data=schema_items,
    )
