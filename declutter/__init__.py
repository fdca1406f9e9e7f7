"""declutter - extract the main content and metadata from any web page.

Quick usage::

    from declutter import parse

    result = parse(html, url="https://example.com/blog/some-post")
    print(result.title)
    print(result.content)

Fetch and convert to Markdown::

    from declutter import fetch

    result = fetch("https://example.com/blog/some-post", separate_markdown=True)
    print(result.content_markdown)

Reusable parser with per-call overrides::

    from declutter import ContentParser

    parser = ContentParser(html, {"remove_images": True})
    result = parser.parse({"debug": True})
    print(result.debug_info.statistics)

Site extractors::

    from declutter import register_extractor

    register_extractor(MyDocsExtractor)
"""

from declutter.items import ExtractedContent, Metadata, ParseOptions, ParseResult
from declutter.parser import ContentParser, ParseError
from declutter.plugins import ExtractorRegistry, SiteExtractor, build_registry, register_extractor
from declutter.query import FetchError, fetch, fetch_html, parse

__version__ = "0.1.0"
__all__ = [
    "ContentParser",
    "ExtractedContent",
    "ExtractorRegistry",
    "FetchError",
    "Metadata",
    "ParseError",
    "ParseOptions",
    "ParseResult",
    "SiteExtractor",
    "build_registry",
    "fetch",
    "fetch_html",
    "parse",
    "register_extractor",
]
