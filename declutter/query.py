"""declutter.query - one-call fetch and parse API.

Basic usage::

    from declutter import fetch, parse

    result = fetch("https://example.com/blog/some-post")
    print(result.title)
    print(result.author)
    print(result.word_count)

    # Pre-fetched HTML, no network
    result = parse(html, url="https://example.com/blog/some-post", markdown=True)

    # As a plain dict with camelCase keys
    data = result.to_dict()

Low-level access::

    from declutter.query import fetch_html

    html = fetch_html("https://example.com/blog/post")
"""

from __future__ import annotations

import gzip
import http.client
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from typing import Any
from urllib.parse import urlparse

from declutter.items import ParseResult
from declutter.parser import ContentParser

logger = logging.getLogger(__name__)

_DEFAULT_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


# ---------------------------------------------------------------------------
# Public exception
# ---------------------------------------------------------------------------

class FetchError(RuntimeError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
        body   -- decoded error body, when the server sent one
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


def _decode_response_body(raw: bytes, headers: Any | None, url: str) -> str:
    encoding = ""
    if headers is not None:
        encoding = str(headers.get("Content-Encoding", "") or "").lower().strip()

    try:
        if encoding == "gzip":
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"{encoding} decompression failed for {url}: {exc}", url=url) from exc
    if encoding == "br":
        raise FetchError(f"Brotli-encoded response from {url} is not supported", url=url)

    charset = "utf-8"
    if headers is not None and hasattr(headers, "get_content_charset"):
        charset = headers.get_content_charset("utf-8") or "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def _retry_after(headers: Any | None) -> int:
    value = headers.get("Retry-After", "") if headers is not None else ""
    value = (value or "").strip()
    return int(value) if value.isdigit() else 0


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def fetch_html(
    url: str,
    *,
    timeout: int = 30,
    user_agent: str | None = None,
    max_retries: int = 3,
) -> str:
    """Fetch *url* and return the fully read response body as a decoded string.

    Retries up to *max_retries* times with jittered exponential backoff on
    transient errors (429, 500, 502, 503, 504, and network-level failures),
    honouring ``Retry-After`` when the server sends it.

    Raises:
        FetchError: On HTTP errors, connection failures, truncated bodies or
            unsupported URL schemes.
    """
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise FetchError(f"Malformed URL: {exc}", url=url) from exc
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or _DEFAULT_UA,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
        },
    )

    last_exc: FetchError | None = None
    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                raw: bytes = resp.read()
                return _decode_response_body(raw, resp.headers, url)

        except urllib.error.HTTPError as exc:
            body_text = ""
            try:
                error_raw = exc.read()
                if error_raw:
                    body_text = _decode_response_body(error_raw, exc.headers, url)
            except (OSError, FetchError):
                body_text = ""
            error = FetchError(
                f"HTTP {exc.code} fetching {url}: {exc.reason}",
                url=url,
                status=exc.code,
                body=body_text,
            )
            if exc.code in _RETRY_CODES and attempt < max_retries:
                retry_after = _retry_after(exc.headers)
                delay = max(retry_after, 2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "HTTP %d for %s, retrying in %.1fs (attempt %d/%d)%s",
                    exc.code, url, delay, attempt + 1, max_retries,
                    f" [Retry-After={retry_after}s]" if retry_after else "",
                )
                time.sleep(delay)
                last_exc = error
                continue
            raise error from exc

        except http.client.IncompleteRead as exc:
            # Never hand a truncated document to the parser.
            raise FetchError(f"Incomplete read from {url}: {exc}", url=url) from exc

        except (urllib.error.URLError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            if attempt < max_retries:
                delay = (2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "Network error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, reason,
                )
                time.sleep(delay)
                last_exc = FetchError(f"Network error fetching {url}: {reason}", url=url)
                continue
            raise FetchError(f"Network error fetching {url}: {reason}", url=url) from exc

    raise last_exc or FetchError(f"All retries exhausted for {url}", url=url)


# ---------------------------------------------------------------------------
# One-call API
# ---------------------------------------------------------------------------

def parse(html: str | bytes, url: str = "", **options: Any) -> ParseResult:
    """Parse pre-fetched HTML with no network requests.

    Keyword arguments are :class:`~declutter.items.ParseOptions` fields
    (``markdown=True``, ``debug=True``, ...).

    Example::

        from declutter import parse

        result = parse("<html><body><article>...</article></body></html>",
                       url="https://example.com/post")
        print(result.content)
    """
    if url:
        options["url"] = url
    return ContentParser(html, options).parse()


def fetch(
    url: str,
    *,
    timeout: int = 30,
    user_agent: str | None = None,
    **options: Any,
) -> ParseResult:
    """Fetch *url* and parse it.

    Raises:
        FetchError: When the page cannot be fetched.
        ParseError: When the options are invalid.
    """
    html = fetch_html(url, timeout=timeout, user_agent=user_agent)
    logger.debug("Fetched %d characters from %s", len(html), url)
    options.setdefault("url", url)
    return ContentParser(html, options).parse()
