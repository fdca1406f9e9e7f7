"""Reddit post pages: the post body plus its comment tree."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from html import escape
from typing import Any

from bs4 import BeautifulSoup, Tag

from declutter.items import ExtractedContent
from declutter.sites.base import SiteExtractorBase, blockquote_thread

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TITLE = "Reddit - The heart of the internet"

_POST_SELECTORS: tuple[str, ...] = (
    "[data-testid='post-content']",
    ".usertext-body",
    ".md",
    "div[data-click-id='text']",
    "div[data-click-id='body']",
    "div[id^='thing_t3_']",
    ".thing.link",
)

_CONTENT_SELECTORS: tuple[str, ...] = (
    "[data-testid='post-content'] .md",
    ".usertext-body .md",
    "div[data-click-id='text']",
    ".md",
)

_IMAGE_SELECTORS: tuple[str, ...] = (
    "img[src*='i.redd.it']",
    "img[src*='preview.redd.it']",
    "img[src*='external-preview.redd.it']",
)

_POST_ID_RE = re.compile(r"comments/([a-zA-Z0-9]+)")
_SUBREDDIT_RE = re.compile(r"/r/([^/]+)")
_WHITESPACE_RE = re.compile(r"\s+")


def comment_date(timestamp: str) -> str:
    """``YYYY-MM-DD`` from a unix timestamp or an ISO datetime string."""
    timestamp = timestamp.strip()
    if not timestamp:
        return ""
    if timestamp.isdigit():
        return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).strftime("%Y-%m-%d")
    return timestamp[:10]


class RedditExtractor(SiteExtractorBase):
    """Extract new-Reddit ``shreddit-post`` pages, falling back to old markup."""

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        self.shreddit_post: Tag | None = soup.find("shreddit-post")

    def can_extract(self) -> bool:
        if not self.on_host("reddit.com"):
            return False
        if self.shreddit_post is not None:
            return True
        return any(self.soup.select_one(selector) is not None for selector in _POST_SELECTORS)

    def extract(self) -> ExtractedContent:
        post = self._post_content()
        comments = self._comments_html()
        title = self.post_title()
        subreddit = self.subreddit()

        parts = ['<div class="reddit-post">', f'<div class="post-content">{post}</div>', "</div>"]
        if comments:
            parts.append(f'<hr><h2>Comments</h2><div class="reddit-comments">{comments}</div>')

        logger.debug(
            "Reddit post %s in r/%s, comments=%s",
            self.post_id() or "<unknown>", subreddit or "<unknown>", bool(comments),
        )
        return ExtractedContent(
            content_html="".join(parts),
            variables={
                "title": title,
                "author": self.post_author(),
                "site": f"r/{subreddit}" if subreddit else "Reddit",
                "description": self._description(),
            },
        )

    # -- post ---------------------------------------------------------------

    def post_id(self) -> str:
        match = _POST_ID_RE.search(self.url)
        return match.group(1) if match else ""

    def subreddit(self) -> str:
        match = _SUBREDDIT_RE.search(self.url)
        return match.group(1) if match else ""

    def post_author(self) -> str:
        if self.shreddit_post is None:
            return ""
        return str(self.shreddit_post.get("author") or "")

    def post_title(self) -> str:
        heading = self.text_of("h1")
        if heading:
            return heading
        title = self.page_title()
        return "" if title == DEFAULT_PAGE_TITLE else title

    def _post_content(self) -> str:
        if self.shreddit_post is not None:
            body = self.inner_html(self.shreddit_post.select_one('[slot="text-body"]'))
            image = self.shreddit_post.select_one("#post-image")
            if image is not None:
                body += f'<div id="post-image">{self.inner_html(image)}</div>'
            return body

        body = ""
        for selector in _CONTENT_SELECTORS:
            el = self.select_one(selector)
            if el is not None:
                body = self.inner_html(el)
                break
        for selector in _IMAGE_SELECTORS:
            for img in self.soup.select(selector):
                body += str(img)
        return body

    def _description(self) -> str:
        if self.shreddit_post is not None:
            text = self.text_of('[slot="text-body"]', self.shreddit_post)
        else:
            text = next(
                (self.text_of(selector) for selector in _CONTENT_SELECTORS if self.select_one(selector)),
                "",
            )
        return _WHITESPACE_RE.sub(" ", text).strip()[:140]

    # -- comments -----------------------------------------------------------

    def _comment_elements(self) -> list[Tag]:
        comments = self.soup.find_all("shreddit-comment")
        if comments:
            return comments
        return self.soup.select('div[data-testid="comment"]') or self.soup.select(".comment")

    def _comments_html(self) -> str:
        rendered: list[tuple[int, str]] = []
        for comment in self._comment_elements():
            body = comment.select_one('[slot="comment"]') or comment.select_one(".md")
            if body is None:
                continue
            content = self.inner_html(body).strip()
            if not content:
                continue

            try:
                depth = int(comment.get("depth") or 0)
            except ValueError:
                depth = 0
            author = str(comment.get("author") or "")
            score = str(comment.get("score") or "0")
            permalink = str(comment.get("permalink") or "")
            date = comment_date(self.attr_of("faceplate-timeago", "ts", comment))

            meta = [f'<span class="comment-author"><strong>{escape(author)}</strong></span> •']
            if permalink:
                href = escape(f"https://reddit.com{permalink}")
                meta.append(f' <a href="{href}" class="comment-link">{escape(score)} points</a>')
            else:
                meta.append(f" <span>{escape(score)} points</span>")
            if date:
                meta.append(f' • <span class="comment-date">{escape(date)}</span>')
            rendered.append((
                depth,
                '<div class="comment">'
                f'<div class="comment-metadata">{"".join(meta)}</div>'
                f'<div class="comment-content">{content}</div>'
                "</div>",
            ))
        return blockquote_thread(rendered)
