"""Hacker News item pages: the story (or a single comment) plus its thread."""

from __future__ import annotations

import logging
import re
from html import escape
from typing import Any

from bs4 import BeautifulSoup, Tag

from declutter.items import ExtractedContent
from declutter.sites.base import SiteExtractorBase, blockquote_thread, preview

logger = logging.getLogger(__name__)

HN_ITEM_URL = "https://news.ycombinator.com/item?id={id}"
INDENT_WIDTH = 40  # pixels of ``.ind img`` per nesting level

_POST_ID_RE = re.compile(r"id=(\d+)")


def _date_part(timestamp: str) -> str:
    return timestamp.split("T", 1)[0] if timestamp else ""


class HackerNewsExtractor(SiteExtractorBase):
    """Extract a ``.fatitem`` page with its comments as nested blockquotes."""

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        self.main_post: Tag | None = soup.select_one(".fatitem")
        self.is_comment_page = (
            self.main_post is not None
            and self.main_post.select_one('.navs a[href*="parent"]') is not None
        )
        self.main_comment: Tag | None = (
            self.main_post.select_one(".comment") if self.is_comment_page and self.main_post else None
        )

    def can_extract(self) -> bool:
        return self.main_post is not None

    def extract(self) -> ExtractedContent:
        post_content = self._post_content()
        comments = self._comments_html()
        title = self.post_title()
        author = self.post_author()

        parts = ['<div class="hackernews-post">', f'<div class="post-content">{post_content}</div>']
        if comments:
            parts.append(f'<hr><h2>Comments</h2><div class="hackernews-comments">{comments}</div>')
        parts.append("</div>")

        logger.debug(
            "Hacker News item %s %r by %r, comments=%s",
            self.post_id() or "<unknown>", title, author, bool(comments),
        )
        return ExtractedContent(
            content_html="".join(parts),
            variables={
                "title": title,
                "author": author,
                "site": "Hacker News",
                "description": self._description(title, author),
                "published": self.post_date(),
            },
        )

    # -- post ---------------------------------------------------------------

    def post_title(self) -> str:
        if self.main_comment is not None:
            author = self.text_of(".hnuser", self.main_comment) or "[deleted]"
            text = self.text_of(".commtext", self.main_comment)
            return f"Comment by {author}: {preview(text)}"
        if self.main_post is None:
            return ""
        return self.text_of(".titleline", self.main_post)

    def post_author(self) -> str:
        if self.main_post is None:
            return ""
        return self.text_of(".hnuser", self.main_post)

    def post_date(self) -> str:
        if self.main_post is None:
            return ""
        return _date_part(self.attr_of(".age", "title", self.main_post))

    def post_id(self) -> str:
        match = _POST_ID_RE.search(self.url)
        return match.group(1) if match else ""

    def _description(self, title: str, author: str) -> str:
        if self.is_comment_page:
            return f"Comment by {author} on Hacker News"
        return f"{title} - by {author} on Hacker News"

    def _post_content(self) -> str:
        if self.main_post is None:
            return ""

        if self.main_comment is not None:
            comment = self.main_comment
            author = self.text_of(".hnuser", comment) or "[deleted]"
            date = _date_part(self.attr_of(".age", "title", comment))
            points = self.text_of(".score", comment)
            parent_url = self.attr_of('.navs a[href*="parent"]', "href", self.main_post)

            meta = [f'<span class="comment-author"><strong>{escape(author)}</strong></span> •']
            meta.append(f' <span class="comment-date">{escape(date)}</span>')
            if points:
                meta.append(f' • <span class="comment-points">{escape(points)}</span>')
            if parent_url:
                href = escape(f"https://news.ycombinator.com/{parent_url}")
                meta.append(f' • <a href="{href}" class="parent-link">parent</a>')
            body = self.inner_html(comment.select_one(".commtext"))
            return (
                '<div class="comment main-comment">'
                f'<div class="comment-metadata">{"".join(meta)}</div>'
                f'<div class="comment-content">{body}</div>'
                "</div>"
            )

        parts: list[str] = []
        title_row = self.main_post.select_one("tr.athing")
        link = self.attr_of(".titleline a", "href", title_row) if title_row is not None else ""
        if link:
            parts.append(f'<p><a href="{escape(link)}" target="_blank">{escape(link)}</a></p>')
        text = self.main_post.select_one(".toptext")
        if text is not None:
            parts.append(f'<div class="post-text">{self.inner_html(text)}</div>')
        return "".join(parts)

    # -- comments -----------------------------------------------------------

    def _comments_html(self) -> str:
        """Render ``tr.comtr`` rows as blockquotes nested by indent depth."""
        rendered: list[tuple[int, str]] = []
        seen: set[str] = set()

        for row in self.soup.select("tr.comtr"):
            comment_id = str(row.get("id") or "")
            if not comment_id or comment_id in seen:
                continue
            seen.add(comment_id)

            text = row.select_one(".commtext")
            if text is None:
                continue

            try:
                indent = int(self.attr_of(".ind img", "width", row) or "0")
            except ValueError:
                indent = 0
            depth = indent // INDENT_WIDTH

            author = self.text_of(".hnuser", row) or "[deleted]"
            date = _date_part(self.attr_of(".age", "title", row))
            points = self.text_of(".score", row)
            link = HN_ITEM_URL.format(id=escape(comment_id))

            meta = [
                f'<span class="comment-author"><strong>{escape(author)}</strong></span> •',
                f' <a href="{link}" class="comment-link">{escape(date)}</a>',
            ]
            if points:
                meta.append(f' • <span class="comment-points">{escape(points)}</span>')
            rendered.append((
                depth,
                '<div class="comment">'
                f'<div class="comment-metadata">{"".join(meta)}</div>'
                f'<div class="comment-content">{self.inner_html(text)}</div>'
                "</div>",
            ))

        return blockquote_thread(rendered)
