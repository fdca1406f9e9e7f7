"""X (Twitter) status pages: the main tweet plus the rest of its thread."""

from __future__ import annotations

import copy
import logging
import re
from html import escape
from typing import Any, NamedTuple

from bs4 import BeautifulSoup, Tag

from declutter.items import ExtractedContent
from declutter.sites.base import SiteExtractorBase

logger = logging.getLogger(__name__)

_TIMELINE_SELECTORS: tuple[str, ...] = (
    '[aria-label="Timeline: Conversation"]',
    '[aria-label*="timeline" i]',
    'main[role="main"]',
    'section[role="region"]',
)

_TWEET_SELECTORS: tuple[str, ...] = (
    'article[data-testid="tweet"]',
    '[data-testid="tweet"]',
    ".tweet",
    'article[role="article"]',
    "div[data-tweet-id]",
)

_IMAGE_SELECTORS: tuple[str, ...] = (
    '[data-testid="tweetPhoto"] img',
    'img[data-testid="tweetPhoto"]',
    '[data-testid="tweet-image"] img',
    'img[data-testid="tweet-image"]',
    'img[src*="media"]',
)

_QUOTED_SELECTOR = '[aria-labelledby*="id__"]'
_FULL_NAME_SELECTOR = 'span[style*="color: rgb(15, 20, 25)"] span'
_HANDLE_SELECTOR = 'span[style*="color: rgb(83, 100, 113)"]'

_STATUS_RE = re.compile(r"status/(\d+)")
_IMAGE_SIZE_RE = re.compile(r"&name=\w+$")
_WHITESPACE_RE = re.compile(r"\s+")


class UserInfo(NamedTuple):
    full_name: str = ""
    handle: str = ""
    date: str = ""
    permalink: str = ""


def format_tweet_text(text_el: Tag | None) -> str:
    """Flatten links and inline wrappers of a tweet body into ``<p>`` lines."""
    if text_el is None:
        return ""
    body = copy.copy(text_el)
    for link in body.find_all("a"):
        link.replace_with(link.get_text().strip())
    for el in body.find_all(["span", "div"]):
        el.replace_with(el.get_text())
    lines = (line.strip() for line in body.decode_contents().split("\n"))
    return "\n".join(f"<p>{line}</p>" for line in lines if line)


def _quoted_container(tweet: Tag) -> Tag | None:
    quoted = tweet.select_one(_QUOTED_SELECTOR)
    if quoted is None:
        return None
    user_name = quoted.select_one('[data-testid="User-Name"]')
    if user_name is None:
        return None
    for parent in user_name.parents:
        if "id__" in str(parent.get("aria-labelledby") or ""):
            return parent
    return None


class TwitterExtractor(SiteExtractorBase):
    """Extract a tweet and its thread from x.com / twitter.com."""

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        tweets = self._find_tweets()
        self.main_tweet: Tag | None = tweets[0] if tweets else None
        self.thread_tweets: list[Tag] = tweets[1:]

    def _find_tweets(self) -> list[Tag]:
        for selector in _TIMELINE_SELECTORS:
            timeline = self.soup.select_one(selector)
            if timeline is not None:
                tweets = timeline.select('article[data-testid="tweet"]')
                if tweets:
                    return tweets
                break
        for selector in _TWEET_SELECTORS:
            tweets = self.soup.select(selector)
            if tweets:
                return tweets
        return []

    def can_extract(self) -> bool:
        return self.on_host("twitter.com", "x.com") and self.main_tweet is not None

    def extract(self) -> ExtractedContent:
        main = self.render_tweet(self.main_tweet)
        thread = "\n<hr>\n".join(
            html for html in (self.render_tweet(t) for t in self.thread_tweets) if html
        )

        parts = ['<div class="tweet-thread">', f'<div class="main-tweet">{main}</div>']
        if thread:
            parts.append(f'<hr><div class="thread-tweets">{thread}</div>')
        parts.append("</div>")

        author = self.tweet_author()
        logger.debug(
            "Tweet %s by %s, %d thread replies",
            self.tweet_id() or "<unknown>", author or "<unknown>", len(self.thread_tweets),
        )
        return ExtractedContent(
            content_html="".join(parts),
            variables={
                "title": f"Thread by {author}" if author else "",
                "author": author,
                "site": "X (Twitter)",
                "description": self._description(),
            },
        )

    # -- tweets -------------------------------------------------------------

    def render_tweet(self, tweet: Tag | None) -> str:
        if tweet is None:
            return ""
        text = format_tweet_text(tweet.select_one('[data-testid="tweetText"]'))
        images = self._images(tweet)
        user = self.user_info(tweet)

        quoted = _quoted_container(tweet)
        quoted_html = self.render_tweet(quoted) if quoted is not None and quoted is not tweet else ""

        parts = [
            '<div class="tweet">',
            '<div class="tweet-header">',
            f'<span class="tweet-author"><strong>{escape(user.full_name)}</strong> '
            f'<span class="tweet-handle">{escape(user.handle)}</span></span>',
        ]
        if user.date:
            parts.append(f' <a href="{escape(user.permalink)}" class="tweet-date">{escape(user.date)}</a>')
        parts.append("</div>")
        if text:
            parts.append(f'<div class="tweet-text">{text}</div>')
        if images:
            parts.append(f'<div class="tweet-media">{"".join(images)}</div>')
        if quoted_html:
            parts.append(f'<blockquote class="quoted-tweet">{quoted_html}</blockquote>')
        parts.append("</div>")
        return "".join(parts)

    @staticmethod
    def user_info(tweet: Tag) -> UserInfo:
        name_el = tweet.select_one('[data-testid="User-Name"]')
        if name_el is None:
            return UserInfo()

        full_name = handle = ""
        links = name_el.find_all("a")
        if len(links) >= 2:
            full_name = links[0].get_text().strip()
            handle = links[1].get_text().strip()
        if not full_name or not handle:
            full_name_el = name_el.select_one(_FULL_NAME_SELECTOR)
            if full_name_el is not None:
                full_name = full_name_el.get_text().strip()
            handle_el = name_el.select_one(_HANDLE_SELECTOR)
            if handle_el is not None:
                handle = handle_el.get_text().strip()

        date = permalink = ""
        time_el = tweet.find("time")
        if time_el is not None:
            date = str(time_el.get("datetime") or "")[:10]
            link = time_el.find_parent("a")
            if link is not None:
                permalink = str(link.get("href") or "")
        return UserInfo(full_name, handle, date, permalink)

    @staticmethod
    def _images(tweet: Tag) -> list[str]:
        quoted = _quoted_container(tweet)
        seen: set[int] = set()
        images: list[str] = []
        for selector in _IMAGE_SELECTORS:
            for img in tweet.select(selector):
                if id(img) in seen or not img.get("src"):
                    continue
                if quoted is not None and any(parent is quoted for parent in img.parents):
                    continue
                seen.add(id(img))
                src = _IMAGE_SIZE_RE.sub("&name=large", str(img["src"]))
                alt = _WHITESPACE_RE.sub(" ", str(img.get("alt") or "")).strip()
                images.append(f'<img src="{escape(src)}" alt="{escape(alt)}">')
        return images

    # -- variables ----------------------------------------------------------

    def tweet_id(self) -> str:
        match = _STATUS_RE.search(self.url)
        return match.group(1) if match else ""

    def tweet_author(self) -> str:
        if self.main_tweet is None:
            return ""
        name_el = self.main_tweet.select_one('[data-testid="User-Name"]')
        if name_el is None:
            return ""
        links = name_el.find_all("a")
        if len(links) < 2:
            return ""
        handle = links[1].get_text().strip()
        return handle if handle.startswith("@") else f"@{handle}"

    def _description(self) -> str:
        if self.main_tweet is None:
            return ""
        text = self.text_of('[data-testid="tweetText"]', self.main_tweet)
        return _WHITESPACE_RE.sub(" ", text[:140])
