"""GitHub issue pages: the issue body plus its comment timeline."""

from __future__ import annotations

import copy
import logging
import re
from datetime import datetime
from html import escape

from bs4 import BeautifulSoup, Tag

from declutter.items import ExtractedContent
from declutter.sites.base import SiteExtractorBase

logger = logging.getLogger(__name__)

_GITHUB_INDICATORS: tuple[str, ...] = (
    'meta[name="expected-hostname"][content="github.com"]',
    'meta[name="octolytics-url"]',
    'meta[name="github-keyboard-shortcuts"]',
    ".js-header-wrapper",
    "#js-repo-pjax-container",
)

_ISSUE_INDICATORS: tuple[str, ...] = (
    '[data-testid="issue-metadata-sticky"]',
    '[data-testid="issue-title"]',
)

_ISSUE_AUTHOR_SELECTORS: tuple[str, ...] = (
    'a[data-testid="issue-body-header-author"]',
    'a[href*="/users/"][data-hovercard-url*="/users/"]',
    'a[aria-label*="profile"]',
)

_COMMENT_AUTHOR_SELECTORS: tuple[str, ...] = (
    'a[data-testid="avatar-link"]',
    'a[href^="/"][data-hovercard-url*="/users/"]',
)

_BODY_CHROME_SELECTOR = (
    'button, [data-testid*="button"], [data-testid*="menu"], '
    ".js-clipboard-copy, .zeroclipboard-container"
)

_USER_RE = re.compile(r"github\.com/([^/?#]+)")
_REPO_RE = re.compile(r"github\.com/([^/]+)/([^/]+)")
_TITLE_REPO_RE = re.compile(r"([^/\s]+)/([^/\s]+)")
_ISSUE_RE = re.compile(r"/issues/(\d+)")
_WHITESPACE_RE = re.compile(r"\s+")


def format_timestamp(value: str) -> str:
    """``2024-01-15T10:30:00Z`` -> ``January 15, 2024``; empty when unparseable."""
    if not value:
        return ""
    try:
        date = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return ""
    return f"{date:%B} {date.day}, {date.year}"


class GitHubExtractor(SiteExtractorBase):
    """Extract a GitHub issue and its comments."""

    def can_extract(self) -> bool:
        has_github = any(self.soup.select_one(s) is not None for s in _GITHUB_INDICATORS)
        has_issue = any(self.soup.select_one(s) is not None for s in _ISSUE_INDICATORS)
        return has_github and has_issue

    def extract(self) -> ExtractedContent:
        parts: list[str] = []

        issue = self.soup.select_one('[data-testid="issue-viewer-issue-container"]')
        if issue is not None:
            body = issue.select_one('[data-testid="issue-body-viewer"] .markdown-body')
            if body is not None:
                author = self._author(issue, _ISSUE_AUTHOR_SELECTORS)
                date = format_timestamp(self.attr_of("relative-time", "datetime", issue))
                header = f"<strong>{escape(author)}</strong>"
                if date:
                    header += f" opened this issue on {date}"
                parts.append(f'<div class="issue-author">{header}</div>')
                parts.append(f'<div class="issue-body">{self._clean_body(body)}</div>')

        seen: set[str] = set()
        for wrapper in self.soup.select("[data-wrapper-timeline-id]"):
            container = wrapper.select_one(".react-issue-comment")
            if container is None:
                continue
            comment_id = str(wrapper.get("data-wrapper-timeline-id") or "")
            if not comment_id or comment_id in seen:
                continue
            seen.add(comment_id)

            body = container.select_one(".markdown-body")
            if body is None:
                continue
            body_html = self._clean_body(body)
            if not body_html:
                continue
            author = self._author(container, _COMMENT_AUTHOR_SELECTORS)
            date = format_timestamp(self.attr_of("relative-time", "datetime", container))
            header = f"<strong>{escape(author)}</strong>"
            if date:
                header += f" commented on {date}"
            parts.append(
                '<div class="comment">'
                f'<div class="comment-header">{header}</div>'
                f'<div class="comment-body">{body_html}</div>'
                "</div>",
            )

        content_html = "".join(parts)
        owner, repo = self.repo_info()
        logger.debug(
            "GitHub issue #%s in %s/%s, %d comments",
            self.issue_number(), owner, repo, len(seen),
        )
        return ExtractedContent(
            content_html=content_html,
            variables={
                "title": self.page_title(),
                "author": "",
                "site": f"GitHub - {owner}/{repo}",
                "description": self._description(content_html),
            },
        )

    # -- helpers ------------------------------------------------------------

    def _author(self, container: Tag, selectors: tuple[str, ...]) -> str:
        for selector in selectors:
            href = self.attr_of(selector, "href", container)
            if href.startswith("/"):
                return href[1:]
            match = _USER_RE.search(href)
            if match:
                return match.group(1)
        return "Unknown"

    @staticmethod
    def _clean_body(body: Tag) -> str:
        cleaned = copy.copy(body)
        for el in cleaned.select(_BODY_CHROME_SELECTOR):
            if not el.decomposed:
                el.decompose()
        return cleaned.decode_contents().strip()

    def repo_info(self) -> tuple[str, str]:
        match = _REPO_RE.search(self.url) or _TITLE_REPO_RE.search(self.page_title())
        if match:
            return match.group(1), match.group(2)
        return "", ""

    def issue_number(self) -> str:
        match = _ISSUE_RE.search(self.url)
        return match.group(1) if match else ""

    @staticmethod
    def _description(content_html: str) -> str:
        if not content_html:
            return ""
        text = BeautifulSoup(content_html, "lxml").get_text()
        return _WHITESPACE_RE.sub(" ", text).strip()[:140]
