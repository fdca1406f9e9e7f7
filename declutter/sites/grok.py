"""Grok chat and share pages."""

from __future__ import annotations

import copy
import re
from html import escape
from typing import Any

from bs4 import BeautifulSoup, Tag

from declutter.extractors.metadata import domain_of
from declutter.sites.base import preview
from declutter.sites.conversation import ConversationExtractorBase, ConversationMessage, Footnote

MESSAGE_CONTAINER = ".relative.group.flex.flex-col.justify-center.w-full"
_ATTACHMENT_SELECTOR = ".relative.border.border-border-l1.bg-surface-base"
_TITLE_SUFFIX_RE = re.compile(r"\s-\s*Grok$")
_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


class GrokExtractor(ConversationExtractorBase):
    site_name = "Grok"
    url_pattern = re.compile(r"^https?://grok\.com/(chat|share)(/.*)?$")

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        self.containers: list[Tag] = soup.select(MESSAGE_CONTAINER)
        self._footnotes: list[Footnote] = []

    def can_extract(self) -> bool:
        return self.matches_url() and bool(self.containers)

    def footnotes(self) -> list[Footnote]:
        return list(self._footnotes)

    def extract_messages(self) -> list[ConversationMessage]:
        self._footnotes = []
        messages = []
        for container in self.containers:
            classes = container.get("class") or []
            bubble = container.select_one(".message-bubble")
            if bubble is None:
                continue
            if "items-end" in classes:
                author, role = "You", "user"
                content = escape(bubble.get_text())
            elif "items-start" in classes:
                author, role = "Grok", "assistant"
                content = self._assistant_html(bubble)
            else:
                continue
            content = content.strip()
            if content:
                messages.append(ConversationMessage(author, content, metadata={"role": role}))
        return messages

    def _assistant_html(self, bubble: Tag) -> str:
        body = copy.copy(bubble)
        for el in body.select(_ATTACHMENT_SELECTOR):
            el.decompose()
        for link in body.find_all("a", href=True):
            href = str(link["href"])
            if not _HTTP_RE.match(href):
                continue
            number = self._footnote_number(href)
            ref = BeautifulSoup(
                f'<sup id="fnref:{number}" class="footnote-ref">'
                f'<a href="#fn:{number}" class="footnote-link">{number}</a></sup>',
                "html.parser",
            ).sup
            link.insert_after(ref)
            link.unwrap()
        return body.decode_contents()

    def _footnote_number(self, href: str) -> int:
        for index, note in enumerate(self._footnotes, start=1):
            if note.url == href:
                return index
        self._footnotes.append(Footnote(href, domain_of(href) or href))
        return len(self._footnotes)

    def conversation_title(self) -> str:
        title = self.page_title()
        if title and title != "Grok" and not title.startswith("Grok by "):
            title = _TITLE_SUFFIX_RE.sub("", title).strip()
            if title:
                return title
        first_user = self.soup.select_one(f"{MESSAGE_CONTAINER}.items-end .message-bubble")
        if first_user is not None:
            text = first_user.get_text().strip()
            if text:
                return preview(text)
        return "Grok Conversation"
