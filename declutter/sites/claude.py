"""Claude chat and share pages."""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from declutter.sites.base import preview
from declutter.sites.conversation import ConversationExtractorBase, ConversationMessage

_MESSAGE_SELECTOR = 'div[data-testid="user-message"], div[data-testid="assistant-message"], div.font-claude-message'
_TITLE_SUFFIX_RE = re.compile(r"\s*-\s*Claude$")


class ClaudeExtractor(ConversationExtractorBase):
    site_name = "Claude"
    url_pattern = re.compile(r"^https?://claude\.ai/(chat|share)/")

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        self.articles: list[Tag] = soup.select(_MESSAGE_SELECTOR)

    def can_extract(self) -> bool:
        return self.matches_url() and bool(self.articles)

    def extract_messages(self) -> list[ConversationMessage]:
        messages = []
        for article in self.articles:
            if article.get("data-testid") == "user-message":
                author, role = "You", "you"
            else:
                author, role = "Claude", "assistant"
            content = article.decode_contents().strip()
            if content:
                messages.append(ConversationMessage(author, content, metadata={"role": role}))
        return messages

    def conversation_title(self) -> str:
        title = self.page_title()
        if title and title != "Claude":
            return _TITLE_SUFFIX_RE.sub("", title)
        header = self.text_of("header .font-tiempos")
        if header:
            return header
        first_user = self.soup.select_one('div[data-testid="user-message"]')
        if first_user is not None:
            return preview(first_user.get_text().strip())
        return "Claude Conversation"
