"""ChatGPT shared and saved conversations."""

from __future__ import annotations

import copy
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from declutter.sites.base import preview
from declutter.sites.conversation import ConversationExtractorBase, ConversationMessage, Footnote

_ROLE_AUTHORS = {"user": "You", "assistant": "ChatGPT"}


def _is_citation(span: Tag) -> bool:
    children = [child for child in span.children if isinstance(child, Tag)]
    if len(children) != 1 or children[0].name != "a":
        return False
    link = children[0]
    rel = link.get("rel") or []
    rel = rel if isinstance(rel, list) else str(rel).split()
    return bool(link.get("href")) and link.get("target") == "_blank" and "noopener" in rel


class ChatGPTExtractor(ConversationExtractorBase):
    site_name = "ChatGPT"
    url_pattern = re.compile(r"^https?://chatgpt\.com/(c|share)/")

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        self.articles: list[Tag] = soup.select('article[data-testid^="conversation-turn-"]')
        self._footnotes: list[Footnote] = []

    def can_extract(self) -> bool:
        return self.matches_url() and bool(self.articles)

    def footnotes(self) -> list[Footnote]:
        return list(self._footnotes)

    def extract_messages(self) -> list[ConversationMessage]:
        self._footnotes = []
        messages = []
        for article in self.articles:
            author = self.text_of("h5.sr-only, h6.sr-only", article).removesuffix(":").strip()
            role = str(article.get("data-message-author-role") or "")
            if not role:
                role = self.attr_of("[data-message-author-role]", "data-message-author-role", article)
            author = author or _ROLE_AUTHORS.get(role, "")

            content = self._clean(article)
            if content:
                messages.append(ConversationMessage(author, content, metadata={"role": role or "unknown"}))
        return messages

    def _clean(self, article: Tag) -> str:
        body = copy.copy(article)
        for el in body.select('h5.sr-only, h6.sr-only, span[data-state="closed"]'):
            el.decompose()
        for span in body.find_all("span"):
            if span.parent is not None and _is_citation(span):
                self._footnotes.append(Footnote(str(span.a["href"]), f"Source {len(self._footnotes) + 1}"))
                number = len(self._footnotes)
                sup = BeautifulSoup(f'<sup><a href="#fn:{number}">[{number}]</a></sup>', "html.parser").sup
                span.replace_with(sup)
        for para in body.find_all("p"):
            if not para.get_text().replace("\u200b", "").strip() and para.find(True) is None:
                para.decompose()
        return body.decode_contents().replace("\u200b", "").strip()

    def conversation_title(self) -> str:
        title = self.page_title()
        if title and title != "ChatGPT":
            return title
        if self.articles:
            first = self.articles[0].select_one(".text-message")
            if first is not None:
                return preview(first.get_text())
        return "ChatGPT Conversation"
