"""Gemini app conversations, including the cited sources panel."""

from __future__ import annotations

import copy
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from declutter.sites.base import preview
from declutter.sites.conversation import ConversationExtractorBase, ConversationMessage, Footnote


class GeminiExtractor(ConversationExtractorBase):
    site_name = "Gemini"
    url_pattern = re.compile(r"^https?://gemini\.google\.com/app/")

    def __init__(self, soup: BeautifulSoup, url: str, schema_items: list[dict[str, Any]] | None = None) -> None:
        super().__init__(soup, url, schema_items)
        self.containers: list[Tag] = soup.select("div.conversation-container")

    def can_extract(self) -> bool:
        return self.matches_url() and bool(self.containers)

    def footnotes(self) -> list[Footnote]:
        """One footnote per ``browse-item`` source link, labelled ``domain: title``."""
        notes = []
        for item in self.soup.find_all("browse-item"):
            link = item.find("a", href=True)
            if link is None or not link["href"]:
                continue
            domain = self.text_of(".domain", link)
            title = self.text_of(".title", link)
            if domain and title:
                notes.append(Footnote(str(link["href"]), f"{domain}: {title}"))
            elif domain or title:
                notes.append(Footnote(str(link["href"]), domain or title))
        return notes

    def extract_messages(self) -> list[ConversationMessage]:
        messages = []
        for container in self.containers:
            query = self.select_one("user-query .query-text", container)
            if query is not None:
                content = query.decode_contents().strip()
                if content:
                    messages.append(ConversationMessage("You", content, metadata={"role": "user"}))

            response = container.find("model-response")
            if response is None:
                continue
            body = (
                self.select_one("#extended-response-markdown-content", response)
                or self.select_one(".model-response-text .markdown", response)
            )
            if body is None:
                continue
            content = self._clean(body)
            if content:
                messages.append(ConversationMessage("Gemini", content, metadata={"role": "assistant"}))
        return messages

    @staticmethod
    def _clean(body: Tag) -> str:
        body = copy.copy(body)
        for el in body.select(".table-content"):
            el["class"] = [name for name in el.get("class", []) if name != "table-content"]
            if not el["class"]:
                del el["class"]
        return body.decode_contents().strip()

    def conversation_title(self) -> str:
        title = self.page_title()
        if title and "Gemini" not in title:
            return title
        research = self.text_of(".title-text")
        if research:
            return research
        if self.containers:
            query = self.select_one(".query-text", self.containers[0])
            if query is not None:
                return preview(query.get_text().strip())
        return "Gemini Conversation"
