"""Shared rendering for chat transcript pages (ChatGPT, Claude, Grok, Gemini)."""

from __future__ import annotations

import logging
import re
from html import escape
from typing import NamedTuple

from declutter.items import ExtractedContent
from declutter.sites.base import SiteExtractorBase

logger = logging.getLogger(__name__)


class ConversationMessage(NamedTuple):
    author: str
    content: str
    timestamp: str = ""
    metadata: dict[str, str] | None = None


class Footnote(NamedTuple):
    url: str
    text: str


def footnote_list(footnotes: list[Footnote]) -> str:
    """Numbered ``#footnotes`` list with back-references to ``#fnref:N``."""
    if not footnotes:
        return ""
    items = []
    for number, note in enumerate(footnotes, start=1):
        items.append(
            f'<li class="footnote" id="fn:{number}"><p>'
            f'<a href="{escape(note.url)}" target="_blank">{escape(note.text)}</a>'
            f'&nbsp;<a href="#fnref:{number}" class="footnote-backref">↩</a>'
            "</p></li>"
        )
    return f'<div id="footnotes"><ol>{"".join(items)}</ol></div>'


class ConversationExtractorBase(SiteExtractorBase):
    """Turns a list of messages into one transcript document.

    Subclasses set :attr:`site_name` and :attr:`url_pattern` and implement
    :meth:`extract_messages` and :meth:`conversation_title`. Footnotes
    collected while extracting messages are read back through
    :meth:`footnotes` afterwards.
    """

    site_name = ""
    url_pattern: re.Pattern[str] | None = None

    def matches_url(self) -> bool:
        return self.url_pattern is not None and self.url_pattern.match(self.url) is not None

    def extract_messages(self) -> list[ConversationMessage]:
        raise NotImplementedError

    def conversation_title(self) -> str:
        raise NotImplementedError

    def footnotes(self) -> list[Footnote]:
        return []

    def extract(self) -> ExtractedContent:
        messages = self.extract_messages()
        footnotes = self.footnotes()
        logger.debug("%s conversation: %d messages, %d footnotes", self.site_name, len(messages), len(footnotes))
        return ExtractedContent(
            content_html=self.create_content_html(messages, footnotes),
            variables={
                "title": self.conversation_title(),
                "site": self.site_name,
                "description": f"{self.site_name} conversation with {len(messages)} messages",
            },
        )

    @staticmethod
    def create_content_html(messages: list[ConversationMessage], footnotes: list[Footnote] | None = None) -> str:
        rendered = []
        for message in messages:
            attrs = "".join(
                f' data-{escape(key)}="{escape(value)}"' for key, value in (message.metadata or {}).items()
            )
            header = f'<p class="message-author"><strong>{escape(message.author)}</strong></p>'
            if message.timestamp:
                header += f'<p class="message-timestamp">{escape(message.timestamp)}</p>'
            content = message.content
            if "<p" not in content:
                content = f"<p>{content}</p>"
            rendered.append(
                f'<div class="message message-{escape(message.author.lower())}"{attrs}>'
                f'<div class="message-header">{header}</div>'
                f'<div class="message-content">{content}</div>'
                "</div>"
            )
        return "\n<hr>\n".join(rendered) + footnote_list(footnotes or [])
