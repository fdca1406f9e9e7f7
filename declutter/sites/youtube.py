"""YouTube watch pages: an embed player plus the video description."""

from __future__ import annotations

import logging
from html import escape
from typing import Any
from urllib.parse import parse_qs, urlparse

from declutter.items import ExtractedContent
from declutter.sites.base import SiteExtractorBase

logger = logging.getLogger(__name__)

EMBED_URL = "https://www.youtube.com/embed/{id}"
THUMBNAIL_URL = "https://img.youtube.com/vi/{id}/maxresdefault.jpg"

_IFRAME_ALLOW = (
    "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; "
    "picture-in-picture; web-share"
)
MAX_DESCRIPTION_LENGTH = 200
_WORD_BOUNDARY_MIN = 150


def truncate_description(description: str) -> str:
    """Cut at 200 characters, backing up to a space if one falls after 150."""
    if len(description) <= MAX_DESCRIPTION_LENGTH:
        return description.strip()
    truncated = description[:MAX_DESCRIPTION_LENGTH]
    last_space = truncated.rfind(" ")
    if last_space > _WORD_BOUNDARY_MIN:
        truncated = truncated[:last_space]
    return truncated.strip()


def _is_video_object(item: dict[str, Any]) -> bool:
    item_type = item.get("@type", item.get("type"))
    types = item_type if isinstance(item_type, list) else [item_type]
    return any(isinstance(t, str) and t.removeprefix("schema:") == "VideoObject" for t in types)


def _is_youtube_host(host: str) -> bool:
    return host == "youtube.com" or host.endswith(".youtube.com")


def _is_short_host(host: str) -> bool:
    return host == "youtu.be" or host.endswith(".youtu.be")


class YouTubeExtractor(SiteExtractorBase):
    """Extract youtube.com watch pages and youtu.be short links."""

    def can_extract(self) -> bool:
        return bool(self.video_id())

    def extract(self) -> ExtractedContent:
        video = self.video_data()
        video_id = self.video_id()
        description = self._description(video)

        parts: list[str] = []
        if video_id:
            parts.append(
                '<iframe width="560" height="315" '
                f'src="{EMBED_URL.format(id=escape(video_id))}" '
                'title="YouTube video player" frameborder="0" '
                f'allow="{_IFRAME_ALLOW}" allowfullscreen></iframe><br>',
            )
        if description:
            formatted = escape(description).replace("\n", "<br>")
            parts.append(f"<p>{formatted}</p>")

        title = self._title(video)
        logger.debug("YouTube video %r (%s)", title, video_id or "no id")
        return ExtractedContent(
            content_html="".join(parts),
            variables={
                "title": title,
                "author": self._author(video),
                "site": "YouTube",
                "image": self._thumbnail(video, video_id),
                "published": self._string(video.get("uploadDate")),
                "description": truncate_description(description),
            },
        )

    # -- helpers ------------------------------------------------------------

    def video_data(self) -> dict[str, Any]:
        for item in self.schema_items:
            if isinstance(item, dict) and _is_video_object(item):
                return item
        return {}

    def video_id(self) -> str:
        try:
            parsed = urlparse(self.url)
        except ValueError:
            return ""
        host = (parsed.hostname or "").lower()
        if _is_youtube_host(host) and parsed.path.rstrip("/") == "/watch":
            return parse_qs(parsed.query).get("v", [""])[0].strip()
        if _is_short_host(host):
            return parsed.path.strip("/").split("/")[0]
        return ""

    @staticmethod
    def _string(value: Any) -> str:
        if isinstance(value, list):
            value = value[0] if value else ""
        if isinstance(value, dict):
            value = value.get("@value", value.get("@id", ""))
        return value.strip() if isinstance(value, str) else ""

    def _title(self, video: dict[str, Any]) -> str:
        name = self._string(video.get("name"))
        if name:
            return name
        return self.page_title().removesuffix(" - YouTube")

    def _author(self, video: dict[str, Any]) -> str:
        author = video.get("author")
        if isinstance(author, dict):
            return self._string(author.get("name"))
        return self._string(author)

    def _description(self, video: dict[str, Any]) -> str:
        description = self._string(video.get("description"))
        if description:
            return description
        el = self.soup.select_one("#description")
        return el.get_text().strip() if el is not None else ""

    def _thumbnail(self, video: dict[str, Any], video_id: str) -> str:
        thumbnail = self._string(video.get("thumbnailUrl"))
        if thumbnail:
            return thumbnail
        return THUMBNAIL_URL.format(id=video_id) if video_id else ""
