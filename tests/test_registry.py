"""Tests for declutter.plugins - the site extractor registry."""

from __future__ import annotations

from bs4 import BeautifulSoup

from declutter.items import ExtractedContent
from declutter.plugins import (
    ExtractorRegistry,
    SiteExtractor,
    build_registry,
    default_registry,
    extractor_type_name,
    register_extractor,
)
from declutter.sites import (
    ChatGPTExtractor,
    ClaudeExtractor,
    GeminiExtractor,
    GitHubExtractor,
    GrokExtractor,
    HackerNewsExtractor,
    RedditExtractor,
    TwitterExtractor,
    YouTubeExtractor,
)
from declutter.sites.base import SiteExtractorBase


class _Always(SiteExtractorBase):
    def can_extract(self) -> bool:
        return True

    def extract(self) -> ExtractedContent:
        return ExtractedContent(content_html="<p>always</p>")


class _Never(SiteExtractorBase):
    def can_extract(self) -> bool:
        return False


class _Broken(SiteExtractorBase):
    def can_extract(self) -> bool:
        raise RuntimeError("detector crashed")


class _MarkerExtractor(SiteExtractorBase):
    def can_extract(self) -> bool:
        return self.select_one("div.marker") is not None

    def extract(self) -> ExtractedContent:
        return ExtractedContent(content_html=self.inner_html(self.select_one("div.marker")))


def _soup(html: str = "<p>x</p>") -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestExtractorRegistry:
    def test_registration_order(self):
        registry = ExtractorRegistry()
        registry.register(_Never)
        registry.register(_Always)
        assert registry.extractors == [_Never, _Always]

    def test_register_is_idempotent(self):
        registry = ExtractorRegistry()
        registry.register(_Always)
        registry.register(_Always)
        assert len(registry) == 1

    def test_first_match_wins(self):
        registry = ExtractorRegistry()
        registry.register(_Never)
        registry.register(_Always)
        registry.register(_MarkerExtractor)
        found = registry.find_extractor(_soup('<div class="marker">m</div>'), "", [])
        assert isinstance(found, _Always)

    def test_no_match(self):
        registry = ExtractorRegistry()
        registry.register(_Never)
        assert registry.find_extractor(_soup(), "", []) is None

    def test_raising_detector_is_no_match(self):
        registry = ExtractorRegistry()
        registry.register(_Broken)
        registry.register(_MarkerExtractor)
        found = registry.find_extractor(_soup('<div class="marker">m</div>'), "", [])
        assert isinstance(found, _MarkerExtractor)

    def test_extractors_property_is_a_copy(self):
        registry = ExtractorRegistry()
        registry.register(_Always)
        registry.extractors.clear()
        assert len(registry) == 1


class TestBuiltins:
    def test_build_registry_order(self):
        assert build_registry().extractors == [
            GitHubExtractor,
            TwitterExtractor,
            YouTubeExtractor,
            RedditExtractor,
            HackerNewsExtractor,
            ChatGPTExtractor,
            ClaudeExtractor,
            GrokExtractor,
            GeminiExtractor,
        ]

    def test_protocol_check(self):
        extractor = HackerNewsExtractor(_soup(), "", [])
        assert isinstance(extractor, SiteExtractor)

    def test_plain_page_not_claimed(self):
        assert build_registry().find_extractor(_soup(), "https://meadow.example.com/", []) is None


class TestDefaultRegistry:
    def test_register_extractor(self, clean_default_registry):
        register_extractor(_MarkerExtractor)
        assert default_registry().extractors[-1] is _MarkerExtractor

    def test_reset_restores_builtins(self, clean_default_registry):
        assert len(default_registry()) == 9
        assert default_registry() is default_registry()


class TestExtractorTypeName:
    def test_from_class(self):
        assert extractor_type_name(HackerNewsExtractor) == "hackernews"
        assert extractor_type_name(GitHubExtractor) == "github"
        assert extractor_type_name(ChatGPTExtractor) == "chatgpt"

    def test_from_instance(self):
        assert extractor_type_name(YouTubeExtractor(_soup(), "", [])) == "youtube"

    def test_name_without_suffix(self):
        assert extractor_type_name(_Always) == "_always"
