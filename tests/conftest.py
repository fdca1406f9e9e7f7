"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from declutter.plugins import reset_default_registry

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def retry_html() -> str:
    return _read_fixture("retry.html")


@pytest.fixture
def hackernews_html() -> str:
    return _read_fixture("hackernews.html")


@pytest.fixture
def github_html() -> str:
    return _read_fixture("github_issue.html")


@pytest.fixture
def youtube_html() -> str:
    return _read_fixture("youtube.html")


@pytest.fixture
def reddit_html() -> str:
    return _read_fixture("reddit.html")


@pytest.fixture
def twitter_html() -> str:
    return _read_fixture("twitter.html")


@pytest.fixture
def clean_default_registry():
    """Rebuild the process-wide extractor registry around a test."""
    reset_default_registry()
    yield
    reset_default_registry()
