"""Tests for the built-in site extractors (Hacker News, GitHub, YouTube, X, Reddit)."""

from __future__ import annotations

import logging

import pytest
from bs4 import BeautifulSoup

from declutter.sites import (
    GitHubExtractor,
    HackerNewsExtractor,
    RedditExtractor,
    TwitterExtractor,
    YouTubeExtractor,
)
from declutter.sites.base import blockquote_thread, preview
from declutter.sites.github import format_timestamp
from declutter.sites.reddit import comment_date
from declutter.sites.twitter import format_tweet_text
from declutter.sites.youtube import MAX_DESCRIPTION_LENGTH, truncate_description

HN_URL = "https://news.ycombinator.com/item?id=100"
GITHUB_URL = "https://github.com/acme/lanterns/issues/42"
YOUTUBE_URL = "https://www.youtube.com/watch?v=abc123XYZ"
TWEET_URL = "https://x.com/meadowlights/status/1750000000000000001"
REDDIT_URL = "https://www.reddit.com/r/lanterns/comments/abc123/lantern_wicks_that_actually_last/"

VIDEO = {
    "@type": "VideoObject",
    "name": "Lantern Festival Timelapse",
    "description": "Lanterns drifting over the river.\nFilmed from the harbor wall.",
    "uploadDate": "2024-02-10",
    "thumbnailUrl": "https://i.ytimg.com/vi/abc123XYZ/maxresdefault.jpg",
    "author": "Meadow Films",
}


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


# ---------------------------------------------------------------------------
# Hacker News
# ---------------------------------------------------------------------------

class TestHackerNews:
    @pytest.fixture
    def extracted(self, hackernews_html):
        return HackerNewsExtractor(_soup(hackernews_html), HN_URL, []).extract()

    def test_detects_item_page(self, hackernews_html):
        assert HackerNewsExtractor(_soup(hackernews_html), HN_URL, []).can_extract()

    def test_ignores_other_pages(self):
        assert not HackerNewsExtractor(_soup("<p>hello</p>"), HN_URL, []).can_extract()

    def test_variables(self, extracted):
        assert extracted.variables == {
            "title": "Lantern orchard notes",
            "author": "alice",
            "site": "Hacker News",
            "description": "Lantern orchard notes - by alice on Hacker News",
            "published": "2024-01-15",
        }

    def test_post_link_and_text(self, extracted):
        content = _soup(extracted.content_html)
        link = content.select_one(".post-content p a")
        assert link["href"] == "https://meadow.example.com/lanterns"
        assert link["target"] == "_blank"
        assert "keeping lanterns lit" in content.select_one(".post-text").get_text()

    def test_comment_nesting(self, extracted):
        content = _soup(extracted.content_html)
        top_level = content.select(".hackernews-comments > blockquote")
        assert len(top_level) == 2

        first, second = top_level
        assert first.select_one(".comment-author").get_text() == "bob"
        nested = first.select("blockquote")
        assert len(nested) == 1
        assert nested[0].select_one(".comment-author").get_text() == "carol"
        assert second.select_one(".comment-author").get_text() == "dave"
        assert second.select("blockquote") == []

    def test_duplicate_comment_rendered_once(self, extracted):
        assert extracted.content_html.count("The harbor lights look wonderful") == 1

    def test_comment_link_and_date(self, extracted):
        link = _soup(extracted.content_html).select_one("a.comment-link")
        assert link["href"] == "https://news.ycombinator.com/item?id=101"
        assert link.get_text() == "2024-01-15"

    def test_comments_heading(self, extracted):
        assert "<hr><h2>Comments</h2>" in extracted.content_html

    def test_post_id(self, hackernews_html):
        assert HackerNewsExtractor(_soup(hackernews_html), HN_URL, []).post_id() == "100"

    def test_post_id_logged(self, hackernews_html, caplog):
        with caplog.at_level(logging.DEBUG, logger="declutter.sites.hackernews"):
            HackerNewsExtractor(_soup(hackernews_html), HN_URL, []).extract()
        assert "Hacker News item 100" in caplog.text

    def test_comment_page(self):
        html = (
            '<table class="fatitem"><tr class="athing"><td>'
            '<span class="navs"><a href="item?id=100#parent">parent</a></span>'
            '<div class="comment"><a class="hnuser">erin</a>'
            '<span class="age" title="2024-03-01T09:00:00 1709283600"></span>'
            '<div class="commtext">Short reply about the stones.</div></div>'
            "</td></tr></table>"
        )
        extractor = HackerNewsExtractor(_soup(html), "https://news.ycombinator.com/item?id=105", [])
        assert extractor.is_comment_page
        result = extractor.extract()
        assert result.variables["title"] == "Comment by erin: Short reply about the stones."
        assert result.variables["description"] == "Comment by erin on Hacker News"
        content = _soup(result.content_html)
        assert content.select_one(".comment-date").get_text() == "2024-03-01"
        parent = content.select_one("a.parent-link")
        assert parent["href"] == "https://news.ycombinator.com/item?id=100#parent"
        assert "hackernews-comments" not in result.content_html

    def test_long_comment_title_truncated(self):
        text = "x" * 80
        html = (
            '<table class="fatitem"><tr><td>'
            '<span class="navs"><a href="item?id=1#parent">parent</a></span>'
            f'<div class="comment"><a class="hnuser">erin</a><div class="commtext">{text}</div></div>'
            "</td></tr></table>"
        )
        title = HackerNewsExtractor(_soup(html), "", []).post_title()
        assert title == f"Comment by erin: {'x' * 50}..."


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------

class TestFormatTimestamp:
    def test_utc(self):
        assert format_timestamp("2024-01-15T10:30:00Z") == "January 15, 2024"

    def test_invalid(self):
        assert format_timestamp("yesterday") == ""

    def test_empty(self):
        assert format_timestamp("") == ""


class TestGitHub:
    @pytest.fixture
    def extracted(self, github_html):
        return GitHubExtractor(_soup(github_html), GITHUB_URL, []).extract()

    def test_detects_issue_page(self, github_html):
        assert GitHubExtractor(_soup(github_html), GITHUB_URL, []).can_extract()

    def test_requires_issue_markers(self):
        html = '<meta name="expected-hostname" content="github.com"><div class="js-header-wrapper"></div>'
        assert not GitHubExtractor(_soup(html), GITHUB_URL, []).can_extract()

    def test_requires_github_markers(self):
        html = '<h1 data-testid="issue-title">Bug</h1>'
        assert not GitHubExtractor(_soup(html), GITHUB_URL, []).can_extract()

    def test_issue_header(self, extracted):
        header = _soup(extracted.content_html).select_one(".issue-author")
        assert header.get_text() == "alice opened this issue on January 15, 2024"

    def test_body_chrome_removed(self, extracted):
        body = _soup(extracted.content_html).select_one(".issue-body")
        assert "river theme" in body.get_text()
        assert body.select_one("pre code") is not None
        assert body.select_one("button") is None
        assert "Copy to clipboard" not in body.get_text()

    def test_source_document_untouched(self, github_html):
        soup = _soup(github_html)
        GitHubExtractor(soup, GITHUB_URL, []).extract()
        assert soup.select_one(".zeroclipboard-container") is not None

    def test_comments_deduplicated(self, extracted):
        comments = _soup(extracted.content_html).select(".comment")
        assert len(comments) == 1
        assert comments[0].select_one(".comment-header").get_text() == "bob commented on January 16, 2024"
        assert comments[0].select_one(".comment-body").get_text() == "Confirmed on the meadow build."

    def test_variables(self, extracted):
        assert extracted.variables["title"] == "Lantern crashes on startup · Issue #42 · acme/lanterns"
        assert extracted.variables["author"] == ""
        assert extracted.variables["site"] == "GitHub - acme/lanterns"

    def test_description(self, extracted):
        description = extracted.variables["description"]
        assert description.startswith("alice opened this issue on January 15, 2024")
        assert len(description) <= 140
        assert "  " not in description

    def test_repo_from_title_without_url(self, github_html):
        assert GitHubExtractor(_soup(github_html), "", []).repo_info() == ("acme", "lanterns")

    def test_issue_number(self, github_html):
        assert GitHubExtractor(_soup(github_html), GITHUB_URL, []).issue_number() == "42"

    def test_unknown_author(self):
        html = (
            '<div data-testid="issue-viewer-issue-container">'
            '<div data-testid="issue-body-viewer"><div class="markdown-body"><p>Body</p></div></div>'
            "</div>"
        )
        result = GitHubExtractor(_soup(html), GITHUB_URL, []).extract()
        assert _soup(result.content_html).select_one(".issue-author").get_text() == "Unknown"


# ---------------------------------------------------------------------------
# YouTube
# ---------------------------------------------------------------------------

class TestTruncateDescription:
    def test_short_unchanged(self):
        assert truncate_description("A short clip. ") == "A short clip."

    def test_cut_at_word_boundary(self):
        text = ("lantern " * 40).strip()
        result = truncate_description(text)
        assert len(result) <= MAX_DESCRIPTION_LENGTH
        assert result.endswith("lantern")

    def test_hard_cut_without_late_space(self):
        text = "a" * 300
        assert truncate_description(text) == "a" * MAX_DESCRIPTION_LENGTH


class TestYouTube:
    def test_detects_by_host(self):
        assert YouTubeExtractor(_soup("<p></p>"), YOUTUBE_URL, []).can_extract()
        assert YouTubeExtractor(_soup("<p></p>"), "https://youtu.be/abc123XYZ", []).can_extract()

    def test_ignores_mentions_in_path(self):
        url = "https://meadow.example.com/youtube.com/watch"
        assert not YouTubeExtractor(_soup("<p></p>"), url, []).can_extract()

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/about/press/",
        "https://www.youtube.com/@meadowfilms",
        "https://www.youtube.com/watch",
        "https://www.youtube.com/watch?v=",
        "https://notyoutube.com/watch?v=abc123XYZ",
        "https://youtube.com.example.net/watch?v=abc123XYZ",
        "https://youtu.be/",
    ])
    def test_only_video_urls(self, url):
        assert not YouTubeExtractor(_soup("<p></p>"), url, []).can_extract()

    def test_mobile_and_bare_hosts(self):
        for url in ("https://m.youtube.com/watch?v=abc123XYZ", "https://youtube.com/watch?v=abc123XYZ"):
            assert YouTubeExtractor(_soup(""), url, []).video_id() == "abc123XYZ"

    def test_video_id(self):
        assert YouTubeExtractor(_soup(""), YOUTUBE_URL, []).video_id() == "abc123XYZ"
        assert YouTubeExtractor(_soup(""), "https://youtu.be/abc123XYZ", []).video_id() == "abc123XYZ"

    def test_embed_and_description(self, youtube_html):
        result = YouTubeExtractor(_soup(youtube_html), YOUTUBE_URL, [VIDEO]).extract()
        content = _soup(result.content_html)
        assert content.iframe["src"] == "https://www.youtube.com/embed/abc123XYZ"
        paragraph = content.select_one("p")
        assert len(paragraph.find_all("br")) == 1
        assert "Filmed from the harbor wall." in paragraph.get_text()

    def test_variables(self, youtube_html):
        variables = YouTubeExtractor(_soup(youtube_html), YOUTUBE_URL, [VIDEO]).extract().variables
        assert variables["title"] == "Lantern Festival Timelapse"
        assert variables["author"] == "Meadow Films"
        assert variables["site"] == "YouTube"
        assert variables["published"] == "2024-02-10"
        assert variables["image"] == "https://i.ytimg.com/vi/abc123XYZ/maxresdefault.jpg"

    def test_falls_back_to_page(self, youtube_html):
        result = YouTubeExtractor(_soup(youtube_html), YOUTUBE_URL, []).extract()
        assert result.variables["title"] == "Lantern Festival Timelapse"
        assert result.variables["description"] == "Lanterns drifting over the river."
        assert result.variables["image"] == "https://img.youtube.com/vi/abc123XYZ/maxresdefault.jpg"

    def test_prefixed_type_and_person_author(self):
        video = {
            "@type": "schema:VideoObject",
            "name": ["Harbor Walk"],
            "author": {"@type": "Person", "name": "Sam"},
        }
        variables = YouTubeExtractor(_soup(""), YOUTUBE_URL, [video]).extract().variables
        assert variables["title"] == "Harbor Walk"
        assert variables["author"] == "Sam"

    def test_description_escaped(self):
        video = {"@type": "VideoObject", "description": "Stones <b>and</b> windows"}
        result = YouTubeExtractor(_soup(""), YOUTUBE_URL, [video]).extract()
        assert "&lt;b&gt;" in result.content_html


# ---------------------------------------------------------------------------
# X (Twitter)
# ---------------------------------------------------------------------------

class TestFormatTweetText:
    def test_lines_become_paragraphs(self):
        text = _soup('<div data-testid="tweetText"><span>one</span>\n<a href="https://t.co/x">two</a></div>')
        assert format_tweet_text(text.select_one("div")) == "<p>one</p>\n<p>two</p>"

    def test_missing(self):
        assert format_tweet_text(None) == ""


class TestTwitter:
    @pytest.fixture
    def extracted(self, twitter_html):
        return TwitterExtractor(_soup(twitter_html), TWEET_URL, []).extract()

    @pytest.mark.parametrize("url", [
        TWEET_URL,
        "https://twitter.com/meadowlights/status/1750000000000000001",
        "https://mobile.twitter.com/meadowlights/status/1750000000000000001",
    ])
    def test_detects_status_page(self, twitter_html, url):
        assert TwitterExtractor(_soup(twitter_html), url, []).can_extract()

    @pytest.mark.parametrize("url", [
        "https://twitter.example.net/meadowlights/status/1",
        "https://notx.com/meadowlights/status/1",
        "",
    ])
    def test_other_hosts_ignored(self, twitter_html, url):
        assert not TwitterExtractor(_soup(twitter_html), url, []).can_extract()

    def test_requires_a_tweet(self):
        assert not TwitterExtractor(_soup("<main role='main'><p>hi</p></main>"), TWEET_URL, []).can_extract()

    def test_variables(self, extracted):
        assert extracted.variables == {
            "title": "Thread by @meadowlights",
            "author": "@meadowlights",
            "site": "X (Twitter)",
            "description": "The orchard lanterns are lit tonight, come by the east gate. meadow.example.com/lanterns",
        }

    def test_main_tweet(self, extracted):
        content = _soup(extracted.content_html)
        paragraphs = content.select(".main-tweet > .tweet > .tweet-text p")
        assert [p.get_text() for p in paragraphs] == [
            "The orchard lanterns are lit",
            "tonight, come by the east gate. meadow.example.com/lanterns",
        ]
        date = content.select_one(".main-tweet .tweet-date")
        assert date.get_text() == "2024-01-20"
        assert date["href"] == "/meadowlights/status/1750000000000000001"

    def test_images_upsized_and_quoted_excluded(self, extracted):
        content = _soup(extracted.content_html)
        images = content.select(".main-tweet > .tweet > .tweet-media img")
        assert len(images) == 1
        assert images[0]["src"] == "https://pbs.twimg.com/media/lantern01?format=jpg&name=large"
        assert images[0]["alt"] == "Lanterns in the orchard"

    def test_quoted_tweet(self, extracted):
        quoted = _soup(extracted.content_html).select_one("blockquote.quoted-tweet")
        assert quoted.select_one(".tweet-handle").get_text() == "@harborwatch"
        assert "Festival season starts Friday." in quoted.get_text()
        assert quoted.select_one("img")["src"].endswith("name=large")

    def test_thread(self, extracted):
        thread = _soup(extracted.content_html).select(".thread-tweets .tweet-text")
        assert [t.get_text() for t in thread] == ["Bring a warm coat."]

    def test_tweet_id(self, twitter_html):
        assert TwitterExtractor(_soup(twitter_html), TWEET_URL, []).tweet_id() == "1750000000000000001"


# ---------------------------------------------------------------------------
# Reddit
# ---------------------------------------------------------------------------

class TestCommentDate:
    def test_unix_seconds(self):
        assert comment_date("1705312800") == "2024-01-15"

    def test_iso(self):
        assert comment_date("2024-01-16T09:30:00.000Z") == "2024-01-16"

    def test_empty(self):
        assert comment_date("  ") == ""


class TestReddit:
    @pytest.fixture
    def extracted(self, reddit_html):
        return RedditExtractor(_soup(reddit_html), REDDIT_URL, []).extract()

    def test_detects_post_page(self, reddit_html):
        assert RedditExtractor(_soup(reddit_html), REDDIT_URL, []).can_extract()
        assert RedditExtractor(_soup(reddit_html), "https://old.reddit.com/r/lanterns/", []).can_extract()

    @pytest.mark.parametrize("url", [
        "https://notreddit.com/r/lanterns/comments/abc123/",
        "https://reddit.com.example.net/r/lanterns/comments/abc123/",
        "",
    ])
    def test_other_hosts_ignored(self, reddit_html, url):
        assert not RedditExtractor(_soup(reddit_html), url, []).can_extract()

    def test_requires_post_markup(self):
        assert not RedditExtractor(_soup("<p>Nothing here</p>"), REDDIT_URL, []).can_extract()

    def test_variables(self, extracted):
        variables = extracted.variables
        assert variables["title"] == "Lantern wicks that actually last?"
        assert variables["author"] == "wickmaker"
        assert variables["site"] == "r/lanterns"
        assert variables["description"].startswith("My cotton wicks burn down in a single evening.")

    def test_post_body_and_image(self, extracted):
        content = _soup(extracted.content_html)
        assert len(content.select(".reddit-post .post-content .md p")) == 2
        assert content.select_one("#post-image img")["src"] == "https://i.redd.it/orchard-lantern.jpg"

    def test_comments_nested_by_depth(self, extracted):
        comments = _soup(extracted.content_html).select_one(".reddit-comments")
        assert len(comments.find_all("blockquote", recursive=False)) == 2
        reply = comments.select_one("blockquote > blockquote")
        assert "Three nights is plenty" in reply.get_text()

    def test_comment_metadata(self, extracted):
        content = _soup(extracted.content_html)
        link = content.select_one(".reddit-comments .comment-link")
        assert link["href"] == "https://reddit.com/r/lanterns/comments/abc123/comment/c1/"
        assert link.get_text() == "42 points"
        assert [d.get_text() for d in content.select(".comment-date")] == ["2024-01-15", "2024-01-16"]

    def test_empty_comments_skipped(self, extracted):
        assert "[deleted]" not in extracted.content_html

    def test_old_markup(self):
        html = (
            '<div class="thing link" id="thing_t3_abc123">'
            '<div class="usertext-body"><div class="md"><p>Old reddit body</p></div></div></div>'
            '<div class="comment"><div class="md"><p>Old comment</p></div></div>'
        )
        result = RedditExtractor(_soup(html), REDDIT_URL, []).extract()
        content = _soup(result.content_html)
        assert content.select_one(".post-content").get_text() == "Old reddit body"
        assert "Old comment" in content.select_one(".reddit-comments").get_text()
        assert result.variables["site"] == "r/lanterns"

    def test_default_page_title_ignored(self):
        html = "<html><head><title>Reddit - The heart of the internet</title></head><body><div class='md'>x</div></body></html>"
        assert RedditExtractor(_soup(html), REDDIT_URL, []).post_title() == ""


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

class TestThreadHelpers:
    def test_preview(self):
        assert preview("short") == "short"
        assert preview("x" * 60) == "x" * 50 + "..."

    def test_blockquote_thread(self):
        html = blockquote_thread([(0, "a"), (1, "b"), (2, "c"), (0, "d")])
        assert html == (
            "<blockquote>a<blockquote>b<blockquote>c</blockquote></blockquote></blockquote>"
            "<blockquote>d</blockquote>"
        )

    def test_blockquote_thread_empty(self):
        assert blockquote_thread([]) == ""
