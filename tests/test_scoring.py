"""Tests for declutter.extractors.scoring - content scoring heuristics."""

from __future__ import annotations

from bs4 import BeautifulSoup

from declutter.extractors.scoring import (
    find_best_element,
    is_likely_content,
    link_density,
    rank_elements,
    score_and_remove,
    score_element,
    score_non_content_block,
)

SENTENCE = "The river carried a pebble past the quiet orchard gate. "


def _el(html: str):
    soup = BeautifulSoup(html, "lxml")
    return soup.body.find(True)


class TestScoreElement:
    def test_words_and_paragraphs(self):
        el = _el(f"<div><p>{SENTENCE}</p><p>{SENTENCE}</p></div>")
        # 20 words + 2 paragraphs * 10
        assert score_element(el) == 40.0

    def test_content_class_bonus(self):
        plain = _el(f"<div><p>{SENTENCE}</p></div>")
        classed = _el(f'<div class="post-body"><p>{SENTENCE}</p></div>')
        assert score_element(classed) - score_element(plain) == 15.0

    def test_link_penalty(self):
        plain = _el(f"<div>{SENTENCE}</div>")
        linked = _el(f'<div>{SENTENCE}<a href="/x"></a></div>')
        assert score_element(linked) < score_element(plain)

    def test_date_and_byline_bonus(self):
        el = _el("<div>Written by Jane Smith on March 15, 2024</div>")
        words = len("Written by Jane Smith on March 15, 2024".split())
        assert score_element(el) == words + 20.0

    def test_footnote_bonus(self):
        plain = _el(f"<div><p>{SENTENCE}</p></div>")
        noted = _el(f'<div><p>{SENTENCE}<sup class="reference"></sup></p></div>')
        assert score_element(noted) - score_element(plain) == 10.0

    def test_nested_table_penalty(self):
        plain = _el(f"<div>{SENTENCE}</div>")
        tabled = _el(f"<div>{SENTENCE}<table><tr><td></td></tr></table></div>")
        assert score_element(plain) - score_element(tabled) == 5.0

    def test_never_negative(self):
        el = _el('<div><a href="/a"></a><a href="/b"></a><img src="x.png"></div>')
        assert score_element(el) == 0.0

    def test_center_layout_cell_bonus(self):
        soup = BeautifulSoup(
            f'<table width="800"><tr><td>left</td><td>{SENTENCE}</td><td>right</td></tr></table>',
            "lxml",
        )
        left, center, _ = soup.find_all("td")
        assert score_element(center) == 10.0 + 10.0
        assert score_element(left) == 1.0


class TestLinkDensity:
    def test_all_links(self):
        assert link_density(_el('<div><a href="/">home page</a></div>')) == 1.0

    def test_no_text(self):
        assert link_density(_el("<div></div>")) == 0.0

    def test_half(self):
        assert link_density(_el('<div>abcd<a href="/">efgh</a></div>')) == 0.5


class TestRanking:
    def test_rank_descending_stable(self):
        soup = BeautifulSoup(
            f'<div id="a">{SENTENCE}</div><div id="b">{SENTENCE * 2}</div><div id="c">{SENTENCE}</div>',
            "lxml",
        )
        ranked = rank_elements(soup.find_all("div"))
        assert [r.element["id"] for r in ranked] == ["b", "a", "c"]

    def test_find_best_requires_threshold(self):
        el = _el(f"<div>{SENTENCE}</div>")
        assert find_best_element([el]) is None
        assert find_best_element([el], min_score=5) is el

    def test_find_best_picks_highest(self):
        soup = BeautifulSoup(
            f'<div id="small"><p>{SENTENCE}</p></div>'
            f'<div id="big"><p>{SENTENCE * 4}</p><p>{SENTENCE * 4}</p></div>',
            "lxml",
        )
        best = find_best_element(soup.find_all("div"))
        assert best["id"] == "big"


class TestScoreAndRemove:
    def test_link_list_removed(self):
        soup = BeautifulSoup(
            "<body><div class=\"links\"><ul>"
            '<li><a href="/a">Alpha page</a></li><li><a href="/b">Beta page</a></li>'
            '<li><a href="/c">Gamma page</a></li><li><a href="/d">Delta page</a></li>'
            "</ul></div>"
            f"<div class=\"story\"><p>{SENTENCE * 4}</p><p>{SENTENCE}</p></div></body>",
            "lxml",
        )
        assert score_and_remove(soup) == 1
        assert soup.select_one("div.links") is None
        assert soup.select_one("div.story") is not None

    def test_protected_kept(self):
        soup = BeautifulSoup('<div class="share-row">Share this with friends today</div>', "lxml")
        target = soup.select_one("div.share-row")
        assert score_non_content_block(target) < 0
        assert score_and_remove(soup, protected=[target]) == 0
        assert soup.select_one("div.share-row") is not None

    def test_short_blocks_untouched(self):
        soup = BeautifulSoup('<div class="nav">Go</div>', "lxml")
        assert score_and_remove(soup) == 0

    def test_footnote_list_untouched(self):
        soup = BeautifulSoup(
            '<div class="menu-notes"><div class="footnotes"><ol><li>Menu sign in notes here</li></ol></div></div>',
            "lxml",
        )
        assert score_and_remove(soup) == 0

    def test_likely_content_by_role(self):
        assert is_likely_content(_el('<div role="article">short</div>'))

    def test_likely_content_by_words(self):
        assert is_likely_content(_el(f"<div><p>{SENTENCE * 4}</p></div>"))
