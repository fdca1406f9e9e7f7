"""Tests for the declutter command-line interface."""

from __future__ import annotations

import io
import json
from unittest.mock import patch

import pytest

from declutter.__main__ import PropertyNotFoundError, extract_property, main
from declutter.parser import ContentParser
from declutter.query import FetchError


@pytest.fixture
def article_file(tmp_path, article_html):
    path = tmp_path / "article.html"
    path.write_text(article_html, encoding="utf-8")
    return path


class TestParseCommand:
    def test_prints_content_html(self, article_file, capsys):
        assert main(["parse", str(article_file)]) == 0
        assert capsys.readouterr().out.startswith("<article")

    def test_property_title(self, article_file, capsys):
        assert main(["parse", str(article_file), "--property", "title"]) == 0
        assert capsys.readouterr().out == "Growing Lanterns in the Orchard\n"

    def test_property_name_is_forgiving(self, article_file, capsys):
        assert main(["parse", str(article_file), "-p", "wordCount"]) == 0
        assert int(capsys.readouterr().out) >= 200

    def test_unknown_property(self, article_file, capsys):
        assert main(["parse", str(article_file), "-p", "colour"]) == 1
        assert "Property not found" in capsys.readouterr().err

    def test_empty_property_prints_nothing(self, article_file, capsys):
        assert main(["parse", str(article_file), "-p", "content_markdown"]) == 0
        assert capsys.readouterr().out == ""

    def test_json(self, article_file, capsys):
        assert main(["parse", str(article_file), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["title"] == "Growing Lanterns in the Orchard"
        assert data["wordCount"] >= 200

    def test_markdown(self, article_file, capsys):
        assert main(["parse", str(article_file), "--md"]) == 0
        out = capsys.readouterr().out
        assert "## Stones and windows" in out
        assert "<article" not in out

    def test_output_file(self, article_file, tmp_path, capsys):
        target = tmp_path / "out.html"
        assert main(["parse", str(article_file), "-o", str(target)]) == 0
        assert target.read_text(encoding="utf-8").startswith("<article")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Output written to" in captured.err

    def test_stdin(self, article_html, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(article_html))
        assert main(["parse", "-", "-p", "author"]) == 0
        assert capsys.readouterr().out == "Jane Smith\n"

    def test_url_source(self, article_html, capsys):
        with patch("declutter.__main__.fetch_html", return_value=article_html) as mock_fetch:
            code = main(["parse", "https://mirror.example.org/copy", "-p", "domain", "--timeout", "5"])
        assert code == 0
        mock_fetch.assert_called_once_with("https://mirror.example.org/copy", timeout=5, user_agent=None)
        assert capsys.readouterr().out == "mirror.example.org\n"

    def test_fetch_error(self, capsys):
        with patch("declutter.__main__.fetch_html", side_effect=FetchError("HTTP 404", status=404)):
            assert main(["parse", "https://meadow.example.com/missing"]) == 1
        assert "Error loading content" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["parse", str(tmp_path / "nope.html")]) == 1
        assert "Error reading" in capsys.readouterr().err

    def test_debug_still_prints_result(self, article_file, capsys):
        assert main(["parse", str(article_file), "--debug", "-p", "title"]) == 0
        assert capsys.readouterr().out == "Growing Lanterns in the Orchard\n"

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            main([])


class TestExtractProperty:
    def test_meta_tags_as_json(self, article_html):
        result = ContentParser(article_html).parse()
        tags = json.loads(extract_property(result, "meta_tags"))
        assert {"property": "og:site_name", "content": "Meadow Journal"} in tags

    def test_schema_as_json(self, article_html):
        result = ContentParser(article_html).parse()
        items = json.loads(extract_property(result, "schemaOrgData"))
        assert items[0]["@type"] == "Article"

    def test_unknown(self, article_html):
        result = ContentParser(article_html).parse()
        with pytest.raises(PropertyNotFoundError):
            extract_property(result, "nope")
