"""Tests for crawl data models."""

import json

import pytest

from portfolio_scraper.models import (
    CrawlResult,
    CrawlTarget,
    LinkRecord,
    PageContentRecord,
    TextItem,
)


def record_with_text(url, text, links=()):
    return PageContentRecord(url=url, texts=(TextItem("p", text),), links=links)


class TestCrawlTarget:
    def test_default_depth(self):
        assert CrawlTarget(url="https://a.test/").depth == 0

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            CrawlTarget(url="https://a.test/", depth=-1)


class TestPageContentRecord:
    """Test cases for PageContentRecord."""

    def test_total_text_length(self):
        record = PageContentRecord(
            url="https://a.test/",
            texts=(TextItem("h1", "abc"), TextItem("p", "de")),
        )

        assert record.total_text_length == 5

    def test_meaningful_content_needs_text_volume(self):
        assert record_with_text("https://a.test/", "x" * 51).has_meaningful_content(50)
        assert not record_with_text("https://a.test/", "x" * 50).has_meaningful_content(50)

    def test_links_alone_are_not_meaningful(self):
        record = PageContentRecord(
            url="https://a.test/",
            links=(LinkRecord(href="https://a.test/b", text="b", target="none"),),
        )

        assert not record.has_meaningful_content(50)

    def test_to_dict_shape(self):
        record = PageContentRecord(
            url="https://a.test/",
            texts=(TextItem("h1", "Hi"),),
            stylesheets=("https://a.test/s.css",),
            scripts=("https://a.test/app.js",),
        )

        data = record.to_dict()

        assert data["page"] == "https://a.test/"
        assert data["content"]["visible_texts"] == [{"tag": "h1", "text": "Hi"}]
        assert data["content"]["css_files"] == ["https://a.test/s.css"]
        assert data["content"]["js_files"] == ["https://a.test/app.js"]
        assert data["content"]["links"] == []
        assert data["content"]["images"] == []


class TestCrawlResult:
    """Test cases for CrawlResult."""

    def test_empty_is_unsuccessful(self):
        result = CrawlResult.from_records([], 50)

        assert result.success is False
        assert result.total_pages == 0

    def test_success_when_any_page_is_rich(self):
        records = [
            record_with_text("https://a.test/", "short"),
            record_with_text("https://a.test/about", "a long enough paragraph " * 4),
        ]

        result = CrawlResult.from_records(records, 50)

        assert result.success is True
        assert result.total_pages == 2
        assert result.page_urls == ["https://a.test/", "https://a.test/about"]

    def test_thin_pages_unsuccessful(self):
        result = CrawlResult.from_records([record_with_text("https://a.test/", "Loading...")], 50)

        assert result.success is False
        assert result.total_pages == 1

    def test_to_dict_is_json_serializable(self):
        result = CrawlResult.from_records(
            [record_with_text("https://a.test/", "text")],
            50,
            aborted=True,
            error="Browser connection lost",
        )

        data = json.loads(json.dumps(result.to_dict()))

        assert data["aborted"] is True
        assert data["error"] == "Browser connection lost"
        assert data["scraped_data"][0]["page"] == "https://a.test/"
