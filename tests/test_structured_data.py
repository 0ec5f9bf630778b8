"""Tests for the JSON-LD scanner."""

import json

import pytest
from bs4 import BeautifulSoup

from aeo.constants import TRUNCATION_MARKER
from aeo.structured_data import JsonLdScanner


def _page(*blocks):
    scripts = "".join(
        f'<script type="application/ld+json">{block}</script>' for block in blocks
    )
    return BeautifulSoup(f"<html><head>{scripts}</head><body></body></html>", "lxml")


class TestJsonLdScanner:
    """Test cases for JsonLdScanner."""

    @pytest.fixture
    def scanner(self):
        return JsonLdScanner(schema_cap=1024)

    def test_no_blocks(self, scanner):
        """Test a page without JSON-LD."""
        scan = scanner.scan(_page())
        assert scan.block_count == 0
        assert scan.types == []
        assert scan.speakable_blocks == 0

    def test_types_deduplicated_in_order(self, scanner):
        """Test @type collection across blocks, lists and @graph."""
        soup = _page(
            json.dumps({"@type": "Article", "author": {"@type": "Person", "name": "Ada"}}),
            json.dumps([{"@type": ["WebPage", "Article"]}]),
            json.dumps({"@graph": [{"@type": "Organization"}, {"@type": "WebPage"}]}),
        )
        scan = scanner.scan(soup)
        assert scan.block_count == 3
        assert scan.types == ["Article", "WebPage", "Organization"]
        assert scan.author_present is True

    def test_truncation_keeps_types_from_full_block(self):
        """Test that a long block is truncated for display but parsed whole."""
        cap = 1024
        filler = "x" * (cap + 500)
        block = json.dumps({"headline": filler, "@type": "NewsArticle"})
        scan = JsonLdScanner(schema_cap=cap).scan(_page(block))

        snippet = scan.snippets[0]
        assert snippet == block[:cap] + TRUNCATION_MARKER
        assert "NewsArticle" not in snippet
        assert scan.types == ["NewsArticle"]

    def test_whitespace_collapsed(self, scanner):
        """Test that display snippets collapse whitespace runs."""
        block = '{\n    "@type":   "FAQPage"\n}'
        scan = scanner.scan(_page(block))
        assert scan.snippets == ['{ "@type": "FAQPage" }']

    def test_malformed_block_counted_not_parsed(self, scanner):
        """Test that malformed JSON is skipped without aborting the scan."""
        soup = _page('{"@type": "Article",', json.dumps({"@type": "Product"}))
        scan = scanner.scan(soup)
        assert scan.block_count == 2
        assert scan.parse_errors == 1
        assert scan.types == ["Product"]

    def test_empty_block_skipped(self, scanner):
        """Test that whitespace-only blocks are not counted."""
        scan = scanner.scan(_page("   \n  "))
        assert scan.block_count == 0

    def test_speakable_counted(self, scanner):
        """Test SpeakableSpecification in JSON-LD plus <speakable> elements."""
        block = json.dumps({
            "@type": "WebPage",
            "speakable": {"@type": "SpeakableSpecification", "cssSelector": [".tldr"]},
        })
        soup = BeautifulSoup(
            f'<html><head><script type="application/ld+json">{block}</script></head>'
            "<body><speakable>Hi</speakable></body></html>",
            "lxml",
        )
        scan = scanner.scan(soup)
        assert scan.speakable_blocks == 2
