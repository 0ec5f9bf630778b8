"""Tests for the prompt assembler."""

import json
import re
from datetime import datetime, timezone

import pytest

from aeo.constants import RUBRIC_KEYS, RUBRIC_WEIGHTS
from aeo.extractor import extract
from aeo.prompts import build_scoring_examples, build_system_prompt, build_user_prompt

NOW = datetime(2025, 6, 3, tzinfo=timezone.utc)

PAGE = """
<html lang="en"><head><title>FAQ</title></head>
<body><main><p class="summary">Short answer up front.</p>
<p>More detail follows here.</p></main></body></html>
"""


class TestSystemPrompt:
    """Test cases for build_system_prompt."""

    @pytest.fixture
    def prompt(self):
        return build_system_prompt("### structured_data\nUse Article schema.")

    def test_rubric_categories_and_weights(self, prompt):
        """Test that all nine categories appear with their weights."""
        for key in RUBRIC_KEYS:
            assert re.search(rf"^{key}\s+\({RUBRIC_WEIGHTS[key]}\) 0-100$", prompt, re.MULTILINE)
        assert sum(RUBRIC_WEIGHTS.values()) == pytest.approx(10.0)

    def test_anchors_have_point_ranges(self, prompt):
        """Test the four anchor bands for each category."""
        for band in ("missing   0-20", "basic     21-50", "good      51-80", "excellent 81-100"):
            assert prompt.count(band) == len(RUBRIC_KEYS)

    def test_enums_and_cap(self, prompt):
        """Test closed enums, the fix cap and the sort requirement."""
        assert "'high' | 'med' | 'low'" in prompt
        assert "'low' | 'medium' | 'high'" in prompt
        assert "at most 20 fixes" in prompt
        assert "sort fixes by impact" in prompt

    def test_best_practices_embedded(self, prompt):
        """Test that the snippet is wrapped verbatim."""
        assert "<best_practices>\n### structured_data\nUse Article schema.\n</best_practices>" in prompt
        assert "RESULT_SCHEMA" in prompt

    def test_deterministic(self):
        """Test identical inputs give identical prompts."""
        assert build_system_prompt("x") == build_system_prompt("x")


class TestUserPrompt:
    """Test cases for build_user_prompt."""

    @pytest.fixture
    def document(self):
        return extract(PAGE, "https://example.com/faq", "User-agent: GPTBot\nDisallow: /", now=NOW)

    def test_sections(self, document):
        """Test labeled sections in order, with empty ones omitted."""
        prompt = build_user_prompt(document)
        labels = re.findall(r"^### (\w+)$", prompt, re.MULTILINE)

        assert labels == ["HEAD", "PAGE_TEXT", "METRICS", "ROBOTS_TXT", "SCORING_EXAMPLES"]

    def test_metrics_and_robots_json(self, document):
        """Test that metrics and crawler access are indented JSON."""
        prompt = build_user_prompt(document)
        metrics_block = prompt.split("### METRICS\n", 1)[1].split("\n\n### ROBOTS_TXT", 1)[0]
        robots_block = prompt.split("### ROBOTS_TXT\n", 1)[1].split("\n\n### SCORING_EXAMPLES", 1)[0]

        assert json.loads(metrics_block) == document.metrics.to_dict()
        assert json.loads(robots_block)["GPTBot"] == "block"

    def test_scoring_examples_use_observed_values(self, document):
        """Test worked examples reference the page's metric values."""
        examples = build_scoring_examples(document)

        assert len(examples) == len(RUBRIC_KEYS)
        assert examples[0].startswith("structured_data: 0 JSON-LD blocks")
        assert "0 blocks -> ~15 points; 1+ blocks -> 60-80 points" in examples[0]
        assert "blocked [GPTBot]" in examples[3]
        assert "from '.summary'" in examples[-1]

    def test_content_only_prompt(self):
        """Test that plain text gives a single CONTENT section."""
        assert build_user_prompt("Some article text.") == "### CONTENT\nSome article text."

    def test_deterministic(self, document):
        """Test identical documents give identical prompts."""
        assert build_user_prompt(document) == build_user_prompt(document)
