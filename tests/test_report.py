"""Tests for the report transformer."""

import copy
import json

import pytest

from aeo.contract import parse_oracle_response
from aeo.exceptions import TransformInvariantError
from aeo.models import (
    AnalysisMeta,
    Effort,
    ExtractionMetrics,
    FixItem,
    Impact,
    ScoredAnalysis,
)
from aeo.report import (
    ReportTransformer,
    compute_confidence,
    compute_priority,
    transform,
)
from conftest import make_payload


def _scored(payload=None) -> ScoredAnalysis:
    return parse_oracle_response(json.dumps(payload or make_payload()))


def _fix(category, impact="high", effort="low", problem=None) -> FixItem:
    return FixItem(
        problem=problem or f"{category} problem",
        example="",
        fix=f"fix {category}",
        impact=Impact(impact),
        category=category,
        effort=Effort(effort),
    )


class TestPriorityArithmetic:
    """Test cases for confidence and priority."""

    def test_priority_formula(self):
        """Test high impact, 0.9 confidence, low effort."""
        # 1.0*0.6 + 0.9*0.3 + 1.0*0.1
        assert compute_priority(Impact.HIGH, 0.9, Effort.LOW) == pytest.approx(0.97)

    def test_priority_bounds(self):
        """Test the extremes of the formula."""
        assert compute_priority(Impact.LOW, 0.70, Effort.HIGH) == pytest.approx(0.48)
        assert compute_priority(Impact.HIGH, 0.95, Effort.LOW) == pytest.approx(0.985)

    @pytest.mark.parametrize(
        "score,expected",
        [(0, 0.95), (100, 0.70), (20, 0.90), (-10, 0.95), (150, 0.70), (None, 0.825)],
    )
    def test_confidence(self, score, expected):
        """Test that lower scores give higher confidence within [0.70, 0.95]."""
        assert compute_confidence(score) == pytest.approx(expected)


class TestReportTransformer:
    """Test cases for ReportTransformer."""

    @pytest.fixture
    def meta(self):
        return AnalysisMeta(id="a1", user="u1", type="url", url="https://example.com/coffee")

    def test_ranked_fix_priority(self, meta):
        """Test priority of an oracle fix in a category scoring 20."""
        report = transform(_scored(), ExtractionMetrics(), meta)
        top = report.prioritized.fixes[0]

        assert top.category == "structured_data"
        assert top.confidence == pytest.approx(0.90)
        assert top.priority == pytest.approx(0.97)
        assert top.origin == "oracle"
        assert top.id == "fix-01"

    def test_selection_bound_and_order(self, meta):
        """Test at most five selected fixes, sorted by priority."""
        report = transform(_scored(), ExtractionMetrics(), meta)
        selected = report.prioritized.fixes
        priorities = [f.priority for f in selected]

        assert len(selected) <= 5
        assert priorities == sorted(priorities, reverse=True)
        assert len(report.fixes) >= len(selected)

    def test_gap_fixes_generated(self, meta):
        """Test generated fixes for weak categories without oracle fixes."""
        report = transform(_scored(), ExtractionMetrics(), meta)
        generated = {f.category: f for f in report.fixes if f.origin == "generated"}

        # Weak and uncovered: speakable_ready (10), freshness_meta (60), e_e_a_t_signals (70)
        assert set(generated) == {"speakable_ready", "freshness_meta", "e_e_a_t_signals"}
        assert generated["speakable_ready"].problem.startswith("Critical speakable content issues (score: 10)")
        assert generated["freshness_meta"].problem.startswith("Moderate freshness indicators issues (score: 60)")
        assert generated["freshness_meta"].impact == Impact.HIGH
        assert generated["freshness_meta"].effort == Effort.LOW
        assert generated["e_e_a_t_signals"].impact == Impact.MED
        assert generated["speakable_ready"].validation == [
            "speakable_markup_exists=true",
            "css_selectors_valid=true",
        ]

    def test_gap_fixes_disabled(self, meta):
        """Test that only oracle fixes are ranked when gap filling is off."""
        report = ReportTransformer(fill_category_gaps=False).transform(
            _scored(), ExtractionMetrics(), meta
        )
        assert len(report.fixes) == 2
        assert all(f.origin == "oracle" for f in report.fixes)

    def test_quick_wins(self, meta):
        """Test that quick wins are low effort with high or med impact."""
        report = transform(_scored(), ExtractionMetrics(), meta)
        by_fix = {f.fix: f for f in report.fixes}

        assert report.prioritized.quick_wins
        assert len(report.prioritized.quick_wins) <= 5
        for text in report.prioritized.quick_wins:
            fix = by_fix[text]
            assert fix.effort == Effort.LOW
            assert fix.impact in (Impact.HIGH, Impact.MED)

    def test_highlights(self, meta):
        """Test weak categories ordered by importance."""
        report = transform(_scored(), ExtractionMetrics(), meta)
        assert report.prioritized.highlights == [
            "structured_data",
            "freshness_meta",
            "e_e_a_t_signals",
            "speakable_ready",
            "media_alt_caption",
        ]

    def test_tie_break_by_importance_then_pool_order(self):
        """Test deterministic ordering of equal-priority fixes."""
        scores = {key: 50 for key in make_payload()["category_scores"]}
        scored = ScoredAnalysis(
            score=50,
            category_scores=scores,
            fixes=[
                _fix("hreflang_lang_meta"),
                _fix("structured_data", problem="first"),
                _fix("structured_data", problem="second"),
            ],
        )
        report = ReportTransformer(fill_category_gaps=False).transform(scored, {}, None)
        ids = [f.id for f in report.fixes]

        assert ids == ["fix-02", "fix-03", "fix-01"]
        assert [f.problem for f in report.fixes][:2] == ["first", "second"]

    def test_duplicates_removed(self):
        """Test dedupe on category and problem prefix, case-insensitive."""
        scores = {key: 90 for key in make_payload()["category_scores"]}
        scored = ScoredAnalysis(
            score=90,
            category_scores=scores,
            fixes=[
                _fix("structured_data", problem="Missing Article schema"),
                _fix("structured_data", problem="missing article schema"),
                _fix("answer_upfront", problem="Missing Article schema"),
            ],
        )
        report = transform(scored, {}, None)
        assert len(report.fixes) == 2

    def test_code_placeholders(self, meta):
        """Test placeholders come from selected fixes and use bracketed tokens."""
        report = transform(_scored(), ExtractionMetrics(), meta)
        placeholders = report.code_placeholders

        assert placeholders.jsonld
        assert any("[CONTENT_TYPE_PLACEHOLDER]" in s for s in placeholders.jsonld)
        assert any("[ALT_TEXT_PLACEHOLDER]" in s for s in placeholders.dom)
        all_snippets = placeholders.jsonld + placeholders.head + placeholders.dom
        assert len(all_snippets) == len(set(all_snippets))
        assert all("[" in s for s in all_snippets)

        selected_categories = {f.category for f in report.prioritized.fixes}
        assert "structured_data" in selected_categories
        for fix in report.prioritized.fixes:
            assert set(fix.how) == {"jsonld", "head", "dom"}

    def test_raw_analysis_round_trip(self, oracle_payload, meta):
        """Test that the raw payload is deep-copied, not shared or mutated."""
        original = copy.deepcopy(oracle_payload)
        scored = parse_oracle_response(json.dumps(oracle_payload))
        report = transform(scored, ExtractionMetrics(), meta)

        assert report.raw["rawAnalysis"] == original
        assert report.raw["rawAnalysis"] is not scored.payload

        report.raw["rawAnalysis"]["score"] = 0
        assert scored.payload["score"] == 62.5

    def test_output_assembly(self, oracle_payload, meta):
        """Test scores, metrics and pass-through fields are copied verbatim."""
        metrics = ExtractionMetrics()
        metrics.structured_data.json_ld_blocks = 0
        report = transform(_scored(), metrics, meta)
        data = report.to_dict()

        assert data["scores"]["score"] == 62.5
        assert data["scores"]["category_scores"] == oracle_payload["category_scores"]
        assert data["scores"]["metrics"] == metrics.to_dict()
        assert data["keywords"] == oracle_payload["keywords"]
        assert data["audience"] == oracle_payload["targetAudience"]
        assert data["contentGaps"] == ["water temperature"]
        assert data["sentiment"] == "positive"
        assert data["meta"]["_id"] == "a1"
        assert data["raw"]["competitorAnalysis"] == oracle_payload["competitorAnalysis"]
        assert "quickWins" in data["prioritized"]
        json.dumps(data)

    def test_violations_surfaced(self, meta):
        """Test that contract violations reach the report."""
        payload = make_payload()
        payload["fixes"][0]["impact"] = "urgent"
        report = transform(_scored(payload), ExtractionMetrics(), meta)
        assert len(report.raw["violations"]) == 1

    def test_out_of_range_priority_raises(self, monkeypatch):
        """Test that a broken priority is reported, not clamped."""
        monkeypatch.setattr("aeo.report.compute_priority", lambda *args: 1.5)
        with pytest.raises(TransformInvariantError):
            transform(_scored(), {}, None)

    def test_default_meta_is_deterministic(self):
        """Test that omitting meta gives identical reports with no timestamp."""
        first = transform(_scored(), ExtractionMetrics(), None).to_json()
        second = transform(_scored(), ExtractionMetrics(), None).to_json()

        assert first == second
        assert json.loads(first)["meta"]["createdAt"] is None
