"""
Report Transformer

Turns a validated ScoredAnalysis into the user-facing TransformedReport:
- Builds the fix pool (oracle fixes, plus generated fixes for weak
  categories the oracle left uncovered) and removes duplicates
- Ranks fixes by priority with a deterministic tie-break
- Selects the top fixes, highlights and quick wins
- Attaches copy-paste code placeholders for the selected fixes

The transformer is pure: no I/O and no mutation of its inputs.
"""

import copy
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from aeo.constants import (
    CATEGORY_EFFORT,
    CATEGORY_IMPORTANCE,
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    CRITICAL_THRESHOLD,
    DEFAULT_CATEGORY_IMPORTANCE,
    DUPLICATE_PROBLEM_PREFIX,
    EFFORT_WEIGHTS,
    HIGHLIGHT_THRESHOLD,
    IMPACT_WEIGHTS,
    MAX_PRIORITIZED_FIXES,
    MAX_QUICK_WINS,
    MAX_TITLE_LENGTH,
    PRIORITY_CONFIDENCE_SHARE,
    PRIORITY_EFFORT_SHARE,
    PRIORITY_IMPACT_SHARE,
    RUBRIC_KEYS,
    UNSCORED_CATEGORY_SCORE,
)
from aeo.exceptions import TransformInvariantError
from aeo.models import (
    AnalysisMeta,
    CodePlaceholders,
    Effort,
    ExtractionMetrics,
    FixItem,
    Impact,
    PrioritizedFix,
    PrioritizedFixes,
    ScoredAnalysis,
    TransformedReport,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Category Tables
# =============================================================================

CATEGORY_DISPLAY_NAMES = {
    "structured_data": "structured data",
    "speakable_ready": "speakable content",
    "snippet_conciseness": "snippet optimization",
    "crawler_access": "crawler accessibility",
    "freshness_meta": "freshness indicators",
    "e_e_a_t_signals": "E-E-A-T signals",
    "media_alt_caption": "media descriptions",
    "hreflang_lang_meta": "hreflang implementation",
    "answer_upfront": "answer upfront content",
}

CRITICAL_FIXES = {
    "structured_data": "Implement basic structured data markup immediately",
    "speakable_ready": "Add essential speakable content markup",
    "snippet_conciseness": "Fix critical content structure issues",
    "crawler_access": "Resolve major crawler blocking issues",
    "freshness_meta": "Add essential date and freshness signals",
    "e_e_a_t_signals": "Implement basic author and expertise signals",
    "media_alt_caption": "Add missing alt text and captions",
    "hreflang_lang_meta": "Set up basic internationalization",
    "answer_upfront": "Add essential answer upfront content",
}

IMPROVEMENT_FIXES = {
    "structured_data": "Enhance structured data with additional properties",
    "speakable_ready": "Optimize speakable content for better voice search",
    "snippet_conciseness": "Improve content structure and readability",
    "crawler_access": "Optimize crawler accessibility and indexing",
    "freshness_meta": "Enhance freshness signals and update frequency",
    "e_e_a_t_signals": "Strengthen expertise and authority signals",
    "media_alt_caption": "Improve media descriptions and accessibility",
    "hreflang_lang_meta": "Optimize internationalization setup",
    "answer_upfront": "Enhance answer upfront content quality",
}

VALIDATION_CHECKS = {
    "answer_upfront": ["tldr_words>=30", "tldr_visible=true"],
    "freshness_meta": ["date_published_exists=true", "date_modified_exists=true"],
    "e_e_a_t_signals": ["author_name_exists=true", "author_credentials_exists=true"],
    "speakable_ready": ["speakable_markup_exists=true", "css_selectors_valid=true"],
    "structured_data": ["json_ld_valid=true", "schema_type_appropriate=true"],
    "media_alt_caption": ["alt_text_exists=true", "alt_text_descriptive=true"],
    "hreflang_lang_meta": ["hreflang_count>=1", "hreflang_attributes_valid=true"],
    "crawler_access": ["robots_txt_accessible=true", "canonical_url_exists=true"],
}

# Copy-paste snippets per category. Only bracketed placeholder tokens, never
# page content.
CODE_PLACEHOLDERS = {
    "answer_upfront": {
        "dom": [
            "<p class='tldr'>[PLACEHOLDER_TLDR]</p>",
            "<div class='summary'>[PLACEHOLDER_SUMMARY]</div>",
        ],
    },
    "freshness_meta": {
        "jsonld": ['{ "datePublished": "[YYYY-MM-DD]", "dateModified": "[YYYY-MM-DD]" }'],
        "head": [
            '<meta property="article:published_time" content="[YYYY-MM-DDTHH:MM:SSZ]" />',
            '<meta property="article:modified_time" content="[YYYY-MM-DDTHH:MM:SSZ]" />',
        ],
    },
    "e_e_a_t_signals": {
        "jsonld": ['{ "@type": "Person", "name": "[AUTHOR_NAME_PLACEHOLDER]" }'],
        "dom": ['<p class="byline">By [AUTHOR_NAME_PLACEHOLDER]</p>'],
    },
    "speakable_ready": {
        "jsonld": ['{ "@type": "SpeakableSpecification", "cssSelector": ["h1", ".tldr"] }'],
        "head": ['<meta property="speakable" content="[SPEAKABLE_SELECTORS]" />'],
    },
    "structured_data": {
        "jsonld": ['{ "@context": "https://schema.org", "@type": "[CONTENT_TYPE_PLACEHOLDER]" }'],
        "head": ['<script type="application/ld+json">[STRUCTURED_DATA_JSON]</script>'],
    },
    "media_alt_caption": {
        "dom": [
            '<figure><img src="[IMG_SRC]" alt="[ALT_TEXT_PLACEHOLDER]" />'
            "<figcaption>[CAPTION_PLACEHOLDER]</figcaption></figure>",
            '<img src="[IMG_SRC]" alt="[ALT_TEXT_PLACEHOLDER]" />',
        ],
    },
    "hreflang_lang_meta": {
        "head": [
            '<link rel="alternate" hreflang="[LANG_CODE]" href="[PAGE_URL_FOR_LANG]" />',
            '<html lang="[LANG_CODE]">',
        ],
    },
    "crawler_access": {
        "head": [
            '<meta name="robots" content="[ROBOTS_DIRECTIVES]" />',
            '<link rel="canonical" href="[CANONICAL_URL]" />',
        ],
    },
    "snippet_conciseness": {
        "dom": ['<p class="lead">[LEAD_PARAGRAPH_PLACEHOLDER]</p>'],
    },
}


# =============================================================================
# Helpers
# =============================================================================

def display_name(category: str) -> str:
    return CATEGORY_DISPLAY_NAMES.get(category, category.replace("_", " "))


def category_importance(category: str) -> float:
    return CATEGORY_IMPORTANCE.get(category, DEFAULT_CATEGORY_IMPORTANCE)


def placeholders_for(category: str) -> dict:
    """Placeholder snippets for a category, as {"jsonld", "head", "dom"} lists."""
    snippets = CODE_PLACEHOLDERS.get(category)
    if snippets is None:
        snippets = {"dom": [f"<!-- [{category.upper()}_PLACEHOLDER] -->"]}
    return {key: list(snippets.get(key, [])) for key in ("jsonld", "head", "dom")}


def compute_confidence(score: Optional[float]) -> float:
    """Map a category score to confidence; lower scores give higher confidence.

    Args:
        score: Category score 0-100, or None when the category is unscored

    Returns:
        Confidence in [0.70, 0.95]
    """
    if score is None:
        score = UNSCORED_CATEGORY_SCORE
    clamped = min(max(float(score), 0.0), 100.0)
    return CONFIDENCE_MAX - (CONFIDENCE_MAX - CONFIDENCE_MIN) * clamped / 100.0


def compute_priority(impact: Impact, confidence: float, effort: Effort) -> float:
    """priority = impact_weight*0.6 + confidence*0.3 + effort_weight*0.1"""
    return (
        IMPACT_WEIGHTS[Impact(impact).value] * PRIORITY_IMPACT_SHARE
        + confidence * PRIORITY_CONFIDENCE_SHARE
        + EFFORT_WEIGHTS[Effort(effort).value] * PRIORITY_EFFORT_SHARE
    )


def impact_for_category(category: str) -> Impact:
    importance = category_importance(category)
    if importance >= 0.8:
        return Impact.HIGH
    if importance >= 0.6:
        return Impact.MED
    return Impact.LOW


def _format_score(score) -> str:
    return f"{score:g}" if isinstance(score, (int, float)) else str(score)


def _make_title(fix: FixItem) -> str:
    """Short title from the first sentence of the problem text."""
    text = " ".join(fix.problem.split())
    if not text:
        return display_name(fix.category).capitalize()
    for terminator in (". ", "! ", "? "):
        cut = text.find(terminator)
        if cut != -1:
            text = text[: cut + 1]
    if len(text) > MAX_TITLE_LENGTH:
        text = text[: MAX_TITLE_LENGTH - 1].rstrip() + "…"
    return text


@dataclass
class _PoolEntry:
    """A fix in the pool, before ranking."""

    fix: FixItem
    origin: str
    index: int = 0


# =============================================================================
# Transformer
# =============================================================================

class ReportTransformer:
    """Rank fixes and assemble the TransformedReport."""

    def __init__(self, fill_category_gaps: bool = True):
        """Initialize the transformer.

        Args:
            fill_category_gaps: Generate a fix for each category scoring below
                80 that no oracle fix covers
        """
        self.fill_category_gaps = fill_category_gaps

    def transform(
        self,
        scored: ScoredAnalysis,
        metrics: Union[ExtractionMetrics, dict, None],
        meta: Optional[AnalysisMeta] = None,
    ) -> TransformedReport:
        """
        Build the report for one analysis.

        Args:
            scored: Validated oracle output
            metrics: Extraction metrics (copied verbatim into the report)
            meta: Identity of the analysis

        Returns:
            TransformedReport

        Raises:
            TransformInvariantError: If ranking produces an out-of-range
                priority or an oversized selection
        """
        category_scores = scored.category_scores or {}

        pool = self._build_pool(scored)
        ranked = self._rank(pool, category_scores)

        selected = ranked[:MAX_PRIORITIZED_FIXES]
        if len(selected) > MAX_PRIORITIZED_FIXES:
            raise TransformInvariantError(
                f"Selected {len(selected)} fixes, limit is {MAX_PRIORITIZED_FIXES}"
            )

        quick_wins = [
            f.fix
            for f in ranked
            if f.effort == Effort.LOW and f.impact in (Impact.HIGH, Impact.MED)
        ][:MAX_QUICK_WINS]

        prioritized = PrioritizedFixes(
            highlights=self._highlights(category_scores),
            quick_wins=quick_wins,
            fixes=selected,
        )

        if isinstance(metrics, ExtractionMetrics):
            metrics_dict = metrics.to_dict()
        else:
            metrics_dict = copy.deepcopy(metrics) if metrics else {}

        logger.info(
            f"Report built: {len(ranked)} fixes ranked, {len(selected)} selected, "
            f"{len(quick_wins)} quick wins"
        )

        return TransformedReport(
            meta=meta or AnalysisMeta(),
            scores={
                "score": scored.score,
                "category_scores": dict(category_scores),
                "metrics": metrics_dict,
            },
            keywords=copy.deepcopy(scored.keywords)
            or {"primary": [], "secondary": [], "longTail": []},
            audience=copy.deepcopy(scored.target_audience)
            or {"demographics": [], "interests": [], "painPoints": []},
            fixes=ranked,
            content_gaps=list(scored.content_gaps),
            improvements=list(scored.improvements),
            sentiment=scored.sentiment,
            prioritized=prioritized,
            code_placeholders=self._code_placeholders(selected),
            raw={
                "competitorAnalysis": copy.deepcopy(scored.competitor_analysis)
                or {"strengths": [], "weaknesses": []},
                "feedback": scored.feedback,
                "rawAnalysis": copy.deepcopy(scored.payload),
                "violations": list(scored.violations),
            },
        )

    def _build_pool(self, scored: ScoredAnalysis) -> List[_PoolEntry]:
        """Oracle fixes first, then generated gap fixes, without duplicates."""
        entries = [_PoolEntry(fix, "oracle") for fix in scored.fixes]

        if self.fill_category_gaps:
            covered = {fix.category for fix in scored.fixes}
            for category in RUBRIC_KEYS:
                score = scored.category_scores.get(category)
                if score is None or score >= HIGHLIGHT_THRESHOLD or category in covered:
                    continue
                entries.append(_PoolEntry(self._generate_fix(category, score), "generated"))

        seen = set()
        pool = []
        for entry in entries:
            key = (entry.fix.category, entry.fix.problem.lower()[:DUPLICATE_PROBLEM_PREFIX])
            if key in seen:
                logger.debug(f"Dropping duplicate fix for {entry.fix.category}")
                continue
            seen.add(key)
            entry.index = len(pool)
            pool.append(entry)
        return pool

    def _generate_fix(self, category: str, score) -> FixItem:
        """Generic fix for a weak category, from the category tables."""
        name = display_name(category)
        if score < CRITICAL_THRESHOLD:
            problem = (
                f"Critical {name} issues (score: {_format_score(score)}). "
                "This needs immediate attention."
            )
            fix_text = CRITICAL_FIXES.get(category, f"Fix critical {name} issues")
        else:
            problem = (
                f"Moderate {name} issues (score: {_format_score(score)}). "
                "This can be improved."
            )
            fix_text = IMPROVEMENT_FIXES.get(category, f"Improve {name} implementation")

        how = placeholders_for(category)
        snippets = how["dom"] or how["jsonld"] or how["head"]

        return FixItem(
            problem=problem,
            example=snippets[0] if snippets else "N/A",
            fix=fix_text,
            impact=impact_for_category(category),
            category=category,
            effort=Effort(CATEGORY_EFFORT.get(category, Effort.MEDIUM.value)),
            validation=list(VALIDATION_CHECKS.get(category, [f"{category}_score>=80"])),
        )

    def _rank(self, pool: List[_PoolEntry], category_scores: dict) -> List[PrioritizedFix]:
        """Score every pool entry and sort by priority, importance, pool order."""
        keyed = []
        for entry in pool:
            fix = entry.fix
            score = category_scores.get(fix.category)
            confidence = round(compute_confidence(score), 4)
            priority = round(compute_priority(fix.impact, confidence, fix.effort), 4)
            if not 0.0 <= priority <= 1.0:
                raise TransformInvariantError(
                    f"Priority {priority} for fix {entry.index} is outside [0, 1]"
                )

            importance = category_importance(fix.category)
            prioritized = PrioritizedFix(
                id=f"fix-{entry.index + 1:02d}",
                problem=fix.problem,
                example=fix.example,
                fix=fix.fix,
                impact=fix.impact,
                category=fix.category,
                effort=fix.effort,
                validation=list(fix.validation),
                title=_make_title(fix),
                confidence=confidence,
                priority=priority,
                why=self._why(fix, score, importance),
                how=placeholders_for(fix.category),
                origin=entry.origin,
            )
            keyed.append(((-priority, -importance, entry.index), prioritized))

        keyed.sort(key=lambda item: item[0])
        return [fix for _, fix in keyed]

    def _why(self, fix: FixItem, score, importance: float) -> str:
        name = display_name(fix.category)
        if score is None:
            standing = f"{name.capitalize()} was not scored"
        else:
            standing = f"{name.capitalize()} scored {_format_score(score)}/100"
        return (
            f"{standing}; category importance {importance:.2f}. "
            f"Expected impact {fix.impact.value}, effort {fix.effort.value}."
        )

    def _highlights(self, category_scores: dict) -> List[str]:
        weak = [
            category
            for category, score in category_scores.items()
            if isinstance(score, (int, float)) and score < HIGHLIGHT_THRESHOLD
        ]
        return sorted(weak, key=lambda c: (-category_importance(c), c))

    def _code_placeholders(self, selected: List[PrioritizedFix]) -> CodePlaceholders:
        """Merge the selected fixes' snippets, deduplicated in selection order."""
        merged = {"jsonld": [], "head": [], "dom": []}
        for fix in selected:
            for key, snippets in fix.how.items():
                for snippet in snippets:
                    if snippet not in merged[key]:
                        merged[key].append(snippet)
        return CodePlaceholders(jsonld=merged["jsonld"], head=merged["head"], dom=merged["dom"])


def transform(
    scored: ScoredAnalysis,
    metrics: Union[ExtractionMetrics, dict, None],
    meta: Optional[AnalysisMeta] = None,
    fill_category_gaps: bool = True,
) -> TransformedReport:
    """Build a TransformedReport with a default-configured ReportTransformer."""
    return ReportTransformer(fill_category_gaps=fill_category_gaps).transform(scored, metrics, meta)
