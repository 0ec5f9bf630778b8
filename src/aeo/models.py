"""Data models for AEO audits."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from aeo.exceptions import ContractViolationError, EnumViolationError


# ============================================================================
# Closed Enumerations
# ============================================================================

class AccessLevel(str, Enum):
    """Crawler access derived from robots.txt."""
    ALLOW = "allow"
    BLOCK = "block"
    PARTIAL = "partial"


class Impact(str, Enum):
    """Expected impact of a fix."""
    HIGH = "high"
    MED = "med"
    LOW = "low"


class Effort(str, Enum):
    """Effort needed to apply a fix."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sentiment(str, Enum):
    """Overall tone of the audited content."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


def parse_enum(enum_cls, field_name: str, value, index: Optional[int] = None):
    """Convert a raw value into a member of a closed enum.

    Raises:
        EnumViolationError: If the value is not one of the enum's values
    """
    allowed = [member.value for member in enum_cls]
    if isinstance(value, str) and value in allowed:
        return enum_cls(value)
    raise EnumViolationError(field_name, value, allowed, index=index)


# ============================================================================
# Input
# ============================================================================

@dataclass
class RawPage:
    """A fetched page, as handed to the extractor."""

    html: str
    url: str
    robots_txt: str = ""


# ============================================================================
# Feature Document
# ============================================================================

@dataclass
class StructuredDataMetrics:
    json_ld_blocks: int = 0
    types: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"jsonLdBlocks": self.json_ld_blocks, "types": list(self.types)}


@dataclass
class AnswerUpfrontMetrics:
    words_in_tldr: int = 0
    tldr_text: str = ""
    tldr_source: str = "none"  # selector, "article/main", "document" or "none"

    def to_dict(self) -> dict:
        return {
            "words_in_tldr": self.words_in_tldr,
            "tldr_text": self.tldr_text,
            "tldr_source": self.tldr_source,
        }


@dataclass
class FreshnessMetrics:
    published: Optional[str] = None
    modified: Optional[str] = None
    days_since_modified: Optional[int] = None  # the one time-varying field

    def to_dict(self) -> dict:
        return {
            "published": self.published,
            "modified": self.modified,
            "days_since_modified": self.days_since_modified,
        }


@dataclass
class EEATMetrics:
    author_present: bool = False
    outbound_citations: int = 0
    wiki_links: int = 0
    https: bool = False

    def to_dict(self) -> dict:
        return {
            "author_present": self.author_present,
            "outbound_citations": self.outbound_citations,
            "wiki_links": self.wiki_links,
            "https": self.https,
        }


@dataclass
class SnippetConcisenessMetrics:
    first_para_words: int = 0
    avg_sentence_len: int = 0
    long_headings: int = 0

    def to_dict(self) -> dict:
        return {
            "first_para_words": self.first_para_words,
            "avg_sentence_len": self.avg_sentence_len,
            "long_headings": self.long_headings,
        }


@dataclass
class SpeakableMetrics:
    speakable_blocks: int = 0

    def to_dict(self) -> dict:
        return {"speakable_blocks": self.speakable_blocks}


@dataclass
class MediaMetrics:
    images_total: int = 0
    images_missing_good_alt: int = 0
    sample_bad_alts: list[str] = field(default_factory=list)  # at most 5
    videos_missing_captions: int = 0

    def to_dict(self) -> dict:
        return {
            "images_total": self.images_total,
            "images_missing_good_alt": self.images_missing_good_alt,
            "sample_bad_alts": list(self.sample_bad_alts),
            "videos_missing_captions": self.videos_missing_captions,
        }


@dataclass
class LangMetaMetrics:
    canonical_tags: int = 0
    hreflang_tags: int = 0
    html_lang: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "canonical_tags": self.canonical_tags,
            "hreflang_tags": self.hreflang_tags,
            "html_lang": self.html_lang,
        }


@dataclass
class ExtractionMetrics:
    """The metric groups computed by the extractor.

    Crawler access is carried separately on the FeatureDocument.
    """

    structured_data: StructuredDataMetrics = field(default_factory=StructuredDataMetrics)
    answer_upfront: AnswerUpfrontMetrics = field(default_factory=AnswerUpfrontMetrics)
    freshness_meta: FreshnessMetrics = field(default_factory=FreshnessMetrics)
    e_e_a_t_signals: EEATMetrics = field(default_factory=EEATMetrics)
    snippet_conciseness: SnippetConcisenessMetrics = field(default_factory=SnippetConcisenessMetrics)
    speakable_ready: SpeakableMetrics = field(default_factory=SpeakableMetrics)
    media_alt_caption: MediaMetrics = field(default_factory=MediaMetrics)
    hreflang_lang_meta: LangMetaMetrics = field(default_factory=LangMetaMetrics)

    def to_dict(self) -> dict:
        return {
            "structured_data": self.structured_data.to_dict(),
            "answer_upfront": self.answer_upfront.to_dict(),
            "freshness_meta": self.freshness_meta.to_dict(),
            "e_e_a_t_signals": self.e_e_a_t_signals.to_dict(),
            "snippet_conciseness": self.snippet_conciseness.to_dict(),
            "speakable_ready": self.speakable_ready.to_dict(),
            "media_alt_caption": self.media_alt_caption.to_dict(),
            "hreflang_lang_meta": self.hreflang_lang_meta.to_dict(),
        }


@dataclass
class FeatureDocument:
    """Compact, size-bounded audit document extracted from one page."""

    head: str
    schema: str
    headings: str
    text: str
    metrics: ExtractionMetrics
    crawler_access: dict[str, AccessLevel]

    def crawler_access_dict(self) -> dict[str, str]:
        return {bot: level.value for bot, level in self.crawler_access.items()}

    def to_dict(self) -> dict:
        return {
            "head": self.head,
            "schema": self.schema,
            "headings": self.headings,
            "text": self.text,
            "metrics": self.metrics.to_dict(),
            "crawler_access": self.crawler_access_dict(),
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ============================================================================
# Oracle Output
# ============================================================================

def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass
class FixItem:
    """A single actionable recommendation."""

    problem: str
    example: str
    fix: str
    impact: Impact
    category: str
    effort: Effort
    validation: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, index: Optional[int] = None) -> "FixItem":
        """Build a FixItem from one entry of the oracle's fixes array.

        Raises:
            ContractViolationError: If the entry is not an object
            EnumViolationError: If impact or effort is outside its enum
        """
        if not isinstance(data, dict):
            raise ContractViolationError(
                f"fixes[{index}] is {type(data).__name__}, expected object",
                index=index,
            )

        impact = parse_enum(Impact, "impact", data.get("impact"), index)
        effort = parse_enum(Effort, "effort", data.get("effort"), index)

        validation = data.get("validation") or []
        if isinstance(validation, str):
            validation = [validation]
        elif not isinstance(validation, list):
            validation = []

        return cls(
            problem=_as_text(data.get("problem")),
            example=_as_text(data.get("example")),
            fix=_as_text(data.get("fix")),
            impact=impact,
            category=_as_text(data.get("category")),
            effort=effort,
            validation=[_as_text(v) for v in validation],
        )

    def to_dict(self) -> dict:
        return {
            "problem": self.problem,
            "example": self.example,
            "fix": self.fix,
            "impact": self.impact.value,
            "category": self.category,
            "effort": self.effort.value,
            "validation": list(self.validation),
        }


@dataclass
class ScoredAnalysis:
    """Validated oracle output."""

    score: float
    category_scores: dict[str, float]
    fixes: list[FixItem] = field(default_factory=list)
    keywords: dict = field(default_factory=dict)
    competitor_analysis: dict = field(default_factory=dict)
    target_audience: dict = field(default_factory=dict)
    content_gaps: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    feedback: str = ""
    sentiment: Optional[Sentiment] = None
    # Contract violations found while validating (dropped fixes etc.)
    violations: list[str] = field(default_factory=list)
    # Parsed oracle JSON, untouched
    payload: dict = field(default_factory=dict)


# ============================================================================
# Report
# ============================================================================

@dataclass
class AnalysisMeta:
    """Identity of the analysis a report belongs to."""

    id: str = ""
    user: Optional[str] = None
    type: str = "url"  # "url" or "content"
    url: Optional[str] = None
    company: Optional[str] = None
    company_name: Optional[str] = None
    section: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": self.user,
            "type": self.type,
            "url": self.url,
            "company": self.company,
            "companyName": self.company_name,
            "section": self.section,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class PrioritizedFix:
    """A fix with its ranking data."""

    id: str
    problem: str
    example: str
    fix: str
    impact: Impact
    category: str
    effort: Effort
    validation: list[str]
    title: str
    confidence: float
    priority: float
    why: str
    how: dict[str, list[str]]
    origin: str = "oracle"  # "oracle" or "generated"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "problem": self.problem,
            "example": self.example,
            "fix": self.fix,
            "impact": self.impact.value,
            "category": self.category,
            "effort": self.effort.value,
            "validation": list(self.validation),
            "title": self.title,
            "confidence": self.confidence,
            "priority": self.priority,
            "why": self.why,
            "how": {key: list(values) for key, values in self.how.items()},
            "origin": self.origin,
        }


@dataclass(frozen=True)
class PrioritizedFixes:
    highlights: list[str]
    quick_wins: list[str]
    fixes: list[PrioritizedFix]  # at most 5

    def to_dict(self) -> dict:
        return {
            "highlights": list(self.highlights),
            "quickWins": list(self.quick_wins),
            "fixes": [f.to_dict() for f in self.fixes],
        }


@dataclass(frozen=True)
class CodePlaceholders:
    """Copy-paste snippets with bracketed placeholder tokens."""

    jsonld: list[str] = field(default_factory=list)
    head: list[str] = field(default_factory=list)
    dom: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"jsonld": list(self.jsonld), "head": list(self.head), "dom": list(self.dom)}


@dataclass(frozen=True)
class TransformedReport:
    """User-facing report built from a validated analysis."""

    meta: AnalysisMeta
    scores: dict
    keywords: dict
    audience: dict
    fixes: list[PrioritizedFix]  # every ranked fix
    content_gaps: list[str]
    improvements: list[str]
    sentiment: Optional[Sentiment]
    prioritized: PrioritizedFixes
    code_placeholders: CodePlaceholders
    raw: dict

    def to_dict(self) -> dict:
        return {
            "meta": self.meta.to_dict(),
            "scores": self.scores,
            "keywords": self.keywords,
            "audience": self.audience,
            "fixes": [f.to_dict() for f in self.fixes],
            "contentGaps": list(self.content_gaps),
            "improvements": list(self.improvements),
            "sentiment": self.sentiment.value if self.sentiment else None,
            "prioritized": self.prioritized.to_dict(),
            "codePlaceholders": self.code_placeholders.to_dict(),
            "raw": self.raw,
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, allow_nan=False)
