"""
Prompt Assembler

Builds the two text blocks sent to the scoring oracle:
- A system prompt with the rubric, scoring anchors, enums and result schema
- A user prompt with the extracted page sections and worked scoring examples

Both are pure functions of their inputs.
"""

import json
from typing import List, Union

from aeo.constants import MAX_ORACLE_FIXES, RUBRIC_KEYS, RUBRIC_WEIGHTS
from aeo.models import AccessLevel, Effort, FeatureDocument, Impact, Sentiment


# Point ranges for missing / basic / good / excellent implementations
SCORING_ANCHORS = {
    "structured_data": (
        "no JSON-LD",
        "one generic type (WebPage/Organization)",
        "content type such as Article/Product/FAQPage with core properties",
        "several linked types, complete properties, valid @graph",
    ),
    "speakable_ready": (
        "no speakable markup",
        "speakable present but targets generic selectors",
        "SpeakableSpecification on headline and summary",
        "speakable on concise, self-contained answer passages",
    ),
    "snippet_conciseness": (
        "no clear first paragraph, sentences over 30 words",
        "first paragraph over 80 words or average sentence over 25 words",
        "first paragraph 40-80 words, average sentence 15-25 words",
        "first paragraph under 40 words, short sentences, no long headings",
    ),
    "crawler_access": (
        "answer-engine bots blocked at /",
        "most bots partially restricted",
        "bots allowed with minor path restrictions",
        "all answer-engine bots fully allowed",
    ),
    "freshness_meta": (
        "no published or modified dates",
        "a single date or modified over a year ago",
        "both dates present, modified within a year",
        "both dates present, modified within 90 days",
    ),
    "e_e_a_t_signals": (
        "no author, no citations, no HTTPS",
        "HTTPS only or a bare author name",
        "author present with a few outbound citations",
        "named author, authoritative citations, reference links",
    ),
    "media_alt_caption": (
        "images without alt text, videos without captions",
        "alt text present but mostly short or generic",
        "most images have descriptive alt text",
        "all media described, videos captioned",
    ),
    "hreflang_lang_meta": (
        "no html lang, no canonical",
        "html lang or canonical only",
        "html lang and canonical present",
        "lang, canonical and complete hreflang alternates",
    ),
    "answer_upfront": (
        "no summary or lead paragraph",
        "lead paragraph exists but does not answer the topic",
        "lead answers the topic in under 80 words",
        "explicit TL;DR/summary block answering the query in 30-60 words",
    ),
}

ANCHOR_RANGES = ("0-20", "21-50", "51-80", "81-100")

RESULT_SCHEMA = """{
  "score": number,                  // 0-100 weighted overall score
  "category_scores": {              // every rubric key, each 0-100
    "structured_data": number, "speakable_ready": number,
    "snippet_conciseness": number, "crawler_access": number,
    "freshness_meta": number, "e_e_a_t_signals": number,
    "media_alt_caption": number, "hreflang_lang_meta": number,
    "answer_upfront": number
  },
  "fixes": [
    {
      "problem": string,
      "example": string,
      "fix": string,
      "impact": "high" | "med" | "low",
      "category": string,           // one rubric key
      "effort": "low" | "medium" | "high",
      "validation": [string]
    }
  ],
  "keywords": { "primary": [string], "secondary": [string], "longTail": [string] },
  "competitorAnalysis": { "strengths": [string], "weaknesses": [string] },
  "targetAudience": { "demographics": [string], "interests": [string], "painPoints": [string] },
  "contentGaps": [string],
  "improvements": [string],
  "feedback": string,
  "sentiment": "positive" | "neutral" | "negative"
}"""


def _enum_values(enum_cls) -> str:
    return " | ".join(f"'{member.value}'" for member in enum_cls)


def _rubric_lines() -> List[str]:
    width = max(len(key) for key in RUBRIC_KEYS) + 2
    return [f"{key:<{width}}({RUBRIC_WEIGHTS[key]}) 0-100" for key in RUBRIC_KEYS]


def _anchor_lines() -> List[str]:
    lines = []
    for key in RUBRIC_KEYS:
        missing, basic, good, excellent = SCORING_ANCHORS[key]
        lines.append(f"{key}:")
        lines.append(f"  missing   {ANCHOR_RANGES[0]}: {missing}")
        lines.append(f"  basic     {ANCHOR_RANGES[1]}: {basic}")
        lines.append(f"  good      {ANCHOR_RANGES[2]}: {good}")
        lines.append(f"  excellent {ANCHOR_RANGES[3]}: {excellent}")
    return lines


def build_system_prompt(best_practice_snippet: str) -> str:
    """Build the oracle's system instruction.

    Args:
        best_practice_snippet: Retrieved best-practice text, embedded as-is

    Returns:
        System prompt string
    """
    sections = [
        "You are an expert Answer-Engine-Optimization (AEO) auditor.",
        "",
        "TASK",
        "- Score every category 0-100 using SCORING_RUBRIC and SCORING_ANCHORS.",
        "- The overall score is the weighted average of the category scores.",
        "- For each problem found, add one fix with:",
        "  - problem: what is wrong, citing the exact section, heading or line",
        "  - example: a real excerpt from the page, not a generic placeholder",
        "  - fix: the concrete change, with exact HTML or JSON-LD where possible",
        f"  - impact: one of {_enum_values(Impact)}",
        f"  - effort: one of {_enum_values(Effort)}",
        "  - category: the rubric key the fix belongs to",
        "  - validation: checks that confirm the fix was applied",
        f"- Return at most {MAX_ORACLE_FIXES} fixes.",
        "- IMPORTANT: sort fixes by impact, highest first (high -> med -> low).",
        f"- sentiment is one of {_enum_values(Sentiment)}.",
        "- Respond only with one JSON object matching RESULT_SCHEMA. No prose, no code fences.",
        "",
        "SCORING_RUBRIC (weight, scale)",
        *_rubric_lines(),
        "",
        "SCORING_ANCHORS",
        *_anchor_lines(),
        "",
        "<best_practices>",
        best_practice_snippet or "",
        "</best_practices>",
        "",
        f"RESULT_SCHEMA = {RESULT_SCHEMA}",
    ]
    return "\n".join(sections).strip()


def build_scoring_examples(doc: FeatureDocument) -> List[str]:
    """Worked scoring examples tied to the observed metric values."""
    m = doc.metrics
    examples = []

    blocks = m.structured_data.json_ld_blocks
    types = ", ".join(m.structured_data.types) or "none"
    examples.append(
        f"structured_data: {blocks} JSON-LD blocks (types: {types}). "
        "0 blocks -> ~15 points; 1+ blocks -> 60-80 points; "
        "typed content schema with complete properties -> 80+ points."
    )

    examples.append(
        f"speakable_ready: {m.speakable_ready.speakable_blocks} speakable blocks. "
        "0 -> ~10 points; 1+ targeting headline/summary -> 60-85 points."
    )

    conc = m.snippet_conciseness
    examples.append(
        f"snippet_conciseness: first paragraph {conc.first_para_words} words, "
        f"average sentence {conc.avg_sentence_len} words, "
        f"{conc.long_headings} long headings. "
        "First paragraph <=40 words and sentences <=20 words -> 80+ points; "
        "over 80 words or sentences over 25 words -> 30-50 points."
    )

    access = doc.crawler_access
    blocked = [bot for bot, level in access.items() if level == AccessLevel.BLOCK]
    partial = [bot for bot, level in access.items() if level == AccessLevel.PARTIAL]
    examples.append(
        f"crawler_access: blocked [{', '.join(blocked) or 'none'}], "
        f"partial [{', '.join(partial) or 'none'}]. "
        "All bots allowed -> 90+ points; any answer-engine bot blocked -> under 40 points."
    )

    fresh = m.freshness_meta
    if fresh.days_since_modified is not None:
        age = f"modified {fresh.days_since_modified} days ago"
    else:
        age = "no parsable modified date"
    examples.append(
        f"freshness_meta: published={fresh.published or 'missing'}, {age}. "
        "No dates -> ~10 points; modified within 90 days -> 80+ points; "
        "older than a year -> 30-50 points."
    )

    eeat = m.e_e_a_t_signals
    examples.append(
        f"e_e_a_t_signals: author_present={str(eeat.author_present).lower()}, "
        f"{eeat.outbound_citations} outbound citations, "
        f"{eeat.wiki_links} wiki references, https={str(eeat.https).lower()}. "
        "No author and no citations -> under 30 points; "
        "named author with 3+ citations over HTTPS -> 75+ points."
    )

    media = m.media_alt_caption
    examples.append(
        f"media_alt_caption: {media.images_missing_good_alt} of {media.images_total} images "
        f"lack descriptive alt text, {media.videos_missing_captions} videos lack captions. "
        "No gaps -> 85+ points; more than half missing -> under 40 points."
    )

    lang = m.hreflang_lang_meta
    examples.append(
        f"hreflang_lang_meta: html lang={lang.html_lang or 'missing'}, "
        f"{lang.canonical_tags} canonical tags, {lang.hreflang_tags} hreflang tags. "
        "Lang and canonical present -> 60-80 points; plus hreflang alternates -> 80+ points."
    )

    answer = m.answer_upfront
    examples.append(
        f"answer_upfront: {answer.words_in_tldr}-word lead from '{answer.tldr_source}'. "
        "Explicit summary block of 30-60 words -> 85+ points; "
        "no lead -> ~10 points."
    )

    return examples


def _section(label: str, body: str) -> List[str]:
    if not body or not body.strip():
        return []
    return [f"### {label}", body.strip(), ""]


def build_user_prompt(doc: Union[FeatureDocument, str]) -> str:
    """Build the oracle's user instruction.

    A FeatureDocument yields labeled page sections plus scoring examples.
    Plain text (a content-only audit) yields a single CONTENT section.

    Args:
        doc: FeatureDocument, or raw content text

    Returns:
        User prompt string
    """
    if not isinstance(doc, FeatureDocument):
        return "\n".join(["### CONTENT", str(doc)]).strip()

    parts = []
    parts += _section("HEAD", doc.head)
    parts += _section("HEADINGS", doc.headings)
    parts += _section("SCHEMA", doc.schema)
    parts += _section("PAGE_TEXT", doc.text)
    parts += _section(
        "METRICS", json.dumps(doc.metrics.to_dict(), indent=2, ensure_ascii=False)
    )
    parts += _section(
        "ROBOTS_TXT", json.dumps(doc.crawler_access_dict(), indent=2)
    )
    parts += _section("SCORING_EXAMPLES", "\n".join(build_scoring_examples(doc)))

    return "\n".join(parts).strip()
