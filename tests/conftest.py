"""Shared fixtures for the AEO auditor tests."""

import pytest


def make_payload(**overrides) -> dict:
    """A valid oracle payload; keyword arguments replace top-level fields."""
    payload = {
        "score": 62.5,
        "category_scores": {
            "structured_data": 20,
            "speakable_ready": 10,
            "snippet_conciseness": 85,
            "crawler_access": 95,
            "freshness_meta": 60,
            "e_e_a_t_signals": 70,
            "media_alt_caption": 45,
            "hreflang_lang_meta": 90,
            "answer_upfront": 88,
        },
        "fixes": [
            {
                "problem": "No JSON-LD on the page.",
                "example": "<head> has no application/ld+json script",
                "fix": "Add Article JSON-LD with headline and author.",
                "impact": "high",
                "category": "structured_data",
                "effort": "low",
                "validation": ["json_ld_valid=true"],
            },
            {
                "problem": "Two images have empty alt text.",
                "example": '<img src="/beans.jpg" alt="">',
                "fix": "Describe each image in four or more words.",
                "impact": "med",
                "category": "media_alt_caption",
                "effort": "low",
                "validation": ["alt_text_descriptive=true"],
            },
        ],
        "keywords": {"primary": ["coffee"], "secondary": ["grinder"], "longTail": []},
        "competitorAnalysis": {"strengths": ["clear steps"], "weaknesses": []},
        "targetAudience": {"demographics": ["home baristas"], "interests": [], "painPoints": []},
        "contentGaps": ["water temperature"],
        "improvements": ["add a FAQ"],
        "feedback": "Solid guide, weak markup.",
        "sentiment": "positive",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def oracle_payload():
    return make_payload()
