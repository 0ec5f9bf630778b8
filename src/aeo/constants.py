# src/aeo/constants.py
"""Centralized constants for the AEO auditor.

This module contains the rubric tables, selectors and size caps shared by the
extractor, the prompt assembler and the report transformer. For
user-configurable values, see config.py and AuditConfig.
"""

# =============================================================================
# Extraction Limits
# =============================================================================

# Default word budget for the bounded body text
DEFAULT_MAX_WORDS = 1200

# Default per-block character cap for JSON-LD snippets
DEFAULT_SCHEMA_CAP = 1024

# Appended to a JSON-LD snippet cut at the schema cap
TRUNCATION_MARKER = "… [truncated]"

# Alt text with fewer tokens than this is not descriptive
MIN_GOOD_ALT_WORDS = 4

# Maximum bad alt samples kept for the report
MAX_BAD_ALT_SAMPLES = 5

# A heading with more tokens than this is "long"
LONG_HEADING_WORDS = 12

SECONDS_PER_DAY = 86400


# =============================================================================
# Selectors
# =============================================================================

# Head-level signals, in output order
HEAD_SELECTORS = [
    "title",
    "meta[name='description']",
    "meta[name='robots']",
    "link[rel~='canonical']",
    "meta[property='og:title']",
    "meta[property='og:description']",
    "meta[property='og:url']",
    "meta[property='og:image']",
    "meta[property='article:published_time']",
    "meta[property='article:modified_time']",
    "link[rel~='alternate'][hreflang]",
]

# Answer-upfront summary selectors, tried in order
SUMMARY_SELECTORS = [".tldr", ".summary", ".lead", ".abstract", "#tldr", "#summary"]

AUTHOR_META_SELECTOR = "meta[name='author'], meta[property='article:author']"
BYLINE_SELECTOR = "[class*='author'], .byline, .post-author"

IMAGE_SELECTOR = "img[src], img[data-src], img[data-lazy-src]"

WIKI_FAMILY_HOSTS = ("wikipedia.org", "wikidata.org", "dbpedia.org")


# =============================================================================
# Robots
# =============================================================================

# Crawlers summarized from robots.txt, in output order
KNOWN_BOTS = ["GPTBot", "Google-Extended", "PerplexityBot", "ClaudeBot", "*"]


# =============================================================================
# Scoring Rubric
# =============================================================================

RUBRIC_KEYS = [
    "structured_data",
    "speakable_ready",
    "snippet_conciseness",
    "crawler_access",
    "freshness_meta",
    "e_e_a_t_signals",
    "media_alt_caption",
    "hreflang_lang_meta",
    "answer_upfront",
]

# Relative weight of each category in the overall score (sums to 10)
RUBRIC_WEIGHTS = {
    "structured_data": 1.7,
    "speakable_ready": 0.7,
    "snippet_conciseness": 1.5,
    "crawler_access": 1.5,
    "freshness_meta": 0.9,
    "e_e_a_t_signals": 1.0,
    "media_alt_caption": 0.8,
    "hreflang_lang_meta": 0.5,
    "answer_upfront": 1.4,
}

# Hard cap on fixes the oracle may return
MAX_ORACLE_FIXES = 20


# =============================================================================
# Report Prioritization
# =============================================================================

# Business weight of each category, descending
CATEGORY_IMPORTANCE = {
    "structured_data": 0.90,
    "answer_upfront": 0.85,
    "freshness_meta": 0.80,
    "e_e_a_t_signals": 0.75,
    "speakable_ready": 0.70,
    "snippet_conciseness": 0.65,
    "crawler_access": 0.60,
    "media_alt_caption": 0.55,
    "hreflang_lang_meta": 0.50,
}

DEFAULT_CATEGORY_IMPORTANCE = 0.5

# Typical effort to fix each category
CATEGORY_EFFORT = {
    "structured_data": "medium",
    "answer_upfront": "low",
    "freshness_meta": "low",
    "e_e_a_t_signals": "medium",
    "speakable_ready": "medium",
    "snippet_conciseness": "medium",
    "crawler_access": "high",
    "media_alt_caption": "low",
    "hreflang_lang_meta": "medium",
}

IMPACT_WEIGHTS = {"high": 1.0, "med": 0.7, "low": 0.4}
EFFORT_WEIGHTS = {"low": 1.0, "medium": 0.6, "high": 0.3}

PRIORITY_IMPACT_SHARE = 0.6
PRIORITY_CONFIDENCE_SHARE = 0.3
PRIORITY_EFFORT_SHARE = 0.1

CONFIDENCE_MIN = 0.70
CONFIDENCE_MAX = 0.95

# Assumed score for a fix whose category has no score
UNSCORED_CATEGORY_SCORE = 50.0

# Categories scoring below this are highlighted
HIGHLIGHT_THRESHOLD = 80

# Scores below this get the "critical" wording for generated fixes
CRITICAL_THRESHOLD = 50

MAX_PRIORITIZED_FIXES = 5
MAX_QUICK_WINS = 5

# Characters of the problem text used for duplicate detection
DUPLICATE_PROBLEM_PREFIX = 50

# Maximum characters of a prioritized fix title
MAX_TITLE_LENGTH = 80


# =============================================================================
# Fetching
# =============================================================================

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30

DEFAULT_ORACLE_TIMEOUT_SECONDS = 60.0

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
