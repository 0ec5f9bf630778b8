"""
Scoring Oracle Contract

Validates the oracle's raw text reply and turns it into a ScoredAnalysis.

Whole-payload problems (not JSON, not an object, missing category scores)
fail fast with OracleParseError. Problems with a single fix only drop that
fix; the violation is recorded on the result and logged.
"""

import json
import logging
import math
import re
from typing import Any, Optional

from aeo.constants import MAX_ORACLE_FIXES, RUBRIC_KEYS
from aeo.exceptions import ContractViolationError, EnumViolationError, OracleParseError
from aeo.models import FixItem, ScoredAnalysis, Sentiment, parse_enum

logger = logging.getLogger(__name__)

_LEADING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE_RE = re.compile(r"\n?[ \t]*```$")


def strip_code_fences(raw: str) -> str:
    """Remove a Markdown code fence wrapped around the payload.

    Args:
        raw: Raw oracle text, e.g. "```json\\n{...}\\n```"

    Returns:
        The text without the leading and trailing fence
    """
    text = (raw or "").strip()
    text = _LEADING_FENCE_RE.sub("", text, count=1)
    text = _TRAILING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _reject_constant(token: str):
    raise ValueError(f"non-finite number {token} is not allowed")


def _first_present(data: dict, *keys: str) -> Any:
    """Value of the first key present (camelCase or snake_case spellings)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str_list(value: Any) -> list:
    if not isinstance(value, list):
        return []
    return [v if isinstance(v, str) else str(v) for v in value]


def _validate_category_scores(data: dict, raw: str) -> dict:
    scores = data.get("category_scores")
    if not isinstance(scores, dict):
        raise OracleParseError("category_scores is missing or not an object", raw_payload=raw)

    missing = [key for key in RUBRIC_KEYS if key not in scores]
    if missing:
        raise OracleParseError(
            f"category_scores is missing keys: {', '.join(missing)}", raw_payload=raw
        )

    for key, value in scores.items():
        if not _is_number(value):
            raise OracleParseError(
                f"category_scores.{key}={value!r} is not a number", raw_payload=raw
            )
    return dict(scores)


def _validate_fixes(data: dict, violations: list) -> list:
    raw_fixes = data.get("fixes")
    if raw_fixes is None:
        return []
    if not isinstance(raw_fixes, list):
        violations.append(f"fixes is {type(raw_fixes).__name__}, expected array")
        return []

    if len(raw_fixes) > MAX_ORACLE_FIXES:
        violations.append(
            f"fixes has {len(raw_fixes)} items, keeping the first {MAX_ORACLE_FIXES}"
        )
        raw_fixes = raw_fixes[:MAX_ORACLE_FIXES]

    fixes = []
    for index, item in enumerate(raw_fixes):
        try:
            fixes.append(FixItem.from_dict(item, index=index))
        except ContractViolationError as e:
            # Covers EnumViolationError; the item is dropped
            violations.append(str(e))
    return fixes


def _validate_sentiment(data: dict, violations: list) -> Optional[Sentiment]:
    value = data.get("sentiment")
    if value is None:
        return None
    try:
        return parse_enum(Sentiment, "sentiment", value)
    except EnumViolationError as e:
        violations.append(str(e))
        return None


def parse_oracle_response(raw: str) -> ScoredAnalysis:
    """
    Parse and validate the oracle's raw reply.

    Args:
        raw: Raw oracle text, possibly wrapped in a code fence

    Returns:
        ScoredAnalysis with invalid fixes dropped and violations recorded

    Raises:
        OracleParseError: If the payload is empty, not a JSON object, or has
            missing/non-numeric scores
    """
    if raw is None or not raw.strip():
        raise OracleParseError("Oracle returned an empty response", raw_payload=raw)

    try:
        data = json.loads(strip_code_fences(raw), parse_constant=_reject_constant)
    except ValueError as e:
        logger.error(f"Failed to parse oracle response: {e}")
        raise OracleParseError(f"Oracle response is not valid JSON: {e}", raw_payload=raw)

    if not isinstance(data, dict):
        raise OracleParseError(
            f"Oracle response is {type(data).__name__}, expected object", raw_payload=raw
        )

    category_scores = _validate_category_scores(data, raw)

    score = data.get("score")
    if not _is_number(score):
        raise OracleParseError(f"score={score!r} is not a number", raw_payload=raw)

    violations: list = []
    fixes = _validate_fixes(data, violations)
    sentiment = _validate_sentiment(data, violations)

    for violation in violations:
        logger.warning(f"Oracle contract violation: {violation}")

    feedback = data.get("feedback")

    return ScoredAnalysis(
        score=score,
        category_scores=category_scores,
        fixes=fixes,
        keywords=_as_dict(data.get("keywords")),
        competitor_analysis=_as_dict(
            _first_present(data, "competitorAnalysis", "competitor_analysis")
        ),
        target_audience=_as_dict(_first_present(data, "targetAudience", "target_audience")),
        content_gaps=_as_str_list(_first_present(data, "contentGaps", "content_gaps")),
        improvements=_as_str_list(data.get("improvements")),
        feedback=feedback if isinstance(feedback, str) else "",
        sentiment=sentiment,
        violations=violations,
        payload=data,
    )
