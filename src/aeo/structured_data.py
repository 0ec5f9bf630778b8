"""
Structured Data Scanner

Scans JSON-LD blocks for the audit document:
- Display snippets, each capped at a configurable length
- Distinct schema.org @type values
- SpeakableSpecification markup (JSON-LD and <speakable> elements)
- Author signals carried in JSON-LD
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List

from bs4 import BeautifulSoup

from aeo.constants import DEFAULT_SCHEMA_CAP, TRUNCATION_MARKER

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class JsonLdScan:
    """Results of a JSON-LD scan."""

    # Display snippets, one per block, possibly truncated
    snippets: List[str] = field(default_factory=list)

    # Distinct @type values in first-seen order
    types: List[str] = field(default_factory=list)

    speakable_blocks: int = 0
    author_present: bool = False

    # Blocks that failed to parse as JSON
    parse_errors: int = 0

    @property
    def block_count(self) -> int:
        return len(self.snippets)


class JsonLdScanner:
    """Scan application/ld+json blocks on a page."""

    SPEAKABLE_TYPE = "SpeakableSpecification"

    def __init__(self, schema_cap: int = DEFAULT_SCHEMA_CAP):
        """Initialize the scanner.

        Args:
            schema_cap: Maximum characters kept per display snippet
        """
        self.schema_cap = schema_cap

    def scan(self, soup: BeautifulSoup) -> JsonLdScan:
        """
        Scan all JSON-LD blocks in a parsed document.

        Args:
            soup: BeautifulSoup parsed HTML (not modified)

        Returns:
            JsonLdScan with snippets, types and speakable/author signals
        """
        result = JsonLdScan()

        for script in soup.find_all("script", type="application/ld+json"):
            raw = script.string if script.string is not None else script.get_text()
            if not raw or not raw.strip():
                continue

            result.snippets.append(self._display_snippet(raw))

            # Parse the untruncated text; truncation is for display only
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, ValueError) as e:
                result.parse_errors += 1
                logger.debug(f"Skipping invalid JSON-LD block: {str(e)[:100]}")
                continue

            self._extract_types(data, result)
            result.speakable_blocks += self._count_speakable(data)
            if self._has_author(data):
                result.author_present = True

        result.speakable_blocks += len(soup.find_all("speakable"))

        return result

    def _display_snippet(self, raw: str) -> str:
        """Collapse whitespace and cap the snippet length."""
        snippet = _WHITESPACE_RE.sub(" ", raw).strip()
        if len(snippet) > self.schema_cap:
            snippet = snippet[: self.schema_cap] + TRUNCATION_MARKER
        return snippet

    def _top_level_objects(self, data: Any) -> List[dict]:
        """Objects at the top of a block, including @graph members."""
        items = data if isinstance(data, list) else [data]
        objects = []
        for item in items:
            if not isinstance(item, dict):
                continue
            objects.append(item)
            graph = item.get("@graph")
            if isinstance(graph, list):
                objects.extend(g for g in graph if isinstance(g, dict))
        return objects

    def _extract_types(self, data: Any, result: JsonLdScan):
        """Collect @type values from top-level objects."""
        for obj in self._top_level_objects(data):
            type_val = obj.get("@type")
            type_names = type_val if isinstance(type_val, list) else [type_val]
            for name in type_names:
                if isinstance(name, str) and name and name not in result.types:
                    result.types.append(name)

    def _count_speakable(self, data: Any) -> int:
        """Count SpeakableSpecification objects anywhere in the block."""
        if isinstance(data, list):
            return sum(self._count_speakable(item) for item in data)
        if not isinstance(data, dict):
            return 0

        count = 0
        type_val = data.get("@type")
        type_names = type_val if isinstance(type_val, list) else [type_val]
        if self.SPEAKABLE_TYPE in type_names:
            count += 1
        for value in data.values():
            if isinstance(value, (dict, list)):
                count += self._count_speakable(value)
        return count

    def _has_author(self, data: Any) -> bool:
        """Check for an author field or a named Person."""
        for obj in self._top_level_objects(data):
            if obj.get("author"):
                return True
            type_val = obj.get("@type")
            type_names = type_val if isinstance(type_val, list) else [type_val]
            if "Person" in type_names and obj.get("name"):
                return True
        return False
