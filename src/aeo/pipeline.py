"""
Audit Pipeline

Runs one analysis end to end:
extract -> assemble prompts -> one oracle call -> validate -> transform.

Only the oracle call suspends. Every other stage is a pure synchronous
transform, so concurrent runs share no mutable state. No stage retries.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aeo.config import AuditConfig
from aeo.contract import parse_oracle_response
from aeo.extractor import FeatureExtractor
from aeo.llm import BaseOracle
from aeo.models import AnalysisMeta, FeatureDocument, RawPage, ScoredAnalysis, TransformedReport
from aeo.prompts import build_system_prompt, build_user_prompt
from aeo.report import ReportTransformer

logger = logging.getLogger(__name__)


@dataclass
class AuditResult:
    """Everything produced by one audit run."""

    document: Optional[FeatureDocument]  # None for content-only audits
    system_prompt: str
    user_prompt: str
    scored: ScoredAnalysis
    report: TransformedReport


class AuditPipeline:
    """Orchestrates a single-page AEO audit."""

    def __init__(self, oracle: BaseOracle, config: Optional[AuditConfig] = None):
        """Initialize the pipeline.

        Args:
            oracle: Scoring oracle (LLMClient, or a fake in tests)
            config: Audit configuration (defaults if None)
        """
        self.oracle = oracle
        self.config = config or AuditConfig()
        self.extractor = FeatureExtractor(
            max_words=self.config.max_words,
            schema_cap=self.config.schema_cap,
        )
        self.transformer = ReportTransformer(
            fill_category_gaps=self.config.fill_category_gaps
        )

    async def run(
        self,
        page: RawPage,
        best_practice_snippet: str = "",
        meta: Optional[AnalysisMeta] = None,
        now: Optional[datetime] = None,
    ) -> AuditResult:
        """
        Audit a fetched page.

        Args:
            page: Page HTML, URL and robots.txt
            best_practice_snippet: Retrieved best-practice text for the system prompt
            meta: Identity of the analysis
            now: Reference time for freshness

        Returns:
            AuditResult

        Raises:
            OracleCallError: If the oracle call fails or times out
            OracleParseError: If the oracle reply breaks the output contract
        """
        logger.info(f"Extracting features from {page.url}")
        document = self.extractor.extract(page.html, page.url, page.robots_txt, now=now)

        system_prompt = build_system_prompt(best_practice_snippet)
        user_prompt = build_user_prompt(document)
        logger.info(
            f"Prompts assembled ({len(system_prompt)} + {len(user_prompt)} characters)"
        )

        meta = meta or AnalysisMeta(type="url", url=page.url)
        scored, report = await self._score_and_transform(
            system_prompt, user_prompt, document.metrics, meta
        )
        return AuditResult(document, system_prompt, user_prompt, scored, report)

    async def run_content(
        self,
        content: str,
        best_practice_snippet: str = "",
        meta: Optional[AnalysisMeta] = None,
    ) -> AuditResult:
        """Audit raw content text instead of a page; no extraction stage."""
        system_prompt = build_system_prompt(best_practice_snippet)
        user_prompt = build_user_prompt(content)
        meta = meta or AnalysisMeta(type="content")
        scored, report = await self._score_and_transform(system_prompt, user_prompt, None, meta)
        return AuditResult(None, system_prompt, user_prompt, scored, report)

    async def _score_and_transform(self, system_prompt, user_prompt, metrics, meta):
        logger.info("Calling scoring oracle")
        raw = await self.oracle.complete(system_prompt, user_prompt)

        scored = parse_oracle_response(raw)
        logger.info(
            f"Oracle score {scored.score}: {len(scored.fixes)} fixes accepted, "
            f"{len(scored.violations)} violations"
        )

        report = self.transformer.transform(scored, metrics, meta)
        return scored, report
