"""Answer-Engine-Optimization auditor using LLM scoring."""

__version__ = "0.1.0"

from aeo.robots import summarize_robots
from aeo.extractor import FeatureExtractor, extract
from aeo.prompts import build_system_prompt, build_user_prompt
from aeo.contract import parse_oracle_response, strip_code_fences
from aeo.report import ReportTransformer, transform
from aeo.llm import BaseOracle, LLMClient
from aeo.pipeline import AuditPipeline, AuditResult
from aeo.fetcher import fetch_page_assets
from aeo.models import (
    AccessLevel,
    AnalysisMeta,
    Effort,
    FeatureDocument,
    FixItem,
    Impact,
    RawPage,
    ScoredAnalysis,
    Sentiment,
    TransformedReport,
)
from aeo.exceptions import (
    AEOError,
    ContractViolationError,
    EnumViolationError,
    FetchError,
    OracleCallError,
    OracleError,
    OracleParseError,
    TransformInvariantError,
)
from aeo.config import AuditConfig, settings

__all__ = [
    "summarize_robots",
    "FeatureExtractor",
    "extract",
    "build_system_prompt",
    "build_user_prompt",
    "parse_oracle_response",
    "strip_code_fences",
    "ReportTransformer",
    "transform",
    "BaseOracle",
    "LLMClient",
    "AuditPipeline",
    "AuditResult",
    "fetch_page_assets",
    "AccessLevel",
    "AnalysisMeta",
    "Effort",
    "FeatureDocument",
    "FixItem",
    "Impact",
    "RawPage",
    "ScoredAnalysis",
    "Sentiment",
    "TransformedReport",
    "AEOError",
    "ContractViolationError",
    "EnumViolationError",
    "FetchError",
    "OracleCallError",
    "OracleError",
    "OracleParseError",
    "TransformInvariantError",
    "AuditConfig",
    "settings",
]
