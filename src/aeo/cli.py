"""Command-line interface for the AEO auditor."""

import asyncio
import sys
import json
from datetime import datetime, timezone
from pathlib import Path

from aeo.config import AuditConfig, settings
from aeo.exceptions import AEOError
from aeo.extractor import FeatureExtractor
from aeo.fetcher import fetch_page_assets
from aeo.llm import LLMClient
from aeo.logging_config import setup_logging
from aeo.models import AnalysisMeta, RawPage
from aeo.pipeline import AuditPipeline
from aeo.prompts import build_system_prompt, build_user_prompt


def _load_config(args) -> AuditConfig:
    if getattr(args, "config", None):
        config = AuditConfig.from_file(args.config)
    else:
        config = AuditConfig.from_env()
    if getattr(args, "max_words", None) is not None:
        config.max_words = args.max_words
    if getattr(args, "schema_cap", None) is not None:
        config.schema_cap = args.schema_cap
    return config


def _load_page(args, config: AuditConfig) -> RawPage:
    """Read the page from local files, or fetch it."""
    if args.html_file:
        html = Path(args.html_file).read_text(encoding="utf-8")
        robots = ""
        if args.robots_file:
            robots = Path(args.robots_file).read_text(encoding="utf-8")
        return RawPage(html=html, url=args.url, robots_txt=robots)

    page = fetch_page_assets(args.url, timeout=config.fetch_timeout, user_agent=settings.USER_AGENT)
    if args.robots_file:
        page.robots_txt = Path(args.robots_file).read_text(encoding="utf-8")
    return page


def _load_best_practices(args) -> str:
    if getattr(args, "best_practices", None):
        return Path(args.best_practices).read_text(encoding="utf-8")
    return ""


def _write_output(output: str, output_file=None):
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        print(f"Results written to {output_file}")
    else:
        print(output)


def print_report(report):
    """Print a TransformedReport in a formatted way.

    Args:
        report: TransformedReport object
    """
    scores = report.scores
    print(f"\n{'=' * 60}")
    print(f"AEO Audit for: {report.meta.url or report.meta.type}")
    print(f"{'=' * 60}")
    print(f"\n📊 Overall Score: {scores['score']}")
    print(f"\nCategory Scores:")
    for category, score in scores["category_scores"].items():
        print(f"  • {category}: {score}/100")

    if report.prioritized.highlights:
        print(f"\n⚠️  Needs attention:")
        for category in report.prioritized.highlights:
            print(f"  • {category}")

    if report.prioritized.fixes:
        print(f"\n💡 Top Fixes:")
        for fix in report.prioritized.fixes:
            print(f"  {fix.id} [{fix.impact.value}/{fix.effort.value}, priority {fix.priority}] {fix.title}")
            print(f"      {fix.fix}")

    if report.prioritized.quick_wins:
        print(f"\n✅ Quick Wins:")
        for win in report.prioritized.quick_wins:
            print(f"  • {win}")

    violations = report.raw.get("violations") or []
    if violations:
        print(f"\nOracle contract violations ({len(violations)}):")
        for violation in violations:
            print(f"  • {violation}")

    print(f"\n{'=' * 60}\n")


def extract_command(args):
    """Print the FeatureDocument for a page."""
    try:
        config = _load_config(args)
        page = _load_page(args, config)
        extractor = FeatureExtractor(max_words=config.max_words, schema_cap=config.schema_cap)
        document = extractor.extract(page.html, page.url, page.robots_txt)
        print(document.to_json(indent=2))
    except (AEOError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def prompts_command(args):
    """Print the system and user prompts for a page."""
    try:
        config = _load_config(args)
        page = _load_page(args, config)
        extractor = FeatureExtractor(max_words=config.max_words, schema_cap=config.schema_cap)
        document = extractor.extract(page.html, page.url, page.robots_txt)
        print("=== SYSTEM ===")
        print(build_system_prompt(_load_best_practices(args)))
        print("\n=== USER ===")
        print(build_user_prompt(document))
    except (AEOError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def analyze_command(args):
    """Run a full audit for a page."""
    api_key = args.api_key or settings.LLM_API_KEY
    if not api_key:
        print(
            "Error: LLM API key is required. Set LLM_API_KEY in .env file, environment variable, or use --api-key"
        )
        sys.exit(1)

    try:
        config = _load_config(args)
        page = _load_page(args, config)
        oracle = LLMClient(
            api_key=api_key,
            model=config.llm_model,
            provider=config.llm_provider,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.oracle_timeout_seconds,
        )
        pipeline = AuditPipeline(oracle, config)
        result = asyncio.run(
            pipeline.run(
                page,
                best_practice_snippet=_load_best_practices(args),
                meta=AnalysisMeta(
                    type="url", url=page.url, created_at=datetime.now(timezone.utc)
                ),
            )
        )
    except (AEOError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.output == "json":
        _write_output(result.report.to_json(indent=2), args.output_file)
    else:
        print_report(result.report)


def _add_page_arguments(parser):
    parser.add_argument("url", help="Page URL (used to resolve links)")
    parser.add_argument(
        "--html-file",
        help="Read page HTML from a file instead of fetching the URL",
    )
    parser.add_argument(
        "--robots-file",
        help="Read robots.txt from a file instead of fetching it",
    )
    parser.add_argument(
        "--max-words",
        type=int,
        help="Word budget for the extracted body text (default: 1200)",
    )
    parser.add_argument(
        "--schema-cap",
        type=int,
        help="Character cap per JSON-LD snippet (default: 1024)",
    )


def main(argv=None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="AEO Auditor - Audit a web page for answer-engine optimization using an LLM"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    parser.add_argument(
        "--config",
        help="JSON configuration file (default: AEO_* environment variables)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser(
        "extract", help="Print the extracted feature document as JSON."
    )
    _add_page_arguments(extract_parser)
    extract_parser.set_defaults(func=extract_command)

    prompts_parser = subparsers.add_parser(
        "prompts", help="Print the prompts that would be sent to the oracle."
    )
    _add_page_arguments(prompts_parser)
    prompts_parser.add_argument(
        "--best-practices",
        help="File with best-practice text to embed in the system prompt",
    )
    prompts_parser.set_defaults(func=prompts_command)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Audit a page and print the prioritized report."
    )
    _add_page_arguments(analyze_parser)
    analyze_parser.add_argument(
        "--best-practices",
        help="File with best-practice text to embed in the system prompt",
    )
    analyze_parser.add_argument(
        "--api-key",
        help="LLM API key (default: LLM_API_KEY)",
    )
    analyze_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    analyze_parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )
    analyze_parser.set_defaults(func=analyze_command)

    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
