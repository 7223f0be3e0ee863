"""
Content Saturation Analyzer - CLI entry point.

  python -m saturation analyze input.json
      input: {"idea_embedding": [...], "content": [ContentItem, ...]}

  python -m saturation idea "my idea text" content.json
      content: [RawContent, ...], embedded via the configured provider

Both print the AnalysisResult as JSON on stdout.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from .analysis.pipeline import analyze_idea, run_analysis_core
from .config import get_settings
from .errors import SaturationError
from .schemas import AnalysisResult, ContentItem, RawContent
from .tools.embeddings import EmbeddingTool

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_INPUT = 2


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _parse_as_of(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _settings_with_overrides(args):
    settings = get_settings()
    overrides = {}
    if getattr(args, "threshold", None) is not None:
        overrides["related_threshold"] = args.threshold
    if getattr(args, "min_neighbors", None) is not None:
        overrides["cluster_min_neighbors"] = args.min_neighbors
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


def _print_result(result: AnalysisResult, indent: Optional[int]) -> None:
    print(result.model_dump_json(indent=indent))


def _run_analyze(args) -> int:
    payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
    items = TypeAdapter(List[ContentItem]).validate_python(payload.get("content", []))
    result = run_analysis_core(
        payload.get("idea_embedding", []),
        items,
        as_of=_parse_as_of(args.as_of),
        settings=_settings_with_overrides(args),
    )
    _print_result(result, args.indent)
    return EXIT_OK


async def _run_idea(args) -> int:
    payload = json.loads(Path(args.content).read_text(encoding="utf-8"))
    contents = TypeAdapter(List[RawContent]).validate_python(payload)
    settings = _settings_with_overrides(args)
    async with EmbeddingTool(settings=settings) as embedder:
        result = await analyze_idea(
            args.idea,
            contents,
            embedder,
            as_of=_parse_as_of(args.as_of),
            settings=settings,
        )
    _print_result(result, args.indent)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="saturation",
        description="Predict whether a content idea-space is saturated or still open",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--as-of", help="Window end (ISO 8601); defaults to newest content")
    common.add_argument("--threshold", type=float, help="Relatedness similarity threshold")
    common.add_argument("--min-neighbors", type=int, help="DBSCAN min_samples")
    common.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")

    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", parents=[common], help="Analyze pre-embedded content")
    analyze.add_argument("input", help="JSON file with idea_embedding and content")

    idea = sub.add_parser("idea", parents=[common], help="Embed an idea and raw content, then analyze")
    idea.add_argument("idea", help="Idea text")
    idea.add_argument("content", help="JSON file with a list of raw content items")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for CLI."""
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)

    try:
        if args.command == "analyze":
            return _run_analyze(args)
        return asyncio.run(_run_idea(args))
    except (SaturationError, ValidationError, ValueError, OSError) as e:
        logger.error(f"Analysis failed: {type(e).__name__}: {e}")
        return EXIT_BAD_INPUT


if __name__ == "__main__":
    sys.exit(main())
