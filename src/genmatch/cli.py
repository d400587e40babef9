"""Command-line interface for GenMatch.

This module provides the CLI commands for searching, analyzing and
validating records from subject and candidate JSON files.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from genmatch.config import get_config
from genmatch.errors import ConfigurationError
from genmatch.logging_setup import configure_logging
from genmatch.models.candidate import candidate_from_dict
from genmatch.models.subject import Subject, subject_from_dataset, subject_from_dict
from genmatch.services.research_pipeline import ResearchPipeline
from genmatch.validation.record_validator import RecordValidator
from genmatch.version import format_version_string

__all__ = ["cli_main"]


def print_version() -> None:
    """Print version information."""
    print(format_version_string())


def _load_json(path: str) -> Any:
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise ConfigurationError(f"File not found: {file_path}")
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {file_path}: {e}") from e


def load_subject(path: str, person_id: str | None = None) -> Subject:
    """Read a subject from a JSON file.

    The file holds either one subject object, or a parsed dataset with
    ``individuals`` and ``families`` in which case person_id selects the subject.
    """
    data = _load_json(path)
    if isinstance(data, dict) and "individuals" in data:
        if not person_id:
            raise ConfigurationError("A person id is required when reading a dataset file")
        return subject_from_dataset(person_id, data.get("individuals") or [], data.get("families") or [])
    return subject_from_dict(data)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_search(subject_path: str, person_id: str | None = None) -> int:
    """Search all enabled sources for a subject and print ranked candidates.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    subject = load_subject(subject_path, person_id)
    pipeline = ResearchPipeline.from_config()

    async def run():
        try:
            return await pipeline.search(subject)
        finally:
            await pipeline.close()

    outcome = asyncio.run(run())

    print(f"Search for {subject.full_name} ({subject.id}): {outcome.status.value}")
    print(f"Found {outcome.total_found}, {outcome.rejected_filtered} previously rejected")
    for source, error in outcome.provider_errors.items():
        print(f"  ✗ {source}: {error}")
    print()
    for rank, scored in enumerate(outcome.candidates, start=1):
        candidate = scored.candidate
        confidence = scored.confidence
        print(
            f"{rank:>2}. [{confidence.overall_confidence:.0%} {confidence.recommendation.value}] "
            f"{candidate.name} b. {candidate.birth or '?'} {candidate.location or ''} "
            f"({candidate.source} {candidate.id})"
        )
    return 0


def cmd_analyze(subject_path: str, candidate_path: str, person_id: str | None = None) -> int:
    """Analyze one candidate record against a subject and print the analysis."""
    subject = load_subject(subject_path, person_id)
    candidate = candidate_from_dict(_load_json(candidate_path))
    pipeline = ResearchPipeline.from_config()

    analysis = pipeline.analyze(subject, candidate)
    final = analysis.final_recommendation

    symbol = "✓" if final.action.value == "accept" else "✗" if final.action.value == "reject" else "?"
    print(f"{symbol} {final.action.value.upper()} ({final.score:.0%}) via {analysis.ai.method.value}")
    print(f"  {final.reasoning}")
    print(f"  {analysis.ai.reasoning}")
    for factor in analysis.ai.matching_factors:
        print(f"  + {factor}")
    for concern in analysis.ai.concerns:
        print(f"  - {concern}")
    return 0


def cmd_validate(subject_path: str, person_id: str | None = None) -> int:
    """Check a subject's record for biological and chronological plausibility.

    Returns:
        Exit code (0 if valid, 1 if any error-severity issue)
    """
    subject = load_subject(subject_path, person_id)
    result = RecordValidator().validate_person_record(subject)

    status = "✓" if result.is_valid else "✗"
    print(f"{status} {subject.full_name}: {result.summary()} (score {result.validation_score:.2f})")
    for issue in result.issues + result.warnings:
        print(f"  [{issue.severity.value}] {issue.type}: {issue.message}")
    for recommendation in result.recommendations:
        print(f"  [info] {recommendation.message}")
    return 0 if result.is_valid else 1


def cmd_suggest(subject_path: str, person_id: str | None = None) -> int:
    subject = load_subject(subject_path, person_id)
    for suggestion in ResearchPipeline.research_suggestions(subject):
        print(f"[{suggestion.priority}] {suggestion.title}: {suggestion.description}")
    return 0


def cmd_reject(subject_id: str, candidate_id: str, reason: str | None = None) -> int:
    ResearchPipeline.from_config().reject(subject_id, candidate_id, reason)
    print(f"✓ Rejected {candidate_id} for {subject_id}")
    return 0


def cmd_rejections(subject_id: str | None = None) -> int:
    pipeline = ResearchPipeline.from_config()
    rejections = pipeline.ledger.list_rejections(pipeline.owner_id, subject_id=subject_id)
    if not rejections:
        print("No rejections recorded")
        return 0
    _print_json(rejections)
    return 0


def cmd_serve(host: str = "127.0.0.1", port: int = 8000) -> int:
    """Serve the HTTP API."""
    import uvicorn

    from genmatch.api.endpoints import create_app

    uvicorn.run(create_app(), host=host, port=port)
    return 0


def print_help() -> None:
    """Print CLI help message."""
    print_version()
    print()
    print("Usage: genmatch [COMMAND] [ARGS]")
    print()
    print("Commands:")
    print("  search SUBJECT [PERSON_ID]               Search all sources and rank candidates")
    print("  analyze SUBJECT CANDIDATE [PERSON_ID]    Analyze one candidate record")
    print("  validate SUBJECT [PERSON_ID]             Check record plausibility")
    print("  suggest SUBJECT [PERSON_ID]              Suggest next research steps")
    print("  reject SUBJECT_ID CANDIDATE_ID [REASON]  Dismiss a candidate for a subject")
    print("  rejections [SUBJECT_ID]                  List rejected candidates")
    print("  serve [PORT]                             Serve the HTTP API")
    print("  version                                  Show version information")
    print("  help                                     Show this help message")
    print()
    print("SUBJECT is a JSON file holding one subject, or a dataset with")
    print("'individuals' and 'families' (then PERSON_ID selects the subject).")
    print()
    print("Examples:")
    print("  genmatch search person.json")
    print("  genmatch analyze person.json record.json")
    print("  genmatch reject I12 LZX-123 'different parents'")
    print()


def _arg(args: list[str], index: int) -> str | None:
    return args[index] if len(args) > index else None


def cli_main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    args = sys.argv[1:] if argv is None else argv

    if not args or args[0] in ("help", "-h", "--help"):
        print_help()
        return 0

    command, rest = args[0], args[1:]

    if command in ("version", "-v", "--version"):
        print_version()
        return 0

    configure_logging(get_config())

    required = {"search": 1, "analyze": 2, "validate": 1, "suggest": 1, "reject": 2}
    if command in required and len(rest) < required[command]:
        print(f"✗ {command} needs {required[command]} argument(s)", file=sys.stderr)
        print("Run 'genmatch help' for usage.", file=sys.stderr)
        return 1

    try:
        if command == "search":
            return cmd_search(rest[0], _arg(rest, 1))
        if command == "analyze":
            return cmd_analyze(rest[0], rest[1], _arg(rest, 2))
        if command == "validate":
            return cmd_validate(rest[0], _arg(rest, 1))
        if command == "suggest":
            return cmd_suggest(rest[0], _arg(rest, 1))
        if command == "reject":
            return cmd_reject(rest[0], rest[1], " ".join(rest[2:]) or None)
        if command == "rejections":
            return cmd_rejections(_arg(rest, 0))
        if command == "serve":
            return cmd_serve(port=int(rest[0]) if rest else 8000)
    except ConfigurationError as e:
        logger.error(str(e))
        print(f"✗ {e}", file=sys.stderr)
        return 1

    print(f"✗ Unknown command: {command}", file=sys.stderr)
    print("Run 'genmatch help' for usage.", file=sys.stderr)
    return 1
