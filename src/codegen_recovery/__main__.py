"""Command-line entry point: ``python -m codegen_recovery``.

Subcommands:
    parse FILE      Parse a saved model response and summarise what was
                    recovered (``--json`` for machine-readable output).
    fix DIR         Run the local fix engine for one error over a project
                    directory; prints the patch, writes it with ``--write``.
    config          Print the effective configuration and its sources.
"""

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from codegen_recovery.config import resolve_config
from codegen_recovery.core.types import ParseResult
from codegen_recovery.exceptions import ConfigurationError
from codegen_recovery.fixes.engine import LocalFixEngine
from codegen_recovery.parsing.paths import PathFilter
from codegen_recovery.pipeline.continuation import plan_continuation
from codegen_recovery.pipeline.parser import ResponseParser
from codegen_recovery.telemetry import InMemoryReporter, TelemetryContext

# ruff: noqa: T201

log = logging.getLogger(__name__)


def _result_info(result: ParseResult) -> dict[str, Any]:
    """JSON-friendly summary of a parse."""
    info: dict[str, Any] = {
        "dialect": result.dialect.value,
        "outcome": result.outcome.value,
        "truncated": result.truncated,
        "files": {
            path: {
                "complete": entry.complete,
                "recovered": entry.recovered,
                "chars": len(entry.content),
            }
            for path, entry in result.files.items()
        },
        "deleted": list(result.deleted_paths),
        "issues": [
            {
                "kind": issue.kind.value,
                "severity": issue.severity,
                "message": issue.message,
                "path": issue.path,
            }
            for issue in result.issues
        ],
    }
    if result.batch is not None:
        info["batch"] = {
            "current": result.batch.current,
            "total": result.batch.total,
            "is_complete": result.batch.is_complete,
        }
    return info


def _print_result(result: ParseResult) -> None:
    print(f"Dialect:   {result.dialect.value}")
    print(f"Outcome:   {result.outcome.value}")
    print(f"Truncated: {result.truncated}")
    print(f"\n=== Files ({len(result.files)}) ===")
    for path, entry in sorted(result.files.items()):
        flags = [] if entry.complete else ["incomplete"]
        if entry.recovered:
            flags.append("recovered")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"  {path} ({len(entry.content):,} chars){suffix}")
    if result.deleted_paths:
        print("\n=== Deleted ===")
        for path in result.deleted_paths:
            print(f"  {path}")
    if result.issues:
        print("\n=== Issues ===")
        for issue in result.issues:
            print(f"  [{issue.severity}] {issue.kind.value}: {issue.message}")


def _cmd_parse(args: argparse.Namespace) -> int:
    config = resolve_config().to_frozen()
    reporter = InMemoryReporter()
    telemetry = TelemetryContext(reporter) if args.telemetry else None
    parser = ResponseParser(config, telemetry=telemetry)

    text = Path(args.file).read_text(encoding="utf-8")
    result = parser.parse(text)

    if args.json:
        info = _result_info(result)
        if args.continuation:
            request = plan_continuation(result, parser.path_filter)
            info["continuation"] = request.prompt if request else None
        print(json.dumps(info, indent=2))
    else:
        _print_result(result)
        if args.continuation:
            request = plan_continuation(result, parser.path_filter)
            print("\n=== Continuation ===")
            print(request.prompt if request else "Batch complete; nothing to continue.")

    if args.telemetry:
        if telemetry is not None and telemetry.enabled:
            print(f"\n{reporter.get_report()}", file=sys.stderr)
        else:
            print(
                "Telemetry is disabled; set CODEGEN_RECOVERY_TELEMETRY=1",
                file=sys.stderr,
            )
    return 1 if result.is_fatal else 0


def _load_project(root: Path, path_filter: PathFilter) -> dict[str, str]:
    """Read every text file under `root` that the path filter accepts."""
    files: dict[str, str] = {}
    for file_path in sorted(root.rglob("*")):
        if not file_path.is_file():
            continue
        relative = path_filter.accept(file_path.relative_to(root).as_posix())
        if relative is None:
            continue
        try:
            files[relative] = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            log.debug("Skipping non-text file %s", file_path)
    return files


def _cmd_fix(args: argparse.Namespace) -> int:
    config = resolve_config().to_frozen()
    engine = LocalFixEngine(config=config)
    root = Path(args.directory)
    files = _load_project(root, engine.path_filter)

    result = engine.try_fix(args.error, args.stack, args.target, files)
    print(result.explanation)
    if not result.applied:
        return 1

    for path, content in result.patched_files.items():
        print(f"  patched: {path}")
        if args.write:
            (root / path).write_text(content, encoding="utf-8")
    if not args.write:
        print("Dry run; pass --write to apply.")
    return 0


def _cmd_config(args: argparse.Namespace) -> int:  # noqa: ARG001
    resolved = resolve_config()
    print("=== Effective Configuration ===")
    print(resolved.audit())
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recover files from LLM code-generation responses",
        prog="python -m codegen_recovery",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = commands.add_parser("parse", help="Parse a saved model response")
    parse_cmd.add_argument("file", help="File holding the raw response text")
    parse_cmd.add_argument("--json", action="store_true", help="Output as JSON")
    parse_cmd.add_argument(
        "--continuation",
        action="store_true",
        help="Also print the next-batch prompt when the batch is incomplete",
    )
    parse_cmd.add_argument(
        "--telemetry",
        action="store_true",
        help="Print a timing report (needs CODEGEN_RECOVERY_TELEMETRY=1)",
    )
    parse_cmd.set_defaults(handler=_cmd_parse)

    fix_cmd = commands.add_parser("fix", help="Try a local fix for one error")
    fix_cmd.add_argument("directory", help="Project root directory")
    fix_cmd.add_argument("--error", required=True, help="Error message")
    fix_cmd.add_argument("--stack", default=None, help="Optional stack trace")
    fix_cmd.add_argument(
        "--target", required=True, help="Project-relative file that raised"
    )
    fix_cmd.add_argument(
        "--write", action="store_true", help="Write patched files in place"
    )
    fix_cmd.set_defaults(handler=_cmd_fix)

    config_cmd = commands.add_parser("config", help="Show effective configuration")
    config_cmd.set_defaults(handler=_cmd_config)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )
    try:
        return args.handler(args)
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
