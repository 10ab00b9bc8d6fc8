"""Command-line entrypoint for rewriting or checking a package-lock.json.

Usage:
  npm-mirror update [--lockfile PATH] [--registry URL] [--json] [--strict]
  npm-mirror check  [--lockfile PATH] [--registry URL] [--json]

Exit codes: 0 on success, 1 on a fatal error, 10 when check mode finds
mismatches (or update mode skipped entries with ``--strict``).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import core
from .errors import NpmMirrorError
from .report import aggregate_check, aggregate_update
from .settings import load_settings
from .storage import DEFAULT_LOCKFILE
from .summary import render_summary

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FINDINGS = 10

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="npm-mirror", description=__doc__.splitlines()[0])
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON config file")
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("update", "Rewrite resolved URLs and integrity onto the registry"),
        ("check", "Verify resolved URLs already point at the registry"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--lockfile",
            type=Path,
            default=DEFAULT_LOCKFILE,
            help="Path to package-lock.json (default: ./package-lock.json)",
        )
        sub.add_argument("--registry", default=None, help="Target registry base URL")
        sub.add_argument("--concurrency", type=int, default=None)
        sub.add_argument("--timeout", type=float, default=None)
        sub.add_argument("--json", action="store_true", help="Print the JSON report")
        sub.add_argument("--summary", type=Path, default=None, help="Write a Markdown summary")
        if name == "update":
            sub.add_argument(
                "--strict",
                action="store_true",
                help="Exit non-zero when any dependency could not be rewritten",
            )

    return parser.parse_args(argv)


def _configure_logging(verbosity: int, default_level: int) -> None:
    level = default_level
    if verbosity == 1:
        level = min(level, logging.INFO)
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(
            args.config,
            registry=args.registry,
            concurrency=args.concurrency,
            timeout=args.timeout,
        )
    except NpmMirrorError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    _configure_logging(args.verbose, settings.log_level_number)
    lockfile = args.lockfile.resolve()

    try:
        if args.command == "update":
            result = core.update_lockfile_path(lockfile, settings.registry, settings=settings)
            report = aggregate_update(result, lockfile=str(lockfile), registry=settings.registry)
        else:
            check = core.check_lockfile_path(lockfile, settings.registry)
            report = aggregate_check(check, lockfile=str(lockfile), registry=settings.registry)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except NpmMirrorError as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        for finding in report["findings"]:
            if report["mode"] == "check":
                print(f"{finding['path']}: {finding['resolved']}", file=sys.stderr)
            else:
                print(f"{finding['path']}: {finding['message']}", file=sys.stderr)

    if args.summary is not None:
        args.summary.write_text(render_summary(report), encoding="utf-8")

    if report["hasFindings"] and (args.command == "check" or args.strict):
        return EXIT_FINDINGS
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
