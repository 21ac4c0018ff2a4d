"""Command-line interface for unexported."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from unexported.model import ConfigurationError
from unexported.pipeline import run

logger = logging.getLogger("unexported")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="unexported",
        description="Report types a Rust crate's public API exposes but never exports.",
    )
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Path to the Cargo project (default: current directory)",
    )
    parser.add_argument(
        "-p",
        "--package",
        default=None,
        help="Package to analyze (default: the workspace's only library)",
    )
    parser.add_argument(
        "--json-dir",
        type=Path,
        default=None,
        help="Read pre-generated rustdoc JSON exports from this directory",
    )
    parser.add_argument(
        "--target-dir",
        type=Path,
        default=None,
        help="Cargo target directory for generated exports (default: a temp dir)",
    )
    parser.add_argument(
        "--ignore-crate",
        action="append",
        default=[],
        metavar="NAME",
        help="Treat references into this crate as out of scope (repeatable)",
    )
    parser.add_argument(
        "--allow",
        action="append",
        default=[],
        metavar="PATH",
        help="Do not report this item, by path or name (repeatable)",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        dest="output_format",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--fail-on-findings",
        action="store_true",
        help="Exit with status 2 when anything is reported",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    try:
        report = run(
            args.project_dir,
            package=args.package,
            json_dir=args.json_dir,
            target_dir=args.target_dir,
            ignore_crates=args.ignore_crate,
            allow=args.allow,
            output_format=args.output_format,
        )
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.fail_on_findings and report.findings:
        sys.exit(2)
