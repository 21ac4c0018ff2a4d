"""Orchestrator: select → export → load → graph → resolve → report."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from unexported.analysis import find_unexported
from unexported.config import read_config
from unexported.exposure import resolve_visible
from unexported.graph import DEFAULT_IGNORED_CRATES, build_graph
from unexported.importable import entry_points, resolve_importable
from unexported.model import ConfigurationError, Report
from unexported.renderer.text import render
from unexported.rustdoc import (
    PackageTable,
    collect_exports,
    is_rust_project,
    load_export_dir,
    select_target,
)

logger = logging.getLogger(__name__)


def analyze(
    tables: Iterable[PackageTable],
    target: str,
    *,
    ignore: Iterable[str] = DEFAULT_IGNORED_CRATES,
    allow: Iterable[str] = (),
    load_errors: Iterable[str] = (),
) -> Report:
    """Run the core analysis over already loaded exports."""
    graph = build_graph(tables, target, ignore=ignore)

    entries = entry_points(graph)
    logger.debug("Entry points: %d", len(entries))

    visible = resolve_visible(graph, entries)
    importable = resolve_importable(graph)

    report = find_unexported(graph, visible, importable, allow=allow)
    report.load_errors.extend(load_errors)
    return report


def _guess_target(tables: list[PackageTable]) -> str:
    """The one loaded export that no other loaded export depends on."""
    if not tables:
        raise ConfigurationError("No readable exports found")
    depended_on = set().union(*(t.dependencies for t in tables))
    candidates = sorted(t.name for t in tables if t.name not in depended_on)
    if len(candidates) == 1:
        return candidates[0]
    names = ", ".join(candidates or sorted(t.name for t in tables))
    raise ConfigurationError(
        f"Several exports could be the target ({names}); choose one with --package"
    )


def run(
    project_dir: Path,
    *,
    package: str | None = None,
    json_dir: Path | None = None,
    target_dir: Path | None = None,
    ignore_crates: Iterable[str] = (),
    allow: Iterable[str] = (),
    output_format: str = "text",
    stream: TextIO | None = None,
) -> Report:
    """Run the full pipeline for *project_dir* and render the report.

    With *json_dir*, exports are read from that directory instead of being
    generated with cargo.
    """
    project_dir = project_dir.resolve()
    config = read_config(project_dir)
    ignore = set(DEFAULT_IGNORED_CRATES) | set(config.ignore_crates) | set(ignore_crates)
    allowed = [*config.allow, *allow]

    if json_dir is not None:
        tables, errors = load_export_dir(json_dir)
        target = package or _guess_target(tables)
    else:
        if not is_rust_project(project_dir):
            raise ConfigurationError(f"No Cargo.toml in {project_dir}")
        target, lib_name = select_target(project_dir, package)
        tables, errors = collect_exports(
            project_dir,
            target,
            lib_name=lib_name,
            ignore=ignore,
            target_dir=target_dir,
        )

    logger.debug("Target: %s, exports: %s", target, [t.name for t in tables])

    report = analyze(tables, target, ignore=ignore, allow=allowed, load_errors=errors)
    render(report, output_format, stream)
    return report
