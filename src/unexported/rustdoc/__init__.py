"""rustdoc JSON exports: generation, loading and signature extraction."""

from __future__ import annotations

from pathlib import Path

from unexported.rustdoc._rustdoc import collect_exports, default_target_dir
from unexported.rustdoc.cargo_metadata import select_target
from unexported.rustdoc.loader import (
    PackageTable,
    load_export,
    load_export_dir,
    normalize_crate_name,
    parse_export,
)

__all__ = [
    "PackageTable",
    "collect_exports",
    "default_target_dir",
    "is_rust_project",
    "load_export",
    "load_export_dir",
    "normalize_crate_name",
    "parse_export",
    "select_target",
]


def is_rust_project(project_dir: Path) -> bool:
    """Return True if *project_dir* contains a Cargo.toml."""
    return (project_dir / "Cargo.toml").exists()
