"""Target package selection from cargo metadata."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

from unexported.model import ConfigurationError
from unexported.rustdoc.loader import normalize_crate_name

logger = logging.getLogger(__name__)

_LIB_KINDS = {"lib", "rlib", "cdylib", "staticlib", "dylib", "proc-macro"}


def run_cargo_metadata(project_dir: Path) -> dict | None:
    """Run ``cargo metadata --no-deps`` and return parsed JSON."""
    try:
        result = subprocess.run(
            ["cargo", "metadata", "--format-version", "1", "--no-deps"],
            capture_output=True,
            text=True,
            cwd=str(project_dir),
            timeout=60,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not run cargo metadata: %s", e)
        return None

    if result.returncode != 0:
        logger.warning(
            "cargo metadata failed: %s",
            result.stderr.strip() if result.stderr else "unknown error",
        )
        return None

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        logger.warning("cargo metadata JSON parse error: %s", e)
        return None


def library_packages(metadata: dict) -> list[tuple[str, str]]:
    """Return sorted ``(package_name, lib_target_name)`` for workspace libraries."""
    workspace_members = set(metadata.get("workspace_members", []))
    found: list[tuple[str, str]] = []
    for pkg in metadata.get("packages", []):
        if workspace_members and pkg.get("id") not in workspace_members:
            continue
        for target in pkg.get("targets", []):
            if _LIB_KINDS & set(target.get("kind", [])):
                found.append((pkg["name"], target["name"]))
                break  # Take the first lib target
    return sorted(found)


def select_target(project_dir: Path, package: str | None = None) -> tuple[str, str]:
    """Pick the package to analyze and return ``(package, lib_target_name)``.

    A named *package* wins; otherwise the workspace must contain exactly one
    library package. Raises :class:`ConfigurationError` when no choice can
    be made.
    """
    metadata = run_cargo_metadata(project_dir)
    libraries = library_packages(metadata) if metadata is not None else []

    if package:
        wanted = normalize_crate_name(package)
        for name, lib in libraries:
            if normalize_crate_name(name) == wanted:
                return name, lib
        logger.debug("Package '%s' not among workspace libraries", package)
        return package, wanted

    if metadata is None:
        raise ConfigurationError(
            f"Could not read cargo metadata in {project_dir}; name the package with --package"
        )
    if not libraries:
        raise ConfigurationError(f"No library package found in {project_dir}")
    if len(libraries) > 1:
        names = ", ".join(name for name, _ in libraries)
        raise ConfigurationError(
            f"Several library packages in workspace ({names}); choose one with --package"
        )
    return libraries[0]
