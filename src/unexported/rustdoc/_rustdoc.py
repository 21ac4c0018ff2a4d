"""rustdoc JSON generation for the target package and its dependencies."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from collections import deque
from collections.abc import Iterable
from pathlib import Path

from unexported.rustdoc.loader import PackageTable, load_export, normalize_crate_name

logger = logging.getLogger(__name__)

_nightly_checked: dict[str, bool] = {}  # project_dir -> available


def default_target_dir(project_dir: Path) -> Path:
    """Cargo target directory for generated exports, outside the project.

    Keyed by the project path so that separate projects do not share
    build artifacts.
    """
    parts = project_dir.resolve().parts[1:]
    return Path(tempfile.gettempdir()) / "unexported-targets" / "_".join(parts)


def collect_exports(
    project_dir: Path,
    target: str,
    *,
    lib_name: str | None = None,
    ignore: Iterable[str] = (),
    target_dir: Path | None = None,
) -> tuple[list[PackageTable], list[str]]:
    """Generate and load the export of *target* and, transitively, its dependencies.

    Dependencies are taken from each export's ``external_crates``. A package
    whose export cannot be generated or read is recorded as a load error
    and its items stay unresolved.
    """
    ignored = {normalize_crate_name(name) for name in ignore}
    target_dir = target_dir or default_target_dir(project_dir)

    tables: list[PackageTable] = []
    errors: list[str] = []
    queue: deque[tuple[str, str | None]] = deque([(target, lib_name)])
    seen = {normalize_crate_name(target)}

    while queue:
        package, lib = queue.popleft()
        json_path = generate_rustdoc_json(project_dir, package, target_dir, lib)
        if json_path is None:
            errors.append(f"export unavailable for package {package}")
            continue
        table = load_export(json_path)
        if table is None:
            errors.append(f"export unreadable for package {package}")
            continue
        tables.append(table)

        for dep in sorted(table.dependencies):
            if dep in ignored or dep in seen:
                continue
            seen.add(dep)
            queue.append((dep, None))

    logger.debug("Collected %d exports, %d failures", len(tables), len(errors))
    return tables, errors


def generate_rustdoc_json(
    project_dir: Path,
    package: str,
    target_dir: Path,
    lib_name: str | None = None,
) -> Path | None:
    """Run ``cargo +nightly rustdoc`` for *package* and return the JSON path.

    Crate names use underscores while package names often use hyphens, so
    both spellings are tried.
    """
    if not _check_nightly(project_dir):
        return None

    candidates = [package.replace("_", "-")]
    if package.replace("-", "_") not in candidates:
        candidates.append(package.replace("-", "_"))

    for candidate in candidates:
        json_path = _run_rustdoc(
            project_dir, candidate, target_dir, lib_name or normalize_crate_name(candidate)
        )
        if json_path is not None:
            return json_path

    logger.warning("Could not generate rustdoc JSON for package '%s'", package)
    return None


def _check_nightly(project_dir: Path) -> bool:
    """Check if nightly toolchain is available (cached per project)."""
    key = str(project_dir)
    if key in _nightly_checked:
        return _nightly_checked[key]

    rustup = shutil.which("rustup")
    if not rustup:
        logger.warning(
            "rustup not found; cannot generate rustdoc JSON. "
            "Install rustup or pass pre-generated exports with --json-dir."
        )
        _nightly_checked[key] = False
        return False

    try:
        result = subprocess.run(
            [rustup, "run", "nightly", "rustc", "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not check nightly toolchain: %s", e)
        _nightly_checked[key] = False
        return False

    if result.returncode != 0:
        logger.warning(
            "Rust nightly toolchain not installed. "
            "Install with: rustup toolchain install nightly"
        )
        _nightly_checked[key] = False
        return False

    _nightly_checked[key] = True
    return True


def _run_rustdoc(
    project_dir: Path, package: str, target_dir: Path, lib_name: str
) -> Path | None:
    """Run cargo +nightly rustdoc for one package spelling."""
    json_path = target_dir / "doc" / f"{lib_name}.json"

    logger.info("Generating rustdoc JSON for package '%s'...", package)
    cmd = [
        "cargo",
        "+nightly",
        "rustdoc",
        "-p",
        package,
        "--lib",
        "--target-dir",
        str(target_dir),
        "--",
        "--output-format",
        "json",
        "-Z",
        "unstable-options",
        "--document-private-items",
    ]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(project_dir),
            timeout=600,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not run cargo rustdoc for '%s': %s", package, e)
        return None

    if result.returncode != 0:
        logger.debug(
            "cargo rustdoc failed for '%s': %s",
            package,
            result.stderr.strip() if result.stderr else "unknown error",
        )
        return None

    if not json_path.exists():
        logger.warning("rustdoc JSON not found at %s after generation", json_path)
        return None

    return json_path
