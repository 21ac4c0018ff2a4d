"""Project configuration from ``.unexported.toml`` or ``Cargo.toml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Settings read from the analyzed project."""

    ignore_crates: list[str] = field(default_factory=list)
    allow: list[str] = field(default_factory=list)


def read_config(project_dir: Path) -> Config:
    """Read ``[unexported]`` from ``.unexported.toml``, else Cargo.toml metadata.

    In Cargo.toml the table lives at ``[package.metadata.unexported]`` or
    ``[workspace.metadata.unexported]``.
    """
    table = _read_dotfile(project_dir)
    if table is None:
        table = _read_cargo_toml(project_dir)
    if table is None:
        return Config()

    return Config(
        ignore_crates=_string_list(table.get("ignore-crates")),
        allow=_string_list(table.get("allow")),
    )


def _load_toml(path: Path) -> dict | None:
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Could not parse %s: %s", path, e)
        return None


def _read_dotfile(project_dir: Path) -> dict | None:
    dotfile = project_dir / ".unexported.toml"
    if not dotfile.exists():
        return None
    data = _load_toml(dotfile)
    if data is None:
        return None
    table = data.get("unexported")
    return table if isinstance(table, dict) else None


def _read_cargo_toml(project_dir: Path) -> dict | None:
    cargo_toml = project_dir / "Cargo.toml"
    if not cargo_toml.exists():
        return None
    data = _load_toml(cargo_toml)
    if data is None:
        return None
    for section in ("package", "workspace"):
        table = data.get(section, {}).get("metadata", {}).get("unexported")
        if isinstance(table, dict):
            return table
    return None


def _string_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    logger.warning("Ignoring non-list configuration value: %r", value)
    return []
