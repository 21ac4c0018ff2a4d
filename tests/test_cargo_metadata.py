"""Tests for target package selection."""

from pathlib import Path

import pytest

from unexported.model import ConfigurationError
from unexported.rustdoc import cargo_metadata
from unexported.rustdoc.cargo_metadata import library_packages, select_target


def _package(name: str, *kinds: str, lib: str | None = None) -> dict:
    return {
        "id": f"{name} 0.1.0",
        "name": name,
        "targets": [{"name": lib or name.replace("-", "_"), "kind": list(kinds)}],
    }


def _metadata(*packages: dict) -> dict:
    return {
        "packages": list(packages),
        "workspace_members": [p["id"] for p in packages],
    }


def _use_metadata(monkeypatch: pytest.MonkeyPatch, metadata: dict | None) -> None:
    monkeypatch.setattr(cargo_metadata, "run_cargo_metadata", lambda _: metadata)


def test_library_packages() -> None:
    metadata = _metadata(
        _package("quinn-proto", "lib"),
        _package("cli", "bin"),
        _package("macros", "proc-macro"),
    )
    metadata["packages"].append(_package("outside", "lib"))

    assert library_packages(metadata) == [
        ("macros", "macros"),
        ("quinn-proto", "quinn_proto"),
    ]


def test_single_library_is_selected(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_metadata(monkeypatch, _metadata(_package("demo", "lib"), _package("cli", "bin")))

    assert select_target(Path(".")) == ("demo", "demo")


def test_named_package(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_metadata(
        monkeypatch,
        _metadata(_package("a", "lib"), _package("my-lib", "lib", lib="mylib")),
    )

    assert select_target(Path("."), "my_lib") == ("my-lib", "mylib")


def test_named_package_outside_workspace(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_metadata(monkeypatch, None)

    assert select_target(Path("."), "serde-json") == ("serde-json", "serde_json")


def test_ambiguous_workspace(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_metadata(monkeypatch, _metadata(_package("a", "lib"), _package("b", "lib")))

    with pytest.raises(ConfigurationError, match="a, b"):
        select_target(Path("."))


def test_no_library(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_metadata(monkeypatch, _metadata(_package("cli", "bin")))

    with pytest.raises(ConfigurationError, match="No library package"):
        select_target(Path("."))


def test_metadata_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_metadata(monkeypatch, None)

    with pytest.raises(ConfigurationError, match="--package"):
        select_target(Path("."))


def test_cargo_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(*args, **kwargs):
        raise FileNotFoundError("cargo")

    monkeypatch.setattr(cargo_metadata.subprocess, "run", missing)

    assert cargo_metadata.run_cargo_metadata(Path(".")) is None
