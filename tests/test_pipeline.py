"""Tests for the end-to-end pipeline."""

import io
from pathlib import Path

import pytest
from docbuilder import CrateDoc, resolved

from unexported import pipeline
from unexported.model import ConfigurationError, GlobalId
from unexported.rustdoc.loader import parse_export


def _app_and_dep() -> tuple[CrateDoc, CrateDoc]:
    """``app::get() -> dep::inner::Hidden`` plus ``app::Config { field: Secret }``."""
    dep = CrateDoc("dep")
    inner = dep.module("inner", visibility="default")
    hidden = dep.struct("Hidden", parent=inner)
    dep.struct("Shown", [("hidden", resolved(hidden, "Hidden"), "default")])

    app = CrateDoc("app")
    private = app.module("private", visibility="default")
    secret = app.struct("Secret", parent=private)
    app.struct("Config", [("field", resolved(secret, "Secret"))])
    ext = app.external("dep", ("inner", "Hidden"))
    app.function("get", [], resolved(ext, "Hidden"))
    return app, dep


@pytest.fixture
def json_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "json"
    directory.mkdir()
    for doc in _app_and_dep():
        doc.write(directory)
    return directory


def test_run_with_json_dir(tmp_path: Path, json_dir: Path) -> None:
    """The export nothing else depends on is taken as the target."""
    out = io.StringIO()

    report = pipeline.run(tmp_path, json_dir=json_dir, stream=out)

    assert report.target == "app"
    assert [f.chain for f in report.findings] == ["Config::field::Secret", "get::Hidden"]
    assert out.getvalue().splitlines() == [
        "Config::field::Secret  (app::private::Secret)",
        "get::Hidden  (dep::inner::Hidden)",
    ]


def test_run_reads_project_config(tmp_path: Path, json_dir: Path) -> None:
    (tmp_path / ".unexported.toml").write_text(
        '[unexported]\nignore-crates = ["dep"]\nallow = ["Secret"]\n'
    )

    report = pipeline.run(tmp_path, json_dir=json_dir, stream=io.StringIO())

    assert report.findings == []
    assert report.unresolved == []


def test_run_arguments_extend_config(tmp_path: Path, json_dir: Path) -> None:
    report = pipeline.run(
        tmp_path,
        json_dir=json_dir,
        ignore_crates=["dep"],
        allow=["app::private::Secret"],
        stream=io.StringIO(),
    )

    assert report.findings == []


def test_run_with_missing_dependency_export(tmp_path: Path) -> None:
    app, _ = _app_and_dep()
    app.write(tmp_path)
    (tmp_path / "dep.json").write_text("[]")

    report = pipeline.run(tmp_path, json_dir=tmp_path, package="app", stream=io.StringIO())

    assert [f.chain for f in report.findings] == ["Config::field::Secret"]
    assert report.unresolved == [GlobalId("dep", "?inner::Hidden")]
    assert report.load_errors == ["export unreadable for package dep"]


def test_unrelated_exports_need_a_package(tmp_path: Path) -> None:
    CrateDoc("one").write(tmp_path)
    CrateDoc("two").write(tmp_path)

    with pytest.raises(ConfigurationError, match="one, two"):
        pipeline.run(tmp_path, json_dir=tmp_path, stream=io.StringIO())


def test_empty_json_dir(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="No readable exports"):
        pipeline.run(tmp_path, json_dir=tmp_path, stream=io.StringIO())


def test_requires_a_cargo_project(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="No Cargo.toml"):
        pipeline.run(tmp_path, stream=io.StringIO())


def test_run_generates_exports(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without --json-dir, the target is selected and exports are collected."""
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "app"\nversion = "0.1.0"\n')
    app, dep = _app_and_dep()
    calls = {}

    def fake_select(project_dir, package):
        calls["select"] = (project_dir, package)
        return "app", "app"

    def fake_collect(project_dir, target, *, lib_name, ignore, target_dir):
        calls["collect"] = (target, lib_name, set(ignore), target_dir)
        tables = [parse_export(app.to_json(), "app"), parse_export(dep.to_json(), "dep")]
        return tables, []

    monkeypatch.setattr(pipeline, "select_target", fake_select)
    monkeypatch.setattr(pipeline, "collect_exports", fake_collect)

    report = pipeline.run(tmp_path, target_dir=tmp_path / "target", stream=io.StringIO())

    assert calls["select"] == (tmp_path.resolve(), None)
    target, lib_name, ignore, target_dir = calls["collect"]
    assert (target, lib_name, target_dir) == ("app", "app", tmp_path / "target")
    assert {"std", "core", "alloc"} <= ignore
    assert len(report.findings) == 2
