"""Parse one rustdoc JSON export into a self-contained package table."""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from unexported.model import GlobalId, Item
from unexported.rustdoc.signatures import (
    SIGNATURE_KINDS,
    Label,
    collect_references,
    item_kind,
    path_name,
    visibility,
)

logger = logging.getLogger(__name__)

# Items that only forward to or attach to other items; they are edges, not nodes.
_EDGE_KINDS = frozenset({"use", "impl", "extern_crate"})


def normalize_crate_name(name: str) -> str:
    """Crate names use underscores where package names may use hyphens."""
    return name.replace("-", "_")


class RawTarget(NamedTuple):
    """A reference out of one export, not yet resolved to a graph node.

    Either *local_id* names an item of *package*'s own export, or *path*
    names it from *package*'s root module (``()`` is the root itself).
    """

    package: str
    local_id: str | None = None
    path: tuple[str, ...] = ()


@dataclass(frozen=True)
class RawChild:
    """A name declared inside a module."""

    name: str | None
    visibility: str
    target: RawTarget
    kind: str  # "contains", "reexport", "glob"


@dataclass(frozen=True)
class RawReference:
    """A signature position of *source* that mentions *target*."""

    source: str
    target: RawTarget
    label: Label
    name_hint: str


@dataclass
class PackageTable:
    """Everything one export says, keyed by ids local to that export."""

    name: str
    root: str
    version: str | None = None
    format_version: int | None = None
    items: dict[str, Item] = field(default_factory=dict)
    module_items: dict[str, list[RawChild]] = field(default_factory=dict)
    references: list[RawReference] = field(default_factory=list)
    paths: dict[tuple[str, ...], str] = field(default_factory=dict)
    dependencies: frozenset[str] = frozenset()


def load_export(path: Path) -> PackageTable | None:
    """Read and parse a rustdoc JSON file, or return None if unreadable."""
    name_hint = normalize_crate_name(path.stem)
    try:
        with open(path, encoding="utf-8") as f:
            doc = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("export unreadable for package %s: %s", name_hint, e)
        return None
    return parse_export(doc, name_hint)


def load_export_dir(directory: Path) -> tuple[list[PackageTable], list[str]]:
    """Load every ``*.json`` export in *directory*.

    Returns the parsed tables and one message per unreadable file.
    """
    tables: list[PackageTable] = []
    errors: list[str] = []
    for json_path in sorted(directory.glob("*.json")):
        table = load_export(json_path)
        if table is None:
            errors.append(
                f"export unreadable for package {normalize_crate_name(json_path.stem)}"
            )
            continue
        tables.append(table)
    logger.debug("Loaded %d exports from %s", len(tables), directory)
    return tables, errors


def parse_export(doc: object, name_hint: str) -> PackageTable | None:
    """Build a :class:`PackageTable` from a decoded rustdoc JSON document."""
    if not isinstance(doc, dict) or not isinstance(doc.get("index"), dict):
        logger.warning("export unreadable for package %s: no index", name_hint)
        return None
    if doc.get("root") is None:
        logger.warning("export unreadable for package %s: no root", name_hint)
        return None

    try:
        return _ExportReader(doc, name_hint).read()
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("export unreadable for package %s: %s", name_hint, e)
        return None


class _ExportReader:
    def __init__(self, doc: dict, name_hint: str) -> None:
        self.doc = doc
        self.index: dict[str, dict] = {
            str(k): v for k, v in doc["index"].items() if isinstance(v, dict)
        }
        self.summaries: dict[str, dict] = {
            str(k): v for k, v in (doc.get("paths") or {}).items() if isinstance(v, dict)
        }
        self.external_crates: dict[str, dict] = {
            str(k): v
            for k, v in (doc.get("external_crates") or {}).items()
            if isinstance(v, dict)
        }
        self.root = str(doc["root"])
        self.name = name_hint

    def read(self) -> PackageTable | None:
        root_item = self.index.get(self.root)
        if root_item is None or item_kind(root_item)[0] != "module":
            logger.warning(
                "export unreadable for package %s: root is not a module", self.name
            )
            return None
        self.name = normalize_crate_name(root_item.get("name") or self.name)

        table = PackageTable(
            name=self.name,
            root=self.root,
            version=self.doc.get("crate_version"),
            format_version=self.doc.get("format_version"),
            dependencies=frozenset(
                normalize_crate_name(c["name"])
                for c in self.external_crates.values()
                if c.get("name")
            ),
        )

        for local_id, summary in self.summaries.items():
            if summary.get("crate_id") == 0 and local_id in self.index:
                table.paths.setdefault(tuple(summary.get("path") or ())[1:], local_id)

        module_paths = self._walk_modules(table)
        self._collect_items(table, module_paths)
        self._collect_references(table)

        logger.debug(
            "Export %s: %d items, %d modules, %d signature references",
            self.name,
            len(table.items),
            len(table.module_items),
            len(table.references),
        )
        return table

    def crate_of(self, crate_id: object) -> str | None:
        if crate_id == 0:
            return self.name
        external = self.external_crates.get(str(crate_id))
        if external and external.get("name"):
            return normalize_crate_name(external["name"])
        return None

    def target(self, item_id: object) -> RawTarget | None:
        """Carry a document-local id out of this export.

        ``use`` items are followed to what they forward. Returns None when a
        ``use`` forwards nothing rustdoc could name (e.g. a primitive).
        """
        key = str(item_id)
        seen: set[str] = set()
        while key not in seen:
            seen.add(key)
            item = self.index.get(key)
            if item is None:
                return self._summary_target(key)
            kind, data = item_kind(item)
            if kind == "use" and not data.get("is_glob", data.get("glob", False)):
                if data.get("id") is None:
                    return None
                key = str(data["id"])
                continue
            if kind == "extern_crate":
                return RawTarget(normalize_crate_name(data.get("name") or item["name"]))
            return RawTarget(self.name, key)
        return None

    def _summary_target(self, key: str) -> RawTarget:
        summary = self.summaries.get(key)
        if summary is None:
            return RawTarget(self.name, key)  # dangling id, becomes a placeholder
        path = tuple(summary.get("path") or ())
        crate = self.crate_of(summary.get("crate_id"))
        if crate is None:
            if not path:
                return RawTarget(self.name, key)
            crate = normalize_crate_name(path[0])
        return RawTarget(crate, None, path[1:])

    def _walk_modules(self, table: PackageTable) -> dict[str, tuple[str, ...]]:
        """Record module children breadth-first from the root.

        Returns the module path of every item declared directly in a module.
        """
        module_paths: dict[str, tuple[str, ...]] = {}
        queue: deque[tuple[str, tuple[str, ...]]] = deque([(self.root, (self.name,))])
        walked = {self.root}

        while queue:
            module_id, module_path = queue.popleft()
            _, data = item_kind(self.index[module_id])
            children: list[RawChild] = []

            for child_id in data.get("items") or []:
                key = str(child_id)
                child = self.index.get(key)
                if child is None:
                    target = self._summary_target(key)
                    name = target.path[-1] if target.path else None
                    children.append(RawChild(name, "public", target, "contains"))
                    continue

                kind, child_data = item_kind(child)
                vis = visibility(child)
                if kind == "impl":
                    continue
                if kind == "use":
                    glob = child_data.get("is_glob", child_data.get("glob", False))
                    if child_data.get("id") is None:
                        continue
                    target = self.target(child_data["id"])
                    if target is None:
                        continue
                    children.append(
                        RawChild(
                            child_data.get("name") or child.get("name"),
                            vis,
                            target,
                            "glob" if glob else "reexport",
                        )
                    )
                elif kind == "extern_crate":
                    crate = normalize_crate_name(child_data.get("name") or child["name"])
                    local_name = (
                        child_data.get("rename") or child.get("name") or crate
                    )
                    children.append(
                        RawChild(local_name, vis, RawTarget(crate), "reexport")
                    )
                else:
                    name = child.get("name")
                    children.append(
                        RawChild(name, vis, RawTarget(self.name, key), "contains")
                    )
                    module_paths.setdefault(key, module_path)
                    if kind == "module" and key not in walked and name:
                        walked.add(key)
                        queue.append((key, module_path + (name,)))

            table.module_items[module_id] = children

        return module_paths

    def _collect_items(
        self, table: PackageTable, module_paths: dict[str, tuple[str, ...]]
    ) -> None:
        for local_id, raw in self.index.items():
            kind, _ = item_kind(raw)
            if kind is None or kind in _EDGE_KINDS:
                continue
            summary = self.summaries.get(local_id)
            if summary is not None and summary.get("crate_id") == 0 and summary.get("path"):
                module_path = tuple(summary["path"][:-1])
            else:
                module_path = module_paths.get(local_id, (self.name,))
            name = raw.get("name") or ""
            if local_id == self.root:
                name, module_path = self.name, ()
            table.items[local_id] = Item(
                gid=GlobalId(self.name, local_id),
                kind=kind,
                name=name,
                visibility=visibility(raw),
                module_path=module_path,
            )

    def _collect_references(self, table: PackageTable) -> None:
        # Methods and trait items are reached through their owner.
        members: set[str] = set()
        for raw in self.index.values():
            kind, data = item_kind(raw)
            if kind in ("impl", "trait"):
                members.update(str(i) for i in data.get("items") or [])

        for local_id, raw in self.index.items():
            kind, _ = item_kind(raw)
            if kind not in SIGNATURE_KINDS or local_id in members:
                continue
            for label, path in collect_references(self.index, raw):
                target = self.target(path["id"])
                if target is None:
                    continue
                table.references.append(
                    RawReference(local_id, target, label, path_name(path))
                )
