"""Data model shared by the loader, graph builder, resolvers and reporter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple


class ConfigurationError(Exception):
    """No target package could be determined for the run."""


class GlobalId(NamedTuple):
    """An item id qualified by the package whose export declares it."""

    package: str
    local_id: str

    def __str__(self) -> str:
        return f"{self.package}:{self.local_id}"

    @property
    def is_placeholder(self) -> bool:
        return self.local_id.startswith("?")


@dataclass(frozen=True)
class Item:
    """A declared symbol, immutable once loaded."""

    gid: GlobalId
    kind: str  # rustdoc kind name, "unknown" for placeholders
    name: str
    visibility: str  # "public", "restricted", "private"
    module_path: tuple[str, ...] = ()

    @property
    def package(self) -> str:
        return self.gid.package

    @property
    def path(self) -> tuple[str, ...]:
        return self.module_path + (self.name,)


@dataclass(frozen=True)
class Package:
    """One crate with its own root module and rustdoc export."""

    name: str
    root: GlobalId
    version: str | None = None
    format_version: int | None = None
    dependencies: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ModuleEdge:
    """A name declared inside a module: an item, a re-export or a glob."""

    parent: GlobalId
    child: GlobalId
    visibility: str
    name: str | None
    kind: str  # "contains", "reexport", "glob"


@dataclass(frozen=True)
class Reference:
    """Item *source* mentions *target* in its signature at *label*."""

    source: GlobalId
    target: GlobalId
    label: tuple[str, ...]


@dataclass
class ItemGraph:
    """Unified item graph across the target package and its dependencies.

    Built once by :func:`unexported.graph.build_graph` and only read
    afterwards.
    """

    target: str
    packages: dict[str, Package] = field(default_factory=dict)
    items: dict[GlobalId, Item] = field(default_factory=dict)
    children: dict[GlobalId, list[ModuleEdge]] = field(default_factory=dict)
    references: dict[GlobalId, list[Reference]] = field(default_factory=dict)
    unresolved: set[GlobalId] = field(default_factory=set)
    ignored: int = 0

    @property
    def root(self) -> GlobalId:
        return self.packages[self.target].root


@dataclass(frozen=True)
class EntryPoint:
    """A public item of the target package, with its path from the root."""

    gid: GlobalId
    path: tuple[str, ...]


@dataclass(frozen=True)
class Exposure:
    """How an item was reached from an entry point through signatures."""

    entry: EntryPoint
    hops: tuple[tuple[tuple[str, ...], GlobalId], ...] = ()


@dataclass(frozen=True)
class Finding:
    """A visible but not importable item."""

    item: Item
    chain: str

    @property
    def gid(self) -> GlobalId:
        return self.item.gid


@dataclass
class Report:
    """Result of a run: findings plus everything that may make it incomplete."""

    target: str
    findings: list[Finding] = field(default_factory=list)
    unresolved: list[GlobalId] = field(default_factory=list)
    load_errors: list[str] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        return len(self.unresolved) + len(self.load_errors)
