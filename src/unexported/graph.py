"""Merge per-package tables into one item graph with a single id space."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from unexported.model import (
    ConfigurationError,
    GlobalId,
    Item,
    ItemGraph,
    ModuleEdge,
    Package,
    Reference,
)
from unexported.rustdoc.loader import PackageTable, RawTarget, normalize_crate_name

logger = logging.getLogger(__name__)

# References into these crates are dropped rather than reported as unresolved.
DEFAULT_IGNORED_CRATES = frozenset({"std", "core", "alloc", "proc_macro", "test"})


def build_graph(
    tables: Iterable[PackageTable],
    target: str,
    *,
    ignore: Iterable[str] = DEFAULT_IGNORED_CRATES,
) -> ItemGraph:
    """Build the unified graph for *target* from every loaded export.

    Raises :class:`ConfigurationError` when *target* has no loaded export.
    """
    return _GraphBuilder(tables, target, ignore).build()


class _GraphBuilder:
    def __init__(
        self, tables: Iterable[PackageTable], target: str, ignore: Iterable[str]
    ) -> None:
        self.tables: dict[str, PackageTable] = {}
        for table in tables:
            if table.name in self.tables:
                logger.warning(
                    "Several exports for package %s, keeping the first", table.name
                )
                continue
            self.tables[table.name] = table

        target = normalize_crate_name(target)
        if target not in self.tables:
            raise ConfigurationError(f"No export loaded for target package '{target}'")

        self.ignore = frozenset(normalize_crate_name(name) for name in ignore)
        self.graph = ItemGraph(target=target)
        self._memo: dict[RawTarget, GlobalId | None] = {}
        self._resolving: set[RawTarget] = set()

    def build(self) -> ItemGraph:
        graph = self.graph
        for table in self.tables.values():
            graph.packages[table.name] = Package(
                name=table.name,
                root=GlobalId(table.name, table.root),
                version=table.version,
                format_version=table.format_version,
                dependencies=table.dependencies,
            )
            for item in table.items.values():
                graph.items[item.gid] = item

        for table in self.tables.values():
            self._add_module_edges(table)
            self._add_references(table)

        logger.debug(
            "Item graph: %d packages, %d items, %d unresolved, %d ignored references",
            len(graph.packages),
            len(graph.items),
            len(graph.unresolved),
            graph.ignored,
        )
        return graph

    def _add_module_edges(self, table: PackageTable) -> None:
        for module_id, raw_children in table.module_items.items():
            parent = GlobalId(table.name, module_id)
            edges: list[ModuleEdge] = []
            for raw in raw_children:
                child = self.resolve(raw.target, raw.name)
                if child is None:
                    continue
                edges.append(
                    ModuleEdge(parent, child, raw.visibility, raw.name, raw.kind)
                )
            self.graph.children[parent] = edges

    def _add_references(self, table: PackageTable) -> None:
        for raw in table.references:
            source = GlobalId(table.name, raw.source)
            target = self.resolve(raw.target, raw.name_hint)
            if target is None:
                self.graph.ignored += 1
                continue
            self.graph.references.setdefault(source, []).append(
                Reference(source, target, raw.label)
            )

    def resolve(self, raw: RawTarget, hint: str | None = None) -> GlobalId | None:
        """Map *raw* to a node, creating a placeholder if it cannot be found.

        Returns None only for targets in ignored crates.
        """
        if raw in self._memo:
            return self._memo[raw]
        if raw.package in self.ignore:
            self._memo[raw] = None
            return None
        if raw in self._resolving:
            # re-export cycle
            return self._placeholder(raw, hint)

        self._resolving.add(raw)
        try:
            gid = self._resolve_uncached(raw)
        finally:
            self._resolving.discard(raw)

        if gid is None:
            gid = self._placeholder(raw, hint)
        self._memo[raw] = gid
        return gid

    def _resolve_uncached(self, raw: RawTarget) -> GlobalId | None:
        table = self.tables.get(raw.package)
        if table is None:
            return None
        if raw.local_id is not None:
            if raw.local_id in table.items:
                return GlobalId(table.name, raw.local_id)
            return None
        if not raw.path:
            return GlobalId(table.name, table.root)

        local_id = table.paths.get(raw.path)
        if local_id is not None:
            return GlobalId(table.name, local_id)

        # Not a canonical path there: follow the namespace as a consumer would.
        current: GlobalId | None = GlobalId(table.name, table.root)
        for segment in raw.path:
            current = self._lookup(current, segment, set())
            if current is None:
                return None
        return current

    def _lookup(
        self, module: GlobalId, name: str, seen: set[GlobalId]
    ) -> GlobalId | None:
        """Find *name* among *module*'s children, including glob imports."""
        if module in seen:
            return None
        seen.add(module)

        table = self.tables.get(module.package)
        if table is None:
            return None

        globs: list[RawTarget] = []
        for raw in table.module_items.get(module.local_id, []):
            if raw.kind == "glob":
                globs.append(raw.target)
            elif raw.name == name:
                return self.resolve(raw.target, name)

        for raw_target in globs:
            glob_module = self.resolve(raw_target)
            if glob_module is None or glob_module.is_placeholder:
                continue
            found = self._lookup(glob_module, name, seen)
            if found is not None:
                return found
        return None

    def _placeholder(self, raw: RawTarget, hint: str | None) -> GlobalId:
        if raw.local_id is not None:
            gid = GlobalId(raw.package, f"?{raw.local_id}")
        else:
            gid = GlobalId(raw.package, "?" + "::".join(raw.path))
        if gid not in self.graph.items:
            name = hint or (raw.path[-1] if raw.path else raw.package)
            self.graph.items[gid] = Item(
                gid=gid,
                kind="unknown",
                name=name,
                visibility="public",
                module_path=(raw.package,) + raw.path[:-1],
            )
            self.graph.unresolved.add(gid)
            logger.debug("Unresolved reference to %s", "::".join(_display_path(raw)))
        return gid


def _display_path(raw: RawTarget) -> tuple[str, ...]:
    """Human-readable path for a raw target, for log messages."""
    if raw.local_id is not None:
        return (raw.package, f"#{raw.local_id}")
    return (raw.package,) + raw.path
