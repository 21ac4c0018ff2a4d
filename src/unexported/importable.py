"""Public-path reachability: which items a consumer can name."""

from __future__ import annotations

import logging
from collections import deque

from unexported.model import EntryPoint, GlobalId, ItemGraph

logger = logging.getLogger(__name__)


def public_paths(graph: ItemGraph) -> dict[GlobalId, tuple[str, ...]]:
    """Return the first public path (relative to the crate root) of every importable item.

    Only edges declared ``public`` are followed; a ``pub(crate)`` or private
    declaration is never a path for an external consumer, even inside the
    target package. Each module is expanded once, so re-export cycles
    terminate. Glob re-exports pull the public children of a module into
    the importing module without making the module itself importable.
    """
    paths: dict[GlobalId, tuple[str, ...]] = {}
    root = graph.root
    expanded = {root}
    queue: deque[tuple[GlobalId, tuple[str, ...]]] = deque([(root, ())])

    while queue:
        module, prefix = queue.popleft()
        for edge in graph.children.get(module, ()):
            if edge.visibility != "public":
                continue
            child = edge.child
            if edge.kind == "glob":
                if child not in expanded:
                    expanded.add(child)
                    queue.append((child, prefix))
                continue
            if not edge.name:
                continue

            child_path = prefix + (edge.name,)
            paths.setdefault(child, child_path)
            item = graph.items.get(child)
            if item is not None and item.kind == "module" and child not in expanded:
                expanded.add(child)
                queue.append((child, child_path))

    logger.debug("Importable: %d items, %d modules expanded", len(paths), len(expanded))
    return paths


def resolve_importable(graph: ItemGraph) -> set[GlobalId]:
    """Return every item reachable from the target root through public edges."""
    return set(public_paths(graph))


def entry_points(graph: ItemGraph) -> list[EntryPoint]:
    """Return the public items of the target package in traversal order.

    Items a dependency defines but the target re-exports publicly are part
    of the target's public namespace and count as entry points too.
    """
    entries: list[EntryPoint] = []
    for gid, path in public_paths(graph).items():
        item = graph.items.get(gid)
        if item is None or item.kind == "module" or gid.is_placeholder:
            continue
        entries.append(EntryPoint(gid=gid, path=path))
    return entries
