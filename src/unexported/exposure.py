"""Signature-exposure reachability: which items the public API mentions."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable

from unexported.model import EntryPoint, Exposure, GlobalId, ItemGraph

logger = logging.getLogger(__name__)


def resolve_visible(
    graph: ItemGraph, entries: Iterable[EntryPoint]
) -> dict[GlobalId, Exposure]:
    """Breadth-first walk of signature references from *entries*.

    Entry points are visited in the order given and the first chain to reach
    an item wins, so the reported chain is a shortest one and stable for a
    given graph. Placeholders are reached but lead nowhere.
    """
    visible: dict[GlobalId, Exposure] = {}
    queue: deque[GlobalId] = deque()

    for entry in entries:
        if entry.gid in visible:
            continue
        visible[entry.gid] = Exposure(entry=entry)
        queue.append(entry.gid)

    while queue:
        gid = queue.popleft()
        exposure = visible[gid]
        for ref in graph.references.get(gid, ()):
            if ref.target in visible:
                continue
            visible[ref.target] = Exposure(
                entry=exposure.entry,
                hops=exposure.hops + ((ref.label, ref.target),),
            )
            queue.append(ref.target)

    logger.debug("Visible: %d items", len(visible))
    return visible
