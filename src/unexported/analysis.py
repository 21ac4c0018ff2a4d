"""Post-resolution analysis: visible items that cannot be imported."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from unexported.model import Exposure, Finding, GlobalId, ItemGraph, Report

logger = logging.getLogger(__name__)


def render_chain(graph: ItemGraph, exposure: Exposure) -> str:
    """Render ``entry::label::Hop::label::Item`` for an exposure chain."""
    parts = list(exposure.entry.path)
    for label, gid in exposure.hops:
        parts.extend(label)
        parts.append(graph.items[gid].name)
    return "::".join(parts)


def find_unexported(
    graph: ItemGraph,
    visible: Mapping[GlobalId, Exposure],
    importable: set[GlobalId],
    *,
    allow: Iterable[str] = (),
) -> Report:
    """Return visible, non-importable items as findings sorted by chain.

    Placeholders never become findings; they mean an export was missing and
    are listed in ``Report.unresolved`` instead, along with placeholders
    the target re-exports publicly. *allow* holds full paths
    (``crate::module::Name``) or bare names to leave out.
    """
    allowed = set(allow)
    report = Report(target=graph.target)
    findings: dict[GlobalId, Finding] = {}

    for gid, exposure in visible.items():
        if gid.is_placeholder:
            report.unresolved.append(gid)
            continue
        if gid in importable or gid in findings:
            continue
        item = graph.items[gid]
        if item.name in allowed or "::".join(item.path) in allowed:
            logger.debug("Allowed: %s", "::".join(item.path))
            continue
        findings[gid] = Finding(item=item, chain=render_chain(graph, exposure))

    report.findings = sorted(findings.values(), key=lambda f: (f.chain, str(f.gid)))
    # Re-exports of missing items hide whole subtrees of the API.
    report.unresolved = sorted(set(report.unresolved) | (graph.unresolved & importable))
    logger.debug(
        "%d findings, %d unresolved references reached",
        len(report.findings),
        len(report.unresolved),
    )
    return report
