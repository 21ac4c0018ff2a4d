"""Render a Report for the console, as plain text or JSON."""

from __future__ import annotations

import json
import sys
from typing import TextIO

from unexported.model import Report


def _report_to_dict(report: Report) -> dict:
    return {
        "target": report.target,
        "findings": [
            {
                "id": str(f.gid),
                "kind": f.item.kind,
                "path": "::".join(f.item.path),
                "chain": f.chain,
            }
            for f in report.findings
        ],
        "unresolved": [str(gid) for gid in report.unresolved],
        "load_errors": report.load_errors,
        "warning_count": report.warning_count,
    }


def render_json(report: Report, stream: TextIO) -> None:
    """Write *report* as one JSON document."""
    json.dump(_report_to_dict(report), stream, indent=2)
    stream.write("\n")


def render_text(report: Report, stream: TextIO, err: TextIO | None = None) -> None:
    """Write one finding per line to *stream* and the warning summary to *err*."""
    err = err if err is not None else sys.stderr
    for finding in report.findings:
        stream.write(f"{finding.chain}  ({'::'.join(finding.item.path)})\n")

    if report.load_errors:
        for message in report.load_errors:
            err.write(f"warning: {message}\n")
    if report.unresolved:
        err.write(
            f"warning: {len(report.unresolved)} unresolved references "
            "(missing dependency exports); results may be incomplete\n"
        )
    if not report.findings:
        err.write(f"No unexported public-API items found in {report.target}\n")


def render(
    report: Report,
    output_format: str = "text",
    stream: TextIO | None = None,
    err: TextIO | None = None,
) -> None:
    """Render *report* in *output_format* (``text`` or ``json``)."""
    stream = stream if stream is not None else sys.stdout
    if output_format == "json":
        render_json(report, stream)
    else:
        render_text(report, stream, err)
