"""Find types a Rust crate's public API exposes but does not export."""

from __future__ import annotations

from unexported.model import ConfigurationError, Finding, Report
from unexported.pipeline import analyze, run

__all__ = ["ConfigurationError", "Finding", "Report", "analyze", "run"]
