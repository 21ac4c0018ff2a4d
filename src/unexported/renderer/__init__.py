"""Report renderers."""

from __future__ import annotations

from unexported.renderer.text import render, render_json, render_text

__all__ = ["render", "render_json", "render_text"]
