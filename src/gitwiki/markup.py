"""Textile → HTML formatter for page bodies."""

from __future__ import annotations

import textile


def render_markup(text: str) -> str:
    """Format Textile markup as HTML. Has no side effects."""
    if not text.strip():
        return ""
    return textile.textile(text)
