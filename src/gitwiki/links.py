"""Inline page references: ``[[Target]]`` and ``[[Target|Label]]``.

Known targets become links to the page; unknown targets become the label
followed by a "?" link to the page's edit form.

Rendering a page goes through three steps: references in the raw text are
swapped for opaque placeholders, the text is formatted, and each placeholder
is replaced by its link. The formatter therefore never sees (or produces)
reference syntax.
"""

from __future__ import annotations

import html as _html
import re
import uuid
from collections.abc import Callable, Collection
from dataclasses import dataclass
from urllib.parse import quote

REFERENCE_RE = re.compile(r"\[\[([\w0-9A-Za-z -]+)[|]?([^\]]*)\]\]")

# Placeholders are lowercase letters only so no formatter rule (caps spans,
# dimension signs, emphasis) can rewrite them.
_DIGITS_TO_LETTERS = str.maketrans("0123456789", "ghijklmnop")


@dataclass(frozen=True)
class Reference:
    """A parsed ``[[Target|Label]]`` reference."""

    target: str
    label: str

    @classmethod
    def from_match(cls, match: re.Match) -> Reference:
        target = match.group(1).strip()
        label = match.group(2).strip()
        return cls(target=target, label=label or target)

    @property
    def link_name(self) -> str:
        """The page name this reference points at."""
        return self.target.replace(" ", "_")


def link_html(ref: Reference, known_names: Collection[str]) -> str:
    """HTML for one reference, given the names of existing pages."""
    href = quote(ref.link_name)
    if ref.link_name in known_names:
        return f'<a href="/{href}">{ref.label}</a>'
    return f'<span class="missing">{ref.label}<a href="/e/{href}">?</a></span>'


def resolve_links(html: str, known_names: Collection[str]) -> str:
    """Rewrite every reference in ``html``. Malformed references are left alone."""

    def _replace(match: re.Match) -> str:
        ref = Reference.from_match(match)
        if not ref.target:
            return match.group(0)
        return link_html(ref, known_names)

    return REFERENCE_RE.sub(_replace, html)


def shield_references(text: str) -> tuple[str, dict[str, Reference]]:
    """Replace references in raw text with placeholders.

    Returns the shielded text and a placeholder → Reference map. Labels are
    HTML-escaped here since they come from raw text, not formatter output.
    """
    nonce = uuid.uuid4().hex.translate(_DIGITS_TO_LETTERS)
    refs: dict[str, Reference] = {}

    def _replace(match: re.Match) -> str:
        ref = Reference.from_match(match)
        if not ref.target:
            return match.group(0)
        token = f"wikiref{nonce}{str(len(refs)).translate(_DIGITS_TO_LETTERS)}q"
        refs[token] = Reference(target=ref.target, label=_html.escape(ref.label))
        return token

    return REFERENCE_RE.sub(_replace, text), refs


def render_document(
    raw: str,
    known_names: Collection[str],
    formatter: Callable[[str], str],
) -> str:
    """Format ``raw`` and turn its references into links."""
    shielded, refs = shield_references(raw)
    html = formatter(shielded)
    for token, ref in refs.items():
        html = html.replace(token, link_html(ref, known_names))
    return html
