"""Build outlines by scanning compiled HTML for heading elements.

Anchors come from the heading's ``id`` when it has one and are otherwise
re-derived from the heading text with :func:`heading_anchor`, the same
function the markup converter uses to write those ids.
"""

from __future__ import annotations

import re

from .._constants import SNIPPET_ANCHOR_PREFIX, SNIPPET_TOC_PREFIX, TOC_EXCLUDED_TITLES
from ..markup import html_text
from ..slugify import heading_anchor
from .models import TocEntry, nest

HEADING_PATTERN = re.compile(
    r"<h(?P<level>[1-6])(?P<attrs>[^>]*)>(?P<body>.*?)</h(?P=level)>", re.DOTALL
)
ID_PATTERN = re.compile(r'(?<![\w-])id="(?P<id>[^"]+)"')
CARD_PATTERN = re.compile(
    r'<div class="embedded-snippet-card[^"]*"(?: id="(?P<card_id>[^"]*)")?[^>]*>'
    r'(?:(?!<div class="embedded-snippet-card).)*?'
    r'<h4 class="embedded-snippet-title">(?P<card_title>.*?)</h4>',
    re.DOTALL,
)
CARD_TITLE_CLASS = "embedded-snippet-title"
TOP_SNIPPET_LEVEL = 2


def is_excluded(title: str) -> bool:
    """Return True for navigation headings that never appear in a TOC."""
    return not title or any(fragment in title for fragment in TOC_EXCLUDED_TITLES)


def _entry(match: re.Match[str]) -> TocEntry | None:
    attrs = match.group("attrs")
    if CARD_TITLE_CLASS in attrs:
        return None
    title = html_text(match.group("body"))
    if is_excluded(title):
        return None
    explicit = ID_PATTERN.search(attrs)
    anchor = explicit.group("id") if explicit else heading_anchor(title)
    return TocEntry(int(match.group("level")), title, anchor)


def scan_headings(html: str) -> list[TocEntry]:
    """Return the nested outline of every heading in ``html``.

    >>> [e.anchor for e in scan_headings('<h2 id="x">C++</h2><h3>Node.js</h3>')[0].walk()]
    ['x', 'nodejs']
    """
    entries = (_entry(match) for match in HEADING_PATTERN.finditer(html))
    return nest(entry for entry in entries if entry is not None)


def generate_with_snippets(html: str) -> list[TocEntry]:
    """Return the outline of ``html`` with rendered snippet cards spliced in.

    Each card becomes a ``Snippet: <title>`` child of the heading before it,
    or a top-level entry when no heading precedes it. Headings inside cards
    carry ``snippet-``-scoped ids and are left out.
    """
    if "embedded-snippet-card" not in html:
        return scan_headings(html)
    events: list[tuple[int, TocEntry | None, bool]] = []
    for match in HEADING_PATTERN.finditer(html):
        entry = _entry(match)
        if entry is None or entry.anchor.startswith(SNIPPET_ANCHOR_PREFIX):
            continue
        events.append((match.start(), entry, False))
    for match in CARD_PATTERN.finditer(html):
        title = html_text(match.group("card_title"))
        card_id = match.group("card_id")
        if not card_id:
            continue
        events.append((match.start(), TocEntry(0, f"{SNIPPET_TOC_PREFIX}{title}", card_id), True))
    events.sort(key=lambda event: event[0])

    flat: list[TocEntry] = []
    last_heading: TocEntry | None = None
    for _, entry, is_card in events:
        if entry is None:
            continue
        if not is_card:
            last_heading = entry
            flat.append(entry)
            continue
        if last_heading is None:
            entry.level = TOP_SNIPPET_LEVEL
            flat.append(entry)
        else:
            entry.level = min(last_heading.level + 1, 6)
            last_heading.children.append(entry)
    return nest(flat)


__all__ = ["generate_with_snippets", "is_excluded", "scan_headings"]
