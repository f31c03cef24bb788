"""The table-of-contents tree and its HTML rendering."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ
from html import escape


@dc.dataclass(slots=True)
class TocEntry:
    """One heading (or embedded snippet) in a document outline.

    Attributes
    ----------
    level : int
        Heading level, 1 to 6.
    title : str
        Plain-text title.
    anchor : str
        Fragment identifier the entry links to.
    children : list[TocEntry]
        Nested entries in document order.
    """

    level: int
    title: str
    anchor: str
    children: list[TocEntry] = dc.field(default_factory=list)

    def to_dict(self) -> dict[str, typ.Any]:
        return {
            "level": self.level,
            "title": self.title,
            "anchor": self.anchor,
            "children": [child.to_dict() for child in self.children],
        }

    def walk(self) -> cabc.Iterator[TocEntry]:
        """Yield this entry and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


def nest(entries: cabc.Iterable[TocEntry]) -> list[TocEntry]:
    """Arrange a flat, document-ordered sequence of entries into a tree.

    Each entry becomes a child of the closest preceding entry with a smaller
    level. A stack holds the open entry at every depth, so an ``h4`` after an
    ``h3`` after an ``h2`` nests two levels deep.

    >>> tree = nest([TocEntry(2, "A", "a"), TocEntry(3, "B", "b"), TocEntry(2, "C", "c")])
    >>> [(e.title, [c.title for c in e.children]) for e in tree]
    [('A', ['B']), ('C', [])]
    """
    roots: list[TocEntry] = []
    stack: list[TocEntry] = []
    for entry in entries:
        while stack and stack[-1].level >= entry.level:
            stack.pop()
        if stack:
            stack[-1].children.append(entry)
        else:
            roots.append(entry)
        stack.append(entry)
    return roots


def render_toc_html(entries: cabc.Sequence[TocEntry]) -> str:
    """Render a TOC tree as nested ``toc-list``/``toc-sublist`` lists.

    Returns an empty string when there are no entries.
    """
    if not entries:
        return ""
    return _render_list(entries, "toc-list")


def _render_list(entries: cabc.Sequence[TocEntry], css_class: str) -> str:
    parts = [f'<ul class="{css_class}">']
    for entry in entries:
        parts.append(f'<li class="toc-item toc-level-{entry.level}">')
        parts.append(
            f'<a href="#{escape(entry.anchor, quote=True)}" class="toc-link">'
            f"{escape(entry.title)}</a>"
        )
        if entry.children:
            parts.append(_render_list(entry.children, "toc-sublist"))
        parts.append("</li>")
    parts.append("</ul>")
    return "\n".join(parts)


__all__ = ["TocEntry", "nest", "render_toc_html"]
