"""Outline articles and projects from their source, snippet cards included.

Snippet cards only become HTML after cross-document resolution, so their
place in the outline is read from the directive stream instead of the
compiled page. A header stack keeps the innermost open heading per level; a
``snippet-card`` directive waits in a pending slot until the next text line
(or heading) arrives and then attaches as a child of the innermost heading,
or as a top-level entry when no heading precedes it.

Example
-------
>>> source = "Intro\\n=====\\n\\n.. snippet-card:: uncertainty-principle\\n\\nText"
>>> entry = generate_article_toc(source)[0]
>>> entry.title, [(c.title, c.anchor) for c in entry.children]
('Intro', [('Snippet: Uncertainty Principle', 'snippet-uncertainty-principle')])
"""

from __future__ import annotations

import collections.abc as cabc

from .._constants import HEADING_LEVELS, SNIPPET_ANCHOR_PREFIX, SNIPPET_TOC_PREFIX
from ..directives.scanner import DirectiveInvocation, SourceLine, scan, tokenize
from ..fragments import FragmentStash
from ..markup import adornment_char, html_text, is_title_candidate, render_inline
from ..math import MathRenderer
from ..slugify import heading_anchor, normalize_reference
from .html_scan import TOP_SNIPPET_LEVEL, is_excluded
from .models import TocEntry

SnippetTitle = cabc.Callable[[str], str]

_TITLE_MATH = MathRenderer()


def default_snippet_title(reference: str) -> str:
    """Title-case a kebab- or snake-case reference.

    >>> default_snippet_title("fourier_transform-basics")
    'Fourier Transform Basics'
    """
    words = reference.replace("_", "-").split("-")
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def snippet_anchor(reference: str) -> str:
    """Return the element id of the card rendered for ``reference``."""
    return f"{SNIPPET_ANCHOR_PREFIX}{normalize_reference(reference)}"


def heading_title(raw_title: str) -> str:
    """Return the text a heading's anchor is derived from.

    Math spans are parked the way the compiler parks them, so they drop out
    of the title exactly as they drop out of the rendered heading's id.

    >>> heading_title("Energy $E=mc^2$ and *mass*")
    'Energy and mass'
    """
    stash = FragmentStash()
    text = _TITLE_MATH.process(raw_title.strip(), inline_wrap=stash.inline)
    return html_text(render_inline(text))


class _OutlineBuilder:
    def __init__(self, snippet_title: SnippetTitle) -> None:
        self.snippet_title = snippet_title
        self.roots: list[TocEntry] = []
        self.stack: list[TocEntry] = []
        self.pending: str | None = None

    def heading(self, level: int, raw_title: str) -> None:
        self.flush()
        title = heading_title(raw_title)
        if is_excluded(title):
            return
        entry = TocEntry(level, title, heading_anchor(title))
        while self.stack and self.stack[-1].level >= level:
            self.stack.pop()
        (self.stack[-1].children if self.stack else self.roots).append(entry)
        self.stack.append(entry)

    def snippet(self, reference: str) -> None:
        self.flush()
        self.pending = reference

    def flush(self) -> None:
        if self.pending is None:
            return
        reference, self.pending = self.pending, None
        parent = self.stack[-1] if self.stack else None
        level = min(parent.level + 1, 6) if parent else TOP_SNIPPET_LEVEL
        entry = TocEntry(
            level, f"{SNIPPET_TOC_PREFIX}{self.snippet_title(reference)}", snippet_anchor(reference)
        )
        (parent.children if parent else self.roots).append(entry)


def _heading_at(lines: cabc.Sequence[SourceLine | None], index: int) -> tuple[int, str, int] | None:
    """Return ``(level, title, lines consumed)`` when a heading starts at ``index``."""

    def text(offset: int) -> str:
        position = index + offset
        line = lines[position] if position < len(lines) else None
        return line.text if line is not None else ""

    current, nxt, after = text(0), text(1), text(2)
    char = adornment_char(current)
    if (
        char is not None
        and is_title_candidate(nxt)
        and adornment_char(after) == char
        and len(after.rstrip()) >= len(nxt.strip())
    ):
        return HEADING_LEVELS[char], nxt, 3
    underline = adornment_char(nxt)
    if (
        underline is not None
        and is_title_candidate(current)
        and not current[0].isspace()
        and len(nxt.rstrip()) >= len(current.rstrip())
    ):
        return HEADING_LEVELS[underline], current, 2
    return None


def generate_article_toc(
    source: str, *, snippet_title: SnippetTitle = default_snippet_title
) -> list[TocEntry]:
    """Return the outline of an article body with snippet cards interleaved.

    Parameters
    ----------
    source : str
        Document body (frontmatter removed), before directive expansion.
    snippet_title : Callable[[str], str], optional
        Maps a snippet reference to its display title. The resolver passes a
        lookup into the snippet index; by default the reference is title-cased.

    Returns
    -------
    list[TocEntry]
        Nested outline.
    """
    builder = _OutlineBuilder(snippet_title)
    # Directives occupy one slot so a heading cannot straddle one.
    lines: list[SourceLine | None] = []
    directives: dict[int, DirectiveInvocation] = {}
    for event in scan(tokenize(source)):
        if isinstance(event, DirectiveInvocation):
            directives[len(lines)] = event
            lines.append(None)
        else:
            lines.append(event)

    index = 0
    while index < len(lines):
        line = lines[index]
        if line is None:
            directive = directives[index]
            if directive.name == "snippet-card" and directive.argument:
                builder.snippet(directive.argument)
            index += 1
            continue
        if line.is_blank:
            index += 1
            continue
        heading = _heading_at(lines, index)
        if heading is not None:
            level, title, consumed = heading
            builder.heading(level, title)
            index += consumed
            continue
        if adornment_char(line.text) is None:
            builder.flush()
        index += 1
    builder.flush()
    return builder.roots


__all__ = ["default_snippet_title", "generate_article_toc", "heading_title", "snippet_anchor"]
