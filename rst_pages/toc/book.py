"""Book navigation built from the ``toctree`` in a book's ``index.rst``.

A book is a directory under ``books/``. Its index lists chapter files (without
the ``.rst`` suffix) in a ``toctree`` directive; the navigation shows those
chapters in that order, each with a collapsible list of its own headings.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
from html import escape

from ..directives.scanner import OPTION_PATTERN, DirectiveInvocation, scan, tokenize
from ..slugify import build_url
from .models import TocEntry

EXPLICIT_TITLE_PATTERN = re.compile(r"^(?P<title>.*?)\s*<(?P<target>[^>]+)>$")
CHEVRON = (
    '<svg xmlns="http://www.w3.org/2000/svg" fill="none" viewBox="0 0 24 24" '
    'stroke="currentColor"><path stroke-linecap="round" stroke-linejoin="round" '
    'stroke-width="2" d="M19 9l-7 7-7-7" /></svg>'
)


@dc.dataclass(slots=True)
class BookChapter:
    """A chapter as listed in book navigation.

    Attributes
    ----------
    slug : str
        Chapter file stem, as written in the toctree.
    title : str
        Chapter title.
    url : str
        Site-relative page URL.
    order : int
        Zero-based position in the toctree.
    headers : list[TocEntry]
        The chapter's heading tree without its title heading.
    """

    slug: str
    title: str
    url: str
    order: int = 0
    headers: list[TocEntry] = dc.field(default_factory=list)


def toctree_entries(source: str) -> list[str]:
    """Return chapter references from every ``toctree`` in ``source``.

    Option lines are skipped; ``Title <target>`` entries yield ``target``;
    a trailing ``.rst`` is dropped.

    >>> toctree_entries(".. toctree::\\n   :maxdepth: 2\\n\\n   intro\\n   Setup <setup.rst>\\n")
    ['intro', 'setup']
    """
    entries: list[str] = []
    for event in scan(tokenize(source)):
        if not isinstance(event, DirectiveInvocation) or event.name != "toctree":
            continue
        for raw in event.body.splitlines():
            line = raw.strip()
            if not line or OPTION_PATTERN.match(line):
                continue
            explicit = EXPLICIT_TITLE_PATTERN.match(line)
            target = explicit.group("target").strip() if explicit else line.split()[0]
            entries.append(target.removesuffix(".rst"))
    return entries


def chapter_headers(toc: cabc.Sequence[TocEntry], title: str) -> list[TocEntry]:
    """Drop the heading that repeats the chapter title, promoting its children."""
    headers: list[TocEntry] = []
    for entry in toc:
        if entry.title == title:
            headers.extend(entry.children)
        else:
            headers.append(entry)
    return headers


def render_book_toc(chapters: cabc.Sequence[BookChapter], *, base_url: str = "") -> str:
    """Render chapters as a collapsible ``toc-tree``.

    Returns an empty string when the book has no chapters.
    """
    if not chapters:
        return ""
    parts = ['<div class="toc-tree">']
    for chapter in chapters:
        slug = escape(chapter.slug, quote=True)
        title = escape(chapter.title)
        parts.append(f'<div class="toc-item" data-chapter="{slug}">')
        parts.append('<div class="toc-item-header">')
        parts.append(
            f'<button class="toc-toggle-btn" data-target="{slug}-headers" '
            f'aria-expanded="false" aria-label="Toggle {escape(chapter.title, quote=True)} '
            f'headers">{CHEVRON}</button>'
        )
        parts.append(
            f'<a href="{escape(build_url(base_url, chapter.url), quote=True)}" '
            f'class="toc-chapter-link">{title}</a>'
        )
        parts.append("</div>")
        if chapter.headers:
            parts.append(f'<div class="toc-headers" id="{slug}-headers">')
            parts.append(_render_headers(chapter.headers, chapter, base_url))
            parts.append("</div>")
        parts.append("</div>")
    parts.append("</div>")
    return "\n".join(parts)


def _render_headers(
    headers: cabc.Sequence[TocEntry], chapter: BookChapter, base_url: str
) -> str:
    page = escape(build_url(base_url, chapter.url), quote=True)
    parts = ['<ul class="toc-header-list">']
    for header in headers:
        anchor = escape(header.anchor, quote=True)
        link = f'<a href="{page}#{anchor}" class="toc-header-link">{escape(header.title)}</a>'
        parts.append(f'<li class="toc-header-item toc-level-{header.level}">')
        if header.children:
            target = f"{escape(chapter.slug, quote=True)}-{anchor}-subheaders"
            parts.append('<div class="toc-header-item-header">')
            parts.append(
                f'<button class="toc-toggle-btn" data-target="{target}" aria-expanded="false" '
                f'aria-label="Toggle {escape(header.title, quote=True)} subheaders">'
                f"{CHEVRON}</button>"
            )
            parts.append(link)
            parts.append("</div>")
            parts.append(f'<div class="toc-headers" id="{target}">')
            parts.append(_render_headers(header.children, chapter, base_url))
            parts.append("</div>")
        else:
            parts.append(link)
        parts.append("</li>")
    parts.append("</ul>")
    return "\n".join(parts)


__all__ = ["BookChapter", "chapter_headers", "render_book_toc", "toctree_entries"]
