"""Tables of contents for compiled documents.

Three strategies share one :class:`TocEntry` tree, one nesting helper, and one
slug function:

* :func:`scan_headings` reads headings back out of compiled HTML;
* :func:`generate_article_toc` walks article and project sources so snippet
  cards can be placed before they are resolved;
* :func:`render_book_toc` lists book chapters in ``toctree`` order.

:func:`outline_for` picks between the first two by content type; books are
assembled by the site builder once every chapter is compiled.
"""

from __future__ import annotations

from ..frontmatter import ContentType
from .article import (
    SnippetTitle,
    default_snippet_title,
    generate_article_toc,
    snippet_anchor,
)
from .book import BookChapter, chapter_headers, render_book_toc, toctree_entries
from .html_scan import generate_with_snippets, is_excluded, scan_headings
from .models import TocEntry, nest, render_toc_html

SOURCE_OUTLINED_TYPES = frozenset({ContentType.ARTICLE, ContentType.PROJECT})


def outline_for(
    content_type: ContentType,
    *,
    source: str,
    html: str,
    snippet_title: SnippetTitle = default_snippet_title,
) -> list[TocEntry]:
    """Return the outline for a document of ``content_type``.

    Articles and projects are outlined from ``source`` so snippet cards keep
    their place; every other type is outlined from its compiled ``html``.
    """
    if content_type in SOURCE_OUTLINED_TYPES:
        return generate_article_toc(source, snippet_title=snippet_title)
    return generate_with_snippets(html)


__all__ = [
    "SOURCE_OUTLINED_TYPES",
    "BookChapter",
    "TocEntry",
    "chapter_headers",
    "default_snippet_title",
    "generate_article_toc",
    "generate_with_snippets",
    "is_excluded",
    "nest",
    "outline_for",
    "render_book_toc",
    "render_toc_html",
    "scan_headings",
    "snippet_anchor",
    "toctree_entries",
]
