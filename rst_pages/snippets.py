"""Index snippet documents and render them as embedded cards.

Example
-------
>>> from rst_pages.frontmatter import ContentMetadata, ContentType
>>> from rst_pages.compiler import Document
>>> meta = ContentMetadata(id="uncertainty-principle", title="Uncertainty",
...                        content_type=ContentType.SNIPPET)
>>> index = SnippetIndex([Document(metadata=meta, html="<p>dx dp</p>")])
>>> index.lookup("uncertainty_principle").metadata.title
'Uncertainty'
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import re
import typing as typ
from html import escape
from pathlib import PurePosixPath

from .config import SnippetCardConfig
from .slugify import build_url, normalize_reference

if typ.TYPE_CHECKING:
    from .compiler import Document

logger = logging.getLogger(__name__)

SCOPED_ID_PATTERN = re.compile(r'(?<![\w-])id="([^"]+)"')


def reference_keys(reference: str) -> list[str]:
    """Return the spellings a snippet reference is looked up under.

    >>> reference_keys("Fourier_Basics")
    ['Fourier_Basics', 'Fourier-Basics', 'fourier-basics']
    """
    text = reference.strip()
    keys = [text, text.replace("_", "-"), text.replace("-", "_"), normalize_reference(text)]
    return list(dict.fromkeys(key for key in keys if key))


class SnippetIndex:
    """Read-only lookup from snippet references to compiled documents.

    Exact and hyphen/underscore-normalised ids are answered from a dict; only
    misses fall back to a linear scan that matches whole hyphen-separated
    trailing words of an id or URL stem, so ``basics`` finds
    ``fourier-basics`` but ``asics`` and ``not-a-demo`` find nothing.
    """

    def __init__(self, documents: cabc.Iterable[Document] = ()) -> None:
        self._by_key: dict[str, Document] = {}
        self._documents: list[Document] = []
        for document in documents:
            self.add(document)

    def add(self, document: Document) -> None:
        self._documents.append(document)
        for key in reference_keys(document.metadata.id):
            self._by_key.setdefault(key, document)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, reference: object) -> bool:
        return isinstance(reference, str) and self.lookup(reference) is not None

    def __iter__(self) -> cabc.Iterator[Document]:
        return iter(self._documents)

    def lookup(self, reference: str) -> Document | None:
        """Return the snippet ``reference`` names, or None."""
        for key in reference_keys(reference):
            if (document := self._by_key.get(key)) is not None:
                return document
        return self._fuzzy(normalize_reference(reference))

    def _fuzzy(self, wanted: str) -> Document | None:
        if not wanted:
            return None
        for document in self._documents:
            doc_id = normalize_reference(document.metadata.id)
            stem = normalize_reference(PurePosixPath(document.metadata.url).stem)
            if _word_suffix(doc_id, wanted) or _word_suffix(stem, wanted):
                logger.debug("Matched snippet reference %r to %r", wanted, document.metadata.id)
                return document
        return None


def _word_suffix(name: str, wanted: str) -> bool:
    return name == wanted or name.endswith(f"-{wanted}")


class EmbeddedSnippetCardRenderer:
    """Render a compiled snippet as a card embedded in another page."""

    def __init__(self, config: SnippetCardConfig | None = None, *, base_url: str = "") -> None:
        self.config = config or SnippetCardConfig()
        self.base_url = base_url

    def render(self, snippet: Document, *, anchor: str, body: str | None = None) -> str:
        """Return the card HTML.

        Parameters
        ----------
        snippet : Document
            The resolved snippet.
        anchor : str
            Element id of the card; the outline links to it.
        body : str, optional
            Snippet HTML to embed, when it differs from ``snippet.html``
            (for example after its own cards were resolved).
        """
        meta = snippet.metadata
        classes = "embedded-snippet-card"
        if self.config.collapsible:
            classes += " collapsible"
        parts = [
            f'<div class="{classes}" id="{escape(anchor, quote=True)}" '
            f'data-snippet-id="{escape(meta.id, quote=True)}">'
        ]
        if self.config.show_metadata:
            parts.append('<div class="embedded-snippet-header">')
            parts.append(f'<h4 class="embedded-snippet-title">{escape(meta.title)}</h4>')
            if meta.tags:
                tags = "".join(
                    f'<span class="embedded-snippet-tag">{escape(tag)}</span>' for tag in meta.tags
                )
                parts.append(f'<div class="embedded-snippet-tags">{tags}</div>')
            if meta.date:
                parts.append(f'<span class="embedded-snippet-date">{escape(meta.date)}</span>')
            parts.append("</div>")

        content = scope_ids(snippet.html if body is None else body, anchor)
        if self.config.collapsible:
            parts.append(
                '<details class="embedded-snippet-details" open>'
                "<summary>Show snippet</summary>"
            )
        parts.append(f'<div class="embedded-snippet-content">\n{content}\n</div>')
        if self.config.collapsible:
            parts.append("</details>")

        if self.config.show_footer:
            url = escape(build_url(self.base_url, meta.url), quote=True)
            parts.append(
                '<div class="embedded-snippet-footer">'
                f'<a href="{url}" class="embedded-snippet-link">View full snippet &rarr;</a>'
                "</div>"
            )
        parts.append("</div>")
        return "\n".join(parts)

    def render_error(self, reference: str, *, anchor: str | None = None) -> str:
        """Return the card shown for a reference nothing resolves."""
        safe = escape(reference)
        id_attr = f' id="{escape(anchor, quote=True)}"' if anchor else ""
        return (
            f'<div class="embedded-snippet-card error"{id_attr} '
            f'data-snippet-id="{escape(reference, quote=True)}">\n'
            '<div class="embedded-snippet-header">\n'
            f'<h4 class="embedded-snippet-title">&#9888;&#65039; Snippet Not Found: {safe}</h4>\n'
            "</div>\n"
            '<div class="embedded-snippet-content">\n'
            "<p>The referenced snippet could not be found. Please check the snippet ID.</p>\n"
            "</div>\n"
            "</div>"
        )


def scope_ids(html: str, prefix: str) -> str:
    """Prefix every ``id`` in ``html`` so it cannot clash with the host page.

    >>> scope_ids('<h2 id="setup">Setup</h2>', "snippet-demo")
    '<h2 id="snippet-demo-setup">Setup</h2>'
    """
    return SCOPED_ID_PATTERN.sub(lambda m: f'id="{prefix}-{m.group(1)}"', html)


__all__ = ["EmbeddedSnippetCardRenderer", "SnippetIndex", "reference_keys", "scope_ids"]
