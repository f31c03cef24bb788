"""Replace snippet-card placeholders with rendered snippet cards.

This is the cross-document phase of a build: it needs every snippet compiled
first. Misses never fail the build; they render as an error card and are
reported back to the caller.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import html
import logging
import re
import typing as typ

from .frontmatter import ContentType
from .snippets import EmbeddedSnippetCardRenderer, SnippetIndex
from .toc import default_snippet_title, outline_for, snippet_anchor

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .compiler import Document

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(
    r'<div class="embedded-snippet-card" data-snippet="(?P<reference>[^"]+)"></div>'
)


@dc.dataclass(frozen=True, slots=True)
class UnresolvedReference:
    """A snippet reference that matched no snippet."""

    document: Path | None
    reference: str

    def __str__(self) -> str:
        location = self.document if self.document is not None else "<string>"
        return f"{location}: snippet '{self.reference}' not found"


class CrossReferenceResolver:
    """Expand snippet cards in compiled documents.

    Parameters
    ----------
    index : SnippetIndex
        Every compiled snippet of the site.
    renderer : EmbeddedSnippetCardRenderer, optional
        Card renderer; defaults to one with default options.
    """

    def __init__(
        self, index: SnippetIndex, renderer: EmbeddedSnippetCardRenderer | None = None
    ) -> None:
        self.index = index
        self.renderer = renderer or EmbeddedSnippetCardRenderer()

    def snippet_title(self, reference: str) -> str:
        """Return the title of the snippet ``reference`` names."""
        snippet = self.index.lookup(reference)
        return snippet.metadata.title if snippet else default_snippet_title(reference)

    def resolve_html(
        self,
        text: str,
        *,
        document: Path | None = None,
        seen: tuple[str, ...] = (),
        unresolved: list[UnresolvedReference] | None = None,
    ) -> str:
        """Return ``text`` with every placeholder replaced by a card.

        Snippets embedded in snippets are expanded recursively. ``seen`` holds
        the ids on the current path; a snippet that would embed itself gets
        an error card instead.
        """

        def _replace(match: re.Match[str]) -> str:
            reference = html.unescape(match.group("reference"))
            anchor = snippet_anchor(reference)
            snippet = self.index.lookup(reference)
            if snippet is None:
                logger.warning("%s: snippet %r not found", document or "<string>", reference)
                if unresolved is not None:
                    unresolved.append(UnresolvedReference(document, reference))
                return self.renderer.render_error(reference, anchor=anchor)
            if snippet.metadata.id in seen:
                logger.warning(
                    "%s: snippet %r embeds itself; not expanding", document or "<string>", reference
                )
                return self.renderer.render_error(reference, anchor=anchor)
            body = self.resolve_html(
                snippet.html,
                document=snippet.source_path,
                seen=(*seen, snippet.metadata.id),
                unresolved=unresolved,
            )
            return self.renderer.render(snippet, anchor=anchor, body=body)

        return PLACEHOLDER_PATTERN.sub(_replace, text)

    def resolve_document(self, document: Document) -> list[UnresolvedReference]:
        """Resolve one document in place and rebuild its outline."""
        unresolved: list[UnresolvedReference] = []
        if PLACEHOLDER_PATTERN.search(document.html) is None:
            return unresolved
        is_snippet = document.metadata.content_type is ContentType.SNIPPET
        seen = (document.metadata.id,) if is_snippet else ()
        document.html = self.resolve_html(
            document.html, document=document.source_path, seen=seen, unresolved=unresolved
        )
        document.set_toc(
            outline_for(
                document.metadata.content_type,
                source=document.raw_body,
                html=document.html,
                snippet_title=self.snippet_title,
            )
        )
        document.refresh_math()
        return unresolved

    def resolve(self, documents: cabc.Iterable[Document]) -> list[UnresolvedReference]:
        """Resolve every document; return the references nothing matched."""
        unresolved: list[UnresolvedReference] = []
        for document in documents:
            unresolved.extend(self.resolve_document(document))
        return unresolved


__all__ = ["PLACEHOLDER_PATTERN", "CrossReferenceResolver", "UnresolvedReference"]
