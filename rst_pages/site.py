"""Build a whole site from a content directory.

A build runs in two phases. Every document is compiled on its own first,
optionally on a thread pool. Cross-document work happens only after that:
snippet cards are resolved against the full snippet index and book
navigation is assembled from each book's ``toctree``. The pages, the code
stylesheet, and a JSON manifest are then written under the output directory.

Example
-------
>>> from pathlib import Path
>>> from rst_pages.config import load_site_config
>>> from rst_pages.site import SiteBuilder
>>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> SiteBuilder(config).build().written  # doctest: +SKIP
[PosixPath('_site/articles/intro.html'), ...]
"""

from __future__ import annotations

import collections.abc as cabc
import concurrent.futures as cf
import dataclasses as dc
import datetime as dt
import json
import logging
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ._constants import BOOK_INDEX_STEM, CODE_STYLESHEET_PATH, MANIFEST_FILENAME
from .compiler import CompileContext, Document, RstCompiler
from .frontmatter import ContentType, book_location
from .resolver import CrossReferenceResolver, UnresolvedReference
from .slugify import build_url
from .snippets import EmbeddedSnippetCardRenderer, SnippetIndex
from .toc import BookChapter, chapter_headers, render_book_toc, toctree_entries

if typ.TYPE_CHECKING:
    from .config import SiteConfig

logger = logging.getLogger(__name__)

CONTENT_DIRECTORIES: tuple[tuple[str, ContentType], ...] = (
    ("articles", ContentType.ARTICLE),
    ("snippets", ContentType.SNIPPET),
    ("books", ContentType.BOOK),
    ("projects", ContentType.PROJECT),
)

@dc.dataclass(slots=True)
class BuildResult:
    """Outcome of :meth:`SiteBuilder.build`.

    Attributes
    ----------
    documents : list[Document]
        Every compiled document, in discovery order.
    written : list[Path]
        Files written, pages first, then the stylesheet and the manifest.
    unresolved : list[UnresolvedReference]
        Snippet references that matched nothing; rendered as error cards.
    """

    documents: list[Document] = dc.field(default_factory=list)
    written: list[Path] = dc.field(default_factory=list)
    unresolved: list[UnresolvedReference] = dc.field(default_factory=list)


def discover_sources(content_dir: Path) -> list[tuple[Path, ContentType]]:
    """Return every ``.rst`` source under the known content directories.

    The directory decides the content type. Files whose name starts with an
    underscore are partials meant for ``include`` and are skipped.
    """
    sources: list[tuple[Path, ContentType]] = []
    for dirname, content_type in CONTENT_DIRECTORIES:
        root = content_dir / dirname
        if not root.is_dir():
            continue
        for path in sorted(root.rglob("*.rst")):
            if path.name.startswith("_"):
                continue
            sources.append((path, content_type))
    return sources


class SiteBuilder:
    """Compile, resolve, and write every document of a site."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        compiler: RstCompiler | None = None,
        templates_dir: Path | None = None,
        output_dir: Path | None = None,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        config : SiteConfig
            Parsed site configuration.
        compiler : RstCompiler, optional
            Compiler to use; defaults to one built from ``config``.
        templates_dir : Path, optional
            Directory containing ``page.jinja``; defaults to the package
            templates.
        output_dir : Path, optional
            Override for ``config.output_dir``.
        """
        self.config = config
        self.compiler = compiler or RstCompiler(
            CompileContext.create(
                code=config.code,
                strict=config.strict_directives,
                include_base=config.content_dir,
            )
        )
        self.output_dir = output_dir or config.output_dir
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("page.jinja")

    def build(self) -> BuildResult:
        """Run both phases and write the site.

        Raises
        ------
        CompileError
            When any document fails to compile. Nothing is written in that
            case.
        """
        sources = discover_sources(self.config.content_dir)
        documents = self.compile_all(sources)
        result = BuildResult(documents=documents)
        result.unresolved = self.resolve(documents)
        self.assemble_books(documents)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        generated_at = dt.datetime.now(dt.UTC)
        for document in documents:
            result.written.append(self.write_page(document, generated_at=generated_at))
        result.written.append(self.write_stylesheet())
        result.written.append(self.write_manifest(documents))
        logger.info(
            "Built %d documents into %s (%d unresolved snippet references)",
            len(documents),
            self.output_dir,
            len(result.unresolved),
        )
        return result

    def compile_all(self, sources: cabc.Sequence[tuple[Path, ContentType]]) -> list[Document]:
        """Compile ``sources``, using ``config.jobs`` worker threads."""
        if self.config.jobs > 1 and len(sources) > 1:
            with cf.ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
                documents = list(pool.map(self._compile_source, sources))
        else:
            documents = [self._compile_source(source) for source in sources]
        logger.info("Compiled %d documents", len(documents))
        return documents

    def _compile_source(self, source: tuple[Path, ContentType]) -> Document:
        path, content_type = source
        return self.compiler.compile_file(path, content_type=content_type)

    def resolve(self, documents: cabc.Sequence[Document]) -> list[UnresolvedReference]:
        """Expand snippet cards once every document is compiled."""
        index = SnippetIndex(
            document
            for document in documents
            if document.metadata.content_type is ContentType.SNIPPET
        )
        renderer = EmbeddedSnippetCardRenderer(self.config.cards, base_url=self.config.base_url)
        return CrossReferenceResolver(index, renderer).resolve(documents)

    def assemble_books(self, documents: cabc.Sequence[Document]) -> None:
        """Give every book page the navigation built from its index toctree.

        Pages are grouped by the directory directly below ``books``, so a
        chapter in a sub-directory still belongs to its book and is addressed
        by its relative path in the toctree.
        """
        books: dict[str, dict[str, Document]] = {}
        for document in documents:
            if document.metadata.content_type is not ContentType.BOOK:
                continue
            location = book_location(document.source_path)
            if location is not None:
                book, slug = location
                books.setdefault(book, {})[slug] = document

        for book, by_slug in books.items():
            pages = list(by_slug.values())
            index = by_slug.pop(BOOK_INDEX_STEM, None)
            if index is None:
                logger.warning(
                    "Book %s has no %s.rst; skipping navigation", book, BOOK_INDEX_STEM
                )
                continue
            chapters: list[BookChapter] = []
            for order, slug in enumerate(toctree_entries(index.raw_body)):
                chapter = by_slug.get(slug)
                if chapter is None:
                    logger.warning(
                        "%s: toctree entry %r has no chapter file", index.source_path, slug
                    )
                    continue
                chapters.append(
                    BookChapter(
                        slug=slug,
                        title=chapter.metadata.title,
                        url=chapter.metadata.url,
                        order=order,
                        headers=chapter_headers(chapter.toc, chapter.metadata.title),
                    )
                )
            toc_html = render_book_toc(chapters, base_url=self.config.base_url)
            for page in pages:
                page.toc_html = toc_html

    def write_page(self, document: Document, *, generated_at: dt.datetime) -> Path:
        """Render ``document`` into the page template and write it."""
        context = {
            "site": self.config,
            "document": document,
            "meta": document.metadata,
            "html_title": f"{document.metadata.title} | {self.config.title}",
            "stylesheet_url": build_url(self.config.base_url, CODE_STYLESHEET_PATH),
            "generated_at": generated_at,
        }
        html = self.template.render(**context)
        if not html.endswith("\n"):
            html += "\n"
        output_path = self.output_dir / document.metadata.url
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
        logger.info("Wrote %s", output_path)
        return output_path

    def write_stylesheet(self) -> Path:
        """Write the Pygments stylesheet for the configured style."""
        output_path = self.output_dir / CODE_STYLESHEET_PATH
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.compiler.context.code.stylesheet, encoding="utf-8")
        return output_path

    def write_manifest(self, documents: cabc.Sequence[Document]) -> Path:
        """Write the JSON list of every page's metadata."""
        entries = [_manifest_entry(document) for document in documents]
        output_path = self.output_dir / MANIFEST_FILENAME
        output_path.write_text(json.dumps(entries, indent=2) + "\n", encoding="utf-8")
        return output_path


def _manifest_entry(document: Document) -> dict[str, typ.Any]:
    meta = document.metadata
    return {
        "id": meta.id,
        "title": meta.title,
        "url": meta.url,
        "type": str(meta.content_type),
        "date": meta.date,
        "tags": list(meta.tags),
        "author": meta.author,
        "excerpt": document.excerpt(),
    }


__all__ = ["CONTENT_DIRECTORIES", "BuildResult", "SiteBuilder", "discover_sources"]
