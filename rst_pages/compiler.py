"""Compile one RST document into an HTML fragment, outline, and metadata.

The per-document pipeline:

1. split the frontmatter block and build :class:`ContentMetadata`;
2. expand directives, parking their HTML in a :class:`FragmentStash`;
3. replace math spans with placeholders (also stashed);
4. run the markup passes;
5. restore stashed fragments;
6. outline the document and detect math for the client script.

Everything a compile needs is carried by an explicit :class:`CompileContext`
that the caller builds once and may share between threads.

Example
-------
>>> doc = RstCompiler().compile("Title\\n=====\\n\\nHello *world*.")
>>> doc.html
'<h2 id="title">Title</h2>\\n<p>Hello <em>world</em>.</p>'
>>> [entry.anchor for entry in doc.toc]
['title']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from pathlib import Path

from . import markup
from .config import CodeConfig
from .diagrams import DiagramRenderer
from .directives import DirectiveExpander, DirectiveRegistry, default_registry
from .directives.expander import DEFAULT_MAX_INCLUDE_DEPTH
from .errors import CompileError
from .fragments import FragmentStash
from .frontmatter import ContentMetadata, ContentType, build_metadata, split_frontmatter
from .highlight import CodeBlockRenderer
from .math import MathRenderer, detect_math, math_script
from .music import MusicScoreRenderer
from .toc import TocEntry, outline_for, render_toc_html

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LENGTH = 200


@dc.dataclass(slots=True)
class Document:
    """A compiled document.

    ``html`` and ``toc`` are replaced once more by the cross-reference
    resolver after every document has been compiled.

    Attributes
    ----------
    metadata : ContentMetadata
        Metadata built from the frontmatter.
    html : str
        Block-level HTML fragment without a page wrapper.
    raw_body : str
        Source body after the frontmatter, before directive expansion.
    toc : list[TocEntry]
        Nested outline.
    toc_html : str
        ``toc`` pre-rendered as nested lists.
    frontmatter : dict[str, Any]
        The parsed frontmatter mapping, unchanged.
    source_path : Path or None
        File the document was read from.
    has_math : bool
        True when ``html`` holds at least one formula placeholder.
    math_formula_count : int
        Number of formula placeholders.
    math_script : str
        Lazy-loading client script; empty for pages without math.
    """

    metadata: ContentMetadata
    html: str
    raw_body: str = ""
    toc: list[TocEntry] = dc.field(default_factory=list)
    toc_html: str = ""
    frontmatter: dict[str, typ.Any] = dc.field(default_factory=dict)
    source_path: Path | None = None
    has_math: bool = False
    math_formula_count: int = 0
    math_script: str = ""

    def plain_text(self) -> str:
        """Return the indexable text: tags stripped, whitespace collapsed."""
        return markup.html_text(self.html)

    def excerpt(self, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
        """Return the metadata excerpt, else the start of the plain text."""
        if self.metadata.excerpt:
            return self.metadata.excerpt
        text = self.plain_text()
        if len(text) <= max_length:
            return text
        cut = text[:max_length].rsplit(" ", 1)[0] or text[:max_length]
        return f"{cut.rstrip(' ,.;:')}..."

    def set_toc(self, toc: list[TocEntry]) -> None:
        self.toc = toc
        self.toc_html = render_toc_html(toc)

    def refresh_math(self) -> None:
        """Recount formulas after ``html`` changed."""
        detection = detect_math(self.html)
        self.has_math = detection.has_math
        self.math_formula_count = detection.formula_count
        self.math_script = math_script(detection.formula_count)


@dc.dataclass(slots=True)
class CompileContext:
    """Renderers, handlers, and error policy shared by every compile.

    The renderers hold caches guarded by locks, so one context can serve a
    thread pool. Nothing here is process-global.
    """

    registry: DirectiveRegistry
    code: CodeBlockRenderer
    math: MathRenderer
    strict: bool = False
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH

    @classmethod
    def create(
        cls,
        *,
        code: CodeConfig | None = None,
        strict: bool = False,
        include_base: Path | None = None,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    ) -> CompileContext:
        """Build a context with the default directive set."""
        code = code or CodeConfig()
        code_renderer = CodeBlockRenderer(
            code.pygments_style,
            line_numbers=code.line_numbers,
            copy_button=code.copy_button,
        )
        math_renderer = MathRenderer()
        registry = default_registry(
            code=code_renderer,
            math=math_renderer,
            diagrams=DiagramRenderer(),
            music=MusicScoreRenderer(),
            include_base=include_base,
        )
        return cls(
            registry=registry,
            code=code_renderer,
            math=math_renderer,
            strict=strict,
            max_include_depth=max_include_depth,
        )


class RstCompiler:
    """Compile RST sources using a :class:`CompileContext`."""

    def __init__(self, context: CompileContext | None = None) -> None:
        self.context = context or CompileContext.create()
        self._expander = DirectiveExpander(
            self.context.registry,
            strict=self.context.strict,
            max_include_depth=self.context.max_include_depth,
        )

    def render_body(self, body: str, *, source: Path | None = None) -> str:
        """Return the HTML fragment for a frontmatter-free body."""
        stash = FragmentStash()
        text = self._expander.expand(body, stash, source=source)
        text = self.context.math.process(text, inline_wrap=stash.inline, block_wrap=stash.block)
        html = markup.convert(text, stash, strict=self.context.strict)
        return stash.restore(html).strip()

    def compile(
        self,
        text: str,
        *,
        source_path: Path | None = None,
        content_type: ContentType | None = None,
    ) -> Document:
        """Compile ``text`` into a :class:`Document`.

        Parameters
        ----------
        text : str
            Full source, frontmatter included.
        source_path : Path, optional
            Where the text came from; used for includes, book URLs, and
            error reports.
        content_type : ContentType, optional
            Overrides the frontmatter ``type`` key.

        Raises
        ------
        CompileError
            For malformed frontmatter, unreadable includes, and (in strict
            mode) invalid directive bodies. The error names ``source_path``.
        """
        try:
            frontmatter, body = split_frontmatter(text)
            metadata = build_metadata(frontmatter, content_type=content_type, path=source_path)
            html = self.render_body(body, source=source_path)
        except CompileError as exc:
            exc.attach(source_path)
            raise

        document = Document(
            metadata=metadata,
            html=html,
            raw_body=body,
            frontmatter=dict(frontmatter),
            source_path=source_path,
        )
        document.set_toc(outline_for(metadata.content_type, source=body, html=html))
        document.refresh_math()
        logger.debug("Compiled %s (%s)", source_path or metadata.id, metadata.content_type)
        return document

    def compile_file(self, path: Path, *, content_type: ContentType | None = None) -> Document:
        """Read and compile ``path``."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read {path}: {exc}"
            raise CompileError(msg, document=path) from exc
        return self.compile(text, source_path=path, content_type=content_type)


__all__ = ["CompileContext", "Document", "RstCompiler"]
