"""Built-in directive handlers.

Each handler receives the directive's inline argument, dedented body, and
field-list options, and returns an HTML fragment. :class:`IncludeHandler` is
the exception: it returns :class:`SourceText` that goes back through the
pipeline.

=================  ==========================================================
Directive          Contract
=================  ==========================================================
``code-block``     argument: language; ``:caption:``, ``:linenos:``,
                   ``:emphasize-lines:``
``math``           body (or argument): LaTeX; ``:label:``
``diagram``        argument: diagram type; ``:title:``
``musicscore``     argument: notation (``abc``); ``:title:``
``snippet-card``   argument: snippet reference; no body
``toctree``        options and chapter list; renders nothing
``include``        argument: path relative to the including document
``csv-table``      argument: caption; ``:header:``, ``:header-rows:``,
                   ``:widths:``
``list-table``     argument: caption; ``:header-rows:``, ``:widths:``
=================  ==========================================================
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ
from html import escape
from pathlib import Path

from ..diagrams import DiagramRenderer
from ..errors import DiagramError, DirectiveError, IncludeError
from ..frontmatter import strip_frontmatter
from ..highlight import CodeBlockRenderer, parse_line_ranges
from ..markup import render_inline
from ..math import MathRenderer
from ..music import MusicScoreRenderer
from ..tables import parse_csv, parse_list, render_table
from .registry import DirectiveRegistry, SourceText

logger = logging.getLogger(__name__)

SNIPPET_PLACEHOLDER = '<div class="embedded-snippet-card" data-snippet="{reference}"></div>'
INCLUDE_CANDIDATES: tuple[str, ...] = ("{path}", "{path}/index.rst", "{path}.rst")


def _flag(options: cabc.Mapping[str, str], name: str) -> bool:
    """Return True for a present option unless its value says otherwise."""
    if name not in options:
        return False
    return options[name].strip().lower() not in {"false", "no", "0", "off"}


class CodeBlockHandler:
    """Highlight the body with Pygments."""

    def __init__(self, renderer: CodeBlockRenderer) -> None:
        self.renderer = renderer

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        language = argument.split()[0] if argument.strip() else options.get("language")
        line_numbers = _flag(options, "linenos") if "linenos" in options else None
        return self.renderer.code_block(
            body,
            language,
            title=options.get("caption") or None,
            line_numbers=line_numbers,
            emphasize=parse_line_ranges(options.get("emphasize-lines", "")),
        )


class MathHandler:
    """Render the body as display math, optionally labelled."""

    def __init__(self, renderer: MathRenderer) -> None:
        self.renderer = renderer

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        formula = body if body.strip() else argument
        return self.renderer.render_directive(formula, label=options.get("label") or None)


class DiagramHandler:
    """Compile the diagram DSL into an SVG container."""

    def __init__(self, renderer: DiagramRenderer) -> None:
        self.renderer = renderer

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        kind = argument.strip() or options.get("type", "").strip()
        if not kind:
            msg = "diagram directive needs a diagram type"
            raise DiagramError(msg)
        return self.renderer.render(kind, body, title=options.get("title") or None)


class MusicScoreHandler:
    """Draw ABC notation as a staff."""

    def __init__(self, renderer: MusicScoreRenderer) -> None:
        self.renderer = renderer

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        notation = argument.strip() or options.get("type", "abc")
        return self.renderer.render(notation, body, title=options.get("title") or None)


class SnippetCardHandler:
    """Leave a placeholder for the cross-reference resolver."""

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        reference = argument.strip()
        if not reference:
            msg = "snippet-card directive needs a snippet id"
            raise DirectiveError(msg)
        return SNIPPET_PLACEHOLDER.format(reference=escape(reference, quote=True))


class ToctreeHandler:
    """Swallow the chapter list; book TOCs are built from the raw source."""

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        return ""


class IncludeHandler:
    """Read another file and return its body for re-processing."""

    def __init__(self, *, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir

    def resolve(self, reference: str, source: Path | None = None) -> Path:
        """Return the file ``reference`` points at.

        Relative references are resolved against ``source``'s directory, then
        ``base_dir``, then the working directory. The literal path,
        ``<path>/index.rst`` and ``<path>.rst`` are tried in that order.

        Raises
        ------
        IncludeError
            If no candidate exists.
        """
        if Path(reference).is_absolute():
            roots = [Path()]
        else:
            candidates = (source.parent if source else None, self.base_dir)
            roots = [root for root in candidates if root is not None]
            roots.append(Path.cwd())
        for root in roots:
            for pattern in INCLUDE_CANDIDATES:
                candidate = root / pattern.format(path=reference)
                if candidate.is_file():
                    return candidate
        msg = f"Included file not found: {reference}"
        raise IncludeError(msg)

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> SourceText:
        reference = argument.strip()
        if not reference:
            msg = "include directive needs a path"
            raise IncludeError(msg)
        path = self.resolve(reference, source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read included file {path}: {exc}"
            raise IncludeError(msg) from exc
        logger.debug("Including %s", path)
        return SourceText(strip_frontmatter(text).strip("\n"), origin=path)


class CsvTableHandler:
    """Parse comma-separated rows into a table."""

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        table = parse_csv(body, options, caption=argument.strip() or None)
        return render_table(table, render_cell=render_inline)


class ListTableHandler:
    """Parse a two-level bullet list into a table."""

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        table = parse_list(body, options, caption=argument.strip() or None)
        return render_table(table, render_cell=render_inline)


def default_registry(
    *,
    code: CodeBlockRenderer | None = None,
    math: MathRenderer | None = None,
    diagrams: DiagramRenderer | None = None,
    music: MusicScoreRenderer | None = None,
    include_base: Path | None = None,
) -> DirectiveRegistry:
    """Return a registry with every built-in directive.

    Renderers may be passed in to share their caches between compilers.
    """
    code_handler = CodeBlockHandler(code or CodeBlockRenderer())
    handlers: dict[str, typ.Any] = {
        "code-block": code_handler,
        "code": code_handler,
        "sourcecode": code_handler,
        "math": MathHandler(math or MathRenderer()),
        "diagram": DiagramHandler(diagrams or DiagramRenderer()),
        "musicscore": MusicScoreHandler(music or MusicScoreRenderer()),
        "snippet-card": SnippetCardHandler(),
        "toctree": ToctreeHandler(),
        "include": IncludeHandler(base_dir=include_base),
        "csv-table": CsvTableHandler(),
        "list-table": ListTableHandler(),
    }
    return DirectiveRegistry(handlers)


__all__ = [
    "CodeBlockHandler",
    "CsvTableHandler",
    "DiagramHandler",
    "IncludeHandler",
    "ListTableHandler",
    "MathHandler",
    "MusicScoreHandler",
    "SnippetCardHandler",
    "ToctreeHandler",
    "default_registry",
]
