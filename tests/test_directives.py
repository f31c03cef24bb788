"""Tests for directive expansion, error policy, and includes.

Usage
-----
Run ``pytest tests/test_directives.py -v``. Include tests write their sources
into pytest's ``tmp_path``.
"""

from __future__ import annotations

import typing as typ

import pytest

from rst_pages.compiler import CompileContext, RstCompiler
from rst_pages.directives import DirectiveExpander, DirectiveRegistry
from rst_pages.errors import DiagramError, ErrorCategory, IncludeError
from rst_pages.fragments import FragmentStash

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


class _AsideHandler:
    """Minimal handler used to exercise registration."""

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        return f"<aside>{argument}: {body}</aside>"


def test_unknown_directive_is_left_untouched() -> None:
    text = ".. custom:: arg\n   body\n\nAfter"
    stash = FragmentStash()
    assert DirectiveExpander(DirectiveRegistry()).expand(text, stash) == text
    assert len(stash) == 0


def test_registered_handler_output_is_stashed() -> None:
    registry = DirectiveRegistry()
    registry.register("aside", _AsideHandler())
    stash = FragmentStash()

    expanded = DirectiveExpander(registry).expand(".. aside:: tip\n\n   hello\n", stash)

    assert "<aside>" not in expanded
    assert stash.restore(expanded) == "<aside>tip: hello</aside>"


def test_invalid_directive_becomes_marker_when_lenient() -> None:
    html = RstCompiler().compile(".. diagram:: nonsense\n\n   a -> b\n").html
    assert 'class="directive-error"' in html
    assert 'data-directive="diagram"' in html
    assert "Unknown diagram type: nonsense" in html


def test_invalid_directive_raises_when_strict(tmp_path: Path) -> None:
    compiler = RstCompiler(CompileContext.create(strict=True))
    source = tmp_path / "doc.rst"
    with pytest.raises(DiagramError) as excinfo:
        compiler.compile(".. diagram:: nonsense\n\n   a -> b\n", source_path=source)
    assert excinfo.value.document == source
    assert str(excinfo.value).startswith(f"{source}: ")


def test_include_inlines_body_without_frontmatter(tmp_path: Path) -> None:
    (tmp_path / "_part.rst").write_text(
        "---\ntitle: Part\n---\nIncluded *text*.\n", encoding="utf-8"
    )
    main = tmp_path / "main.rst"
    main.write_text("Intro\n\n.. include:: _part.rst\n\nOutro\n", encoding="utf-8")

    html = RstCompiler().compile_file(main).html

    assert html == "<p>Intro</p>\n<p>Included <em>text</em>.</p>\n<p>Outro</p>"


def test_include_resolves_directory_index(tmp_path: Path) -> None:
    (tmp_path / "shared").mkdir()
    (tmp_path / "shared" / "index.rst").write_text("Shared text.\n", encoding="utf-8")
    compiler = RstCompiler(CompileContext.create(include_base=tmp_path))

    assert compiler.compile(".. include:: shared\n").html == "<p>Shared text.</p>"


def test_nested_includes_resolve_relative_to_including_file(tmp_path: Path) -> None:
    parts = tmp_path / "parts"
    parts.mkdir()
    (parts / "outer.rst").write_text(".. include:: inner.rst\n", encoding="utf-8")
    (parts / "inner.rst").write_text("Deep text.\n", encoding="utf-8")
    main = tmp_path / "main.rst"
    main.write_text(".. include:: parts/outer.rst\n", encoding="utf-8")

    assert RstCompiler().compile_file(main).html == "<p>Deep text.</p>"


def test_missing_include_names_the_document(tmp_path: Path) -> None:
    main = tmp_path / "main.rst"
    main.write_text("Text\n\n.. include:: missing\n", encoding="utf-8")

    with pytest.raises(IncludeError) as excinfo:
        RstCompiler().compile_file(main)

    assert excinfo.value.category is ErrorCategory.CONTENT
    assert str(excinfo.value) == f"{main}: Included file not found: missing"


def test_self_include_stops_at_depth_limit(tmp_path: Path) -> None:
    loop = tmp_path / "loop.rst"
    loop.write_text(".. include:: loop.rst\n", encoding="utf-8")

    with pytest.raises(IncludeError, match="include nesting deeper than 8"):
        RstCompiler().compile_file(loop)


def test_include_errors_ignore_lenient_mode(tmp_path: Path) -> None:
    compiler = RstCompiler(CompileContext.create(strict=False, include_base=tmp_path))
    with pytest.raises(IncludeError):
        compiler.compile(".. include:: nowhere\n")


def test_restore_leaves_unknown_tokens_alone() -> None:
    stash = FragmentStash()
    token = stash.inline("<b>kept</b>")
    text = f"{token} \ue0005\ue001 <!--rst-fragment:0-->"

    assert stash.restore(text) == "<b>kept</b> \ue0005\ue001 <!--rst-fragment:0-->"
