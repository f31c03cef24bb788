"""Tests for the per-document compile pipeline.

These tests drive :class:`rst_pages.compiler.RstCompiler` end to end on
small sources: headings and inline markup, every built-in directive, the
strict and lenient error policies, and the derived ``Document`` helpers.

Usage
-----
Run ``pytest tests/test_compiler.py -v``.
"""

from __future__ import annotations

import typing as typ

import pytest
from bs4 import BeautifulSoup

from rst_pages.compiler import CompileContext, RstCompiler
from rst_pages.config import CodeConfig
from rst_pages.errors import CompileError, FrontmatterError
from rst_pages.frontmatter import ContentType

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def compiler() -> RstCompiler:
    return RstCompiler()


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def test_title_and_emphasis(compiler: RstCompiler) -> None:
    document = compiler.compile("Title\n=====\n\nHello *world*.")
    soup = _soup(document.html)

    heading = soup.find("h2")
    assert heading is not None
    assert heading["id"] == "title"
    assert heading.get_text() == "Title"
    paragraph = soup.find("p")
    assert paragraph is not None
    assert paragraph.find("em").get_text() == "world"
    assert [entry.anchor for entry in document.toc] == ["title"]
    assert 'href="#title"' in document.toc_html


def test_code_block_is_highlighted(compiler: RstCompiler) -> None:
    html = compiler.compile(".. code-block:: python\n\n   x = 1\n").html
    content = _soup(html).select_one("div.code-block div.code-content")

    assert content is not None
    tokens = [span.get_text() for span in content.select("span")]
    for token in ("x", "=", "1"):
        assert token in tokens


def test_code_block_options(compiler: RstCompiler) -> None:
    source = (
        ".. code-block:: python\n"
        "   :caption: demo.py\n"
        "   :linenos:\n"
        "   :emphasize-lines: 2\n"
        "\n"
        "   a = 1\n"
        "   b = 2\n"
    )
    soup = _soup(compiler.compile(source).html)

    block = soup.select_one("div.code-block")
    assert block is not None
    assert block["data-language"] == "python"
    assert block["data-line-count"] == "2"
    assert soup.select_one("span.code-title").get_text() == "demo.py"
    assert soup.select_one("span.code-language").get_text() == "PYTHON"
    assert soup.select_one("table.codehilitetable") is not None
    assert soup.select_one("span.hll") is not None
    assert soup.select_one("button.code-copy-button") is not None


def test_code_body_is_not_touched_by_inline_markup(compiler: RstCompiler) -> None:
    html = compiler.compile(".. code-block:: python\n\n   a = *b*\n").html
    assert "<em>" not in html


def test_copy_button_can_be_disabled() -> None:
    compiler = RstCompiler(CompileContext.create(code=CodeConfig(copy_button=False)))
    html = compiler.compile(".. code-block:: python\n\n   x = 1\n").html
    assert "code-copy-button" not in html


def test_unknown_language_falls_back_to_text(compiler: RstCompiler) -> None:
    soup = _soup(compiler.compile(".. code-block:: klingon\n\n   qapla\n").html)
    block = soup.select_one("div.code-block")
    assert block is not None
    assert block["data-language"] == "klingon"
    assert "qapla" in block.get_text()


def test_csv_table_directive(compiler: RstCompiler) -> None:
    source = ".. csv-table:: Prices\n   :header: Item, Cost\n\n   Tea, 2\n   Cake, *3*\n"
    soup = _soup(compiler.compile(source).html)

    assert soup.select_one("div.rst-table")["data-type"] == "csv"
    assert soup.find("caption").get_text() == "Prices"
    assert [th.get_text() for th in soup.select("th")] == ["Item", "Cost"]
    assert soup.select("td")[-1].find("em").get_text() == "3"


def test_list_table_directive(compiler: RstCompiler) -> None:
    source = (
        ".. list-table:: Caption\n"
        "   :header-rows: 1\n"
        "\n"
        "   * - A\n"
        "     - B\n"
        "   * - 1\n"
        "     - 2\n"
    )
    soup = _soup(compiler.compile(source).html)
    assert [th.get_text() for th in soup.select("th")] == ["A", "B"]
    assert [td.get_text() for td in soup.select("td")] == ["1", "2"]


def test_toctree_renders_nothing(compiler: RstCompiler) -> None:
    html = compiler.compile("Intro\n\n.. toctree::\n\n   a\n   b\n\nOutro").html
    assert html == "<p>Intro</p>\n<p>Outro</p>"


def test_comments_are_dropped(compiler: RstCompiler) -> None:
    html = compiler.compile("Before\n\n.. hidden note\n   more\n\nAfter").html
    assert html == "<p>Before</p>\n<p>After</p>"


def test_diagram_directive(compiler: RstCompiler) -> None:
    source = ".. diagram:: flowchart\n   :title: Flow\n\n   A -> B\n"
    soup = _soup(compiler.compile(source).html)
    container = soup.select_one("div.diagram-container")
    assert container is not None
    assert container["data-diagram-type"] == "flowchart"
    assert soup.select_one("svg.diagram-svg")["aria-label"] == "Flow"


def test_musicscore_directive(compiler: RstCompiler) -> None:
    html = compiler.compile(".. musicscore:: abc\n\n   X:1\n   K:C\n   C D E\n").html
    assert _soup(html).select_one("div.music-score-container svg") is not None


def test_math_inside_emphasis(compiler: RstCompiler) -> None:
    html = compiler.compile("*see $x$*").html
    assert html == '<p><em>see <span class="math-inline" data-latex="x"></span></em></p>'


def test_metadata_and_frontmatter_are_kept(compiler: RstCompiler) -> None:
    document = compiler.compile("---\ntitle: Hello\ntype: snippet\nseries: a\n---\nBody")
    assert document.metadata.content_type is ContentType.SNIPPET
    assert document.metadata.url == "snippets/hello.html"
    assert document.frontmatter == {"title": "Hello", "type": "snippet", "series": "a"}
    assert document.raw_body == "Body"


def test_content_type_override(compiler: RstCompiler) -> None:
    document = compiler.compile("---\ntitle: Tool\n---\n", content_type=ContentType.PROJECT)
    assert document.metadata.url == "projects/tool.html"


def test_plain_text_and_excerpt(compiler: RstCompiler) -> None:
    document = compiler.compile("Hello *world* and one two three four five six.")
    assert document.plain_text() == "Hello world and one two three four five six."
    assert document.excerpt(max_length=20) == "Hello world and one..."


def test_frontmatter_excerpt_wins(compiler: RstCompiler) -> None:
    document = compiler.compile("---\nexcerpt: Given\n---\nBody text.")
    assert document.excerpt() == "Given"


def test_errors_name_the_source(compiler: RstCompiler, tmp_path: Path) -> None:
    source = tmp_path / "broken.rst"
    with pytest.raises(FrontmatterError) as excinfo:
        compiler.compile("---\ntitle: [bad\n---\nBody", source_path=source)
    assert excinfo.value.document == source


def test_compile_file_reports_unreadable_files(compiler: RstCompiler, tmp_path: Path) -> None:
    missing = tmp_path / "missing.rst"
    with pytest.raises(CompileError, match="Failed to read") as excinfo:
        compiler.compile_file(missing)
    assert excinfo.value.document == missing


def test_compile_file_sets_source_path(compiler: RstCompiler, tmp_path: Path) -> None:
    path = tmp_path / "page.rst"
    path.write_text("---\ntitle: Page\n---\nText.\n", encoding="utf-8")
    document = compiler.compile_file(path)
    assert document.source_path == path
    assert document.html == "<p>Text.</p>"


@pytest.mark.parametrize(
    "content_type", [ContentType.ARTICLE, ContentType.PROJECT, ContentType.SNIPPET]
)
def test_math_heading_anchor_matches_outline(
    compiler: RstCompiler, content_type: ContentType
) -> None:
    source = "Energy $E=mc^2$\n===============\n\nText.\n"
    document = compiler.compile(source, content_type=content_type)

    heading_ids = [h2["id"] for h2 in _soup(document.html).select("h2")]
    assert heading_ids == ["energy"]
    assert [entry.anchor for entry in document.toc] == heading_ids


def test_fragment_lookalike_comment_passes_through(compiler: RstCompiler) -> None:
    html = compiler.compile("<!--rst-fragment:7-->\n").html
    assert "<!--rst-fragment:7-->" in html


def test_fragment_lookalike_comment_does_not_duplicate_blocks(compiler: RstCompiler) -> None:
    source = "<!--rst-fragment:0-->\n\n.. code-block:: python\n\n   x = 1\n"
    html = compiler.compile(source).html

    assert "<!--rst-fragment:0-->" in html
    assert len(_soup(html).select("div.code-block")) == 1
