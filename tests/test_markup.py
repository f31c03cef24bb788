"""Unit tests for the line-oriented markup passes.

The converter is exercised without directives: headings, transitions,
lists, paragraphs, inline markup, raw HTML passthrough, and inline tables.

Usage
-----
Run ``pytest tests/test_markup.py -v``.
"""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from rst_pages.errors import TableError
from rst_pages.markup import adornment_char, convert, html_text, render_inline


def test_underlined_title_and_paragraph() -> None:
    html = convert("Title\n=====\n\nHello *world*.")
    assert html == '<h2 id="title">Title</h2>\n<p>Hello <em>world</em>.</p>'


@pytest.mark.parametrize(
    ("char", "level"),
    [("=", 2), ("-", 3), ("~", 4), ("^", 5), ('"', 6)],
)
def test_underline_character_selects_level(char: str, level: int) -> None:
    html = convert(f"Section\n{char * 7}\n")
    assert html == f'<h{level} id="section">Section</h{level}>'


def test_overline_and_underline_title() -> None:
    assert convert("=====\nTitle\n=====\n") == '<h2 id="title">Title</h2>'


def test_short_underline_is_not_a_heading() -> None:
    html = convert("Long title\n===\n")
    assert "<h2" not in html
    assert html.startswith("<p>Long title")


def test_indented_line_is_not_a_title() -> None:
    assert "<h3" not in convert("  indented\n----------\n")


def test_lone_adornment_becomes_transition() -> None:
    html = convert("Para one.\n\n----\n\nPara two.")
    assert html == "<p>Para one.</p>\n<hr>\n<p>Para two.</p>"


def test_heading_ids_use_rendered_text() -> None:
    html = convert("Using ``code`` here\n===================\n")
    soup = BeautifulSoup(html, "html.parser")
    heading = soup.find("h2")
    assert heading is not None
    assert heading["id"] == "using-code-here"
    assert heading.find("code") is not None


def test_nested_bullet_list() -> None:
    html = convert("- one\n- two\n  - nested\n- three")
    assert html == "<ul><li>one</li><li>two<ul><li>nested</li></ul></li><li>three</li></ul>"


def test_ordered_list() -> None:
    assert convert("1. first\n2. second") == "<ol><li>first</li><li>second</li></ol>"


def test_list_kind_change_starts_new_list() -> None:
    assert convert("- a\n1. b") == "<ul><li>a</li></ul>\n<ol><li>b</li></ol>"


def test_blank_lines_between_items_keep_one_list() -> None:
    assert convert("- a\n\n- b") == "<ul><li>a</li><li>b</li></ul>"


def test_indented_continuation_joins_item() -> None:
    assert convert("- item that\n  continues") == "<ul><li>item that continues</li></ul>"


def test_paragraph_lines_are_joined() -> None:
    assert convert("line one\nline two\n\nnext") == "<p>line one line two</p>\n<p>next</p>"


def test_raw_div_block_passes_through() -> None:
    text = '<div class="raw">\nkeep *this*\n</div>'
    assert convert(text) == text


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        (
            "See `Docs <https://x.test/a>`_ now",
            'See <a href="https://x.test/a">Docs</a> now',
        ),
        (
            "Visit https://example.com/page.",
            'Visit <a href="https://example.com/page">https://example.com/page</a>.',
        ),
        ("**bold** and *it*", "<strong>bold</strong> and <em>it</em>"),
        ("a < b & c", "a &lt; b &amp; c"),
        ("2*3*4", "2*3*4"),
        ("``*not em*``", "<code>*not em*</code>"),
    ],
    ids=["link", "autolink", "strong-em", "escape", "intraword", "code"],
)
def test_render_inline(source: str, expected: str) -> None:
    assert render_inline(source) == expected


def test_html_text_collapses_markup() -> None:
    assert html_text("<p>Fish &amp; <em>chips</em>\n  today</p>") == "Fish & chips today"


def test_adornment_char() -> None:
    assert adornment_char("=====") == "="
    assert adornment_char("=") is None
    assert adornment_char("=-=-") is None


def test_simple_table_inside_text() -> None:
    html = convert("Name   Value\n=====  =====\nalpha  1\n\nAfter.")
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one("div.rst-table")
    assert table is not None
    assert table["data-type"] == "simple"
    assert [th.get_text() for th in table.select("th")] == ["Name", "Value"]
    assert [td.get_text() for td in table.select("td")] == ["alpha", "1"]
    assert soup.find_all("p")[-1].get_text() == "After."


def test_malformed_grid_table_raises_when_strict() -> None:
    with pytest.raises(TableError, match="no closing border"):
        convert("+---+---+\n| a | b |\n\nAfter.")


def test_malformed_grid_table_becomes_marker_when_lenient() -> None:
    html = convert("+---+---+\n| a | b |\n\nAfter.", strict=False)
    assert html.startswith('<div class="directive-error" data-directive="grid-table">')
    assert html.endswith("<p>After.</p>")
