"""Unit tests for the table grammars and the table widget.

Usage
-----
Run ``pytest tests/test_tables.py -v``.

Examples
--------
- ``test_grid_header_row`` checks that a ``=`` border after the first row
  turns that row into the header.
- ``test_csv_options`` covers ``:header:``, ``:widths:``, and the caption.
"""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from rst_pages.errors import ErrorCategory, TableError
from rst_pages.tables import (
    ColumnAlignment,
    ParsedTable,
    TableKind,
    detect,
    parse_csv,
    parse_grid,
    parse_list,
    parse_simple,
    render_table,
)

GRID_WITH_HEADER = [
    "+-----+-----+",
    "| A   | B   |",
    "+=====+=====+",
    "| 1   | 2   |",
    "+-----+-----+",
]


def test_grid_header_row() -> None:
    table, consumed = parse_grid(GRID_WITH_HEADER, 0)
    assert consumed == 5
    assert table.has_header
    assert table.headers == ["A", "B"]
    assert table.rows == [["1", "2"]]


def test_grid_without_header() -> None:
    lines = [line.replace("=", "-") for line in GRID_WITH_HEADER]
    table, _ = parse_grid(lines, 0)
    assert not table.has_header
    assert table.rows == [["A", "B"], ["1", "2"]]


def test_grid_multiline_row_is_joined() -> None:
    lines = ["+------+------+", "| one  | two  |", "| more | more |", "+------+------+"]
    table, _ = parse_grid(lines, 0)
    assert table.rows == [["one more", "two more"]]


def test_grid_stops_at_first_plain_line() -> None:
    _, consumed = parse_grid([*GRID_WITH_HEADER, "Following text"], 0)
    assert consumed == 5


def test_simple_table_short_form() -> None:
    lines = ["Name   Value", "=====  =====", "alpha  1", "beta   2"]
    assert detect(lines, 0) is TableKind.SIMPLE
    table, consumed = parse_simple(lines, 0)
    assert consumed == 4
    assert table.headers == ["Name", "Value"]
    assert table.rows == [["alpha", "1"], ["beta", "2"]]


def test_simple_table_long_form() -> None:
    lines = ["=====  =====", "Name   Value", "=====  =====", "alpha  1", "=====  ====="]
    table, consumed = parse_simple(lines, 0)
    assert consumed == 5
    assert table.headers == ["Name", "Value"]
    assert table.rows == [["alpha", "1"]]


def test_simple_table_alignment_markers() -> None:
    lines = ["=====  ====:", "a      1", "=====  ====:"]
    table, _ = parse_simple(lines, 0)
    assert table.column_alignments == [ColumnAlignment.LEFT, ColumnAlignment.RIGHT]


def test_heading_underline_is_not_a_table() -> None:
    assert detect(["Title", "=====", "", "Body"], 0) is None
    assert detect(["Title", "=====", "", "Body"], 1) is None


def test_csv_options() -> None:
    table = parse_csv(
        'a, b\n"c, d", e\n', {"header": "X, Y", "widths": "1, 3"}, caption="Cap"
    )
    assert table.kind is TableKind.CSV
    assert table.caption == "Cap"
    assert table.headers == ["X", "Y"]
    assert table.rows == [["a", "b"], ["c, d", "e"]]
    assert table.column_widths == [1, 3]


def test_csv_header_rows_option() -> None:
    table = parse_csv("H1,H2\n1,2\n", {"header-rows": "1"})
    assert table.headers == ["H1", "H2"]
    assert table.rows == [["1", "2"]]


@pytest.mark.parametrize(
    ("body", "options"),
    [
        ("a,b\nc\n", {}),
        ("a,b\n", {"widths": "1,2,3"}),
        ("a,b\n", {"header-rows": "two"}),
        ("", {}),
    ],
    ids=["ragged-row", "width-count", "bad-header-rows", "empty"],
)
def test_csv_errors(body: str, options: dict[str, str]) -> None:
    with pytest.raises(TableError) as excinfo:
        parse_csv(body, options)
    assert excinfo.value.category is ErrorCategory.TABLE


def test_list_table() -> None:
    body = "* - Name\n  - Value\n* - alpha\n  - 1\n"
    table = parse_list(body, {"header-rows": "1"})
    assert table.kind is TableKind.LIST
    assert table.headers == ["Name", "Value"]
    assert table.rows == [["alpha", "1"]]


def test_list_table_requires_rows() -> None:
    with pytest.raises(TableError, match="outside any row"):
        parse_list("- orphan\n", {})


def test_render_table_widget() -> None:
    table = ParsedTable(
        kind=TableKind.GRID,
        headers=["A", "B"],
        rows=[["1", "<2>"], ["3", "4"]],
        column_widths=[1, 3],
    )
    soup = BeautifulSoup(render_table(table.validate()), "html.parser")

    widget = soup.select_one("div.rst-table")
    assert widget is not None
    assert widget["data-type"] == "grid"
    assert soup.select_one("input.table-search") is not None
    assert len(soup.select("col")) == 2
    assert soup.select("td")[1].get_text() == "<2>"
    footer = soup.select_one("div.table-footer")
    assert footer is not None
    assert footer.get_text() == "2 rows × 2 columns"
