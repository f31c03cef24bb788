"""Parse the four table grammars into :class:`ParsedTable`.

Grid and simple tables are detected inside running text and report how many
source lines they consumed. CSV and list tables are directive bodies and take
their structure from field-list options instead.
"""

from __future__ import annotations

import collections.abc as cabc
import csv
import io
import textwrap

from ..errors import TableError
from .detector import (
    is_grid_row,
    is_grid_separator,
    is_simple_separator,
    simple_column_spans,
    split_simple_row,
)
from .models import ColumnAlignment, ParsedTable, TableKind


def parse_grid(lines: cabc.Sequence[str], start: int) -> tuple[ParsedTable, int]:
    """Parse a grid table whose top border is ``lines[start]``.

    Each row is the run of ``|`` lines between two borders; the text of a
    multi-line row is joined per column. A ``=`` border after the first row
    marks that row as the header.

    Returns
    -------
    tuple[ParsedTable, int]
        The validated table and the number of lines consumed.

    Raises
    ------
    TableError
        If a row is malformed or cell counts disagree.
    """
    index = start
    rows: list[list[str]] = []
    pending: list[list[str]] = []
    header_rows = 0
    while index < len(lines):
        line = lines[index]
        if is_grid_separator(line):
            if pending:
                rows.append(_merge_grid_lines(pending, index))
                pending = []
                if "=" in line and len(rows) == 1 and header_rows == 0:
                    header_rows = 1
        elif is_grid_row(line):
            pending.append(_split_grid_line(line))
        else:
            break
        index += 1
    if pending:
        msg = f"grid table row ending at line {index} has no closing border"
        raise TableError(msg)

    table = ParsedTable(kind=TableKind.GRID)
    if header_rows and len(rows) > 1:
        table.headers, table.rows = rows[0], rows[1:]
    else:
        table.rows = rows
    table.column_alignments = [ColumnAlignment.LEFT] * table.column_count()
    return table.validate(), index - start


def _split_grid_line(line: str) -> list[str]:
    inner = line.strip()[1:-1]
    return [cell.strip() for cell in inner.split("|")]


def _merge_grid_lines(fragments: list[list[str]], line_number: int) -> list[str]:
    width = len(fragments[0])
    if any(len(fragment) != width for fragment in fragments):
        msg = f"grid table row ending at line {line_number} has uneven cell borders"
        raise TableError(msg)
    return [
        " ".join(part for part in column if part)
        for column in zip(*fragments, strict=True)
    ]


def parse_simple(lines: cabc.Sequence[str], start: int) -> tuple[ParsedTable, int]:
    """Parse a simple table starting at ``lines[start]``.

    The table may open with a border (``=== ===``) or, in the short form,
    with a header line directly above the first border. Columns come from
    the first border's groups; ``:`` at a group's ends selects alignment.
    A row whose first column is blank continues the row above it.

    Returns
    -------
    tuple[ParsedTable, int]
        The validated table and the number of lines consumed.
    """
    block: list[str] = []
    for line in lines[start:]:
        if not line.strip():
            break
        block.append(line)

    borders = [idx for idx, line in enumerate(block) if is_simple_separator(line)]
    if not borders:
        msg = "simple table has no column border"
        raise TableError(msg)

    if borders[0] == 0:
        if len(borders) >= 3:
            header_range = range(1, borders[1])
            body_range = range(borders[1] + 1, borders[2])
            consumed = borders[2] + 1
        elif len(borders) == 2:
            header_range = range(0)
            body_range = range(1, borders[1])
            consumed = borders[1] + 1
        else:
            header_range = range(0)
            body_range = range(1, len(block))
            consumed = len(block)
    else:
        header_range = range(borders[0])
        end = borders[1] if len(borders) > 1 else len(block)
        body_range = range(borders[0] + 1, end)
        consumed = end + 1 if len(borders) > 1 else end

    separator = block[borders[0]]
    spans = simple_column_spans(separator)
    table = ParsedTable(
        kind=TableKind.SIMPLE,
        column_alignments=[_alignment(separator[a:b]) for a, b in spans],
    )
    header_lines = [split_simple_row(block[idx], spans) for idx in header_range]
    if header_lines:
        table.headers = [
            " ".join(cell for cell in column if cell) for column in zip(*header_lines, strict=True)
        ]
    for idx in body_range:
        if is_simple_separator(block[idx]):
            continue
        cells = split_simple_row(block[idx], spans)
        if not cells[0] and table.rows:
            previous = table.rows[-1]
            table.rows[-1] = [
                f"{old} {new}".strip() for old, new in zip(previous, cells, strict=True)
            ]
            continue
        table.rows.append(cells)
    return table.validate(), consumed


def _alignment(group: str) -> ColumnAlignment:
    match (group.startswith(":"), group.endswith(":")):
        case (True, True):
            return ColumnAlignment.CENTER
        case (False, True):
            return ColumnAlignment.RIGHT
        case _:
            return ColumnAlignment.LEFT


def parse_csv(
    body: str, options: cabc.Mapping[str, str], caption: str | None = None
) -> ParsedTable:
    """Parse a ``csv-table`` directive body.

    Options
    -------
    header
        Comma-separated header cells.
    header-rows
        Number of leading body rows to use as the header instead.
    widths
        Comma-separated relative column widths.
    """
    rows = [
        [cell.strip() for cell in row]
        for row in csv.reader(io.StringIO(textwrap.dedent(body)), skipinitialspace=True)
        if any(cell.strip() for cell in row)
    ]
    table = ParsedTable(kind=TableKind.CSV, caption=caption or None)
    if header := options.get("header"):
        table.headers = [cell.strip() for cell in next(csv.reader([header], skipinitialspace=True))]
    else:
        rows = _take_header_rows(table, rows, options)
    table.rows = rows
    table.column_widths = _parse_widths(options.get("widths"))
    table.column_alignments = [ColumnAlignment.LEFT] * table.column_count()
    return table.validate()


def parse_list(
    body: str, options: cabc.Mapping[str, str], caption: str | None = None
) -> ParsedTable:
    """Parse a ``list-table`` directive body.

    Rows are top-level ``*`` items; cells are the ``-`` items inside them.
    Indented lines continue the current cell.
    """
    rows: list[list[str]] = []
    for number, line in enumerate(textwrap.dedent(body).splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if line.startswith("*"):
            rows.append([])
            stripped = line[1:].strip()
            if not stripped:
                continue
        if not rows:
            msg = f"list-table line {number} is outside any row"
            raise TableError(msg)
        row = rows[-1]
        if stripped.startswith("- ") or stripped == "-":
            row.append(stripped[1:].strip())
        elif row:
            row[-1] = f"{row[-1]} {stripped}".strip()
        else:
            msg = f"list-table line {number} must start a cell with '-'"
            raise TableError(msg)

    table = ParsedTable(kind=TableKind.LIST, caption=caption or None)
    table.rows = _take_header_rows(table, rows, options)
    table.column_widths = _parse_widths(options.get("widths"))
    table.column_alignments = [ColumnAlignment.LEFT] * table.column_count()
    return table.validate()


def _take_header_rows(
    table: ParsedTable, rows: list[list[str]], options: cabc.Mapping[str, str]
) -> list[list[str]]:
    raw = options.get("header-rows", "0").strip() or "0"
    try:
        count = int(raw)
    except ValueError as exc:
        msg = f"header-rows must be an integer, got {raw!r}"
        raise TableError(msg) from exc
    if count <= 0:
        return rows
    if count > len(rows):
        msg = f"header-rows is {count} but the table has {len(rows)} rows"
        raise TableError(msg)
    header_rows = rows[:count]
    if any(len(row) != len(header_rows[0]) for row in header_rows):
        msg = "header rows have different cell counts"
        raise TableError(msg)
    table.headers = [" ".join(cells) for cells in zip(*header_rows, strict=True)]
    return rows[count:]


def _parse_widths(raw: str | None) -> list[int] | None:
    if raw is None or not raw.strip() or raw.strip() == "auto":
        return None
    try:
        return [int(part) for part in raw.replace(",", " ").split()]
    except ValueError as exc:
        msg = f"widths must be integers, got {raw!r}"
        raise TableError(msg) from exc


__all__ = ["parse_csv", "parse_grid", "parse_list", "parse_simple"]
