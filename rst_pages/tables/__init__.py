"""Grid, simple, CSV, and list tables normalised into one model.

Examples
--------
>>> from rst_pages.tables import parse_grid
>>> table, consumed = parse_grid(["+---+---+", "| A | B |", "+===+===+",
...                              "| 1 | 2 |", "+---+---+"], 0)
>>> table.headers, table.rows, consumed
(['A', 'B'], [['1', '2']], 5)
"""

from __future__ import annotations

from .detector import detect, is_grid_separator, is_simple_separator
from .html import render_table
from .models import ColumnAlignment, ParsedTable, TableKind
from .parsers import parse_csv, parse_grid, parse_list, parse_simple

__all__ = [
    "ColumnAlignment",
    "ParsedTable",
    "TableKind",
    "detect",
    "is_grid_separator",
    "is_simple_separator",
    "parse_csv",
    "parse_grid",
    "parse_list",
    "parse_simple",
    "render_table",
]
