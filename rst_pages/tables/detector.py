"""Recognise where inline grid and simple tables begin.

Heading underlines and simple-table borders share characters, so a simple
table needs a border made of at least two column groups; a heading underline
is always a single run.

>>> is_grid_separator("+-----+=====+")
True
>>> is_simple_separator("=====  =====")
True
>>> is_simple_separator("=====")
False
"""

from __future__ import annotations

import collections.abc as cabc
import re

from .models import TableKind

SIMPLE_GROUP_PATTERN = re.compile(r":?[=-]+:?")
_GRID_BORDER_PATTERN = re.compile(r"^\+(?:[-=]+\+)+$")


def is_grid_separator(line: str) -> bool:
    """Return True for ``+---+---+`` and ``+===+===+`` border lines."""
    return bool(_GRID_BORDER_PATTERN.match(line.strip()))


def is_grid_row(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("|") and stripped.endswith("|")


def is_simple_separator(line: str) -> bool:
    """Return True for a border of two or more ``=``/``-`` column groups."""
    groups = line.split()
    if len(groups) < 2:
        return False
    if not all(SIMPLE_GROUP_PATTERN.fullmatch(group) for group in groups):
        return False
    return any(len(group.strip(":")) >= 2 for group in groups)


def simple_column_spans(separator: str) -> list[tuple[int, int]]:
    """Return ``(start, end)`` offsets of each column group in a border."""
    return [match.span() for match in SIMPLE_GROUP_PATTERN.finditer(separator)]


def detect(lines: cabc.Sequence[str], index: int) -> TableKind | None:
    """Return the kind of inline table starting at ``lines[index]``, if any.

    A simple table starts either at its top border or at a header line whose
    text falls into at least two columns of the border directly below it.
    """
    line = lines[index]
    if is_grid_separator(line):
        return TableKind.GRID
    if is_simple_separator(line):
        return TableKind.SIMPLE
    if not line.strip() or index + 1 >= len(lines):
        return None
    below = lines[index + 1]
    if not is_simple_separator(below):
        return None
    filled = [
        bool(cell)
        for cell in split_simple_row(line, simple_column_spans(below))
    ]
    return TableKind.SIMPLE if sum(filled) >= 2 else None


def split_simple_row(line: str, spans: cabc.Sequence[tuple[int, int]]) -> list[str]:
    """Cut ``line`` at the column starts given by ``spans``.

    Text running past a column's border belongs to that column until the
    next column starts; the last column takes the rest of the line.
    """
    cells: list[str] = []
    for position, (start, _end) in enumerate(spans):
        stop = spans[position + 1][0] if position + 1 < len(spans) else len(line)
        cells.append(line[start:stop].strip())
    return cells


__all__ = [
    "detect",
    "is_grid_row",
    "is_grid_separator",
    "is_simple_separator",
    "simple_column_spans",
    "split_simple_row",
]
