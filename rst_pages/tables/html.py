"""Render :class:`ParsedTable` into the interactive ``rst-table`` widget."""

from __future__ import annotations

import collections.abc as cabc
from html import escape

from .models import ParsedTable


def render_table(
    table: ParsedTable, *, render_cell: cabc.Callable[[str], str] = escape
) -> str:
    """Return the HTML for ``table``.

    Parameters
    ----------
    table : ParsedTable
        Validated table.
    render_cell : Callable[[str], str], optional
        Converts cell source text to HTML. Defaults to plain escaping; the
        markup converter passes its inline renderer so cells keep emphasis,
        code spans, and links.

    Returns
    -------
    str
        A ``div.rst-table`` with search and copy controls, a scrollable
        wrapper, and a row/column footer computed from the model.
    """
    parts = [
        f'<div class="rst-table" data-type="{table.kind}">',
        '<div class="table-controls">'
        '<input type="search" class="table-search" placeholder="Search table..." '
        'aria-label="Search table">'
        '<button class="table-copy" type="button" title="Copy table">Copy</button>'
        "</div>",
        '<div class="table-wrapper">',
        "<table>",
    ]
    if table.caption:
        parts.append(f"<caption>{render_cell(table.caption)}</caption>")
    if table.column_widths:
        total = sum(table.column_widths) or 1
        cols = "".join(
            f'<col style="width: {width * 100 / total:.1f}%">'
            for width in table.column_widths
        )
        parts.append(f"<colgroup>{cols}</colgroup>")
    if table.has_header:
        cells = "".join(
            f'<th style="text-align: {table.alignment(idx)}" data-sortable="true">'
            f"{render_cell(header)}</th>"
            for idx, header in enumerate(table.headers)
        )
        parts.append(f"<thead><tr>{cells}</tr></thead>")
    parts.append("<tbody>")
    for row in table.rows:
        cells = "".join(
            f'<td style="text-align: {table.alignment(idx)}">{render_cell(cell)}</td>'
            for idx, cell in enumerate(row)
        )
        parts.append(f"<tr>{cells}</tr>")
    parts.extend(
        [
            "</tbody>",
            "</table>",
            "</div>",
            f'<div class="table-footer">{table.row_count()} rows × '
            f"{table.column_count()} columns</div>",
            "</div>",
        ]
    )
    return "\n".join(parts)


__all__ = ["render_table"]
