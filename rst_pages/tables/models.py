"""Intermediate table model shared by all four table grammars."""

from __future__ import annotations

import dataclasses as dc
import enum

from ..errors import TableError


class TableKind(enum.StrEnum):
    """Source grammar a table was parsed from; also its ``data-type`` value."""

    GRID = "grid"
    SIMPLE = "simple"
    CSV = "csv"
    LIST = "list"


class ColumnAlignment(enum.StrEnum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dc.dataclass(slots=True)
class ParsedTable:
    """A table normalised from any supported grammar.

    Attributes
    ----------
    kind : TableKind
        Grammar the table came from.
    headers : list[str]
        Header cells; empty when the table has no header row.
    rows : list[list[str]]
        Body rows in source order.
    column_alignments : list[ColumnAlignment]
        One alignment per column; missing entries render as left.
    caption : str or None
        Optional caption, taken from the directive argument.
    column_widths : list[int] or None
        Relative column widths from a ``widths`` option.
    """

    kind: TableKind
    headers: list[str] = dc.field(default_factory=list)
    rows: list[list[str]] = dc.field(default_factory=list)
    column_alignments: list[ColumnAlignment] = dc.field(default_factory=list)
    caption: str | None = None
    column_widths: list[int] | None = None

    @property
    def has_header(self) -> bool:
        return bool(self.headers)

    def column_count(self) -> int:
        """Header length when present, else the first row's length."""
        if self.headers:
            return len(self.headers)
        return len(self.rows[0]) if self.rows else 0

    def row_count(self) -> int:
        return len(self.rows)

    def alignment(self, column: int) -> ColumnAlignment:
        if column < len(self.column_alignments):
            return self.column_alignments[column]
        return ColumnAlignment.LEFT

    def validate(self) -> ParsedTable:
        """Check every row against :meth:`column_count`.

        Raises
        ------
        TableError
            If the table is empty or a row has the wrong number of cells.
        """
        if not self.rows and not self.headers:
            msg = f"{self.kind} table has no rows"
            raise TableError(msg)
        expected = self.column_count()
        for number, row in enumerate(self.rows, start=1):
            if len(row) != expected:
                msg = (
                    f"{self.kind} table row {number} has {len(row)} cells, "
                    f"expected {expected}"
                )
                raise TableError(msg)
        if self.column_widths is not None and len(self.column_widths) != expected:
            msg = (
                f"{self.kind} table declares {len(self.column_widths)} widths "
                f"for {expected} columns"
            )
            raise TableError(msg)
        return self


__all__ = ["ColumnAlignment", "ParsedTable", "TableKind"]
