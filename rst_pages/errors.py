"""Typed errors raised while compiling RST documents.

Every failure carries a human-readable message, a coarse
:class:`ErrorCategory`, and (once known) the path of the document that
produced it. The compiler attaches the path during the per-document phase and
the resolver attaches it during the cross-document phase, so callers can
always report *where* a problem originated.

Examples
--------
>>> from pathlib import Path
>>> from rst_pages.errors import ErrorCategory, TableError
>>> err = TableError("row 2 has 3 cells, expected 2")
>>> err.category is ErrorCategory.TABLE
True
>>> str(err.attach(Path("articles/intro.rst")))
'articles/intro.rst: row 2 has 3 cells, expected 2'
"""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class ErrorCategory(enum.StrEnum):
    """Coarse grouping reported alongside compile errors."""

    CONTENT = "content"
    MARKUP = "markup"
    TABLE = "table"
    MATH = "math"


class CompileError(RuntimeError):
    """Base error for failures inside the RST content pipeline."""

    default_category: typ.ClassVar[ErrorCategory] = ErrorCategory.CONTENT

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        document: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.document = document

    def attach(self, document: Path | None) -> typ.Self:
        """Record ``document`` as the origin unless one is already known."""
        if self.document is None and document is not None:
            self.document = document
        return self

    def __str__(self) -> str:
        if self.document is None:
            return self.message
        return f"{self.document}: {self.message}"


class FrontmatterError(CompileError):
    """Raised when the leading metadata block cannot be parsed."""


class IncludeError(CompileError):
    """Raised when an ``include`` target cannot be found or read."""


class DirectiveError(CompileError):
    """Raised when a directive's own content is structurally invalid."""

    default_category = ErrorCategory.MARKUP


class TableError(DirectiveError):
    """Raised for malformed grid, simple, CSV, or list tables."""

    default_category = ErrorCategory.TABLE


class DiagramError(DirectiveError):
    """Raised for unknown diagram types or unparseable diagram bodies."""

    default_category = ErrorCategory.CONTENT


class MusicScoreError(DirectiveError):
    """Raised for unsupported music notations."""

    default_category = ErrorCategory.CONTENT


class MathError(DirectiveError):
    """Raised when a math directive has no formula to render."""

    default_category = ErrorCategory.MATH


__all__ = [
    "CompileError",
    "DiagramError",
    "DirectiveError",
    "ErrorCategory",
    "FrontmatterError",
    "IncludeError",
    "MathError",
    "MusicScoreError",
    "TableError",
]
