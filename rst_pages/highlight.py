"""Syntax-highlighted code blocks for the ``code-block`` directive."""

from __future__ import annotations

import re
import threading
import typing as typ
from html import escape

from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')
LINE_RANGE_PATTERN = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+))?\s*$")


class CodeBlockRenderer:
    """Render code into the ``code-block`` container used by site pages."""

    def __init__(
        self,
        pygments_style: str = "monokai",
        *,
        line_numbers: bool = False,
        copy_button: bool = True,
    ) -> None:
        """Initialize a renderer with a Pygments style and header options.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for syntax highlighting. Defaults to
            ``"monokai"``.
        line_numbers : bool, optional
            Number every block's lines unless the block asks otherwise.
        copy_button : bool, optional
            Emit a copy affordance in each block header.
        """
        self.pygments_style = pygments_style
        self.line_numbers = line_numbers
        self.copy_button = copy_button
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")
        self._cache: dict[tuple[str, str, bool, tuple[int, ...]], str] = {}
        self._lock = threading.Lock()

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def highlight(
        self,
        code: str,
        language: str | None = None,
        *,
        line_numbers: bool = False,
        emphasize: typ.Sequence[int] = (),
    ) -> str:
        """Return Pygments HTML for ``code`` with ``data-language`` attached.

        Unknown or missing languages are highlighted as plain ``text``.
        """
        lang = language or "text"
        key = (code, lang, line_numbers, tuple(emphasize))
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            lexer = get_lexer_by_name("text")
        formatter = self._formatter
        if line_numbers or emphasize:
            formatter = HtmlFormatter(
                style=self.pygments_style,
                cssclass="codehilite",
                linenos="table" if line_numbers else False,
                hl_lines=list(emphasize),
            )
        html = self._attach_language_attribute(highlight(code, lexer, formatter), lang)
        with self._lock:
            self._cache[key] = html
        return html

    def code_block(
        self,
        code: str,
        language: str | None = None,
        *,
        title: str | None = None,
        line_numbers: bool | None = None,
        emphasize: typ.Sequence[int] = (),
    ) -> str:
        """Render ``code`` inside a ``code-block`` container.

        Parameters
        ----------
        code : str
            Source snippet to highlight.
        language : str, optional
            Pygments lexer name; defaults to ``"text"``.
        title : str, optional
            Caption shown in the block header.
        line_numbers : bool, optional
            Override the renderer-wide line-number setting.
        emphasize : Sequence[int], optional
            One-based line numbers to highlight.

        Returns
        -------
        str
            Container HTML with a header and a ``code-content`` wrapper.
        """
        lang = language or "text"
        numbered = self.line_numbers if line_numbers is None else line_numbers
        body = self.highlight(code, lang, line_numbers=numbered, emphasize=emphasize)
        safe_lang = escape(lang, quote=True)
        line_count = len(code.splitlines())

        info = []
        if title:
            info.append(f'<span class="code-title">{escape(title)}</span>')
        info.append(f'<span class="code-language">{escape(lang.upper())}</span>')
        header = [f'<div class="code-info">{"".join(info)}</div>']
        if self.copy_button:
            header.append(
                '<button class="code-copy-button" type="button" '
                'aria-label="Copy code">Copy</button>'
            )
        return (
            f'<div class="code-block" data-language="{safe_lang}" '
            f'data-line-count="{line_count}">'
            f'<div class="code-header">{"".join(header)}</div>'
            f'<div class="code-content">{body}</div>'
            "</div>"
        )

    @staticmethod
    def _attach_language_attribute(html: str, language: str) -> str:
        """Add a single language attribute to an already highlighted block."""
        safe_lang = escape(language or "text", quote=True)

        def _repl(match: re.Match[str]) -> str:
            return f'<div class="codehilite" data-language="{safe_lang}">'

        return CODEHILITE_OPEN_TAG.sub(_repl, html, 1)


def parse_line_ranges(ranges: str) -> list[int]:
    """Expand ``"1,3-5"`` into ``[1, 3, 4, 5]``; malformed parts are ignored.

    >>> parse_line_ranges("1, 3-5")
    [1, 3, 4, 5]
    """
    lines: list[int] = []
    for part in ranges.split(","):
        match = LINE_RANGE_PATTERN.match(part)
        if match is None:
            continue
        first = int(match.group(1))
        last = int(match.group(2) or first)
        lines.extend(range(first, last + 1))
    return sorted(set(lines))


__all__ = ["CodeBlockRenderer", "parse_line_ranges"]
