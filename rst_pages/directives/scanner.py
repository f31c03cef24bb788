r"""Locate ``.. name::`` block directives in RST source.

The source is tokenised once into :class:`SourceLine` records that keep their
original character offsets; the scanner then walks those records by index and
yields either plain lines or :class:`DirectiveInvocation` objects. Nothing
re-derives line boundaries from substrings, so spans stay exact even when the
same directive text occurs several times.

Body rules
----------
* A directive body is every following line that is blank or indented further
  than the directive line. Trailing blank lines are left to the surrounding
  text so paragraphs stay separated.
* Leading ``:key: value`` lines of the body are options, not body text.
* ``toctree`` also consumes option lines at any indentation.
* ``snippet-card`` has no body; its inline argument is the whole payload.
* ``.. text`` lines that are not directives are RST comments and, together
  with their indented continuation, vanish from the output.

Example
-------
>>> events = list(scan(tokenize(".. note:: hi\n   body\n\nAfter")))
>>> [type(e).__name__ for e in events]
['DirectiveInvocation', 'SourceLine', 'SourceLine']
>>> events[0].name, events[0].argument, events[0].body
('note', 'hi', 'body')
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import textwrap

DIRECTIVE_PATTERN = re.compile(
    r"^(?P<indent>[ \t]*)\.\.[ \t]+(?P<name>[A-Za-z0-9_-]+)::(?P<rest>.*)$"
)
COMMENT_PATTERN = re.compile(r"^[ \t]*\.\.(?:[ \t]|$)")
OPTION_PATTERN = re.compile(r"^:(?P<key>[A-Za-z0-9_-]+):(?:[ \t]+(?P<value>.*))?$")

BODYLESS_DIRECTIVES = frozenset({"snippet-card"})
FLUSH_OPTION_DIRECTIVES = frozenset({"toctree"})


@dc.dataclass(frozen=True, slots=True)
class SourceLine:
    """One line of source text and its position.

    Attributes
    ----------
    number : int
        Zero-based line index.
    start : int
        Offset of the first character in the original text.
    end : int
        Offset just past the last character, excluding the newline.
    text : str
        Line content without its newline.
    """

    number: int
    start: int
    end: int
    text: str

    @property
    def indent(self) -> int:
        """Number of leading whitespace characters."""
        return len(self.text) - len(self.text.lstrip(" \t"))

    @property
    def is_blank(self) -> bool:
        """Return True when the line holds only whitespace."""
        return not self.text.strip()


@dc.dataclass(frozen=True, slots=True)
class DirectiveInvocation:
    """A directive found by the scanner; transient and never stored.

    Attributes
    ----------
    name : str
        Directive name, e.g. ``code-block``.
    argument : str
        Text after ``::`` on the directive line, stripped.
    options : dict[str, str]
        Field-list options from the top of the body.
    body : str
        Dedented body text with options and surrounding blank lines removed.
    span : tuple[int, int]
        Character offsets of the whole directive in the scanned text.
    lines : tuple[SourceLine, ...]
        The source lines the directive occupies, for unexpanded passthrough.
    """

    name: str
    argument: str
    options: dict[str, str]
    body: str
    span: tuple[int, int]
    lines: tuple[SourceLine, ...]

    @property
    def source_text(self) -> str:
        """Original text of the directive."""
        return "\n".join(line.text for line in self.lines)


def tokenize(text: str) -> list[SourceLine]:
    """Split ``text`` into :class:`SourceLine` records with stored offsets."""
    lines: list[SourceLine] = []
    offset = 0
    for number, raw in enumerate(text.splitlines(keepends=True)):
        content = raw.rstrip("\r\n")
        lines.append(SourceLine(number, offset, offset + len(content), content))
        offset += len(raw)
    return lines


def scan(lines: cabc.Sequence[SourceLine]) -> cabc.Iterator[SourceLine | DirectiveInvocation]:
    """Yield plain lines and directive invocations in source order.

    Parameters
    ----------
    lines : Sequence[SourceLine]
        Output of :func:`tokenize`.

    Yields
    ------
    SourceLine or DirectiveInvocation
        Lines outside any directive, or one invocation per directive.
        Comment blocks yield nothing.
    """
    idx = 0
    total = len(lines)
    while idx < total:
        line = lines[idx]
        match = DIRECTIVE_PATTERN.match(line.text)
        if match is None:
            if COMMENT_PATTERN.match(line.text):
                idx = _body_end(lines, idx, flush_options=False)
                continue
            yield line
            idx += 1
            continue

        name = match.group("name")
        if name in BODYLESS_DIRECTIVES:
            end = idx + 1
        else:
            end = _body_end(lines, idx, flush_options=name in FLUSH_OPTION_DIRECTIVES)
        options, body = _split_body(lines[idx + 1 : end])
        yield DirectiveInvocation(
            name=name,
            argument=match.group("rest").strip(),
            options=options,
            body=body,
            span=(line.start, lines[end - 1].end),
            lines=tuple(lines[idx:end]),
        )
        idx = end


def _body_end(lines: cabc.Sequence[SourceLine], start: int, *, flush_options: bool) -> int:
    """Return the index just past the last body line of the block at ``start``."""
    indent = lines[start].indent
    last = start
    cursor = start + 1
    while cursor < len(lines):
        candidate = lines[cursor]
        if candidate.is_blank:
            cursor += 1
            continue
        is_option = flush_options and OPTION_PATTERN.match(candidate.text.strip())
        if candidate.indent <= indent and not is_option:
            break
        last = cursor
        cursor += 1
    return last + 1


def _split_body(body_lines: cabc.Sequence[SourceLine]) -> tuple[dict[str, str], str]:
    """Separate leading field-list options from the dedented body text."""
    options: dict[str, str] = {}
    text_lines = [line.text for line in body_lines]
    position = 0
    while position < len(text_lines):
        option = OPTION_PATTERN.match(text_lines[position].strip())
        if option is None:
            break
        options[option.group("key")] = (option.group("value") or "").strip()
        position += 1
    body = textwrap.dedent("\n".join(text_lines[position:])).strip("\n")
    return options, body


__all__ = [
    "DIRECTIVE_PATTERN",
    "DirectiveInvocation",
    "SourceLine",
    "scan",
    "tokenize",
]
