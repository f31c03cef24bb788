"""Convert directive-expanded RST text into HTML with line-oriented passes.

The passes always run in this order:

1. tables (grid and simple) are parsed and parked in the fragment stash;
2. headings become ``<hN id="...">`` lines and lone adornment lines ``<hr>``;
3. inline markup (code spans, strong, emphasis, links) is rendered on every
   remaining text line, which also escapes the plain text;
4. consecutive list items become nested ``<ul>``/``<ol>`` blocks;
5. remaining text runs are wrapped in paragraphs.

Tables go first because their borders share characters with heading
underlines. Lines that already hold HTML, including stash tokens, pass
through every later pass untouched.

Examples
--------
>>> convert("Title\\n=====\\n\\nHello *world*.")
'<h2 id="title">Title</h2>\\n<p>Hello <em>world</em>.</p>'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import html
import logging
import re

from ._constants import HEADING_LEVELS
from .errors import TableError
from .fragments import INLINE_TOKEN_PATTERN, FragmentStash
from .slugify import heading_anchor
from .tables import TableKind, detect, parse_grid, parse_simple, render_table

logger = logging.getLogger(__name__)

HTML_LINE_PATTERN = re.compile(
    r"^(?:<!--|</?(?:div|p|ul|ol|li|h[1-6]|table|thead|tbody|tr|td|th|pre|blockquote"
    r"|svg|hr|section|figure|figcaption|details|summary|nav|aside|header|footer|img|br"
    r"|script|style|span|button)\b)",
    re.IGNORECASE,
)
INLINE_PATTERN = re.compile(
    r"``(?P<code>.+?)``"
    r"|`(?P<link_text>[^`<]+?)\s*<(?P<link_url>[^>`]+)>`__?"
    r"|(?P<autolink>\bhttps?://[^\s<>\"]+[^\s<>\".,;:!?)\]])"
    r"|\*\*(?P<strong>(?=\S)[^*\n]+?(?<=\S))\*\*"
    r"|(?<![*\w])\*(?P<em>(?=\S)[^*\n]+?(?<=\S))\*(?![*\w])"
)
LIST_ITEM_PATTERN = re.compile(
    r"^(?P<indent>[ \t]*)(?P<marker>[-*+]|\d+[.)]|#[.)])\s+(?P<text>.*)$"
)
TAG_PATTERN = re.compile(r"<[^>]+>")
_DIV_OPEN = re.compile(r"<div\b", re.IGNORECASE)
_DIV_CLOSE = re.compile(r"</div>", re.IGNORECASE)
TRANSITION_MIN_LENGTH = 4


def is_html_line(line: str) -> bool:
    """Return True when ``line`` already starts with block-level HTML."""
    return bool(HTML_LINE_PATTERN.match(line.strip()))


def html_text(fragment: str) -> str:
    """Return the visible text of an HTML fragment.

    Tags and fragment placeholders are dropped, entities decoded, and
    whitespace collapsed. Heading anchors are derived from this text both
    here and in the TOC scanners, so they always agree.
    """
    text = INLINE_TOKEN_PATTERN.sub("", TAG_PATTERN.sub(" ", fragment))
    return " ".join(html.unescape(text).split())


def render_inline(text: str) -> str:
    """Render inline markup in one line of source text.

    Plain text is HTML-escaped; code spans are escaped verbatim; ``**strong**``,
    ``*emphasis*``, ```text <url>`_`` links, and bare ``http(s)`` URLs become
    the matching elements.

    >>> render_inline("a ``<b>`` and **c** <d>")
    'a <code>&lt;b&gt;</code> and <strong>c</strong> &lt;d&gt;'
    """
    parts: list[str] = []
    position = 0
    for match in INLINE_PATTERN.finditer(text):
        parts.append(html.escape(text[position : match.start()], quote=False))
        position = match.end()
        if (code := match.group("code")) is not None:
            parts.append(f"<code>{html.escape(code, quote=False)}</code>")
        elif (url := match.group("link_url")) is not None:
            label = html.escape(match.group("link_text").strip(), quote=False)
            parts.append(f'<a href="{html.escape(url.strip(), quote=True)}">{label}</a>')
        elif (bare := match.group("autolink")) is not None:
            safe = html.escape(bare, quote=True)
            parts.append(f'<a href="{safe}">{html.escape(bare, quote=False)}</a>')
        elif (strong := match.group("strong")) is not None:
            parts.append(f"<strong>{render_inline(strong)}</strong>")
        else:
            parts.append(f"<em>{render_inline(match.group('em'))}</em>")
    parts.append(html.escape(text[position:], quote=False))
    return "".join(parts)


def convert(
    text: str, stash: FragmentStash | None = None, *, strict: bool = True
) -> str:
    """Run every markup pass over ``text`` and return block-level HTML.

    Parameters
    ----------
    text : str
        Directive-expanded source with block tokens in place of directives.
    stash : FragmentStash, optional
        Stash to park table HTML in. When omitted a private stash is used and
        restored before returning; otherwise the caller restores it.
    strict : bool, optional
        Raise :class:`TableError` for malformed inline tables instead of
        replacing them with a ``directive-error`` marker.

    Returns
    -------
    str
        HTML fragment, one block per line.
    """
    local = stash is None
    stash = FragmentStash() if stash is None else stash
    lines = text.split("\n")
    lines = convert_tables(lines, stash, strict=strict)
    lines = convert_headings(lines)
    lines = convert_inline(lines)
    lines = convert_lists(lines)
    lines = convert_paragraphs(lines)
    output = "\n".join(lines)
    return stash.restore(output) if local else output


def convert_tables(
    lines: list[str], stash: FragmentStash, *, strict: bool = True
) -> list[str]:
    """Replace grid and simple tables with block tokens."""
    output: list[str] = []
    index = 0
    while index < len(lines):
        kind = detect(lines, index) if not is_html_line(lines[index]) else None
        if kind is None:
            output.append(lines[index])
            index += 1
            continue
        parser = parse_grid if kind is TableKind.GRID else parse_simple
        try:
            table, consumed = parser(lines, index)
        except TableError as exc:
            if strict:
                raise
            logger.warning("Replacing malformed %s table: %s", kind, exc.message)
            output.append(stash.block(_table_error(kind, exc.message)))
            index = _skip_block(lines, index)
            continue
        output.append(stash.block(render_table(table, render_cell=render_inline)))
        index += max(consumed, 1)
    return output


def _table_error(kind: TableKind, message: str) -> str:
    return (
        f'<div class="directive-error" data-directive="{kind}-table">'
        f"{html.escape(message)}</div>"
    )


def _skip_block(lines: list[str], index: int) -> int:
    while index < len(lines) and lines[index].strip():
        index += 1
    return index


def adornment_char(line: str) -> str | None:
    """Return the repeated heading character when ``line`` is an adornment."""
    stripped = line.rstrip()
    if len(stripped) < 2 or stripped[0] not in HEADING_LEVELS:
        return None
    return stripped[0] if stripped == stripped[0] * len(stripped) else None


def is_title_candidate(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not is_html_line(line) and adornment_char(stripped) is None


def _heading(level: int, title: str) -> str:
    rendered = render_inline(title.strip())
    return f'<h{level} id="{heading_anchor(html_text(rendered))}">{rendered}</h{level}>'


def convert_headings(lines: list[str]) -> list[str]:
    """Turn underlined (and over-and-underlined) titles into heading tags.

    A title must be unindented and the underline at least as long as the
    title. A line made only of adornment characters is never a title; when
    it stands alone between blank lines it becomes a transition (``<hr>``).
    """
    output: list[str] = []
    index = 0
    total = len(lines)
    while index < total:
        line = lines[index]
        char = adornment_char(line)
        nxt = lines[index + 1] if index + 1 < total else ""
        after = lines[index + 2] if index + 2 < total else ""

        if (
            char is not None
            and is_title_candidate(nxt)
            and adornment_char(after) == char
            and len(after.rstrip()) >= len(nxt.strip())
        ):
            output.append(_heading(HEADING_LEVELS[char], nxt))
            index += 3
            continue

        underline = adornment_char(nxt)
        if (
            underline is not None
            and is_title_candidate(line)
            and not line[0].isspace()
            and len(nxt.rstrip()) >= len(line.rstrip())
        ):
            output.append(_heading(HEADING_LEVELS[underline], line))
            index += 2
            continue

        previous = output[-1] if output else ""
        if (
            char is not None
            and len(line.strip()) >= TRANSITION_MIN_LENGTH
            and not previous.strip()
            and not nxt.strip()
        ):
            output.append("<hr>")
            index += 1
            continue

        output.append(line)
        index += 1
    return output


def convert_inline(lines: list[str]) -> list[str]:
    """Render inline markup on every line that is not already HTML."""
    output: list[str] = []
    depth = 0
    for line in lines:
        if depth > 0 or is_html_line(line) or not line.strip():
            output.append(line)
        else:
            indent = line[: len(line) - len(line.lstrip())]
            output.append(indent + render_inline(line.strip()))
        depth = max(0, depth + _div_balance(line))
    return output


@dc.dataclass(slots=True)
class _ListItem:
    indent: int
    ordered: bool
    text: str


def _parse_list_item(line: str) -> _ListItem | None:
    match = LIST_ITEM_PATTERN.match(line)
    if match is None or is_html_line(line):
        return None
    indent = len(match.group("indent").expandtabs(4))
    marker = match.group("marker")
    return _ListItem(indent, marker not in {"-", "*", "+"}, match.group("text").strip())


def _render_list(items: list[_ListItem], start: int) -> tuple[str, int]:
    """Render one list group beginning at ``items[start]``.

    The group holds consecutive items at the same indentation and of the
    same ordered/unordered kind; deeper items nest inside the preceding item.
    """
    indent, ordered = items[start].indent, items[start].ordered
    tag = "ol" if ordered else "ul"
    parts = [f"<{tag}>"]
    index = start
    while index < len(items):
        item = items[index]
        if item.indent < indent or (item.indent == indent and item.ordered != ordered):
            break
        if item.indent > indent:
            nested, index = _render_list(items, index)
            parts.append(f"<li>{nested}</li>")
            continue
        index += 1
        children: list[str] = []
        while index < len(items) and items[index].indent > indent:
            nested, index = _render_list(items, index)
            children.append(nested)
        parts.append(f"<li>{item.text}{''.join(children)}</li>")
    parts.append(f"</{tag}>")
    return "".join(parts), index


def render_list_block(items: list[_ListItem]) -> str:
    groups: list[str] = []
    index = 0
    while index < len(items):
        block, index = _render_list(items, index)
        groups.append(block)
    return "\n".join(groups)


def convert_lists(lines: list[str]) -> list[str]:
    """Group runs of list items into nested ``<ul>``/``<ol>`` blocks.

    Blank lines between items do not end a list when the next non-blank
    line is another item. Indented non-item lines continue the item above.
    """
    output: list[str] = []
    index = 0
    total = len(lines)
    while index < total:
        first = _parse_list_item(lines[index])
        if first is None:
            output.append(lines[index])
            index += 1
            continue
        items = [first]
        index += 1
        while index < total:
            line = lines[index]
            item = _parse_list_item(line)
            if item is not None:
                items.append(item)
                index += 1
                continue
            if not line.strip():
                lookahead = index
                while lookahead < total and not lines[lookahead].strip():
                    lookahead += 1
                if lookahead < total and _parse_list_item(lines[lookahead]) is not None:
                    index = lookahead
                    continue
                break
            current_indent = len(line) - len(line.lstrip())
            if current_indent > items[-1].indent and not is_html_line(line):
                items[-1].text = f"{items[-1].text} {line.strip()}"
                index += 1
                continue
            break
        output.append(render_list_block(items))
    return output


def _div_balance(line: str) -> int:
    return len(_DIV_OPEN.findall(line)) - len(_DIV_CLOSE.findall(line))


def convert_paragraphs(lines: cabc.Iterable[str]) -> list[str]:
    """Wrap runs of text lines in ``<p>``; HTML lines pass through.

    Lines inside an open raw ``<div>`` block are never wrapped.
    """
    output: list[str] = []
    buffer: list[str] = []
    depth = 0

    def flush() -> None:
        if buffer:
            output.append(f"<p>{' '.join(buffer)}</p>")
            buffer.clear()

    for line in lines:
        stripped = line.strip()
        if depth > 0:
            output.append(line)
        elif not stripped:
            flush()
        elif is_html_line(stripped):
            flush()
            output.append(line)
        else:
            buffer.append(stripped)
        depth = max(0, depth + _div_balance(line))
    flush()
    return output


__all__ = [
    "adornment_char",
    "convert",
    "convert_headings",
    "convert_inline",
    "convert_lists",
    "convert_paragraphs",
    "convert_tables",
    "html_text",
    "is_html_line",
    "is_title_candidate",
    "render_inline",
]
