"""Unit tests for the directive scanner.

Usage
-----
Run ``pytest tests/test_directive_scanner.py -v``.
"""

from __future__ import annotations

from rst_pages.directives.scanner import DirectiveInvocation, SourceLine, scan, tokenize


def _events(text: str) -> list[SourceLine | DirectiveInvocation]:
    return list(scan(tokenize(text)))


def test_body_stops_at_first_unindented_line() -> None:
    text = ".. code-block:: python\n\n   x = 1\n   y = 2\n\nParagraph text.\n"
    events = _events(text)

    directive = events[0]
    assert isinstance(directive, DirectiveInvocation)
    assert directive.name == "code-block"
    assert directive.argument == "python"
    assert directive.body == "x = 1\ny = 2"

    rest = events[1:]
    assert all(isinstance(event, SourceLine) for event in rest)
    assert [event.text for event in rest] == ["", "Paragraph text."]


def test_leading_field_list_becomes_options() -> None:
    text = ".. code-block:: python\n   :caption: demo.py\n   :linenos:\n\n   print(1)\n"
    (directive,) = _events(text)
    assert isinstance(directive, DirectiveInvocation)
    assert directive.options == {"caption": "demo.py", "linenos": ""}
    assert directive.body == "print(1)"


def test_field_lines_after_body_text_stay_in_body() -> None:
    text = ".. note::\n\n   first line\n   :not: an option\n"
    (directive,) = _events(text)
    assert isinstance(directive, DirectiveInvocation)
    assert directive.options == {}
    assert directive.body == "first line\n:not: an option"


def test_snippet_card_never_takes_a_body() -> None:
    events = _events(".. snippet-card:: demo\n   indented text\n")
    directive = events[0]
    assert isinstance(directive, DirectiveInvocation)
    assert directive.argument == "demo"
    assert directive.body == ""
    assert isinstance(events[1], SourceLine)
    assert events[1].text == "   indented text"


def test_toctree_accepts_flush_options() -> None:
    text = ".. toctree::\n:maxdepth: 2\n\n   intro\n   advanced\n\nAfter\n"
    events = _events(text)
    directive = events[0]
    assert isinstance(directive, DirectiveInvocation)
    assert directive.options == {"maxdepth": "2"}
    assert directive.body == "intro\nadvanced"
    assert [e.text for e in events[1:] if isinstance(e, SourceLine)] == ["", "After"]


def test_comments_and_their_continuations_vanish() -> None:
    events = _events("Before\n\n.. a comment\n   continued\n\nAfter\n")
    assert all(isinstance(event, SourceLine) for event in events)
    assert [event.text for event in events] == ["Before", "", "", "After"]


def test_spans_point_at_each_occurrence() -> None:
    block = ".. note:: same\n   body"
    text = f"{block}\n\n{block}\n"
    directives = [e for e in _events(text) if isinstance(e, DirectiveInvocation)]

    assert len(directives) == 2
    first, second = directives
    assert first.span != second.span
    for directive in directives:
        start, end = directive.span
        assert text[start:end] == directive.source_text == block


def test_tokenize_keeps_offsets_for_crlf() -> None:
    lines = tokenize("a\r\nbc\r\n")
    assert [(line.start, line.end, line.text) for line in lines] == [(0, 1, "a"), (3, 5, "bc")]
