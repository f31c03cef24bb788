r"""Unit tests for math span extraction and the KaTeX loader.

Usage
-----
Run ``pytest tests/test_math.py -v``.
"""

from __future__ import annotations

import pytest

from rst_pages.compiler import RstCompiler
from rst_pages.errors import MathError
from rst_pages.math import KATEX_CDN, MathRenderer, count_formulas, detect_math, math_script


@pytest.fixture
def renderer() -> MathRenderer:
    return MathRenderer()


def test_inline_dollar(renderer: MathRenderer) -> None:
    assert renderer.process("Energy $E=mc^2$ holds.") == (
        'Energy <span class="math-inline" data-latex="E=mc^2"></span> holds.'
    )


def test_paren_and_bracket_delimiters(renderer: MathRenderer) -> None:
    result = renderer.process(r"Both \(x\) and \[y\] here.")
    assert '<span class="math-inline" data-latex="x"></span>' in result
    assert '<span class="math-display" data-latex="y"></span>' in result
    assert count_formulas(result) == 2


def test_display_span_is_not_split_by_inline_pass(renderer: MathRenderer) -> None:
    result = renderer.process("$$a + b$$")
    assert result == '<div class="math-display" data-latex="a + b"></div>'


def test_code_literals_are_left_alone(renderer: MathRenderer) -> None:
    result = renderer.process("``$x$`` and $y$")
    assert result.startswith("``$x$`` and ")
    assert count_formulas(result) == 1


def test_currency_is_not_math(renderer: MathRenderer) -> None:
    assert renderer.process("It costs $5 and $6.") == "It costs $5 and $6."


def test_unbalanced_braces_degrade_to_error_span(renderer: MathRenderer) -> None:
    result = renderer.process(r"Broken $\frac{a$ formula")
    assert '<span class="math-error">\\frac{a</span>' in result
    assert count_formulas(result) == 0


def test_directive_dedents_and_labels(renderer: MathRenderer) -> None:
    html = renderer.render_directive("   a^2 + b^2 = c^2\n", label="pyth")
    assert html == (
        '<div class="math-display" data-latex="a^2 + b^2 = c^2" data-label="pyth"></div>'
    )


def test_directive_strips_display_delimiters(renderer: MathRenderer) -> None:
    assert 'data-latex="x"' in renderer.render_directive("$$x$$")


def test_empty_directive_raises(renderer: MathRenderer) -> None:
    with pytest.raises(MathError, match="no formula"):
        renderer.render_directive("   \n")


def test_math_script_only_for_math_pages() -> None:
    assert math_script(0) == ""
    script = math_script(3)
    assert script.startswith("<script>")
    assert f"{KATEX_CDN}/katex.min.js" in script


def test_detect_math_counts_placeholders() -> None:
    detection = detect_math('<span class="math-inline" data-latex="x"></span>')
    assert detection.has_math
    assert detection.formula_count == 1


def test_compiled_document_reports_math() -> None:
    compiler = RstCompiler()
    with_math = compiler.compile("Inline $x$ here.")
    without = compiler.compile("Plain text.")

    assert with_math.has_math
    assert with_math.math_formula_count == 1
    assert "katex" in with_math.math_script
    assert not without.has_math
    assert without.math_script == ""


def test_standalone_display_math_is_a_block() -> None:
    html = RstCompiler().compile("Before\n\n$$a+b$$\n\nAfter").html
    assert html == (
        '<p>Before</p>\n<div class="math-display" data-latex="a+b"></div>\n<p>After</p>'
    )


def test_math_directive_in_document() -> None:
    html = RstCompiler().compile(".. math::\n   :label: eq1\n\n   E = mc^2\n").html
    assert html == '<div class="math-display" data-latex="E = mc^2" data-label="eq1"></div>'


def test_display_math_inside_a_sentence_stays_inline() -> None:
    html = RstCompiler().compile("Sum $$a+b$$ here.\n").html
    assert html == '<p>Sum <span class="math-display" data-latex="a+b"></span> here.</p>'
