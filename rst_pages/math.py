r"""Find LaTeX spans and replace them with client-rendered placeholders.

Formulas are never typeset on the server. Each span becomes an element that
carries the raw formula in ``data-latex``; :func:`math_script` emits the lazy
KaTeX loader only for pages that contain at least one such element.

Extraction order is fixed: ``$$...$$`` and ``\[...\]`` display spans are
found first and masked, then ``\(...\)`` and ``$...$`` inline spans, so a
display span is never split by the inline pass.

Examples
--------
>>> renderer = MathRenderer()
>>> renderer.process("Energy $E=mc^2$ holds.")
'Energy <span class="math-inline" data-latex="E=mc^2"></span> holds.'
>>> count_formulas(renderer.process("$$a+b$$"))
1
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import textwrap
import threading
from html import escape

from .errors import MathError

DISPLAY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\$\$(.+?)\$\$", re.DOTALL),
    re.compile(r"\\\[(.+?)\\\]", re.DOTALL),
)
INLINE_PAREN_PATTERN = re.compile(r"\\\((.+?)\\\)")
INLINE_DOLLAR_PATTERN = re.compile(r"(?<![\\$])\$(?!\s)([^$\n]+?)(?<!\s)\$(?!\d)")
LITERAL_PATTERN = re.compile(r"``.+?``", re.DOTALL)
PLACEHOLDER_PATTERN = re.compile(r'class="math-(?:display|inline)"')
_DISPLAY_MASK = "\ue002{index}\ue003"
_LITERAL_MASK = "\ue004{index}\ue003"
_MASK_PATTERN = re.compile("([\ue002\ue004])(\\d+)\ue003")

KATEX_VERSION = "0.16.9"
KATEX_CDN = f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist"


def _identity(html: str) -> str:
    return html


@dc.dataclass(frozen=True, slots=True)
class MathDetection:
    """Summary of the formula placeholders found in a page."""

    formula_count: int

    @property
    def has_math(self) -> bool:
        return self.formula_count > 0


class MathRenderer:
    """Turn LaTeX spans into ``math-display``/``math-inline`` placeholders.

    Rendered placeholders are cached by formula and display mode; the cache
    is safe to share between threads.
    """

    def __init__(self) -> None:
        self._cache: dict[str, str] = {}
        self._lock = threading.Lock()

    def render_equation(
        self,
        equation: str,
        *,
        display: bool,
        label: str | None = None,
        block: bool = True,
    ) -> str:
        """Return the placeholder element for one formula.

        Display math is a ``<div>`` unless ``block`` is false, which keeps a
        display formula written mid-sentence valid inside a paragraph.

        Formulas with unbalanced braces degrade to a ``math-error`` span that
        shows the source text instead of failing the document.
        """
        formula = equation.strip()
        key = f"{formula}:{display}:{block}:{label or ''}"
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached
        if not _braces_balanced(formula):
            html = f'<span class="math-error">{escape(formula)}</span>'
        else:
            latex = escape(formula, quote=True)
            if display:
                label_attr = (
                    f' data-label="{escape(label, quote=True)}"' if label else ""
                )
                tag = "div" if block else "span"
                html = f'<{tag} class="math-display" data-latex="{latex}"{label_attr}></{tag}>'
            else:
                html = f'<span class="math-inline" data-latex="{latex}"></span>'
        with self._lock:
            self._cache[key] = html
        return html

    def render_directive(self, body: str, *, label: str | None = None) -> str:
        """Render the body of a ``math`` directive as display math.

        Raises
        ------
        MathError
            If the body holds no formula.
        """
        formula = textwrap.dedent(body).strip()
        for pattern in DISPLAY_PATTERNS:
            match = pattern.fullmatch(formula)
            if match is not None:
                formula = match.group(1).strip()
                break
        if not formula:
            msg = "math directive has no formula"
            raise MathError(msg)
        return self.render_equation(formula, display=True, label=label)

    def process(
        self,
        text: str,
        *,
        inline_wrap: cabc.Callable[[str], str] = _identity,
        block_wrap: cabc.Callable[[str], str] | None = None,
    ) -> str:
        """Replace every math span in ``text`` with its placeholder.

        Parameters
        ----------
        text : str
            Directive-expanded source text.
        inline_wrap : Callable[[str], str], optional
            Applied to every rendered placeholder; the compiler passes a
            fragment stash so later passes cannot alter the markup.
        block_wrap : Callable[[str], str], optional
            Applied instead of ``inline_wrap`` to display spans that occupy
            whole lines, so they are not wrapped in a paragraph.

        Returns
        -------
        str
            Text with placeholders (or wrapper tokens) in place of formulas.
        """
        literals: list[str] = []
        masked_display: list[str] = []

        def _mask_literal(match: re.Match[str]) -> str:
            literals.append(match.group(0))
            return _LITERAL_MASK.format(index=len(literals) - 1)

        def _mask_display(match: re.Match[str]) -> str:
            source = match.string
            line_start = source.rfind("\n", 0, match.start()) + 1
            line_end = source.find("\n", match.end())
            line_end = len(source) if line_end == -1 else line_end
            standalone = (
                not source[line_start : match.start()].strip()
                and not source[match.end() : line_end].strip()
            )
            html = self.render_equation(match.group(1), display=True, block=standalone)
            wrap = block_wrap if standalone and block_wrap is not None else inline_wrap
            masked_display.append(wrap(html))
            return _DISPLAY_MASK.format(index=len(masked_display) - 1)

        def _inline(match: re.Match[str]) -> str:
            return inline_wrap(self.render_equation(match.group(1), display=False))

        result = LITERAL_PATTERN.sub(_mask_literal, text)
        for pattern in DISPLAY_PATTERNS:
            result = pattern.sub(_mask_display, result)
        result = INLINE_PAREN_PATTERN.sub(_inline, result)
        result = INLINE_DOLLAR_PATTERN.sub(_inline, result)

        def _unmask(match: re.Match[str]) -> str:
            index = int(match.group(2))
            if match.group(1) == "\ue002":
                return masked_display[index]
            return literals[index]

        return _MASK_PATTERN.sub(_unmask, result)


def _braces_balanced(formula: str) -> bool:
    depth = 0
    escaped = False
    for char in formula:
        if escaped:
            escaped = False
            continue
        match char:
            case "\\":
                escaped = True
            case "{":
                depth += 1
            case "}":
                depth -= 1
                if depth < 0:
                    return False
    return depth == 0


def count_formulas(html: str) -> int:
    """Return the number of math placeholders in ``html``."""
    return len(PLACEHOLDER_PATTERN.findall(html))


def detect_math(html: str) -> MathDetection:
    return MathDetection(formula_count=count_formulas(html))


def math_script(formula_count: int) -> str:
    """Return the lazy KaTeX loader, or ``""`` when the page has no math."""
    if formula_count <= 0:
        return ""
    return textwrap.dedent(
        f"""\
        <script>
        (function () {{
          var nodes = document.querySelectorAll(".math-display, .math-inline");
          if (!nodes.length) {{ return; }}
          function renderAll() {{
            nodes.forEach(function (node) {{
              try {{
                window.katex.render(node.getAttribute("data-latex"), node, {{
                  displayMode: node.classList.contains("math-display"),
                  throwOnError: false
                }});
              }} catch (err) {{
                node.classList.add("math-error");
                node.textContent = node.getAttribute("data-latex");
              }}
            }});
          }}
          var css = document.createElement("link");
          css.rel = "stylesheet";
          css.href = "{KATEX_CDN}/katex.min.css";
          document.head.appendChild(css);
          var script = document.createElement("script");
          script.src = "{KATEX_CDN}/katex.min.js";
          script.defer = true;
          script.onload = renderAll;
          document.head.appendChild(script);
        }})();
        </script>
        """
    )


__all__ = [
    "MathDetection",
    "MathRenderer",
    "count_formulas",
    "detect_math",
    "math_script",
]
