"""Compile the diagram mini-DSL into inline SVG.

The pipeline is parse, then layout, then render::

    text --parse_diagram--> Diagram --layout--> Diagram (positioned) --svg--> HTML

Examples
--------
>>> from rst_pages.diagrams import DiagramRenderer
>>> renderer = DiagramRenderer(id_factory=lambda kind: f"{kind}-test")
>>> html = renderer.render("flowchart", "Start -> End")
>>> 'data-diagram-id="flowchart-test"' in html
True
"""

from __future__ import annotations

import collections.abc as cabc

from .layout import flowchart_levels, layout
from .models import Diagram, DiagramKind
from .parser import parse_diagram
from .svg import new_diagram_id, render_container


class DiagramRenderer:
    """Render ``diagram`` directive bodies to SVG containers."""

    def __init__(
        self, *, id_factory: cabc.Callable[[str], str] = new_diagram_id
    ) -> None:
        self._id_factory = id_factory

    def build(self, kind: str, body: str, *, title: str | None = None) -> Diagram:
        """Parse and lay out a diagram without rendering it."""
        return layout(parse_diagram(kind, body, title=title))

    def render(self, kind: str, body: str, *, title: str | None = None) -> str:
        """Return the container HTML for a diagram.

        Raises
        ------
        DiagramError
            If the type is unknown or the body cannot be parsed.
        """
        diagram = self.build(kind, body, title=title)
        return render_container(diagram, self._id_factory(diagram.kind))


__all__ = [
    "Diagram",
    "DiagramKind",
    "DiagramRenderer",
    "flowchart_levels",
    "layout",
    "parse_diagram",
]
