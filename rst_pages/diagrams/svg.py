"""Render laid-out diagrams as inline SVG inside a downloadable container."""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import math
import uuid
from html import escape

from .layout import class_connector_y, gantt_days_per_pixel
from .models import (
    Box,
    ClassDiagram,
    ClassRelationshipType,
    Diagram,
    Flowchart,
    FlowchartNodeType,
    Gantt,
    SequenceDiagram,
    SequenceMessageType,
    StateDiagram,
    StateType,
)

FONT = 'font-family="Inter, sans-serif"'
ACCENT = "#3b82f6"
ACCENT_DARK = "#2563eb"
TEXT = "#1f2937"
MUTED = "#374151"

FLOWCHART_STYLES = {
    FlowchartNodeType.START_END: ("#d1fae5", "#059669", 25),
    FlowchartNodeType.DECISION: ("#fef3c7", "#d97706", 8),
    FlowchartNodeType.PROCESS: ("#dbeafe", ACCENT_DARK, 8),
}

CLASS_MARKERS = {
    ClassRelationshipType.INHERITANCE: "class-inheritance",
    ClassRelationshipType.COMPOSITION: "class-composition",
    ClassRelationshipType.AGGREGATION: "class-aggregation",
    ClassRelationshipType.ASSOCIATION: "class-association",
    ClassRelationshipType.DEPENDENCY: "class-dependency",
}

DOWNLOAD_ICON = (
    '<svg width="16" height="16" viewBox="0 0 24 24" fill="none" '
    'stroke="currentColor" stroke-width="2" stroke-linecap="round" '
    'stroke-linejoin="round">'
    '<path d="M21 15v4a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2v-4"/>'
    '<polyline points="7 10 12 15 17 10"/>'
    '<line x1="12" y1="15" x2="12" y2="3"/>'
    "</svg>"
)


def _num(value: float) -> str:
    """Format a coordinate without trailing zeros."""
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def _text(
    x: float,
    y: float,
    label: str,
    *,
    size: int = 12,
    fill: str = TEXT,
    anchor: str = "middle",
    extra: str = "",
) -> str:
    return (
        f'<text x="{_num(x)}" y="{_num(y)}" text-anchor="{anchor}" font-size="{size}" '
        f'{FONT} fill="{fill}"{extra}>{escape(label)}</text>'
    )


def _marker_id(prefix: str, name: str) -> str:
    return f"{prefix}-{name}" if prefix else name


def _arrow_marker(marker_id: str, *, fill: str = ACCENT, open_head: bool = False) -> str:
    paint = f'fill="none" stroke="{fill}" stroke-width="1.5"' if open_head else f'fill="{fill}"'
    return (
        f'<marker id="{marker_id}" markerWidth="10" markerHeight="7" refX="9" '
        f'refY="3.5" orient="auto"><polygon points="0 0, 10 3.5, 0 7" {paint}/></marker>'
    )


def clip_to_box(box: Box, toward: tuple[float, float]) -> tuple[float, float]:
    """Return where the segment from ``box``'s centre to ``toward`` leaves it."""
    cx, cy = box.center
    dx, dy = toward[0] - cx, toward[1] - cy
    if dx == 0 and dy == 0:
        return cx, cy
    half_w, half_h = box.width / 2, box.height / 2
    scale = min(
        half_w / abs(dx) if dx else math.inf,
        half_h / abs(dy) if dy else math.inf,
    )
    return cx + dx * scale, cy + dy * scale


def _connector(source: Box, target: Box) -> tuple[float, float, float, float]:
    start = clip_to_box(source, target.center)
    end = clip_to_box(target, source.center)
    return start[0], start[1], end[0], end[1]


def _title(diagram: Diagram) -> list[str]:
    if not diagram.title:
        return []
    return [
        _text(diagram.width / 2, 25, diagram.title, size=18, extra=' font-weight="bold"')
    ]


def render_flowchart(diagram: Flowchart, prefix: str = "") -> list[str]:
    by_id = {node.id: node for node in diagram.nodes}
    arrow = _marker_id(prefix, "flowchart-arrow")
    parts = [f"<defs>{_arrow_marker(arrow)}</defs>", *_title(diagram)]
    for edge in diagram.edges:
        x1, y1, x2, y2 = _connector(by_id[edge.source].box, by_id[edge.target].box)
        parts.append(
            f'<path d="M {_num(x1)} {_num(y1)} L {_num(x2)} {_num(y2)}" stroke="{ACCENT}" '
            f'stroke-width="2" fill="none" marker-end="url(#{arrow})"/>'
        )
        if edge.label:
            parts.append(_text((x1 + x2) / 2, (y1 + y2) / 2 - 6, edge.label, fill=MUTED))
    for node in diagram.nodes:
        fill, stroke, radius = FLOWCHART_STYLES[node.node_type]
        box = node.box
        parts.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" rx="{radius}" fill="{fill}" stroke="{stroke}" '
            'stroke-width="2"/>'
        )
        cx, cy = box.center
        parts.append(_text(cx, cy + 5, node.label, size=14))
    return parts


def render_gantt(diagram: Gantt, prefix: str = "") -> list[str]:
    del prefix
    parts = _title(diagram)
    start, end = diagram.start_date, diagram.end_date
    if start is None or end is None:
        return parts
    days_per_pixel = gantt_days_per_pixel(diagram)
    top = diagram.tasks[0].box.y if diagram.tasks else 50.0
    total_days = (end - start).days
    for day in range(0, total_days + 1, 7):
        x = 20.0 + day / days_per_pixel
        parts.append(
            f'<line x1="{_num(x)}" y1="{_num(top)}" x2="{_num(x)}" '
            f'y2="{_num(diagram.height - 20)}" stroke="#e5e7eb" stroke-width="1" '
            'stroke-dasharray="4"/>'
        )
        label = (start + dt.timedelta(days=day)).strftime("%m/%d")
        parts.append(_text(x, top - 20, label, size=10, fill="#6b7280"))
    for task in diagram.tasks:
        box = task.box
        parts.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" rx="4" fill="{ACCENT}" stroke="{ACCENT_DARK}" '
            'stroke-width="1"/>'
        )
        parts.append(
            _text(box.x + 5, box.y + 20, task.label, size=11, fill="#ffffff", anchor="start")
        )
    return parts


def render_sequence(diagram: SequenceDiagram, prefix: str = "") -> list[str]:
    arrow = _marker_id(prefix, "sequence-arrow")
    open_arrow = _marker_id(prefix, "sequence-arrow-open")
    parts = [
        "<defs>"
        + _arrow_marker(arrow)
        + _arrow_marker(open_arrow, open_head=True)
        + "</defs>",
        *_title(diagram),
    ]
    for actor in diagram.actors:
        box = actor.box
        cx = box.center[0]
        parts.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" rx="8" fill="#dbeafe" stroke="{ACCENT_DARK}" '
            'stroke-width="2"/>'
        )
        parts.append(_text(cx, box.y + box.height / 2 + 4, actor.label))
        parts.append(
            f'<line x1="{_num(cx)}" y1="{_num(box.y + box.height)}" x2="{_num(cx)}" '
            f'y2="{_num(actor.lifeline_end)}" stroke="#9ca3af" stroke-width="1" '
            'stroke-dasharray="5,5"/>'
        )
    for message in diagram.messages:
        match message.message_type:
            case SequenceMessageType.SELF_CALL:
                loop_x = message.x1 + 40
                parts.append(
                    f'<path d="M {_num(message.x1)} {_num(message.y)} '
                    f"L {_num(loop_x)} {_num(message.y)} "
                    f"L {_num(loop_x)} {_num(message.y + 20)} "
                    f'L {_num(message.x1)} {_num(message.y + 20)}" fill="none" '
                    f'stroke="{ACCENT}" stroke-width="2" marker-end="url(#{arrow})"/>'
                )
                parts.append(
                    _text(loop_x + 5, message.y + 4, message.label, size=11, fill=MUTED,
                          anchor="start")
                )
                continue
            case SequenceMessageType.REPLY:
                style = f'stroke-dasharray="6,4" marker-end="url(#{open_arrow})"'
            case SequenceMessageType.ASYNC:
                style = f'marker-end="url(#{open_arrow})"'
            case _:
                style = f'marker-end="url(#{arrow})"'
        parts.append(
            f'<line x1="{_num(message.x1)}" y1="{_num(message.y)}" x2="{_num(message.x2)}" '
            f'y2="{_num(message.y)}" stroke="{ACCENT}" stroke-width="2" {style}/>'
        )
        parts.append(
            _text((message.x1 + message.x2) / 2, message.y - 5, message.label, size=11,
                  fill=MUTED)
        )
    return parts


def _class_markers(prefix: str) -> str:
    diamond = "0 7, 7 0, 14 7, 7 14"
    inheritance, composition, aggregation = (
        _marker_id(prefix, CLASS_MARKERS[kind])
        for kind in (
            ClassRelationshipType.INHERITANCE,
            ClassRelationshipType.COMPOSITION,
            ClassRelationshipType.AGGREGATION,
        )
    )
    return (
        "<defs>"
        f'<marker id="{inheritance}" markerWidth="12" markerHeight="12" refX="10" '
        f'refY="6" orient="auto"><polygon points="0 0, 12 6, 0 12" fill="#ffffff" '
        f'stroke="{ACCENT}" stroke-width="2"/></marker>'
        f'<marker id="{composition}" markerWidth="14" markerHeight="14" refX="14" '
        f'refY="7" orient="auto"><polygon points="{diamond}" fill="{ACCENT_DARK}" '
        f'stroke="{ACCENT_DARK}" stroke-width="2"/></marker>'
        f'<marker id="{aggregation}" markerWidth="14" markerHeight="14" refX="14" '
        f'refY="7" orient="auto"><polygon points="{diamond}" fill="#ffffff" '
        f'stroke="{ACCENT_DARK}" stroke-width="2"/></marker>'
        + _arrow_marker(_marker_id(prefix, CLASS_MARKERS[ClassRelationshipType.ASSOCIATION]))
        + _arrow_marker(
            _marker_id(prefix, CLASS_MARKERS[ClassRelationshipType.DEPENDENCY]), open_head=True
        )
        + "</defs>"
    )


def render_class(diagram: ClassDiagram, prefix: str = "") -> list[str]:
    by_id = {node.id: node for node in diagram.classes}
    parts = [_class_markers(prefix), *_title(diagram)]
    for index, relation in enumerate(diagram.relationships):
        marker = _marker_id(prefix, CLASS_MARKERS[relation.relationship_type])
        source, target = by_id[relation.source].box, by_id[relation.target].box
        run_y = class_connector_y(diagram, index)
        sx, tx = source.center[0], target.center[0]
        if relation.source == relation.target:
            tx = sx + 30
        dashed = (
            ' stroke-dasharray="6,4"'
            if relation.relationship_type is ClassRelationshipType.DEPENDENCY
            else ""
        )
        parts.append(
            f'<path d="M {_num(sx)} {_num(source.y + source.height)} '
            f"L {_num(sx)} {_num(run_y)} L {_num(tx)} {_num(run_y)} "
            f'L {_num(tx)} {_num(target.y + target.height)}" fill="none" '
            f'stroke="{ACCENT}" stroke-width="2"{dashed} '
            f'marker-end="url(#{marker})" '
            f'data-relationship="{relation.relationship_type}"/>'
        )
        if relation.label:
            parts.append(_text((sx + tx) / 2, run_y - 4, relation.label, size=11, fill=MUTED))
    for node in diagram.classes:
        box = node.box
        cx = box.center[0]
        parts.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" rx="4" fill="#dbeafe" stroke="{ACCENT_DARK}" '
            'stroke-width="2"/>'
        )
        parts.append(_text(cx, box.y + 22, node.label, size=13, extra=' font-weight="bold"'))
        parts.append(
            f'<line x1="{_num(box.x)}" y1="{_num(box.y + 35)}" x2="{_num(box.x + box.width)}" '
            f'y2="{_num(box.y + 35)}" stroke="{ACCENT_DARK}" stroke-width="1"/>'
        )
        y = box.y + 50
        for attribute in node.attributes:
            parts.append(_text(box.x + 10, y, attribute, size=10, fill=MUTED, anchor="start"))
            y += 15
        if node.attributes and node.methods:
            parts.append(
                f'<line x1="{_num(box.x)}" y1="{_num(y - 8)}" x2="{_num(box.x + box.width)}" '
                f'y2="{_num(y - 8)}" stroke="{ACCENT_DARK}" stroke-width="1"/>'
            )
            y += 5
        for method in node.methods:
            parts.append(_text(box.x + 10, y, method, size=10, fill=MUTED, anchor="start"))
            y += 15
    return parts


def render_state(diagram: StateDiagram, prefix: str = "") -> list[str]:
    by_id = {state.id: state for state in diagram.states}
    arrow = _marker_id(prefix, "state-arrow")
    parts = [f"<defs>{_arrow_marker(arrow)}</defs>", *_title(diagram)]
    for transition in diagram.transitions:
        source, target = by_id[transition.source].box, by_id[transition.target].box
        if transition.source == transition.target:
            cx, top = source.center[0], source.y
            parts.append(
                f'<path d="M {_num(cx - 15)} {_num(top)} C {_num(cx - 30)} {_num(top - 45)} '
                f'{_num(cx + 30)} {_num(top - 45)} {_num(cx + 15)} {_num(top)}" fill="none" '
                f'stroke="{ACCENT}" stroke-width="2" marker-end="url(#{arrow})"/>'
            )
            label_x, label_y = cx, top - 40
        else:
            x1, y1, x2, y2 = _connector(source, target)
            parts.append(
                f'<path d="M {_num(x1)} {_num(y1)} L {_num(x2)} {_num(y2)}" stroke="{ACCENT}" '
                f'stroke-width="2" fill="none" marker-end="url(#{arrow})"/>'
            )
            label_x, label_y = (x1 + x2) / 2, (y1 + y2) / 2 - 10
        if transition.label:
            parts.append(_text(label_x, label_y, transition.label, size=11, fill=MUTED))
    for state in diagram.states:
        box = state.box
        cx, cy = box.center
        match state.state_type:
            case StateType.INITIAL:
                parts.append(f'<circle cx="{_num(cx)}" cy="{_num(cy)}" r="10" fill="{ACCENT}"/>')
            case StateType.FINAL:
                parts.append(
                    f'<circle cx="{_num(cx)}" cy="{_num(cy)}" r="12" fill="none" '
                    f'stroke="{ACCENT}" stroke-width="2"/>'
                )
                parts.append(f'<circle cx="{_num(cx)}" cy="{_num(cy)}" r="8" fill="{ACCENT}"/>')
            case StateType.NORMAL:
                parts.append(
                    f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
                    f'height="{_num(box.height)}" rx="25" fill="#dbeafe" stroke="{ACCENT_DARK}" '
                    'stroke-width="2"/>'
                )
                parts.append(_text(cx, cy + 4, state.label))
    return parts


RENDERERS: dict[type, cabc.Callable[[Diagram, str], list[str]]] = {
    Flowchart: render_flowchart,
    Gantt: render_gantt,
    SequenceDiagram: render_sequence,
    ClassDiagram: render_class,
    StateDiagram: render_state,
}


def new_diagram_id(kind: str) -> str:
    """Return a DOM-unique id such as ``flowchart-1a2b3c4d``."""
    return f"{kind}-{uuid.uuid4().hex[:8]}"


def render_svg(diagram: Diagram, diagram_id: str = "") -> str:
    """Return the ``<svg>`` element for a laid-out diagram.

    Marker ids are prefixed with ``diagram_id`` so several diagrams can share
    a page.
    """
    body = "\n".join(RENDERERS[type(diagram)](diagram, diagram_id))
    label = f' aria-label="{escape(diagram.title)}"' if diagram.title else ""
    return (
        f'<svg viewBox="0 0 {_num(diagram.width)} {_num(diagram.height)}" '
        f'xmlns="http://www.w3.org/2000/svg" class="diagram-svg" role="img"{label}>\n'
        f"{body}\n</svg>"
    )


def render_container(diagram: Diagram, diagram_id: str) -> str:
    """Wrap the SVG in a ``diagram-container`` with a download button."""
    kind = diagram.kind
    return (
        f'<div class="diagram-container" data-diagram-id="{diagram_id}" '
        f'data-diagram-type="{kind}">\n'
        f'<button class="diagram-download" type="button" data-diagram-id="{diagram_id}" '
        f'data-diagram-type="{kind}" aria-label="Download diagram as SVG">'
        f"{DOWNLOAD_ICON}</button>\n"
        f"{render_svg(diagram, diagram_id)}\n"
        "</div>"
    )


__all__ = [
    "clip_to_box",
    "new_diagram_id",
    "render_container",
    "render_svg",
]
