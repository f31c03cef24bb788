"""Assign 2-D coordinates to parsed diagrams.

One algorithm per diagram kind:

* flowchart: breadth-first leveling from source nodes, rows centred on the
  canvas, canvas height growing with the number of levels;
* gantt: ``x = days_since(start) / days_per_pixel`` with rows in declaration
  order;
* sequence: actors left to right in first-seen order, messages stacked top
  to bottom;
* class: classes left to right in first-seen order;
* state: states on a circle, angle proportional to index.

Layout writes into the ``box`` of each entity and the canvas ``width`` and
``height`` of the diagram, and returns the same diagram.
"""

from __future__ import annotations

import collections
import math

from .models import (
    ClassDiagram,
    Diagram,
    Flowchart,
    Gantt,
    SequenceDiagram,
    StateDiagram,
    StateType,
)

TITLE_OFFSET = 40.0

FLOWCHART_WIDTH = 800.0
FLOWCHART_NODE_WIDTH = 120.0
FLOWCHART_NODE_HEIGHT = 50.0
FLOWCHART_NODE_GAP = 20.0
FLOWCHART_LEVEL_HEIGHT = 100.0
FLOWCHART_TOP = 50.0

GANTT_WIDTH = 800.0
GANTT_TIMELINE_PIXELS = 600.0
GANTT_LEFT = 20.0
GANTT_HEADER = 50.0
GANTT_ROW_HEIGHT = 40.0
GANTT_BAR_HEIGHT = 30.0

SEQUENCE_ACTOR_WIDTH = 100.0
SEQUENCE_ACTOR_HEIGHT = 40.0
SEQUENCE_SPACING = 50.0
SEQUENCE_MARGIN = 50.0
SEQUENCE_ACTOR_TOP = 30.0
SEQUENCE_FIRST_MESSAGE = 100.0
SEQUENCE_MESSAGE_GAP = 50.0
SEQUENCE_LIFELINE_END = 350.0

CLASS_WIDTH = 140.0
CLASS_MIN_HEIGHT = 120.0
CLASS_SPACING = 60.0
CLASS_MARGIN = 50.0
CLASS_TOP = 100.0
CLASS_HEADER = 35.0
CLASS_MEMBER_LINE = 15.0
CLASS_CONNECTOR_DROP = 40.0
CLASS_CONNECTOR_STAGGER = 15.0

STATE_WIDTH = 600.0
STATE_HEIGHT = 400.0
STATE_CENTER = (300.0, 200.0)
STATE_RADIUS = 120.0
STATE_SIZES = {
    StateType.INITIAL: (20.0, 20.0),
    StateType.FINAL: (25.0, 25.0),
    StateType.NORMAL: (100.0, 50.0),
}


def layout(diagram: Diagram) -> Diagram:
    """Dispatch to the layout algorithm for ``diagram``'s kind."""
    match diagram:
        case Flowchart():
            return layout_flowchart(diagram)
        case Gantt():
            return layout_gantt(diagram)
        case SequenceDiagram():
            return layout_sequence(diagram)
        case ClassDiagram():
            return layout_class(diagram)
        case StateDiagram():
            return layout_state(diagram)
    msg = f"cannot lay out {type(diagram).__name__}"
    raise TypeError(msg)


def flowchart_levels(diagram: Flowchart) -> dict[str, int]:
    """Return each node's level: its shortest distance from a source node.

    Sources are nodes without incoming edges. Nodes no source reaches (for
    example members of a cycle) sit on level 0.

    >>> from rst_pages.diagrams.parser import parse_diagram
    >>> flowchart_levels(parse_diagram("flowchart", "A -> B -> C"))
    {'A': 0, 'B': 1, 'C': 2}
    """
    targets = {edge.target for edge in diagram.edges}
    outgoing: dict[str, list[str]] = collections.defaultdict(list)
    for edge in diagram.edges:
        outgoing[edge.source].append(edge.target)

    levels: dict[str, int] = {}
    queue: collections.deque[str] = collections.deque()
    for node in diagram.nodes:
        if node.id not in targets:
            levels[node.id] = 0
            queue.append(node.id)
    while queue:
        current = queue.popleft()
        for target in outgoing[current]:
            candidate = levels[current] + 1
            if candidate < levels.get(target, math.inf):
                levels[target] = candidate
                queue.append(target)
    return {node.id: levels.get(node.id, 0) for node in diagram.nodes}


def layout_flowchart(diagram: Flowchart) -> Flowchart:
    levels = flowchart_levels(diagram)
    rows: dict[int, list[str]] = collections.defaultdict(list)
    for node in diagram.nodes:
        node.level = levels[node.id]
        rows[node.level].append(node.id)

    widest = max(len(ids) for ids in rows.values())
    row_span = widest * FLOWCHART_NODE_WIDTH + (widest - 1) * FLOWCHART_NODE_GAP
    diagram.width = max(FLOWCHART_WIDTH, row_span + 2 * FLOWCHART_NODE_GAP)
    offset = TITLE_OFFSET if diagram.title else 0.0

    by_id = {node.id: node for node in diagram.nodes}
    for level, ids in rows.items():
        span = len(ids) * FLOWCHART_NODE_WIDTH + (len(ids) - 1) * FLOWCHART_NODE_GAP
        start_x = (diagram.width - span) / 2
        for index, node_id in enumerate(ids):
            box = by_id[node_id].box
            box.x = start_x + index * (FLOWCHART_NODE_WIDTH + FLOWCHART_NODE_GAP)
            box.y = FLOWCHART_TOP + level * FLOWCHART_LEVEL_HEIGHT + offset
            box.width = FLOWCHART_NODE_WIDTH
            box.height = FLOWCHART_NODE_HEIGHT
    max_level = max(rows)
    diagram.height = 100.0 + (max_level + 1) * FLOWCHART_LEVEL_HEIGHT + 50.0 + offset
    return diagram


def gantt_days_per_pixel(diagram: Gantt) -> float:
    start, end = diagram.start_date, diagram.end_date
    total_days = (end - start).days if start and end else 0
    return max(total_days, 1) / GANTT_TIMELINE_PIXELS


def layout_gantt(diagram: Gantt) -> Gantt:
    start = diagram.start_date
    days_per_pixel = gantt_days_per_pixel(diagram)
    offset = TITLE_OFFSET if diagram.title else 0.0
    for index, task in enumerate(diagram.tasks):
        days_from_start = (task.start - start).days if start else 0
        task.box.x = GANTT_LEFT + days_from_start / days_per_pixel
        task.box.y = GANTT_HEADER + index * GANTT_ROW_HEIGHT + offset
        task.box.width = task.duration_days / days_per_pixel
        task.box.height = GANTT_BAR_HEIGHT
    diagram.width = GANTT_WIDTH
    diagram.height = GANTT_HEADER + len(diagram.tasks) * GANTT_ROW_HEIGHT + 20.0 + offset
    return diagram


def layout_sequence(diagram: SequenceDiagram) -> SequenceDiagram:
    offset = TITLE_OFFSET if diagram.title else 0.0
    last_message = SEQUENCE_FIRST_MESSAGE + len(diagram.messages) * SEQUENCE_MESSAGE_GAP
    lifeline_end = max(SEQUENCE_LIFELINE_END, last_message) + offset

    by_id = {}
    for index, actor in enumerate(diagram.actors):
        actor.box.x = SEQUENCE_MARGIN + index * (SEQUENCE_ACTOR_WIDTH + SEQUENCE_SPACING)
        actor.box.y = SEQUENCE_ACTOR_TOP + offset
        actor.box.width = SEQUENCE_ACTOR_WIDTH
        actor.box.height = SEQUENCE_ACTOR_HEIGHT
        actor.lifeline_end = lifeline_end
        by_id[actor.id] = actor

    for index, message in enumerate(diagram.messages):
        message.x1 = by_id[message.source].box.center[0]
        message.x2 = by_id[message.target].box.center[0]
        message.y = SEQUENCE_FIRST_MESSAGE + index * SEQUENCE_MESSAGE_GAP + offset

    diagram.width = (
        SEQUENCE_MARGIN
        + len(diagram.actors) * (SEQUENCE_ACTOR_WIDTH + SEQUENCE_SPACING)
        + SEQUENCE_MARGIN
    )
    diagram.height = lifeline_end + 30.0
    return diagram


def layout_class(diagram: ClassDiagram) -> ClassDiagram:
    offset = TITLE_OFFSET if diagram.title else 0.0
    members = max(
        (len(node.attributes) + len(node.methods) for node in diagram.classes), default=0
    )
    height = max(CLASS_MIN_HEIGHT, CLASS_HEADER + 20.0 + members * CLASS_MEMBER_LINE)
    for index, node in enumerate(diagram.classes):
        node.box.x = CLASS_MARGIN + index * (CLASS_WIDTH + CLASS_SPACING)
        node.box.y = CLASS_TOP + offset
        node.box.width = CLASS_WIDTH
        node.box.height = height
    diagram.width = (
        CLASS_MARGIN + len(diagram.classes) * (CLASS_WIDTH + CLASS_SPACING) + CLASS_MARGIN
    )
    connectors = (
        CLASS_CONNECTOR_DROP + len(diagram.relationships) * CLASS_CONNECTOR_STAGGER
    )
    diagram.height = max(400.0, CLASS_TOP + offset + height + connectors + 40.0)
    return diagram


def class_connector_y(diagram: ClassDiagram, index: int) -> float:
    """Return the y of the horizontal run of the ``index``-th relationship."""
    bottom = max(node.box.y + node.box.height for node in diagram.classes)
    return bottom + CLASS_CONNECTOR_DROP / 2 + index * CLASS_CONNECTOR_STAGGER


def layout_state(diagram: StateDiagram) -> StateDiagram:
    offset = TITLE_OFFSET if diagram.title else 0.0
    center_x, center_y = STATE_CENTER[0], STATE_CENTER[1] + offset
    count = len(diagram.states)
    for index, state in enumerate(diagram.states):
        angle = index / count * 2 * math.pi
        width, height = STATE_SIZES[state.state_type]
        state.box.x = center_x + STATE_RADIUS * math.cos(angle) - width / 2
        state.box.y = center_y + STATE_RADIUS * math.sin(angle) - height / 2
        state.box.width = width
        state.box.height = height
    diagram.width = STATE_WIDTH
    diagram.height = STATE_HEIGHT + offset
    return diagram


__all__ = [
    "class_connector_y",
    "flowchart_levels",
    "gantt_days_per_pixel",
    "layout",
    "layout_class",
    "layout_flowchart",
    "layout_gantt",
    "layout_sequence",
    "layout_state",
]
