"""Unit tests for diagram parsing, layout, and SVG containers.

Usage
-----
Run ``pytest tests/test_diagrams.py -v``.

Examples
--------
- ``test_flowchart_levels_use_shortest_path`` checks that a node reachable by
  a short and a long path sits on the shorter level, whatever the edge order.
- ``test_gantt_scale`` pins the day-to-pixel mapping for a two-task chart.
"""

from __future__ import annotations

import itertools
import re

import pytest
from bs4 import BeautifulSoup

from rst_pages.diagrams import DiagramKind, DiagramRenderer, flowchart_levels, parse_diagram
from rst_pages.diagrams.layout import layout
from rst_pages.diagrams.models import (
    ClassDiagram,
    ClassRelationshipType,
    Flowchart,
    FlowchartNodeType,
    Gantt,
    SequenceDiagram,
    SequenceMessageType,
    StateDiagram,
    StateType,
)
from rst_pages.errors import DiagramError, ErrorCategory


def _flowchart(body: str) -> Flowchart:
    diagram = parse_diagram("flowchart", body)
    assert isinstance(diagram, Flowchart)
    return diagram


def test_flowchart_chain_levels() -> None:
    assert flowchart_levels(_flowchart("A -> B -> C")) == {"A": 0, "B": 1, "C": 2}


@pytest.mark.parametrize(
    "body",
    [
        "A -> B\nA -> C\nB -> D\nC -> D",
        "C -> D\nA -> C\nB -> D\nA -> B",
    ],
    ids=["declared-top-down", "declared-shuffled"],
)
def test_flowchart_diamond_levels(body: str) -> None:
    assert flowchart_levels(_flowchart(body)) == {"A": 0, "B": 1, "C": 1, "D": 2}


def test_flowchart_levels_use_shortest_path() -> None:
    levels = flowchart_levels(_flowchart("A -> B -> C\nA -> C"))
    assert levels["C"] == 1


def test_flowchart_nodes_are_created_once() -> None:
    diagram = _flowchart("A -> B\nB -> A\nA -> B")
    assert [node.id for node in diagram.nodes] == ["A", "B"]


def test_flowchart_shapes_labels_and_edge_labels() -> None:
    diagram = _flowchart("Start -> Check{Valid?} -> Save[Write file] : yes")
    nodes = {node.id: node for node in diagram.nodes}

    assert nodes["Start"].node_type is FlowchartNodeType.START_END
    assert nodes["Check"].node_type is FlowchartNodeType.DECISION
    assert nodes["Check"].label == "Valid?"
    assert nodes["Save"].label == "Write file"
    assert [(e.source, e.target, e.label) for e in diagram.edges] == [
        ("Start", "Check", None),
        ("Check", "Save", "yes"),
    ]


def test_flowchart_layout_stacks_levels() -> None:
    diagram = layout(_flowchart("A -> B\nA -> C"))
    assert isinstance(diagram, Flowchart)
    nodes = {node.id: node for node in diagram.nodes}
    assert nodes["B"].box.y == nodes["C"].box.y > nodes["A"].box.y
    assert nodes["B"].box.x < nodes["C"].box.x


def test_sequence_message_types_and_layout() -> None:
    body = (
        "participant Alice\n"
        "Alice -> Bob: Hello\n"
        "Bob --> Alice: Hi\n"
        "Alice ->> Queue: event\n"
        "Bob -> Bob: think\n"
    )
    diagram = layout(parse_diagram("sequence", body))
    assert isinstance(diagram, SequenceDiagram)

    assert [actor.id for actor in diagram.actors] == ["Alice", "Bob", "Queue"]
    assert [message.message_type for message in diagram.messages] == [
        SequenceMessageType.SYNC,
        SequenceMessageType.REPLY,
        SequenceMessageType.ASYNC,
        SequenceMessageType.SELF_CALL,
    ]
    first = diagram.messages[0]
    assert (first.x1, first.x2, first.y) == (100.0, 250.0, 100.0)
    assert diagram.width == 550.0


def test_gantt_scale() -> None:
    body = "Design [2024-01-01] : 5d\nBuild [2024-01-06] : 10d"
    diagram = layout(parse_diagram("gantt", body))
    assert isinstance(diagram, Gantt)

    design, build = diagram.tasks
    assert design.box.x == pytest.approx(20.0)
    assert design.box.width == pytest.approx(200.0)
    assert build.box.x == pytest.approx(220.0)
    assert build.box.width == pytest.approx(400.0)
    assert build.box.y > design.box.y


def test_gantt_rejects_bad_dates() -> None:
    with pytest.raises(DiagramError, match="Invalid gantt date"):
        parse_diagram("gantt", "Design [2024-13-01] : 5d")


def test_class_relationships_and_members() -> None:
    body = "Animal -|> Base\nUser |+| Database : owns\nUser : name\nUser : login()"
    diagram = parse_diagram("class", body)
    assert isinstance(diagram, ClassDiagram)

    assert [node.id for node in diagram.classes] == ["Animal", "Base", "User", "Database"]
    relations = [(r.source, r.target, r.relationship_type, r.label) for r in diagram.relationships]
    assert relations == [
        ("Animal", "Base", ClassRelationshipType.INHERITANCE, None),
        ("User", "Database", ClassRelationshipType.COMPOSITION, "owns"),
    ]
    user = diagram.classes[2]
    assert user.attributes == ["name"]
    assert user.methods == ["login()"]


def test_class_diagram_alias() -> None:
    assert DiagramKind.parse("class-diagram") is DiagramKind.CLASS


def test_state_types_and_circle_layout() -> None:
    body = "Start -> Idle : boot\nIdle -> Running : go\nRunning -> End"
    diagram = layout(parse_diagram("state", body))
    assert isinstance(diagram, StateDiagram)

    types = {state.id: state.state_type for state in diagram.states}
    assert types == {
        "Start": StateType.INITIAL,
        "Idle": StateType.INITIAL,
        "Running": StateType.NORMAL,
        "End": StateType.FINAL,
    }
    centers = [state.box.center for state in diagram.states]
    assert centers[0] == pytest.approx((420.0, 200.0))
    assert centers[1] == pytest.approx((300.0, 320.0))
    assert centers[2] == pytest.approx((180.0, 200.0))


def test_unknown_diagram_type() -> None:
    with pytest.raises(DiagramError, match="Unknown diagram type: nonsense") as excinfo:
        parse_diagram("nonsense", "A -> B")
    assert excinfo.value.category is ErrorCategory.CONTENT


def test_empty_body_has_nothing_to_draw() -> None:
    with pytest.raises(DiagramError, match="flowchart diagram has nothing to draw"):
        parse_diagram("flowchart", "# just a comment\n")


def test_render_container() -> None:
    renderer = DiagramRenderer(id_factory=lambda kind: f"{kind}-fixed")
    soup = BeautifulSoup(renderer.render("state", "A -> B", title="States"), "html.parser")

    container = soup.select_one("div.diagram-container")
    assert container is not None
    assert container["data-diagram-id"] == "state-fixed"
    assert container["data-diagram-type"] == "state"
    assert soup.select_one("button.diagram-download") is not None
    svg = soup.select_one("svg.diagram-svg")
    assert svg is not None
    assert svg["aria-label"] == "States"


@pytest.mark.parametrize(
    ("kind", "body"),
    [
        ("flowchart", "Start -> End"),
        ("sequence", "Alice -> Bob: Hello\nBob --> Alice: Hi"),
        ("class", "Animal -|> Base\nUser |+| Database"),
        ("state", "Idle -> Running : start"),
    ],
)
def test_marker_ids_are_scoped_per_diagram(kind: str, body: str) -> None:
    counter = itertools.count()
    renderer = DiagramRenderer(id_factory=lambda name: f"{name}-{next(counter)}")
    page = renderer.render(kind, body) + renderer.render(kind, body)
    soup = BeautifulSoup(page, "html.parser")

    ids = [marker["id"] for marker in soup.find_all("marker")]
    assert ids
    assert len(ids) == len(set(ids))
    for svg in soup.select("svg.diagram-svg"):
        local = {marker["id"] for marker in svg.find_all("marker")}
        references = set(re.findall(r"url\(#([^)]+)\)", str(svg)))
        assert references
        assert references <= local
