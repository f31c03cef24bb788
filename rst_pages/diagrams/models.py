"""Typed diagram models produced by the DSL parser and positioned by layout.

Every node-like entity carries a parse-order-stable ``id`` that edges refer
to. Geometry fields stay at zero until :mod:`rst_pages.diagrams.layout`
writes them; nothing else mutates a parsed diagram.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import typing as typ

from ..errors import DiagramError


class DiagramKind(enum.StrEnum):
    """Diagram grammars accepted by the ``diagram`` directive."""

    FLOWCHART = "flowchart"
    GANTT = "gantt"
    SEQUENCE = "sequence"
    CLASS = "class"
    STATE = "state"

    @classmethod
    def parse(cls, name: str) -> DiagramKind:
        """Return the kind named by ``name``.

        Raises
        ------
        DiagramError
            If ``name`` is not a supported diagram type.
        """
        key = name.strip().lower()
        if key == "class-diagram":
            return cls.CLASS
        try:
            return cls(key)
        except ValueError as exc:
            msg = f"Unknown diagram type: {name.strip() or '(none)'}"
            raise DiagramError(msg) from exc


@dc.dataclass(slots=True)
class Box:
    """Position and size written by the layout step."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


class FlowchartNodeType(enum.StrEnum):
    START_END = "start-end"
    PROCESS = "process"
    DECISION = "decision"


@dc.dataclass(slots=True)
class FlowchartNode:
    id: str
    label: str
    node_type: FlowchartNodeType = FlowchartNodeType.PROCESS
    level: int = 0
    box: Box = dc.field(default_factory=Box)


@dc.dataclass(slots=True)
class FlowchartEdge:
    source: str
    target: str
    label: str | None = None


@dc.dataclass(slots=True)
class Flowchart:
    nodes: list[FlowchartNode] = dc.field(default_factory=list)
    edges: list[FlowchartEdge] = dc.field(default_factory=list)
    title: str | None = None
    width: float = 0.0
    height: float = 0.0
    kind: typ.ClassVar[DiagramKind] = DiagramKind.FLOWCHART


@dc.dataclass(slots=True)
class GanttTask:
    id: str
    label: str
    start: dt.date
    duration_days: int = 5
    box: Box = dc.field(default_factory=Box)

    @property
    def end(self) -> dt.date:
        return self.start + dt.timedelta(days=self.duration_days)


@dc.dataclass(slots=True)
class Gantt:
    tasks: list[GanttTask] = dc.field(default_factory=list)
    title: str | None = None
    width: float = 0.0
    height: float = 0.0
    kind: typ.ClassVar[DiagramKind] = DiagramKind.GANTT

    @property
    def start_date(self) -> dt.date | None:
        return min((task.start for task in self.tasks), default=None)

    @property
    def end_date(self) -> dt.date | None:
        return max((task.end for task in self.tasks), default=None)


class SequenceMessageType(enum.StrEnum):
    SYNC = "sync"
    ASYNC = "async"
    REPLY = "reply"
    SELF_CALL = "self"


@dc.dataclass(slots=True)
class SequenceActor:
    id: str
    label: str
    box: Box = dc.field(default_factory=Box)
    lifeline_end: float = 0.0


@dc.dataclass(slots=True)
class SequenceMessage:
    source: str
    target: str
    label: str
    message_type: SequenceMessageType = SequenceMessageType.SYNC
    x1: float = 0.0
    x2: float = 0.0
    y: float = 0.0


@dc.dataclass(slots=True)
class SequenceDiagram:
    actors: list[SequenceActor] = dc.field(default_factory=list)
    messages: list[SequenceMessage] = dc.field(default_factory=list)
    title: str | None = None
    width: float = 0.0
    height: float = 0.0
    kind: typ.ClassVar[DiagramKind] = DiagramKind.SEQUENCE


class ClassRelationshipType(enum.StrEnum):
    INHERITANCE = "inheritance"
    COMPOSITION = "composition"
    AGGREGATION = "aggregation"
    ASSOCIATION = "association"
    DEPENDENCY = "dependency"


@dc.dataclass(slots=True)
class ClassNode:
    id: str
    label: str
    attributes: list[str] = dc.field(default_factory=list)
    methods: list[str] = dc.field(default_factory=list)
    box: Box = dc.field(default_factory=Box)


@dc.dataclass(slots=True)
class ClassRelationship:
    source: str
    target: str
    relationship_type: ClassRelationshipType = ClassRelationshipType.ASSOCIATION
    label: str | None = None


@dc.dataclass(slots=True)
class ClassDiagram:
    classes: list[ClassNode] = dc.field(default_factory=list)
    relationships: list[ClassRelationship] = dc.field(default_factory=list)
    title: str | None = None
    width: float = 0.0
    height: float = 0.0
    kind: typ.ClassVar[DiagramKind] = DiagramKind.CLASS


class StateType(enum.StrEnum):
    INITIAL = "initial"
    FINAL = "final"
    NORMAL = "normal"


@dc.dataclass(slots=True)
class StateNode:
    id: str
    label: str
    state_type: StateType = StateType.NORMAL
    box: Box = dc.field(default_factory=Box)


@dc.dataclass(slots=True)
class StateTransition:
    source: str
    target: str
    label: str = ""


@dc.dataclass(slots=True)
class StateDiagram:
    states: list[StateNode] = dc.field(default_factory=list)
    transitions: list[StateTransition] = dc.field(default_factory=list)
    title: str | None = None
    width: float = 0.0
    height: float = 0.0
    kind: typ.ClassVar[DiagramKind] = DiagramKind.STATE


Diagram: typ.TypeAlias = Flowchart | Gantt | SequenceDiagram | ClassDiagram | StateDiagram

__all__ = [
    "Box",
    "ClassDiagram",
    "ClassNode",
    "ClassRelationship",
    "ClassRelationshipType",
    "Diagram",
    "DiagramKind",
    "Flowchart",
    "FlowchartEdge",
    "FlowchartNode",
    "FlowchartNodeType",
    "Gantt",
    "GanttTask",
    "SequenceActor",
    "SequenceDiagram",
    "SequenceMessage",
    "SequenceMessageType",
    "StateDiagram",
    "StateNode",
    "StateTransition",
    "StateType",
]
