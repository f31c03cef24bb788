"""Line-based grammars for the five diagram kinds.

Each grammar reads one statement per line; blank lines and lines starting
with ``#`` or ``%%`` are ignored. Entities are created on first mention and
re-mentioning an id reuses the existing entity.

Flowchart::

    Start -> Load(Read input) -> Decision{Valid?}
    Decision -> Save : yes

Gantt::

    Design [2024-01-01] : 5d

Sequence::

    participant Alice
    Alice -> Bob: Hello      (sync)
    Bob --> Alice: Hi        (reply)
    Alice ->> Queue: event   (async)

Class::

    Animal -|> Base
    User |+| Database : owns
    User : name
    User : login()

State::

    Idle -> Running : start
"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import logging
import re
import typing as typ

from ..errors import DiagramError
from .models import (
    ClassDiagram,
    ClassNode,
    ClassRelationship,
    ClassRelationshipType,
    Diagram,
    DiagramKind,
    Flowchart,
    FlowchartEdge,
    FlowchartNode,
    FlowchartNodeType,
    Gantt,
    GanttTask,
    SequenceActor,
    SequenceDiagram,
    SequenceMessage,
    SequenceMessageType,
    StateDiagram,
    StateNode,
    StateTransition,
    StateType,
)

logger = logging.getLogger(__name__)

FLOWCHART_NODE_PATTERN = re.compile(
    r"^(?P<id>[^\[\]{}()]+?)\s*(?:(?P<open>[\[({])(?P<label>.*)[\])}])?$"
)
GANTT_TASK_PATTERN = re.compile(
    r"^(?P<label>.+?)\s*\[(?P<date>[^\]]+)\]\s*(?::\s*(?P<duration>\d+)\s*d?)?\s*$"
)
SEQUENCE_MESSAGE_PATTERN = re.compile(
    r"^(?P<source>[^:]+?)\s*(?P<arrow>-->>|-->|->>|->)\s*(?P<target>[^:]+?)"
    r"\s*(?::\s*(?P<label>.*))?$"
)
PARTICIPANT_PATTERN = re.compile(r"^(?:participant|actor)\s+(?P<id>.+)$", re.IGNORECASE)
CLASS_RELATION_PATTERN = re.compile(
    r"^(?P<source>[^\s:]+)\s+(?P<token>\S+)\s+(?P<target>[^\s:]+)\s*(?::\s*(?P<label>.*))?$"
)
CLASS_MEMBER_PATTERN = re.compile(r"^(?P<owner>[^\s:]+)\s*:\s*(?P<member>.+)$")
CLASS_DECLARATION_PATTERN = re.compile(r"^class\s+(?P<id>\S+)$")
STATE_TRANSITION_PATTERN = re.compile(
    r"^(?P<source>[^:]+?)\s*->\s*(?P<target>[^:]+?)\s*(?::\s*(?P<label>.*))?$"
)

RELATIONSHIP_TOKENS: dict[str, ClassRelationshipType] = {
    "|+|": ClassRelationshipType.COMPOSITION,
    "+|+": ClassRelationshipType.COMPOSITION,
    "*--": ClassRelationshipType.COMPOSITION,
    "-|>": ClassRelationshipType.INHERITANCE,
    "--|>": ClassRelationshipType.INHERITANCE,
    "-|o": ClassRelationshipType.AGGREGATION,
    "|o|": ClassRelationshipType.AGGREGATION,
    "o--": ClassRelationshipType.AGGREGATION,
    "<->": ClassRelationshipType.ASSOCIATION,
    "--": ClassRelationshipType.ASSOCIATION,
    "->": ClassRelationshipType.ASSOCIATION,
    "..>": ClassRelationshipType.DEPENDENCY,
}
CONNECTOR_CHARS = frozenset("-.|<>+*o")
INITIAL_STATE_NAMES = frozenset({"start", "idle"})
FINAL_STATE_NAMES = frozenset({"end"})


def parse_diagram(kind_name: str, body: str, *, title: str | None = None) -> Diagram:
    """Parse ``body`` with the grammar named by ``kind_name``.

    Parameters
    ----------
    kind_name : str
        Diagram type from the directive argument.
    body : str
        Directive body, one statement per line.
    title : str, optional
        Caption drawn above the diagram.

    Returns
    -------
    Diagram
        One of the five typed diagram models, without layout.

    Raises
    ------
    DiagramError
        If the type is unknown, a value cannot be parsed, or the body
        declares nothing to draw.
    """
    kind = DiagramKind.parse(kind_name)
    statements = list(_statements(body))
    match kind:
        case DiagramKind.FLOWCHART:
            diagram: Diagram = _parse_flowchart(statements)
            empty = not diagram.nodes
        case DiagramKind.GANTT:
            diagram = _parse_gantt(statements)
            empty = not diagram.tasks
        case DiagramKind.SEQUENCE:
            diagram = _parse_sequence(statements)
            empty = not diagram.actors
        case DiagramKind.CLASS:
            diagram = _parse_class(statements)
            empty = not diagram.classes
        case DiagramKind.STATE:
            diagram = _parse_state(statements)
            empty = not diagram.states
    if empty:
        msg = f"{kind} diagram has nothing to draw"
        raise DiagramError(msg)
    diagram.title = title or None
    return diagram


def _statements(body: str) -> cabc.Iterator[str]:
    for raw in body.splitlines():
        line = raw.strip()
        if line and not line.startswith(("#", "%%")):
            yield line


def _skip(kind: DiagramKind, line: str) -> None:
    logger.debug("Ignoring unrecognised %s diagram line: %s", kind, line)


T = typ.TypeVar("T")


class _FirstMention(typ.Generic[T]):
    """Keep entities in first-seen order, keyed by id."""

    def __init__(self, factory: cabc.Callable[[str], T]) -> None:
        self._factory = factory
        self._items: dict[str, T] = {}

    def __call__(self, entity_id: str) -> T:
        if entity_id not in self._items:
            self._items[entity_id] = self._factory(entity_id)
        return self._items[entity_id]

    def values(self) -> list[T]:
        return list(self._items.values())


def _flowchart_type(node_id: str, bracket: str | None) -> FlowchartNodeType:
    match bracket:
        case "(":
            return FlowchartNodeType.START_END
        case "{":
            return FlowchartNodeType.DECISION
        case "[":
            return FlowchartNodeType.PROCESS
    if node_id in {"Start", "End"}:
        return FlowchartNodeType.START_END
    if node_id == "Decision":
        return FlowchartNodeType.DECISION
    return FlowchartNodeType.PROCESS


def _split_edge_label(line: str) -> tuple[str, str | None]:
    """Split ``A -> B : label`` at the first colon outside node brackets."""
    depth = 0
    for position, char in enumerate(line):
        if char in "[({":
            depth += 1
        elif char in "])}":
            depth -= 1
        elif char == ":" and depth == 0:
            return line[:position], line[position + 1 :].strip() or None
    return line, None


def _parse_flowchart(statements: list[str]) -> Flowchart:
    nodes = _FirstMention(
        lambda node_id: FlowchartNode(
            id=node_id, label=node_id, node_type=_flowchart_type(node_id, None)
        )
    )
    edges: list[FlowchartEdge] = []
    for line in statements:
        chain, label = _split_edge_label(line)
        parts = [part.strip() for part in chain.split("->")]
        if any(not part for part in parts):
            _skip(DiagramKind.FLOWCHART, line)
            continue
        ids: list[str] = []
        for part in parts:
            match = FLOWCHART_NODE_PATTERN.match(part)
            if match is None:
                msg = f"Invalid flowchart node: {part}"
                raise DiagramError(msg)
            node = nodes(match.group("id").strip())
            if match.group("open"):
                node.label = match.group("label").strip() or node.id
                node.node_type = _flowchart_type(node.id, match.group("open"))
            ids.append(node.id)
        pairs = list(zip(ids, ids[1:], strict=False))
        for position, (source, target) in enumerate(pairs):
            edge_label = label if position == len(pairs) - 1 else None
            edges.append(FlowchartEdge(source, target, edge_label))
    return Flowchart(nodes=nodes.values(), edges=edges)


def _parse_gantt(statements: list[str]) -> Gantt:
    tasks: list[GanttTask] = []
    seen: set[str] = set()
    for line in statements:
        match = GANTT_TASK_PATTERN.match(line)
        if match is None:
            _skip(DiagramKind.GANTT, line)
            continue
        label = match.group("label").strip()
        raw_date = match.group("date").strip()
        try:
            start = dt.date.fromisoformat(raw_date)
        except ValueError as exc:
            msg = f"Invalid gantt date for {label!r}: {raw_date}"
            raise DiagramError(msg) from exc
        duration = int(match.group("duration") or 5)
        if label in seen:
            msg = f"Duplicate gantt task: {label}"
            raise DiagramError(msg)
        seen.add(label)
        tasks.append(GanttTask(id=label, label=label, start=start, duration_days=duration))
    return Gantt(tasks=tasks)


def _message_type(arrow: str, source: str, target: str) -> SequenceMessageType:
    if source == target:
        return SequenceMessageType.SELF_CALL
    match arrow:
        case "->>":
            return SequenceMessageType.ASYNC
        case "-->" | "-->>":
            return SequenceMessageType.REPLY
        case _:
            return SequenceMessageType.SYNC


def _parse_sequence(statements: list[str]) -> SequenceDiagram:
    actors = _FirstMention(lambda actor_id: SequenceActor(id=actor_id, label=actor_id))
    messages: list[SequenceMessage] = []
    for line in statements:
        if participant := PARTICIPANT_PATTERN.match(line):
            actors(participant.group("id").strip())
            continue
        match = SEQUENCE_MESSAGE_PATTERN.match(line)
        if match is None:
            _skip(DiagramKind.SEQUENCE, line)
            continue
        source = actors(match.group("source").strip()).id
        target = actors(match.group("target").strip()).id
        messages.append(
            SequenceMessage(
                source=source,
                target=target,
                label=(match.group("label") or "").strip(),
                message_type=_message_type(match.group("arrow"), source, target),
            )
        )
    return SequenceDiagram(actors=actors.values(), messages=messages)


def relationship_type(token: str) -> ClassRelationshipType | None:
    """Return the relationship a connector token encodes.

    Connector-shaped tokens that are not listed default to association;
    tokens that do not look like connectors at all return ``None``.

    >>> relationship_type("-|>")
    <ClassRelationshipType.INHERITANCE: 'inheritance'>
    >>> relationship_type("~~") is None
    True
    """
    if token in RELATIONSHIP_TOKENS:
        return RELATIONSHIP_TOKENS[token]
    if set(token) <= CONNECTOR_CHARS and set(token) & set("-.|<>+*"):
        return ClassRelationshipType.ASSOCIATION
    return None


def _parse_class(statements: list[str]) -> ClassDiagram:
    classes = _FirstMention(lambda class_id: ClassNode(id=class_id, label=class_id))
    relationships: list[ClassRelationship] = []
    for line in statements:
        if declaration := CLASS_DECLARATION_PATTERN.match(line):
            classes(declaration.group("id"))
            continue
        relation = CLASS_RELATION_PATTERN.match(line)
        kind = relationship_type(relation.group("token")) if relation else None
        if relation is not None and kind is not None:
            source = classes(relation.group("source")).id
            target = classes(relation.group("target")).id
            label = (relation.group("label") or "").strip() or None
            relationships.append(ClassRelationship(source, target, kind, label))
            continue
        if member := CLASS_MEMBER_PATTERN.match(line):
            owner = classes(member.group("owner"))
            text = member.group("member").strip()
            (owner.methods if "(" in text else owner.attributes).append(text)
            continue
        _skip(DiagramKind.CLASS, line)
    return ClassDiagram(classes=classes.values(), relationships=relationships)


def _state_type(state_id: str) -> StateType:
    key = state_id.lower()
    if key in INITIAL_STATE_NAMES:
        return StateType.INITIAL
    if key in FINAL_STATE_NAMES:
        return StateType.FINAL
    return StateType.NORMAL


def _parse_state(statements: list[str]) -> StateDiagram:
    states = _FirstMention(
        lambda state_id: StateNode(id=state_id, label=state_id, state_type=_state_type(state_id))
    )
    transitions: list[StateTransition] = []
    for line in statements:
        match = STATE_TRANSITION_PATTERN.match(line)
        if match is None:
            if ":" not in line and "->" not in line:
                states(line)
                continue
            _skip(DiagramKind.STATE, line)
            continue
        source = states(match.group("source").strip()).id
        target = states(match.group("target").strip()).id
        transitions.append(
            StateTransition(source, target, (match.group("label") or "").strip())
        )
    return StateDiagram(states=states.values(), transitions=transitions)


__all__ = ["parse_diagram", "relationship_type"]
