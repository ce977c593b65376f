"""Action-node model and graph container."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from ivrflow.core.constants import ActionKind, ComparisonOperator, EdgeSlot, ErrorKind
from ivrflow.core.values import ScalarValue

if TYPE_CHECKING:
    from ivrflow.validation.issues import ValidationIssue


@dataclass(frozen=True)
class NodeRef:
    """Target of a transition.

    Holds a concrete node id, or a label name while the label is still a
    forward reference. Once a flow is built every ref has a ``node_id``.
    """

    node_id: str | None = None
    label: str | None = None

    @classmethod
    def to_node(cls, node_id: str) -> "NodeRef":
        return cls(node_id=node_id)

    @classmethod
    def to_label(cls, label: str) -> "NodeRef":
        return cls(label=label)

    @property
    def is_resolved(self) -> bool:
        return self.node_id is not None

    def __str__(self) -> str:
        if self.node_id is not None:
            return self.node_id
        return f"@{self.label}"


@dataclass(frozen=True)
class ConditionEdge:
    """Conditional transition: taken when ``Operator(value, operands)`` holds."""

    operator: ComparisonOperator
    operands: tuple[str, ...]
    target: NodeRef


@dataclass(frozen=True)
class ErrorEdge:
    """Transition taken when the action reports ``error``."""

    error: ErrorKind
    target: NodeRef


@dataclass(frozen=True)
class Transitions:
    """Outgoing edges of one action node."""

    next: NodeRef | None = None
    conditions: tuple[ConditionEdge, ...] = ()
    errors: tuple[ErrorEdge, ...] = ()

    def targets(self) -> Iterator[NodeRef]:
        """Iterate every edge target, ``next`` first."""
        if self.next is not None:
            yield self.next
        for condition in self.conditions:
            yield condition.target
        for error in self.errors:
            yield error.target


@dataclass(frozen=True)
class ActionNode:
    """One step of a compiled contact flow."""

    id: str
    kind: ActionKind
    parameters: Mapping[str, ScalarValue] = field(default_factory=dict)
    transitions: Transitions = field(default_factory=Transitions)

    def __post_init__(self) -> None:
        # Freeze the parameter mapping while keeping insertion order
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


@dataclass(frozen=True)
class NodeHandle:
    """Reference to a node returned by the builder."""

    node_id: str
    kind: ActionKind

    def ref(self) -> NodeRef:
        return NodeRef.to_node(self.node_id)


@dataclass(frozen=True)
class FlowGraph:
    """A validated, fully wired contact flow."""

    name: str
    start_id: str
    nodes: Mapping[str, ActionNode]
    warnings: tuple["ValidationIssue", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ActionNode]:
        return iter(self.nodes.values())

    def __getitem__(self, node_id: str) -> ActionNode:
        return self.nodes[node_id]

    @property
    def start(self) -> ActionNode:
        return self.nodes[self.start_id]


@dataclass(frozen=True)
class DanglingTail:
    """An edge whose target is not known yet.

    ``index`` selects the condition or error edge for non-``next`` slots.
    ``position`` is the creation order of the node, which stays unambiguous
    even when callers assign duplicate ids.
    """

    node_id: str
    slot: EdgeSlot = EdgeSlot.NEXT
    index: int = 0
    position: int = -1

    def __str__(self) -> str:
        if self.slot is EdgeSlot.NEXT:
            return f"{self.node_id}.next"
        return f"{self.node_id}.{self.slot.value}[{self.index}]"


@dataclass(frozen=True)
class FlowDraft:
    """Frozen result of a build pass, before validation.

    ``nodes`` is a sequence, not a mapping, so that duplicate ids survive for the validator to
    report. ``notes`` carries semantic issues noticed while building.
    """

    name: str
    start_id: str | None
    nodes: tuple[ActionNode, ...]
    labels: Mapping[str, str] = field(default_factory=dict)
    unresolved_tails: tuple[DanglingTail, ...] = ()
    notes: tuple["ValidationIssue", ...] = ()
