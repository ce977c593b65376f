"""Mutable state shared by every builder of one flow."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ivrflow.compiler.labels import LabelTable
from ivrflow.compiler.scope import ContinuationStack
from ivrflow.core.constants import ActionKind, ComparisonOperator, EdgeSlot, ErrorKind
from ivrflow.core.errors import GraphBuildError
from ivrflow.core.types import (
    ActionNode,
    ConditionEdge,
    DanglingTail,
    ErrorEdge,
    FlowDraft,
    NodeRef,
    Transitions,
)
from ivrflow.validation.issues import ValidationIssue

logger = logging.getLogger(__name__)

_UNSET = NodeRef()


@dataclass
class _ConditionDraft:
    operator: ComparisonOperator
    operands: tuple[str, ...]
    target: NodeRef = _UNSET


@dataclass
class _ErrorDraft:
    error: ErrorKind
    target: NodeRef


@dataclass
class NodeDraft:
    """An action node while its edges are still being wired."""

    id: str
    kind: ActionKind
    parameters: dict[str, Any]
    position: int
    next: NodeRef | None = None
    conditions: list[_ConditionDraft] = field(default_factory=list)
    errors: list[_ErrorDraft] = field(default_factory=list)

    def add_condition(self, operator: ComparisonOperator, operands: tuple[str, ...]) -> int:
        self.conditions.append(_ConditionDraft(operator, operands))
        return len(self.conditions) - 1

    def add_error(self, error: ErrorKind, target: NodeRef) -> None:
        self.errors.append(_ErrorDraft(error, target))

    def freeze(self, labels: LabelTable) -> ActionNode:
        """Resolve labels and return the immutable node."""
        return ActionNode(
            id=self.id,
            kind=self.kind,
            parameters=self.parameters,
            transitions=Transitions(
                next=labels.resolve(self.next) if self.next is not None else None,
                conditions=tuple(
                    ConditionEdge(c.operator, c.operands, labels.resolve(c.target))
                    for c in self.conditions
                ),
                errors=tuple(ErrorEdge(e.error, labels.resolve(e.target)) for e in self.errors),
            ),
        )


class BuildState:
    """Counter, node store, label table and scope stack for one flow."""

    def __init__(self, name: str):
        self.name = name
        self.labels = LabelTable()
        self.scopes = ContinuationStack()
        self.start_id: str | None = None
        self.notes: list[ValidationIssue] = []
        self.failed_at: str | None = None
        self._nodes: list[NodeDraft] = []
        self._counter = 0

    def new_node(
        self,
        kind: ActionKind,
        prefix: str,
        parameters: Mapping[str, Any],
        node_id: str | None = None,
    ) -> NodeDraft:
        """Create a node, deriving its id from the creation counter."""
        self._counter += 1
        if node_id is None:
            node_id = f"{prefix}-{self._counter:03d}"
        draft = NodeDraft(
            id=node_id, kind=kind, parameters=dict(parameters), position=len(self._nodes)
        )
        self._nodes.append(draft)
        if self.start_id is None:
            self.start_id = node_id
        logger.debug(f"Created {kind.name} action '{node_id}'")
        return draft

    def tail(
        self, draft: NodeDraft, slot: EdgeSlot = EdgeSlot.NEXT, index: int = 0
    ) -> DanglingTail:
        """Describe one edge of ``draft`` as a dangling tail."""
        return DanglingTail(draft.id, slot, index, position=draft.position)

    def patch(self, tail: DanglingTail, target: NodeRef) -> None:
        """Point the edge described by ``tail`` at ``target``."""
        if not 0 <= tail.position < len(self._nodes):
            raise GraphBuildError(f"Dangling tail {tail} points outside flow '{self.name}'")
        draft = self._nodes[tail.position]
        if draft.id != tail.node_id:
            raise GraphBuildError(f"Dangling tail {tail} does not match action '{draft.id}'")
        if tail.slot is EdgeSlot.NEXT:
            if draft.next is not None:
                raise GraphBuildError(f"Action '{draft.id}' already has a next action")
            draft.next = target
        else:
            draft.conditions[tail.index].target = target
        logger.debug(f"Linked {tail} -> {target}")

    def note(self, issue: ValidationIssue) -> None:
        self.notes.append(issue)

    def fail(self, node_id: str, error: Exception) -> None:
        """Mark the flow unusable after a statement at ``node_id`` failed part-way."""
        if self.failed_at is None:
            self.failed_at = node_id
            logger.error(f"Flow '{self.name}': statement at '{node_id}' failed: {error}")

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def freeze(self, unresolved_tails: list[DanglingTail]) -> FlowDraft:
        """Snapshot every node into a ``FlowDraft`` for validation."""
        return FlowDraft(
            name=self.name,
            start_id=self.start_id,
            nodes=tuple(draft.freeze(self.labels) for draft in self._nodes),
            labels=self.labels.as_dict(),
            unresolved_tails=tuple(unresolved_tails),
            notes=tuple(self.notes),
        )
