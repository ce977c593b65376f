"""Tests for the action-node model and graph container."""

import pytest

from ivrflow.core.constants import ActionKind, ComparisonOperator, EdgeSlot, ErrorKind
from ivrflow.core.types import (
    ActionNode,
    ConditionEdge,
    DanglingTail,
    ErrorEdge,
    FlowGraph,
    NodeHandle,
    NodeRef,
    Transitions,
)


class TestNodeRef:
    def test_node_ref_is_resolved(self):
        assert NodeRef.to_node("prompt-001").is_resolved
        assert not NodeRef.to_label("menu").is_resolved

    def test_str_marks_labels(self):
        assert str(NodeRef.to_node("prompt-001")) == "prompt-001"
        assert str(NodeRef.to_label("menu")) == "@menu"

    def test_handle_ref_points_at_node(self):
        handle = NodeHandle("branch-002", ActionKind.BRANCH)

        assert handle.ref() == NodeRef.to_node("branch-002")


class TestTransitions:
    def test_targets_yield_next_then_conditions_then_errors(self):
        """Test targets() iterates next, conditions and errors in that order."""
        # Arrange
        transitions = Transitions(
            next=NodeRef.to_node("a"),
            conditions=(ConditionEdge(ComparisonOperator.EQUALS, ("1",), NodeRef.to_node("b")),),
            errors=(ErrorEdge(ErrorKind.TIMEOUT, NodeRef.to_node("c")),),
        )

        # Act
        targets = [ref.node_id for ref in transitions.targets()]

        # Assert
        assert targets == ["a", "b", "c"]

    def test_empty_transitions_have_no_targets(self):
        assert list(Transitions().targets()) == []


class TestActionNode:
    def test_parameters_are_read_only(self):
        """Test node parameters cannot be mutated after creation."""
        node = ActionNode("prompt-001", ActionKind.PROMPT, {"Text": "Hi"})

        with pytest.raises(TypeError):
            node.parameters["Text"] = "Bye"  # type: ignore[index]

    def test_parameters_keep_insertion_order(self):
        node = ActionNode("input-001", ActionKind.INPUT, {"Text": "x", "MaxDigits": 1, "A": 2})

        assert list(node.parameters) == ["Text", "MaxDigits", "A"]


class TestFlowGraph:
    def test_graph_lookup_and_iteration(self):
        # Arrange
        first = ActionNode("prompt-001", ActionKind.PROMPT, {"Text": "Hi"})
        last = ActionNode("disconnect-002", ActionKind.DISCONNECT)
        graph = FlowGraph("main", "prompt-001", {first.id: first, last.id: last})

        # Act & Assert
        assert len(graph) == 2
        assert graph.start is first
        assert graph["disconnect-002"] is last
        assert [node.id for node in graph] == ["prompt-001", "disconnect-002"]


def test_dangling_tail_str():
    assert str(DanglingTail("branch-002")) == "branch-002.next"
    assert str(DanglingTail("branch-002", EdgeSlot.CONDITION, 1)) == "branch-002.condition[1]"
