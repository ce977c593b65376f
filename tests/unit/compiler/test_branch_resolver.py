"""Tests for branch construction and join-point backfill."""

import pytest

from ivrflow.compiler import Case, DtmfConfig, FlowBuilder
from ivrflow.core.constants import ActionKind, ComparisonOperator
from ivrflow.core.errors import FlowValidationError, UsageError
from ivrflow.core.types import NodeRef
from ivrflow.validation.issues import IssueCode, Severity


def hang_up(b: FlowBuilder) -> None:
    b.disconnect()


def nothing(b: FlowBuilder) -> None:
    pass


class TestBranchScenario:
    """Prompt, branch with one case and an empty otherwise, then disconnect."""

    @pytest.fixture
    def graph(self, builder):
        builder.prompt("Welcome")
        builder.branch(
            "$.Attributes.choice",
            [("1", lambda b: b.transfer_to_queue("sales"))],
            otherwise=nothing,
        )
        builder.disconnect()
        return builder.build()

    def test_node_ids_and_count(self, graph):
        assert list(graph.nodes) == ["prompt-001", "branch-002", "transfer-003", "disconnect-004"]

    def test_prompt_links_to_branch(self, graph):
        assert graph["prompt-001"].transitions.next == NodeRef.to_node("branch-002")

    def test_case_edge_targets_transfer(self, graph):
        conditions = graph["branch-002"].transitions.conditions
        assert len(conditions) == 1
        assert conditions[0].operator is ComparisonOperator.EQUALS
        assert conditions[0].operands == ("1",)
        assert conditions[0].target == NodeRef.to_node("transfer-003")

    def test_otherwise_resumes_after_branch(self, graph):
        """Test the empty otherwise path becomes the branch's next edge."""
        assert graph["branch-002"].transitions.next == NodeRef.to_node("disconnect-004")

    def test_transfer_has_no_next(self, graph):
        assert graph["transfer-003"].transitions.next is None

    def test_no_warnings(self, graph):
        assert graph.warnings == ()


class TestJoinPoints:
    def test_every_falling_through_case_joins_next_statement(self, builder):
        """
        GIVEN three cases that each add a prompt
        WHEN the branch is followed by a disconnect
        THEN every case body and the otherwise path continue at the disconnect
        """
        # Arrange
        builder.branch(
            "$.Attributes.lang",
            [
                ("en", lambda b: b.prompt("Hello")),
                ("es", lambda b: b.prompt("Hola")),
                ("fr", lambda b: b.prompt("Bonjour")),
            ],
            otherwise=lambda b: b.prompt("Hi"),
        )

        # Act
        end = builder.disconnect()
        graph = builder.build()

        # Assert
        for node_id in ("prompt-002", "prompt-003", "prompt-004", "prompt-005"):
            assert graph[node_id].transitions.next == end.ref()

    def test_empty_case_body_links_branch_edge_directly(self, builder):
        builder.branch("$.Attributes.vip", [(True, nothing)], otherwise=hang_up)
        after = builder.prompt("Welcome back")

        graph = builder.build()

        condition = graph["branch-001"].transitions.conditions[0]
        assert condition.operands == ("True",)
        assert condition.target == after.ref()

    def test_nested_branches_join_outer_continuation(self, builder):
        """Test tails from an inner branch are handed to the outer one."""
        # Arrange
        builder.branch(
            "$.Attributes.a",
            [
                (
                    "x",
                    lambda b: b.branch(
                        "$.Attributes.b",
                        [("y", lambda c: c.prompt("Y"))],
                        otherwise=lambda c: c.prompt("not Y"),
                    ),
                )
            ],
            otherwise=lambda b: b.prompt("not X"),
        )

        # Act
        builder.disconnect()
        graph = builder.build()

        # Assert
        assert list(graph.nodes) == [
            "branch-001",
            "branch-002",
            "prompt-003",
            "prompt-004",
            "prompt-005",
            "disconnect-006",
        ]
        for node_id in ("prompt-003", "prompt-004", "prompt-005"):
            assert graph[node_id].transitions.next == NodeRef.to_node("disconnect-006")

    def test_statements_inside_body_continue_after_nested_branch(self, builder):
        def body(b: FlowBuilder) -> None:
            b.branch("$.Attributes.b", [("1", nothing)], otherwise=nothing)
            b.prompt("inner join")

        builder.branch("$.Attributes.a", [("1", body)], otherwise=hang_up)
        builder.disconnect()

        graph = builder.build()

        inner = graph["branch-002"]
        assert inner.transitions.next == NodeRef.to_node("prompt-003")
        assert inner.transitions.conditions[0].target == NodeRef.to_node("prompt-003")
        assert graph["prompt-003"].transitions.next == NodeRef.to_node("disconnect-005")

    def test_unresolved_fall_through_is_fatal(self, builder):
        """Test a branch path with nothing after it fails the build once per tail."""
        # Arrange
        builder.prompt("Hi")
        builder.branch(
            "$.Attributes.x",
            [("1", lambda b: b.prompt("one")), ("2", nothing)],
            otherwise=hang_up,
        )

        # Act
        with pytest.raises(FlowValidationError) as exc_info:
            builder.build()

        # Assert
        issues = exc_info.value.report.by_code(IssueCode.UNRESOLVED_CONTINUATION)
        assert len(issues) == 2
        assert all(issue.severity is Severity.ERROR for issue in issues)
        assert {issue.node_id for issue in issues} == {"prompt-003", "branch-002"}


class TestCaseShapes:
    def test_mapping_cases(self, builder):
        builder.branch("$.Attributes.x", {"a": hang_up, "b": hang_up}, otherwise=hang_up)

        graph = builder.build()

        operands = [c.operands for c in graph["branch-001"].transitions.conditions]
        assert operands == [("a",), ("b",)]

    def test_case_objects_with_operator(self, builder):
        builder.branch(
            "$.Attributes.balance",
            [Case(100, hang_up, ComparisonOperator.GREATER_THAN)],
            otherwise=hang_up,
        )

        graph = builder.build()

        condition = graph["branch-001"].transitions.conditions[0]
        assert condition.operator is ComparisonOperator.GREATER_THAN
        assert condition.operands == ("100",)

    def test_three_tuple_with_operator_name(self, builder):
        builder.branch(
            "$.Attributes.name", [("Dr", hang_up, "StartsWith")], otherwise=hang_up
        )

        graph = builder.build()

        assert graph["branch-001"].transitions.conditions[0].operator is (
            ComparisonOperator.STARTS_WITH
        )

    def test_label_and_handle_bodies_produce_same_edges(self):
        """Test jumping by label or by handle yields the same resolved target."""
        # Arrange
        by_label = FlowBuilder("a")
        by_label.prompt("Hi")
        by_label.branch("$.Attributes.x", [("1", "end")], otherwise="end")
        by_label.disconnect(label="end")

        by_handle = FlowBuilder("b")
        by_handle.prompt("Hi")
        by_handle.jump_to("skip")
        end = by_handle.disconnect()
        by_handle.prompt("unused", label="skip")
        by_handle.branch("$.Attributes.x", [("1", end)], otherwise=end)

        # Act
        label_branch = by_label.build()["branch-002"]
        handle_branch = by_handle.build()["branch-004"]

        # Assert
        assert label_branch.transitions.conditions[0].target == NodeRef.to_node("disconnect-003")
        assert handle_branch.transitions.conditions[0].target == NodeRef.to_node("disconnect-002")
        assert label_branch.transitions.next.label is None
        assert handle_branch.transitions.next.label is None


class TestBranchUsageErrors:
    """Malformed branches fail at the call site and create no nodes."""

    def test_zero_cases(self, builder):
        with pytest.raises(UsageError, match="at least one case"):
            builder.branch("$.Attributes.x", [])
        assert builder.node_count == 0

    def test_invalid_case_value(self, builder):
        with pytest.raises(UsageError, match="Unsupported value type"):
            builder.branch("$.Attributes.x", [(None, hang_up)])
        assert builder.node_count == 0

    def test_malformed_attribute_ref(self, builder):
        with pytest.raises(UsageError, match="Malformed attribute reference"):
            builder.branch("Attributes.x", [("1", hang_up)])
        assert builder.node_count == 0

    def test_malformed_case(self, builder):
        with pytest.raises(UsageError, match="Case 1 must be a Case"):
            builder.branch("$.Attributes.x", ["just a value"])

    def test_unknown_operator(self, builder):
        with pytest.raises(UsageError, match="unknown operator"):
            builder.branch("$.Attributes.x", [("1", hang_up, "Resembles")])

    def test_body_not_callable(self, builder):
        with pytest.raises(UsageError, match="body must be callable"):
            builder.branch("$.Attributes.x", [("1", 42)])

    def test_cases_must_be_sequence(self, builder):
        with pytest.raises(UsageError, match="sequence or mapping"):
            builder.branch("$.Attributes.x", "abc")


class TestBuilderActivity:
    def test_parent_is_inactive_while_body_runs(self, builder):
        """Test the enclosing builder rejects calls made from inside a body."""

        def misuse(b: FlowBuilder) -> None:
            builder.prompt("wrong builder")

        with pytest.raises(UsageError, match="inactive"):
            builder.branch("$.Attributes.x", [("1", misuse)])

    def test_body_builder_is_closed_afterwards(self, builder):
        captured: list[FlowBuilder] = []

        builder.branch("$.Attributes.x", [("1", captured.append)], otherwise=hang_up)
        builder.disconnect()

        with pytest.raises(UsageError, match="closed"):
            captured[0].prompt("too late")

    def test_build_on_body_builder(self, builder):
        captured: list[FlowBuilder] = []
        builder.branch("$.Attributes.x", [("1", captured.append)], otherwise=hang_up)

        with pytest.raises(UsageError, match="top-level"):
            captured[0].build()


class TestBranchWithoutOtherwise:
    def test_warning_on_graph(self, builder):
        builder.branch("$.Attributes.x", [("1", lambda b: b.prompt("one"))])
        builder.disconnect()

        graph = builder.build()

        assert [w.code for w in graph.warnings] == [IssueCode.BRANCH_WITHOUT_OTHERWISE]
        assert graph["branch-001"].transitions.next is None
        assert graph["branch-001"].kind is ActionKind.BRANCH

    def test_strict_mode_makes_it_fatal(self):
        builder = FlowBuilder("strict", strict=True)
        builder.branch("$.Attributes.x", [("1", lambda b: b.prompt("one"))])
        builder.disconnect()

        with pytest.raises(FlowValidationError) as exc_info:
            builder.build()

        assert exc_info.value.report.codes() == [IssueCode.BRANCH_WITHOUT_OTHERWISE]


class TestFailedStatements:
    """A call rejected inside a case body leaves a clearly unusable builder."""

    def test_later_calls_raise_usage_error(self, builder):
        """
        GIVEN a case body whose own branch call is rejected
        WHEN the caller catches the error and keeps building
        THEN every later call, build() included, raises UsageError
        """
        # Arrange
        builder.prompt("Hi")

        # Act
        with pytest.raises(UsageError, match="Malformed attribute reference"):
            builder.branch(
                "$.Attributes.x",
                [("1", lambda b: b.branch("bad ref", [("1", hang_up)]))],
                otherwise=hang_up,
            )

        # Assert
        with pytest.raises(UsageError, match="unusable after a failed statement at 'branch-002'"):
            builder.disconnect()
        with pytest.raises(UsageError, match="unusable after a failed statement"):
            builder.build()

    def test_scopes_opened_inside_failed_body_are_discarded(self, builder):
        def body(b: FlowBuilder) -> None:
            b.branch("$.Attributes.y", [("1", nothing)], otherwise=nothing)
            b.set_queue(" ")

        with pytest.raises(UsageError, match="requires parameter 'QueueId'"):
            builder.branch("$.Attributes.x", [("1", body)], otherwise=hang_up)

        assert builder._state.scopes.is_empty
        assert builder._state.failed_at == "branch-001"

    def test_failure_in_sequential_input_body(self, builder):
        with pytest.raises(UsageError):
            builder.sequential_input(
                "Say or press", dtmf=DtmfConfig(digits=[("1", lambda b: b.jump_to(""))])
            )

        assert builder._state.scopes.is_empty
        with pytest.raises(UsageError, match="unusable"):
            builder.prompt("Again")

    def test_rejected_top_level_call_keeps_builder_usable(self, builder):
        """Test errors caught before any node is created do not poison the builder."""
        with pytest.raises(UsageError):
            builder.branch("$.Attributes.x", [])

        builder.disconnect()

        assert len(builder.build()) == 1
