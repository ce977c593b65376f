"""Structural validation of built flows."""

import logging
from collections import Counter, deque

from ivrflow.core.constants import MAX_ACTIONS, EdgeSlot
from ivrflow.core.types import ActionNode, DanglingTail, FlowDraft
from ivrflow.validation.issues import IssueCode, Severity, ValidationIssue, ValidationReport

logger = logging.getLogger(__name__)

# A branch body that falls through with nothing after the branch is a fatal
# structural error. No implicit disconnect is ever inserted.
UNRESOLVED_TAIL_SEVERITY = Severity.ERROR


class FlowValidator:
    """Checks a ``FlowDraft`` and reports every issue it finds.

    The validator never stops at the first problem: a flow with a duplicate
    id and a dangling reference gets both reported.
    """

    def __init__(self, strict: bool = False, max_actions: int = MAX_ACTIONS):
        """
        Initialize FlowValidator.

        Args:
            strict: Promote semantic warnings to errors
            max_actions: Node ceiling; cannot exceed the runtime's hard limit
        """
        if not 0 < max_actions <= MAX_ACTIONS:
            raise ValueError(f"max_actions must be between 1 and {MAX_ACTIONS}, got {max_actions}")
        self.strict = strict
        self.max_actions = max_actions

    def validate(self, draft: FlowDraft) -> ValidationReport:
        """
        Validate a draft.

        Args:
            draft: Frozen output of a build pass

        Returns:
            ValidationReport with errors and warnings
        """
        issues: list[ValidationIssue] = []
        node_ids = {node.id for node in draft.nodes}

        issues.extend(self._check_start(draft, node_ids))
        issues.extend(self._check_ids(draft.nodes))
        issues.extend(self._check_size(draft.nodes))
        issues.extend(self._check_references(draft, node_ids))
        issues.extend(self._check_continuations(draft.unresolved_tails))
        issues.extend(draft.notes)
        issues.extend(self._check_reachability(draft, node_ids))

        if self.strict:
            issues = [i.promoted() if i.severity is Severity.WARNING else i for i in issues]

        report = ValidationReport(issues=tuple(issues))
        logger.debug(
            f"Validated flow '{draft.name}': {len(report.errors)} error(s), "
            f"{len(report.warnings)} warning(s)"
        )
        return report

    def _check_start(self, draft: FlowDraft, node_ids: set[str]) -> list[ValidationIssue]:
        if draft.start_id is None:
            return [ValidationIssue(IssueCode.MISSING_START, "Flow has no start action")]
        if draft.start_id not in node_ids:
            return [
                ValidationIssue(
                    IssueCode.MISSING_START,
                    f"Start action '{draft.start_id}' does not exist",
                )
            ]
        return []

    def _check_ids(self, nodes: tuple[ActionNode, ...]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        counts = Counter(node.id for node in nodes)
        for node_id, count in counts.items():
            if not node_id or not node_id.strip():
                issues.append(
                    ValidationIssue(
                        IssueCode.EMPTY_ID, f"{count} action(s) have an empty identifier"
                    )
                )
            elif count > 1:
                issues.append(
                    ValidationIssue(
                        IssueCode.DUPLICATE_ID,
                        f"Identifier is used by {count} actions",
                        node_id=node_id,
                    )
                )
        return issues

    def _check_size(self, nodes: tuple[ActionNode, ...]) -> list[ValidationIssue]:
        if len(nodes) > self.max_actions:
            return [
                ValidationIssue(
                    IssueCode.NODE_LIMIT_EXCEEDED,
                    f"Flow has {len(nodes)} actions; the limit is {self.max_actions}",
                )
            ]
        return []

    def _check_references(self, draft: FlowDraft, node_ids: set[str]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for node in draft.nodes:
            for ref in node.transitions.targets():
                if ref.node_id is not None:
                    if ref.node_id not in node_ids:
                        issues.append(
                            ValidationIssue(
                                IssueCode.UNRESOLVED_REFERENCE,
                                f"Transition targets unknown action '{ref.node_id}'",
                                node_id=node.id,
                            )
                        )
                elif ref.label is not None:
                    issues.append(
                        ValidationIssue(
                            IssueCode.UNRESOLVED_LABEL,
                            f"Label '{ref.label}' is never bound",
                            node_id=node.id,
                        )
                    )
                # Edges with no target at all are unresolved tails, reported separately
        return issues

    def _check_continuations(self, tails: tuple[DanglingTail, ...]) -> list[ValidationIssue]:
        issues = []
        for tail in tails:
            if tail.slot is EdgeSlot.NEXT:
                edge = "falls through"
            else:
                edge = f"has an open {tail.slot.value} edge"
            issues.append(
                ValidationIssue(
                    IssueCode.UNRESOLVED_CONTINUATION,
                    f"Branch path {edge} but nothing follows the branch",
                    severity=UNRESOLVED_TAIL_SEVERITY,
                    node_id=tail.node_id,
                )
            )
        return issues

    def _check_reachability(self, draft: FlowDraft, node_ids: set[str]) -> list[ValidationIssue]:
        if draft.start_id is None or draft.start_id not in node_ids:
            return []

        by_id: dict[str, ActionNode] = {}
        for node in draft.nodes:
            by_id.setdefault(node.id, node)

        seen = {draft.start_id}
        queue = deque([draft.start_id])
        while queue:
            current = by_id[queue.popleft()]
            for ref in current.transitions.targets():
                if ref.node_id in by_id and ref.node_id not in seen:
                    seen.add(ref.node_id)
                    queue.append(ref.node_id)

        return [
            ValidationIssue(
                IssueCode.UNREACHABLE_NODE,
                "Action cannot be reached from the start action",
                severity=Severity.WARNING,
                node_id=node_id,
            )
            for node_id in by_id
            if node_id not in seen
        ]
