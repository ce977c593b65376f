"""Validation issue types."""

from dataclasses import dataclass, replace
from enum import Enum


class Severity(str, Enum):
    """How an issue affects the build."""

    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    """Every problem the validator can report."""

    # Structural errors
    MISSING_START = "missing_start"
    DUPLICATE_ID = "duplicate_id"
    EMPTY_ID = "empty_id"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    UNRESOLVED_LABEL = "unresolved_label"
    NODE_LIMIT_EXCEEDED = "node_limit_exceeded"
    UNRESOLVED_CONTINUATION = "unresolved_continuation"

    # Semantic warnings
    BRANCH_WITHOUT_OTHERWISE = "branch_without_otherwise"
    NO_FALLBACK_TRIGGERS = "no_fallback_triggers"
    UNREACHABLE_NODE = "unreachable_node"


SEMANTIC_CODES = frozenset(
    {
        IssueCode.BRANCH_WITHOUT_OTHERWISE,
        IssueCode.NO_FALLBACK_TRIGGERS,
        IssueCode.UNREACHABLE_NODE,
    }
)


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in a flow."""

    code: IssueCode
    message: str
    severity: Severity = Severity.ERROR
    node_id: str | None = None

    @property
    def is_structural(self) -> bool:
        return self.code not in SEMANTIC_CODES

    def promoted(self) -> "ValidationIssue":
        """Return a copy of this issue with ERROR severity."""
        return replace(self, severity=Severity.ERROR)

    def __str__(self) -> str:
        where = f" [{self.node_id}]" if self.node_id else ""
        return f"{self.severity.value}: {self.code.value}{where}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """All issues found by one validation pass."""

    issues: tuple[ValidationIssue, ...] = ()

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity is Severity.ERROR)

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity is Severity.WARNING)

    @property
    def ok(self) -> bool:
        return not self.errors

    def codes(self) -> list[IssueCode]:
        return [i.code for i in self.issues]

    def by_code(self, code: IssueCode) -> list[ValidationIssue]:
        return [i for i in self.issues if i.code is code]
