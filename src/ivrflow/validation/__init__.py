"""Flow validation."""

from ivrflow.validation.issues import IssueCode, Severity, ValidationIssue, ValidationReport
from ivrflow.validation.validator import UNRESOLVED_TAIL_SEVERITY, FlowValidator

__all__ = [
    "FlowValidator",
    "IssueCode",
    "Severity",
    "UNRESOLVED_TAIL_SEVERITY",
    "ValidationIssue",
    "ValidationReport",
]
