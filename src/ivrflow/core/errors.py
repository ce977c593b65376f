"""Core compiler errors."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ivrflow.validation.issues import ValidationReport


class IvrFlowError(Exception):
    """Base class for all ivrflow errors."""

    pass


class UsageError(IvrFlowError):
    """Raised at the call site when the builder API is used incorrectly.

    Covers problems detectable without full-graph context: invalid case
    values, malformed attribute references, missing required parameters,
    duplicate labels and calls on inactive builders.
    """

    pass


class GraphBuildError(IvrFlowError):
    """Raised when the continuation stack is left in an inconsistent state."""

    pass


class FlowValidationError(IvrFlowError):
    """Raised by ``build()`` when validation finds fatal issues."""

    def __init__(self, report: "ValidationReport", flow_name: str = ""):
        self.report = report
        self.flow_name = flow_name
        errors = report.errors
        header = f"Flow '{flow_name}' failed validation" if flow_name else "Flow failed validation"
        lines = [f"{header} with {len(errors)} error(s):"]
        lines.extend(f"  - {issue}" for issue in errors)
        super().__init__("\n".join(lines))


class SerializationError(IvrFlowError):
    """Raised when a graph cannot be rendered to the flow document."""

    pass


class ConfigError(IvrFlowError):
    """Raised when a declarative flow definition is invalid."""
