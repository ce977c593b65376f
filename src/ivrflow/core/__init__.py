"""Core domain types and infrastructure."""

from ivrflow.core.constants import (
    FLOW_LANGUAGE_VERSION,
    MAX_ACTIONS,
    ActionKind,
    ComparisonOperator,
    ErrorKind,
    FallbackTrigger,
)
from ivrflow.core.errors import (
    ConfigError,
    FlowValidationError,
    GraphBuildError,
    IvrFlowError,
    SerializationError,
    UsageError,
)
from ivrflow.core.types import (
    ActionNode,
    ConditionEdge,
    DanglingTail,
    ErrorEdge,
    FlowDraft,
    FlowGraph,
    NodeHandle,
    NodeRef,
    Transitions,
)

__all__ = [
    "FLOW_LANGUAGE_VERSION",
    "MAX_ACTIONS",
    "ActionKind",
    "ComparisonOperator",
    "ErrorKind",
    "FallbackTrigger",
    "ActionNode",
    "ConditionEdge",
    "DanglingTail",
    "ErrorEdge",
    "FlowDraft",
    "FlowGraph",
    "NodeHandle",
    "NodeRef",
    "Transitions",
    "IvrFlowError",
    "UsageError",
    "GraphBuildError",
    "FlowValidationError",
    "SerializationError",
    "ConfigError",
]
