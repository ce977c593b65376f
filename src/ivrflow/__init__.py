"""ivrflow - contact-flow compiler.

ivrflow turns fluent or declarative flow programs into validated action
graphs and renders them as flow-language documents for an IVR runtime.

Quick start:
    from ivrflow import FlowBuilder, FlowSerializer

    flow = FlowBuilder("support")
    flow.prompt("Thanks for calling")
    flow.disconnect()

    document = FlowSerializer().to_json(flow.build())
"""

from ivrflow.__version__ import __version__
from ivrflow.compiler import Case, DtmfConfig, FlowBuilder, FlowCompiler, SpeechConfig
from ivrflow.config import CompilerSettings, ConfigLoader, FlowsConfig
from ivrflow.core.constants import ActionKind, ComparisonOperator, ErrorKind, FallbackTrigger
from ivrflow.core.errors import (
    ConfigError,
    FlowValidationError,
    GraphBuildError,
    IvrFlowError,
    SerializationError,
    UsageError,
)
from ivrflow.core.types import FlowGraph, NodeHandle
from ivrflow.serialization import FlowSerializer
from ivrflow.validation import FlowValidator, IssueCode, Severity, ValidationReport

__all__ = [
    "__version__",
    # Builders
    "Case",
    "DtmfConfig",
    "FlowBuilder",
    "FlowCompiler",
    "SpeechConfig",
    # Graph and enums
    "ActionKind",
    "ComparisonOperator",
    "ErrorKind",
    "FallbackTrigger",
    "FlowGraph",
    "NodeHandle",
    # Validation and output
    "FlowSerializer",
    "FlowValidator",
    "IssueCode",
    "Severity",
    "ValidationReport",
    # Configuration
    "CompilerSettings",
    "ConfigLoader",
    "FlowsConfig",
    # Errors
    "IvrFlowError",
    "UsageError",
    "GraphBuildError",
    "FlowValidationError",
    "SerializationError",
    "ConfigError",
]
