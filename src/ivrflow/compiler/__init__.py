"""Flow graph compiler: builders, branch resolution and input expansion."""

from ivrflow.compiler.branch import Case
from ivrflow.compiler.builder import FlowBuilder
from ivrflow.compiler.flow_compiler import FlowCompiler
from ivrflow.compiler.sequential import DtmfConfig, SpeechConfig

__all__ = ["Case", "DtmfConfig", "FlowBuilder", "FlowCompiler", "SpeechConfig"]
