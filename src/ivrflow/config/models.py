"""Declarative flow definition models.

Flows are written as YAML and validated with pydantic. Steps use a
discriminated union on ``type``; branching steps nest further steps inline
or point at a step ``id`` with ``goto``::

    flows:
      support:
        steps:
          - type: prompt
            text: Thanks for calling
          - type: branch
            attribute: $.Attributes.tier
            cases:
              - value: gold
                steps:
                  - type: transfer
                    queue: priority
            otherwise:
              steps: []
          - type: disconnect
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ivrflow.config.settings import CompilerSettings
from ivrflow.core.constants import ComparisonOperator

# DSL Version constants
SUPPORTED_VERSIONS = frozenset({"1.0"})
CURRENT_VERSION = "1.0"

ScalarConfigValue = str | bool | int | float

FallbackName = Literal[
    "timeout",
    "no_match",
    "low_confidence",
    "invalid_input",
    "error",
    "max_retries_exceeded",
]


class BodyConfig(BaseModel):
    """Where a branch path goes: a ``goto`` label or inline ``steps``."""

    model_config = ConfigDict(extra="forbid")

    goto: str | None = Field(default=None, description="Step id to jump to")
    steps: list["StepConfig"] | None = Field(default=None, description="Inline steps")

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "BodyConfig":
        if (self.goto is None) == (self.steps is None):
            raise ValueError("specify exactly one of 'goto' or 'steps'")
        return self


class CaseConfig(BodyConfig):
    """One case of a branch or input step."""

    value: ScalarConfigValue = Field(description="Value compared against the input")
    operator: ComparisonOperator = Field(
        default=ComparisonOperator.EQUALS, description="Comparison operator"
    )


class BaseStepConfig(BaseModel):
    """Fields shared by every step type."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(default=None, description="Label bound to the step's action")


class PromptStepConfig(BaseStepConfig):
    """Play a message."""

    type: Literal["prompt"] = "prompt"
    text: str = Field(description="Message text")


class InputStepConfig(BaseStepConfig):
    """Collect keypad input, optionally branching on the digits."""

    type: Literal["input"] = "input"
    text: str = Field(description="Prompt played before collecting digits")
    timeout_seconds: int = Field(default=5, ge=1)
    max_digits: int = Field(default=1, ge=1)
    digits: list[CaseConfig] | None = Field(default=None, description="Digit cases")
    otherwise: BodyConfig | None = Field(default=None, description="Path when no digit matches")


class AskStepConfig(BaseStepConfig):
    """Speech recognition with keypad fallback."""

    type: Literal["ask"] = "ask"
    text: str = Field(description="Prompt text")
    bot_alias_arn: str | None = Field(default=None, description="Speech bot alias reference")
    intents: list[CaseConfig] = Field(default_factory=list, description="Intent cases")
    digits: list[CaseConfig] = Field(default_factory=list, description="Keypad cases")
    fallback: list[FallbackName] = Field(
        default_factory=lambda: ["timeout", "no_match", "error"],
        description="Speech outcomes that fall back to the keypad",
    )
    dtmf_text: str | None = Field(default=None, description="Keypad prompt (defaults to text)")
    dtmf_id: str | None = Field(default=None, description="Label bound to the keypad action")
    timeout_seconds: int = Field(default=5, ge=1)
    max_digits: int = Field(default=1, ge=1)


class BranchStepConfig(BaseStepConfig):
    """Branch on a contact attribute."""

    type: Literal["branch"] = "branch"
    attribute: str = Field(description="Attribute reference, e.g. $.Attributes.tier")
    cases: list[CaseConfig] = Field(description="Cases tried in order")
    otherwise: BodyConfig | None = Field(default=None, description="Fallback path")


class CheckHoursStepConfig(BaseStepConfig):
    """Branch on the hours of operation."""

    type: Literal["check_hours"] = "check_hours"
    hours: str | None = Field(default=None, description="Hours of operation reference")
    open: BodyConfig = Field(description="Path while open")
    closed: BodyConfig = Field(description="Path while closed")


class InvokeStepConfig(BaseStepConfig):
    """Invoke an external function."""

    type: Literal["invoke"] = "invoke"
    function_arn: str = Field(description="Function reference")
    timeout_seconds: int = Field(default=8, ge=1)
    inputs: dict[str, ScalarConfigValue] = Field(default_factory=dict)
    on_error: dict[str, str] = Field(
        default_factory=dict, description="Error kind name -> step id"
    )


class SetAttributesStepConfig(BaseStepConfig):
    """Set contact attributes."""

    type: Literal["set_attributes"] = "set_attributes"
    attributes: dict[str, ScalarConfigValue] = Field(min_length=1)


class SetQueueStepConfig(BaseStepConfig):
    """Set the target queue."""

    type: Literal["set_queue"] = "set_queue"
    queue: str = Field(description="Queue reference")


class SetVoiceStepConfig(BaseStepConfig):
    """Set the text-to-speech voice."""

    type: Literal["set_voice"] = "set_voice"
    voice: str = Field(description="Voice name")


class TransferStepConfig(BaseStepConfig):
    """Transfer to a queue. Ends the path."""

    type: Literal["transfer"] = "transfer"
    queue: str | None = Field(default=None, description="Queue reference")
    on_error: dict[str, str] = Field(default_factory=dict)


class TransferToFlowStepConfig(BaseStepConfig):
    """Transfer to another flow. Ends the path."""

    type: Literal["transfer_to_flow"] = "transfer_to_flow"
    flow: str = Field(description="Target flow reference")


class DisconnectStepConfig(BaseStepConfig):
    """Hang up. Ends the path."""

    type: Literal["disconnect"] = "disconnect"


class GotoStepConfig(BaseModel):
    """Jump to another step. Ends the path."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["goto"] = "goto"
    target: str = Field(description="Step id to jump to")


StepConfig = Annotated[
    PromptStepConfig
    | InputStepConfig
    | AskStepConfig
    | BranchStepConfig
    | CheckHoursStepConfig
    | InvokeStepConfig
    | SetAttributesStepConfig
    | SetQueueStepConfig
    | SetVoiceStepConfig
    | TransferStepConfig
    | TransferToFlowStepConfig
    | DisconnectStepConfig
    | GotoStepConfig,
    Field(discriminator="type"),
]


class FlowConfig(BaseModel):
    """Configuration for a flow."""

    description: str = ""
    steps: list[StepConfig] = Field(default_factory=list)


class FlowsConfig(BaseModel):
    """Root configuration with DSL versioning."""

    version: str = Field(default=CURRENT_VERSION, description="DSL version")
    settings: CompilerSettings = Field(default_factory=CompilerSettings)
    flows: dict[str, FlowConfig] = Field(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        """Validate DSL version after initialization."""
        if self.version not in SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported DSL version: {self.version}. "
                f"Supported: {', '.join(sorted(SUPPORTED_VERSIONS))}"
            )


for _model in (
    BodyConfig,
    CaseConfig,
    InputStepConfig,
    AskStepConfig,
    BranchStepConfig,
    CheckHoursStepConfig,
    FlowConfig,
    FlowsConfig,
):
    _model.model_rebuild()
