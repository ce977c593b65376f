"""Flow compiler that lowers declarative flow configuration onto ``FlowBuilder``."""

import logging
from collections.abc import Callable
from typing import Any

from ivrflow.compiler.branch import Body, Case
from ivrflow.compiler.builder import FlowBuilder
from ivrflow.compiler.sequential import DtmfConfig, SpeechConfig
from ivrflow.config.models import (
    AskStepConfig,
    BodyConfig,
    BranchStepConfig,
    CaseConfig,
    CheckHoursStepConfig,
    DisconnectStepConfig,
    FlowsConfig,
    GotoStepConfig,
    InputStepConfig,
    InvokeStepConfig,
    PromptStepConfig,
    SetAttributesStepConfig,
    SetQueueStepConfig,
    SetVoiceStepConfig,
    StepConfig,
    TransferStepConfig,
    TransferToFlowStepConfig,
)
from ivrflow.core.constants import FallbackTrigger
from ivrflow.core.errors import ConfigError, UsageError
from ivrflow.core.types import FlowGraph
from ivrflow.serialization.serializer import FlowSerializer

logger = logging.getLogger(__name__)


class FlowCompiler:
    """Compiles declarative flow configuration to flow graphs and documents."""

    def __init__(self, config: FlowsConfig):
        """
        Initialize FlowCompiler with configuration.

        Args:
            config: Flow definitions and compiler settings
        """
        self.config = config
        self.settings = config.settings
        self.serializer = FlowSerializer(
            version=self.settings.flow_version, indent=self.settings.indent
        )
        self._lowerers: dict[str, Callable[[FlowBuilder, Any], None]] = {
            "prompt": self._lower_prompt,
            "input": self._lower_input,
            "ask": self._lower_ask,
            "branch": self._lower_branch,
            "check_hours": self._lower_check_hours,
            "invoke": self._lower_invoke,
            "set_attributes": self._lower_set_attributes,
            "set_queue": self._lower_set_queue,
            "set_voice": self._lower_set_voice,
            "transfer": self._lower_transfer,
            "transfer_to_flow": self._lower_transfer_to_flow,
            "disconnect": self._lower_disconnect,
            "goto": self._lower_goto,
        }

    def compile_flow(self, flow_name: str) -> FlowGraph:
        """
        Compile a flow to a validated graph.

        Args:
            flow_name: Name of the flow to compile

        Returns:
            FlowGraph for the flow

        Raises:
            KeyError: If flow_name is not found in config
            ConfigError: If a step cannot be lowered
            FlowValidationError: If the resulting graph is invalid
        """
        if flow_name not in self.config.flows:
            raise KeyError(f"Flow '{flow_name}' not found in configuration")

        flow_config = self.config.flows[flow_name]
        logger.info(f"Compiling flow '{flow_name}' with {len(flow_config.steps)} steps")

        builder = FlowBuilder(
            flow_name, strict=self.settings.strict, max_actions=self.settings.max_actions
        )
        self._lower_steps(builder, flow_config.steps, flow_name)
        return builder.build()

    def render(self, flow_name: str) -> str:
        """Compile a flow and return its JSON document."""
        return self.serializer.to_json(self.compile_flow(flow_name))

    def compile_all(self) -> dict[str, str]:
        """Compile every flow, in name order, to its JSON document."""
        return {name: self.render(name) for name in sorted(self.config.flows)}

    def _lower_steps(self, builder: FlowBuilder, steps: list[StepConfig], where: str) -> None:
        for index, step in enumerate(steps, start=1):
            step_name = getattr(step, "id", None) or step.type
            try:
                self._lowerers[step.type](builder, step)
            except UsageError as e:
                raise ConfigError(f"{where}, step {index} ('{step_name}'): {e}") from e

    def _body(self, body: BodyConfig, where: str) -> Body:
        if body.goto is not None:
            return body.goto
        steps = body.steps or []

        def lower_body(child: FlowBuilder) -> None:
            self._lower_steps(child, steps, where)

        return lower_body

    def _cases(self, cases: list[CaseConfig], where: str) -> list[Case]:
        return [
            Case(case.value, self._body(case, f"{where}, case '{case.value}'"), case.operator)
            for case in cases
        ]

    def _lower_prompt(self, builder: FlowBuilder, step: PromptStepConfig) -> None:
        builder.prompt(step.text, label=step.id)

    def _lower_input(self, builder: FlowBuilder, step: InputStepConfig) -> None:
        where = f"input '{step.id or step.text}'"
        builder.get_input(
            step.text,
            self._cases(step.digits, where) if step.digits is not None else None,
            self._body(step.otherwise, f"{where}, otherwise") if step.otherwise else None,
            timeout_seconds=step.timeout_seconds,
            max_digits=step.max_digits,
            label=step.id,
        )

    def _lower_ask(self, builder: FlowBuilder, step: AskStepConfig) -> None:
        where = f"ask '{step.id or step.text}'"
        fallback = FallbackTrigger.NONE
        for name in step.fallback:
            fallback |= FallbackTrigger[name.upper()]
        builder.sequential_input(
            step.text,
            SpeechConfig(
                bot_alias_arn=step.bot_alias_arn,
                intents=self._cases(step.intents, f"{where}, intents"),
            ),
            DtmfConfig(
                digits=self._cases(step.digits, f"{where}, digits"),
                timeout_seconds=step.timeout_seconds,
                max_digits=step.max_digits,
                text=step.dtmf_text,
            ),
            fallback,
            label=step.id,
            dtmf_label=step.dtmf_id,
        )

    def _lower_branch(self, builder: FlowBuilder, step: BranchStepConfig) -> None:
        where = f"branch on '{step.attribute}'"
        builder.branch(
            step.attribute,
            self._cases(step.cases, where),
            self._body(step.otherwise, f"{where}, otherwise") if step.otherwise else None,
            label=step.id,
        )

    def _lower_check_hours(self, builder: FlowBuilder, step: CheckHoursStepConfig) -> None:
        builder.check_hours(
            self._body(step.open, "check_hours, open"),
            self._body(step.closed, "check_hours, closed"),
            hours=step.hours,
            label=step.id,
        )

    def _lower_invoke(self, builder: FlowBuilder, step: InvokeStepConfig) -> None:
        builder.invoke(
            step.function_arn,
            timeout_seconds=step.timeout_seconds,
            inputs=step.inputs,
            on_error=step.on_error,
            label=step.id,
        )

    def _lower_set_attributes(self, builder: FlowBuilder, step: SetAttributesStepConfig) -> None:
        builder.set_attributes(step.attributes, label=step.id)

    def _lower_set_queue(self, builder: FlowBuilder, step: SetQueueStepConfig) -> None:
        builder.set_queue(step.queue, label=step.id)

    def _lower_set_voice(self, builder: FlowBuilder, step: SetVoiceStepConfig) -> None:
        builder.set_voice(step.voice, label=step.id)

    def _lower_transfer(self, builder: FlowBuilder, step: TransferStepConfig) -> None:
        builder.transfer_to_queue(step.queue, on_error=step.on_error, label=step.id)

    def _lower_transfer_to_flow(self, builder: FlowBuilder, step: TransferToFlowStepConfig) -> None:
        builder.transfer_to_flow(step.flow, label=step.id)

    def _lower_disconnect(self, builder: FlowBuilder, step: DisconnectStepConfig) -> None:
        builder.disconnect(label=step.id)

    def _lower_goto(self, builder: FlowBuilder, step: GotoStepConfig) -> None:
        builder.jump_to(step.target)
