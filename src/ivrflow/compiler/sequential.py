"""Sequential-input expander: speech recognition with keypad fallback.

One logical "ask the caller" step compiles to two actions::

    speech (intent recognition) --[error edges, one per fallback trigger]--> dtmf (keypad)

Intent cases hang off the speech action as conditions, digit cases hang off
the keypad action. When no digit matches, the keypad action continues with
whatever statement follows the ask.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ivrflow.compiler.branch import BranchResolver, Cases, normalize_cases
from ivrflow.core.constants import FALLBACK_ERROR_KINDS, ActionKind, FallbackTrigger
from ivrflow.core.errors import UsageError
from ivrflow.core.kinds import get_kind_spec
from ivrflow.core.types import NodeHandle, NodeRef
from ivrflow.core.values import check_scalar
from ivrflow.validation.issues import IssueCode, Severity, ValidationIssue

if TYPE_CHECKING:
    from ivrflow.compiler.builder import FlowBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechConfig:
    """Settings for the speech-recognition action."""

    bot_alias_arn: str | None = None
    intents: Cases = ()
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DtmfConfig:
    """Settings for the keypad fallback action."""

    digits: Cases = ()
    timeout_seconds: int = 5
    max_digits: int = 1
    text: str | None = None


class SequentialInputExpander:
    """Expands one ``sequential_input`` call into a speech and a keypad action."""

    def __init__(self, builder: "FlowBuilder"):
        self.builder = builder
        self.state = builder._state

    def expand(
        self,
        prompt_text: str,
        speech: SpeechConfig,
        dtmf: DtmfConfig,
        fallback: FallbackTrigger,
        label: str | None = None,
        dtmf_label: str | None = None,
    ) -> NodeHandle:
        if not isinstance(prompt_text, str) or not prompt_text.strip():
            raise UsageError("sequential_input needs a non-empty prompt text")
        if not isinstance(fallback, int):
            raise UsageError(f"fallback must be a FallbackTrigger, got {fallback!r}")
        fallback = FallbackTrigger(fallback)
        if dtmf.max_digits < 1:
            raise UsageError(f"max_digits must be at least 1, got {dtmf.max_digits}")
        if dtmf.timeout_seconds < 1:
            raise UsageError(f"timeout_seconds must be at least 1, got {dtmf.timeout_seconds}")

        intents = normalize_cases(speech.intents, allow_empty=True)
        digits = normalize_cases(dtmf.digits, allow_empty=True)

        speech_params: dict[str, Any] = {"Text": prompt_text}
        if speech.bot_alias_arn:
            speech_params["LexV2Bot.AliasArn"] = speech.bot_alias_arn
        for key, value in speech.parameters.items():
            speech_params[key] = check_scalar(value)
        dtmf_params: dict[str, Any] = {
            "Text": dtmf.text or prompt_text,
            "InputTimeLimitSeconds": dtmf.timeout_seconds,
            "MaxDigits": dtmf.max_digits,
        }

        if dtmf_label is not None:
            if dtmf_label == label:
                raise UsageError(f"Label '{label}' cannot name both input actions")
            self.state.labels.check_free(dtmf_label)

        speech_node = self.builder._emit(ActionKind.SPEECH_INPUT, speech_params, label=label)
        dtmf_node = self.state.new_node(
            ActionKind.INPUT, get_kind_spec(ActionKind.INPUT).id_prefix, dtmf_params
        )
        if dtmf_label is not None:
            self.state.labels.bind(dtmf_label, dtmf_node.id)

        enabled = [error for trigger, error in FALLBACK_ERROR_KINDS if trigger in fallback]
        for error in enabled:
            speech_node.add_error(error, NodeRef.to_node(dtmf_node.id))
        if not enabled:
            self.state.note(
                ValidationIssue(
                    IssueCode.NO_FALLBACK_TRIGGERS,
                    f"Keypad fallback '{dtmf_node.id}' is never reached from '{speech_node.id}'",
                    severity=Severity.WARNING,
                    node_id=speech_node.id,
                )
            )

        resolver = BranchResolver(self.builder)
        with resolver.opened(speech_node) as scope:
            resolver.add_cases(scope, speech_node, intents)
            resolver.add_cases(scope, dtmf_node, digits)
            # No digit matched: continue after the statement
            scope.add([self.state.tail(dtmf_node)])

        logger.debug(
            f"Expanded sequential input into '{speech_node.id}' + '{dtmf_node.id}' "
            f"with {len(enabled)} fallback edge(s)"
        )
        return NodeHandle(speech_node.id, ActionKind.SPEECH_INPUT)
