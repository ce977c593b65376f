"""Per-kind metadata for action nodes.

Every ``ActionKind`` has exactly one entry here. The builder reads it to
check parameters and to decide whether a node ends the current path; the
serializer reads it to render the ``Type`` field.
"""

from dataclasses import dataclass

from ivrflow.core.constants import ActionKind


@dataclass(frozen=True)
class KindSpec:
    """Static description of one action kind."""

    kind: ActionKind
    id_prefix: str
    required: tuple[str, ...] = ()
    terminal: bool = False

    @property
    def type_name(self) -> str:
        return self.kind.value


KIND_SPECS: dict[ActionKind, KindSpec] = {
    spec.kind: spec
    for spec in (
        KindSpec(ActionKind.PROMPT, "prompt", required=("Text",)),
        KindSpec(ActionKind.INPUT, "input", required=("Text",)),
        KindSpec(ActionKind.SPEECH_INPUT, "speech", required=("Text",)),
        KindSpec(ActionKind.BRANCH, "branch", required=("ComparisonValue",)),
        KindSpec(ActionKind.CHECK_HOURS, "hours"),
        KindSpec(ActionKind.INVOKE, "invoke", required=("LambdaFunctionARN",)),
        KindSpec(ActionKind.SET_ATTRIBUTES, "attributes"),
        KindSpec(ActionKind.SET_QUEUE, "queue", required=("QueueId",)),
        KindSpec(ActionKind.SET_VOICE, "voice", required=("TextToSpeechVoice",)),
        KindSpec(ActionKind.TRANSFER, "transfer", terminal=True),
        KindSpec(ActionKind.TRANSFER_TO_FLOW, "flow", required=("ContactFlowId",), terminal=True),
        KindSpec(ActionKind.DISCONNECT, "disconnect", terminal=True),
    )
}


def get_kind_spec(kind: ActionKind) -> KindSpec:
    """Look up the spec for a kind, failing loudly for unregistered kinds."""
    spec = KIND_SPECS.get(kind)
    if spec is None:
        raise KeyError(f"Unknown action kind: '{kind}'. Available: {[k.name for k in KIND_SPECS]}")
    return spec
