"""Fluent builder that compiles contact-flow programs into a ``FlowGraph``."""

import logging
from collections.abc import Mapping
from typing import Any

from ivrflow.compiler.branch import Body, BranchResolver, Cases, check_body, normalize_cases
from ivrflow.compiler.scope import ContinuationScope
from ivrflow.compiler.sequential import DtmfConfig, SequentialInputExpander, SpeechConfig
from ivrflow.compiler.state import BuildState, NodeDraft
from ivrflow.core.constants import MAX_ACTIONS, ActionKind, ErrorKind, FallbackTrigger
from ivrflow.core.errors import FlowValidationError, GraphBuildError, UsageError
from ivrflow.core.kinds import get_kind_spec
from ivrflow.core.types import DanglingTail, FlowGraph, NodeHandle, NodeRef
from ivrflow.core.values import check_attribute_ref, check_scalar
from ivrflow.validation.issues import IssueCode, Severity, ValidationIssue, ValidationReport
from ivrflow.validation.validator import FlowValidator

logger = logging.getLogger(__name__)

Target = str | NodeHandle


class FlowBuilder:
    """Builds one contact flow statement by statement.

    Each call appends actions and wires the previous statement to them.
    Branching calls hand every case body a child builder; bodies that fall
    through resume at whatever the next statement of this builder creates.

    Example:
        flow = FlowBuilder("support")
        flow.prompt("Thanks for calling")
        flow.branch(
            "$.Attributes.tier",
            [("gold", lambda b: b.transfer_to_queue("priority"))],
            otherwise=lambda b: None,
        )
        flow.disconnect()
        graph = flow.build()
    """

    def __init__(
        self,
        name: str = "main",
        *,
        strict: bool = False,
        max_actions: int = MAX_ACTIONS,
    ):
        """
        Initialize FlowBuilder.

        Args:
            name: Flow name, used in logs and errors
            strict: Treat semantic warnings as build failures
            max_actions: Node ceiling passed to the validator

        Raises:
            ValueError: If max_actions is outside 1..250
        """
        self.name = name
        self.strict = strict
        self.max_actions = max_actions
        self._validator = FlowValidator(strict=strict, max_actions=max_actions)
        self._state = BuildState(name)
        self._parent: FlowBuilder | None = None
        self._pending: list[DanglingTail] = []
        self._open_scope: ContinuationScope | None = None
        self._suspended = False
        self._closed = False
        self._graph: FlowGraph | None = None
        self.report: ValidationReport | None = None

    # -- statements ---------------------------------------------------------

    def append(
        self,
        kind: ActionKind | str,
        params: Mapping[str, Any] | None = None,
        *,
        label: str | None = None,
        node_id: str | None = None,
        on_error: Mapping[ErrorKind | str, Target] | None = None,
    ) -> NodeHandle:
        """
        Append an action and link the previous statement to it.

        Args:
            kind: Action kind (enum member, member name or runtime type string)
            params: Action parameters; values must be str, bool, int, float or Decimal
            label: Optional label bound to the new action
            node_id: Explicit identifier instead of the generated one
            on_error: Error kind -> label/handle, added as error edges

        Returns:
            Handle of the new action

        Raises:
            UsageError: If the kind is unknown or a required parameter is missing
        """
        self._check_usable()
        kind = _coerce_kind(kind)
        spec = get_kind_spec(kind)
        parameters = dict(params or {})
        for key in spec.required:
            value = parameters.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise UsageError(f"{kind.name} action requires parameter '{key}'")
        for key, value in parameters.items():
            if not isinstance(key, str) or not key:
                raise UsageError(f"Parameter names must be non-empty strings, got {key!r}")
            check_scalar(value)
        errors = [
            (_coerce_error(error), self._ref(target)) for error, target in (on_error or {}).items()
        ]
        if node_id is not None and (not isinstance(node_id, str) or not node_id.strip()):
            raise UsageError(f"Explicit node_id must be a non-empty string, got {node_id!r}")

        draft = self._emit(kind, parameters, node_id=node_id, label=label)
        for error, ref in errors:
            draft.add_error(error, ref)
        if not spec.terminal:
            self._pending = [self._state.tail(draft)]
        return NodeHandle(draft.id, kind)

    def jump_to(self, target: Target) -> None:
        """Continue at ``target``; ends the current path.

        Label targets may be bound later in the program.

        Raises:
            UsageError: If nothing precedes the jump
        """
        self._check_usable()
        ref = self._ref(target)
        tails = self._take_continuation()
        if not tails:
            raise UsageError(f"jump_to({target!r}) has no preceding action to continue from")
        for tail in tails:
            self._state.patch(tail, ref)

    def bind_label(self, name: str, handle: NodeHandle) -> None:
        """Bind ``name`` to an existing action."""
        self._check_usable()
        if not isinstance(handle, NodeHandle):
            raise UsageError(f"bind_label expects a NodeHandle, got {handle!r}")
        self._state.labels.bind(name, handle.node_id)

    def branch(
        self,
        attribute_ref: str,
        cases: Cases,
        otherwise: Body | None = None,
        *,
        label: str | None = None,
        node_id: str | None = None,
    ) -> NodeHandle:
        """
        Branch on a contact attribute.

        Cases are tried in order by the runtime; the first match wins and
        ``otherwise`` runs when none match. Bodies that fall through continue
        with the next statement of this builder.

        Args:
            attribute_ref: Path such as ``$.Attributes.tier``
            cases: ``[(value, body), ...]``, ``[Case(...), ...]`` or ``{value: body}``
            otherwise: Fallback body; omitting it leaves no default path
            label: Optional label bound to the branch action
            node_id: Explicit identifier instead of the generated one

        Returns:
            Handle of the branch action

        Raises:
            UsageError: For malformed references, empty or invalid cases
        """
        self._check_usable()
        check_attribute_ref(attribute_ref)
        normalized = normalize_cases(cases)
        if otherwise is not None:
            check_body(otherwise, "otherwise")

        draft = self._emit(
            ActionKind.BRANCH, {"ComparisonValue": attribute_ref}, node_id=node_id, label=label
        )

        resolver = BranchResolver(self)
        with resolver.opened(draft) as scope:
            resolver.add_cases(scope, draft, normalized)
            if otherwise is not None:
                resolver.run_body(scope, self._state.tail(draft), otherwise)
        if otherwise is None:
            self._state.note(
                ValidationIssue(
                    IssueCode.BRANCH_WITHOUT_OTHERWISE,
                    f"Branch on '{attribute_ref}' has no otherwise path",
                    severity=Severity.WARNING,
                    node_id=draft.id,
                )
            )
        return NodeHandle(draft.id, ActionKind.BRANCH)

    def sequential_input(
        self,
        prompt_text: str,
        speech: SpeechConfig | None = None,
        dtmf: DtmfConfig | None = None,
        fallback: FallbackTrigger = FallbackTrigger.DEFAULT,
        *,
        label: str | None = None,
        dtmf_label: str | None = None,
    ) -> NodeHandle:
        """
        Ask by voice first and fall back to the keypad.

        Always emits two actions. Each trigger enabled in ``fallback`` adds
        one error edge from the speech action to the keypad action.

        Returns:
            Handle of the speech action
        """
        self._check_usable()
        return SequentialInputExpander(self).expand(
            prompt_text,
            speech or SpeechConfig(),
            dtmf or DtmfConfig(),
            fallback,
            label=label,
            dtmf_label=dtmf_label,
        )

    # -- typed helpers --------------------------------------------------------

    def prompt(
        self, text: str, *, label: str | None = None, node_id: str | None = None
    ) -> NodeHandle:
        """Play a message to the caller."""
        return self.append(ActionKind.PROMPT, {"Text": text}, label=label, node_id=node_id)

    def get_input(
        self,
        text: str,
        digits: Cases | None = None,
        otherwise: Body | None = None,
        *,
        timeout_seconds: int = 5,
        max_digits: int = 1,
        label: str | None = None,
    ) -> NodeHandle:
        """Collect keypad input, optionally branching on the digits pressed.

        Without ``digits`` this is a plain linear action. With ``digits`` it
        branches like ``branch``; ``otherwise`` runs when nothing matches and
        defaults to continuing after the statement.
        """
        params = {"Text": text, "InputTimeLimitSeconds": timeout_seconds, "MaxDigits": max_digits}
        if digits is None:
            return self.append(ActionKind.INPUT, params, label=label)

        self._check_usable()
        if not isinstance(text, str) or not text.strip():
            raise UsageError("INPUT action requires parameter 'Text'")
        normalized = normalize_cases(digits)
        if otherwise is not None:
            check_body(otherwise, "otherwise")
        draft = self._emit(ActionKind.INPUT, params, label=label)
        resolver = BranchResolver(self)
        with resolver.opened(draft) as scope:
            resolver.add_cases(scope, draft, normalized)
            if otherwise is None:
                scope.add([self._state.tail(draft)])
            else:
                resolver.run_body(scope, self._state.tail(draft), otherwise)
        return NodeHandle(draft.id, ActionKind.INPUT)

    def check_hours(
        self,
        open_body: Body,
        closed_body: Body,
        *,
        hours: str | None = None,
        label: str | None = None,
    ) -> NodeHandle:
        """Branch on whether the hours of operation are currently open."""
        self._check_usable()
        normalized = normalize_cases([(True, open_body), (False, closed_body)])
        params = {"HoursOfOperationId": hours} if hours else {}
        draft = self._emit(ActionKind.CHECK_HOURS, params, label=label)
        resolver = BranchResolver(self)
        with resolver.opened(draft) as scope:
            resolver.add_cases(scope, draft, normalized)
        return NodeHandle(draft.id, ActionKind.CHECK_HOURS)

    def invoke(
        self,
        function_arn: str,
        *,
        timeout_seconds: int = 8,
        inputs: Mapping[str, Any] | None = None,
        on_error: Mapping[ErrorKind | str, Target] | None = None,
        label: str | None = None,
    ) -> NodeHandle:
        """Invoke an external function. ``inputs`` become invocation attributes."""
        params: dict[str, Any] = {
            "LambdaFunctionARN": function_arn,
            "InvocationTimeLimitSeconds": timeout_seconds,
        }
        for key, value in (inputs or {}).items():
            params[f"LambdaInvocationAttributes.{key}"] = value
        return self.append(ActionKind.INVOKE, params, label=label, on_error=on_error)

    def set_attributes(
        self, attributes: Mapping[str, Any], *, label: str | None = None
    ) -> NodeHandle:
        if not attributes:
            raise UsageError("set_attributes needs at least one attribute")
        return self.append(ActionKind.SET_ATTRIBUTES, attributes, label=label)

    def set_queue(self, queue: str, *, label: str | None = None) -> NodeHandle:
        return self.append(ActionKind.SET_QUEUE, {"QueueId": queue}, label=label)

    def set_voice(self, voice: str, *, label: str | None = None) -> NodeHandle:
        return self.append(ActionKind.SET_VOICE, {"TextToSpeechVoice": voice}, label=label)

    def transfer_to_queue(
        self,
        queue: str | None = None,
        *,
        on_error: Mapping[ErrorKind | str, Target] | None = None,
        label: str | None = None,
    ) -> NodeHandle:
        """Transfer to a queue; ends the current path."""
        params = {"QueueId": queue} if queue else {}
        return self.append(ActionKind.TRANSFER, params, label=label, on_error=on_error)

    def transfer_to_flow(self, flow_id: str, *, label: str | None = None) -> NodeHandle:
        return self.append(ActionKind.TRANSFER_TO_FLOW, {"ContactFlowId": flow_id}, label=label)

    def disconnect(self, *, label: str | None = None, node_id: str | None = None) -> NodeHandle:
        return self.append(ActionKind.DISCONNECT, label=label, node_id=node_id)

    # -- build ----------------------------------------------------------------

    def build(self) -> FlowGraph:
        """
        Freeze, validate and return the flow graph.

        Returns:
            The validated FlowGraph; semantic warnings are in ``graph.warnings``

        Raises:
            FlowValidationError: If validation reports any error
            UsageError: If called on a case-body builder
        """
        if self._parent is not None:
            raise UsageError("build() can only be called on the top-level builder")
        if self._graph is not None:
            return self._graph
        if self.report is not None:
            raise FlowValidationError(self.report, self.name)
        self._check_usable()

        unresolved = self._take_continuation_scope()
        if not self._state.scopes.is_empty:
            raise GraphBuildError(
                f"{len(self._state.scopes)} continuation scope(s) still open after build"
            )
        self._closed = True

        draft = self._state.freeze(unresolved)
        logger.info(f"Validating flow '{self.name}' with {len(draft.nodes)} actions")
        self.report = self._validator.validate(draft)

        for issue in self.report.warnings:
            logger.warning(f"Flow '{self.name}': {issue}")
        if not self.report.ok:
            logger.error(
                f"Flow '{self.name}' failed validation with {len(self.report.errors)} error(s)"
            )
            raise FlowValidationError(self.report, self.name)

        if draft.start_id is None:
            raise GraphBuildError(f"Flow '{self.name}' passed validation without a start action")
        self._graph = FlowGraph(
            name=self.name,
            start_id=draft.start_id,
            nodes={node.id: node for node in draft.nodes},
            warnings=self.report.warnings,
        )
        logger.info(f"Built flow '{self.name}' with {len(self._graph)} actions")
        return self._graph

    # -- internals ------------------------------------------------------------

    def _emit(
        self,
        kind: ActionKind,
        params: Mapping[str, Any],
        node_id: str | None = None,
        label: str | None = None,
    ) -> NodeDraft:
        """Create an action and point every pending edge of this builder at it."""
        if label is not None:
            self._state.labels.check_free(label)
        draft = self._state.new_node(kind, get_kind_spec(kind).id_prefix, params, node_id=node_id)
        ref = NodeRef.to_node(draft.id)
        for tail in self._take_continuation():
            self._state.patch(tail, ref)
        if label is not None:
            self._state.labels.bind(label, draft.id)
        return draft

    def _take_continuation(self) -> list[DanglingTail]:
        tails = self._pending
        self._pending = []
        return tails + self._take_continuation_scope()

    def _take_continuation_scope(self) -> list[DanglingTail]:
        if self._open_scope is None:
            return []
        scope, self._open_scope = self._open_scope, None
        return self._state.scopes.pop(scope)

    def _ref(self, target: Target) -> NodeRef:
        if isinstance(target, NodeHandle):
            return target.ref()
        if isinstance(target, str) and target.strip():
            return NodeRef.to_label(target)
        raise UsageError(f"Jump target must be a label or NodeHandle, got {target!r}")

    def _check_usable(self) -> None:
        if self._state.failed_at is not None:
            raise UsageError(
                f"Builder for flow '{self.name}' is unusable after a failed statement "
                f"at '{self._state.failed_at}'"
            )
        if self._closed:
            raise UsageError(f"Builder for flow '{self.name}' is closed")
        if self._suspended:
            raise UsageError(
                "This builder is inactive while a case body is built; "
                "use the builder passed to the body"
            )

    def _spawn_child(self, entry: DanglingTail) -> "FlowBuilder":
        child = FlowBuilder.__new__(FlowBuilder)
        child.name = self.name
        child.strict = self.strict
        child.max_actions = self.max_actions
        child._validator = self._validator
        child._state = self._state
        child._parent = self
        child._pending = [entry]
        child._open_scope = None
        child._suspended = False
        child._closed = False
        child._graph = None
        child.report = None
        return child

    def _close(self) -> list[DanglingTail]:
        """Finish a case body and return the edges it leaves open."""
        tails = self._take_continuation()
        self._closed = True
        return tails

    def _suspend(self) -> None:
        self._suspended = True

    def _resume(self) -> None:
        self._suspended = False

    def _adopt_scope(self, scope: ContinuationScope) -> None:
        if self._open_scope is not None or self._pending:
            raise GraphBuildError(
                f"Builder already has an open continuation before '{scope.opened_by}'"
            )
        self._open_scope = scope

    @property
    def node_count(self) -> int:
        return self._state.node_count


def _coerce_kind(kind: ActionKind | str) -> ActionKind:
    if isinstance(kind, ActionKind):
        return kind
    if isinstance(kind, str):
        if kind.upper() in ActionKind.__members__:
            return ActionKind[kind.upper()]
        try:
            return ActionKind(kind)
        except ValueError:
            pass
    raise UsageError(f"Unknown action kind {kind!r}")


def _coerce_error(error: ErrorKind | str) -> ErrorKind:
    if isinstance(error, ErrorKind):
        return error
    if isinstance(error, str):
        if error.upper() in ErrorKind.__members__:
            return ErrorKind[error.upper()]
        try:
            return ErrorKind(error)
        except ValueError:
            pass
    raise UsageError(f"Unknown error kind {error!r}")
