"""Branch resolver: per-case sub-builders and join-point backfill."""

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ivrflow.compiler.scope import ContinuationScope
from ivrflow.compiler.state import NodeDraft
from ivrflow.core.constants import ComparisonOperator, EdgeSlot
from ivrflow.core.errors import UsageError
from ivrflow.core.types import DanglingTail, NodeHandle
from ivrflow.core.values import to_runtime_string

if TYPE_CHECKING:
    from ivrflow.compiler.builder import FlowBuilder

logger = logging.getLogger(__name__)

# A case body is either a callable that receives a child builder, or a
# label / handle to jump to.
Body = Callable[["FlowBuilder"], Any] | str | NodeHandle


@dataclass(frozen=True)
class Case:
    """One arm of a branch: ``operator(attribute, value)`` selects ``body``."""

    value: Any
    body: Body
    operator: ComparisonOperator = ComparisonOperator.EQUALS


@dataclass(frozen=True)
class _NormalizedCase:
    operand: str
    body: Body
    operator: ComparisonOperator


CaseSpec = Case | tuple[Any, Body] | tuple[Any, Body, ComparisonOperator | str]
Cases = Sequence[CaseSpec] | Mapping[Any, Body]


def normalize_cases(cases: Cases, allow_empty: bool = False) -> list[_NormalizedCase]:
    """Turn the accepted case shapes into a uniform list.

    Accepts a sequence of ``Case`` objects or ``(value, body[, operator])``
    tuples, or a mapping of value to body. Values are converted to the
    runtime string form here, so bad values fail before any node exists.

    Raises:
        UsageError: If there are no cases, or a case is malformed
    """
    if isinstance(cases, Mapping):
        items: list[Any] = [Case(value, body) for value, body in cases.items()]
    elif isinstance(cases, (str, bytes)) or not isinstance(cases, Sequence):
        raise UsageError(f"Cases must be a sequence or mapping, got {type(cases).__name__}")
    else:
        items = list(cases)

    if not items and not allow_empty:
        raise UsageError("A branch needs at least one case")

    normalized = []
    for position, item in enumerate(items, start=1):
        if isinstance(item, Case):
            value, body, operator = item.value, item.body, item.operator
        elif isinstance(item, tuple) and len(item) in (2, 3):
            value, body = item[0], item[1]
            operator = item[2] if len(item) == 3 else ComparisonOperator.EQUALS
        else:
            raise UsageError(
                f"Case {position} must be a Case or a (value, body[, operator]) tuple, got {item!r}"
            )
        try:
            operator = ComparisonOperator(operator)
        except ValueError:
            raise UsageError(f"Case {position}: unknown operator {operator!r}") from None
        check_body(body, f"Case {position}")
        normalized.append(_NormalizedCase(to_runtime_string(value), body, operator))
    return normalized


def check_body(body: Any, what: str) -> None:
    """Reject anything that is not a callable, label or handle."""
    if isinstance(body, NodeHandle):
        return
    if isinstance(body, str):
        if not body.strip():
            raise UsageError(f"{what}: label must be non-empty")
        return
    if not callable(body):
        raise UsageError(f"{what}: body must be callable, a label or a handle, got {body!r}")


class BranchResolver:
    """Runs case bodies for one branching node and collects their tails.

    The resolver pushes a ``ContinuationScope`` for the node, builds every
    case in a fresh child builder that shares the flow's counter, labels and
    scope stack, and records whatever each body leaves dangling. The scope is
    then handed to the enclosing builder, which patches the tails on its
    next statement.
    """

    def __init__(self, builder: "FlowBuilder"):
        self.builder = builder
        self.state = builder._state

    @contextmanager
    def opened(self, draft: NodeDraft) -> Iterator[ContinuationScope]:
        """Open a scope for ``draft`` and hand it to the builder when the block ends.

        If the block raises, the scope and any scope opened inside it are
        discarded and the flow is marked as failed.
        """
        scope = self.state.scopes.push(draft.id)
        try:
            yield scope
        except Exception as e:
            self.state.scopes.unwind(scope)
            self.state.fail(draft.id, e)
            raise
        self.builder._adopt_scope(scope)

    def add_cases(
        self, scope: ContinuationScope, draft: NodeDraft, cases: list[_NormalizedCase]
    ) -> None:
        """Add one condition edge per case and build its body."""
        for case in cases:
            index = draft.add_condition(case.operator, (case.operand,))
            entry = self.state.tail(draft, EdgeSlot.CONDITION, index)
            self.run_body(scope, entry, case.body)

    def run_body(self, scope: ContinuationScope, entry: DanglingTail, body: Body) -> None:
        """Build ``body`` starting from ``entry`` and record what it leaves open."""
        child = self.builder._spawn_child(entry)
        self.builder._suspend()
        try:
            if isinstance(body, (str, NodeHandle)):
                child.jump_to(body)
            else:
                body(child)
        finally:
            self.builder._resume()
        tails = child._close()
        if tails:
            logger.debug(f"Body from {entry} falls through via {', '.join(map(str, tails))}")
        scope.add(tails)
