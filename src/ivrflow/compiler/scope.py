"""Continuation-scope stack for branch constructs.

When a branch opens, a scope is pushed. Every case body that falls through
leaves behind the edge it could not wire yet (a *dangling tail*), and those
tails are recorded in the scope. The enclosing builder pops the scope on its
next statement and points every tail at whatever that statement created.

Example, with ``B`` the branch marker::

    prompt("Hi")                 # P
    branch(attr, [("1", body)])  # B -> body nodes..., tails = [last body node, B.next]
    disconnect()                 # pops the scope, tails -> D

Nested branches push further scopes; a body that ends on its own nested
branch hands the inner tails up to the outer scope when it closes.
"""

import logging
from dataclasses import dataclass, field

from ivrflow.core.errors import GraphBuildError
from ivrflow.core.types import DanglingTail

logger = logging.getLogger(__name__)


@dataclass
class ContinuationScope:
    """Frame for one open branch construct."""

    opened_by: str
    tails: list[DanglingTail] = field(default_factory=list)

    def add(self, tails: list[DanglingTail]) -> None:
        self.tails.extend(tails)


class ContinuationStack:
    """Stack of open continuation scopes shared by all builders of a flow."""

    def __init__(self) -> None:
        self._frames: list[ContinuationScope] = []

    def push(self, opened_by: str) -> ContinuationScope:
        """Open a scope for the branch node ``opened_by``."""
        scope = ContinuationScope(opened_by=opened_by)
        self._frames.append(scope)
        logger.debug(f"Opened continuation scope for '{opened_by}' (depth {len(self._frames)})")
        return scope

    def pop(self, scope: ContinuationScope) -> list[DanglingTail]:
        """Close ``scope`` and return its dangling tails.

        Raises:
            GraphBuildError: If ``scope`` is not the innermost open scope
        """
        if not self._frames or self._frames[-1] is not scope:
            top = self._frames[-1].opened_by if self._frames else None
            raise GraphBuildError(
                f"Continuation scope for '{scope.opened_by}' is not the innermost "
                f"open scope (innermost: {top!r})"
            )
        self._frames.pop()
        logger.debug(
            f"Closed continuation scope for '{scope.opened_by}' with {len(scope.tails)} tail(s)"
        )
        return list(scope.tails)

    def unwind(self, scope: ContinuationScope) -> None:
        """Drop ``scope`` and every scope opened after it; no-op if it is closed."""
        if not any(frame is scope for frame in self._frames):
            return
        while self._frames:
            frame = self._frames.pop()
            logger.debug(f"Discarded continuation scope for '{frame.opened_by}'")
            if frame is scope:
                break

    @property
    def is_empty(self) -> bool:
        return not self._frames

    def __len__(self) -> int:
        return len(self._frames)
