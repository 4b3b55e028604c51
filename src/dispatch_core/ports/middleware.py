"""Middleware stage hooks — Before / After / Finally / Execute protocols."""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    runtime_checkable,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..dispatch.context import InvocationContext

#: Hook method names looked up on middleware classes.
BEFORE_HOOK = "before"
AFTER_HOOK = "after"
FINALLY_HOOK = "finally_"
EXECUTE_HOOK = "execute"


@runtime_checkable
class IBeforeHook(Protocol):
    """Runs on the way in, outermost layer first.

    Returning :class:`~dispatch_core.dispatch.outcome.ShortCircuit` stops
    the pipeline; any other return value is ignored. Sync or async.
    """

    def before(self, message: Any, context: InvocationContext) -> Any: ...


@runtime_checkable
class IAfterHook(Protocol):
    """Runs on the way out after success, innermost layer first.

    ``context.result`` holds the value returned by the inner pipeline.
    """

    def after(self, message: Any, context: InvocationContext) -> Any: ...


@runtime_checkable
class IFinallyHook(Protocol):
    """Runs for every entered layer, success or failure, innermost first.

    ``context.exception`` is the exception propagating through this layer,
    or ``None``.
    """

    def finally_(self, message: Any, context: InvocationContext) -> Any: ...


@runtime_checkable
class IExecuteHook(Protocol):
    """Wraps everything inside its layer: inner layers and the handler.

    Parameters
    ----------
    message:
        The message being dispatched.
    context:
        The invocation context shared by every layer.
    call_next:
        Zero-argument async callable running the rest of the pipeline. It
        may be awaited more than once (retry) or not at all (cache hit).
    """

    async def execute(
        self,
        message: Any,
        context: InvocationContext,
        call_next: Callable[[], Awaitable[Any]],
    ) -> Any: ...
