"""PipelineInstance — the ordered, nested middleware chain for one handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..dispatch.outcome import ShortCircuit
from ..utils import maybe_await

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from ..dispatch.context import InvocationContext
    from ..dispatch.descriptor import HandlerDescriptor
    from ..dispatch.matching import MatchKind
    from ..ordering.topological import OrderingCycle
    from .definition import MiddlewareDescriptor


class _ShortCircuited(BaseException):
    """Unwinds entered layers after a ``before`` hook returned ShortCircuit.

    Derived from ``BaseException`` so ``except Exception`` blocks in execute
    hooks (retry, for instance) do not mistake it for a failure.
    """

    def __init__(self, value: Any) -> None:
        super().__init__()
        self.value = value


@dataclass(frozen=True)
class PipelineLayer:
    """One middleware as placed in a specific pipeline.

    ``order`` is the effective order for this pipeline, which differs from
    the descriptor's when the handler overrides it.
    """

    descriptor: MiddlewareDescriptor
    order: int
    match: MatchKind
    explicit: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name


@dataclass(frozen=True)
class PipelineInstance:
    """Immutable middleware chain around one handler for one message type.

    For layers ``[M1, M2]`` around handler ``H`` the stages run as
    ``M1.before, M2.before, H, M2.after, M1.after, M2.finally_, M1.finally_``.
    ``finally_`` runs for every layer whose ``before`` stage was reached.
    """

    message_type: type[Any]
    handler: HandlerDescriptor
    layers: tuple[PipelineLayer, ...]
    cycles: tuple[OrderingCycle, ...] = field(default_factory=tuple)

    @property
    def middleware_names(self) -> list[str]:
        return [layer.name for layer in self.layers]

    def __len__(self) -> int:
        return len(self.layers)

    async def execute(
        self,
        context: InvocationContext,
        middleware: Sequence[Any],
        handler_call: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run the chain with resolved *middleware* instances, one per layer.

        ``finally_`` hooks run once every ``after`` hook of the chain has
        finished, innermost first, and see the final ``context.exception``.
        Layers inside an ``execute`` hook form their own chain, so their
        ``finally_`` hooks run once per ``call_next``. An exception raised by
        a ``finally_`` hook replaces the one in flight, as nested
        ``try``/``finally`` blocks would.
        """
        if len(middleware) != len(self.layers):
            msg = (
                f"Pipeline for {self.handler.name} has {len(self.layers)} "
                f"layers but {len(middleware)} middleware instances were given"
            )
            raise ValueError(msg)

        message = context.message
        layer_count = len(self.layers)

        async def descend(index: int, entered: list[int]) -> Any:
            context.raise_if_cancelled()
            context.stage = index
            if index == layer_count:
                result = await handler_call()
                context.result = result
                return result

            layer = self.layers[index].descriptor
            instance = middleware[index]
            entered.append(index)
            if layer.has_before:
                outcome = await maybe_await(instance.before(message, context))
                if isinstance(outcome, ShortCircuit):
                    context.result = outcome.value
                    raise _ShortCircuited(outcome.value)

            if layer.has_execute:
                context.raise_if_cancelled()
                result = await maybe_await(
                    instance.execute(message, context, lambda: chain(index + 1))
                )
            else:
                result = await descend(index + 1, entered)

            context.exception = None
            context.result = result
            if layer.has_after:
                await maybe_await(instance.after(message, context))
            return result

        async def unwind(entered: list[int]) -> None:
            if not entered:
                return
            index = entered[-1]
            try:
                if self.layers[index].descriptor.has_finally:
                    await maybe_await(middleware[index].finally_(message, context))
            finally:
                await unwind(entered[:-1])

        async def chain(start: int) -> Any:
            entered: list[int] = []
            try:
                return await descend(start, entered)
            except Exception as exc:
                context.exception = exc
                raise
            finally:
                await unwind(entered)

        try:
            return await chain(0)
        except _ShortCircuited as stop:
            return stop.value
