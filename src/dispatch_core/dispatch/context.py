"""InvocationContext — per-dispatch state shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..correlation import get_correlation_id
from ..primitives.exceptions import InvalidStateTransitionError

if TYPE_CHECKING:
    from ..ports.services import IServiceProvider
    from ..primitives.cancellation import CancellationToken
    from .descriptor import HandlerDescriptor


class DispatchState(str, Enum):
    """Lifecycle of a single handler invocation."""

    IDLE = "idle"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAULTED = "faulted"

    @property
    def is_terminal(self) -> bool:
        return self in (DispatchState.COMPLETED, DispatchState.FAULTED)


_ALLOWED: dict[DispatchState, frozenset[DispatchState]] = {
    DispatchState.IDLE: frozenset({DispatchState.RESOLVING, DispatchState.FAULTED}),
    DispatchState.RESOLVING: frozenset(
        {DispatchState.EXECUTING, DispatchState.FAULTED}
    ),
    DispatchState.EXECUTING: frozenset(
        {DispatchState.COMPLETED, DispatchState.FAULTED}
    ),
    DispatchState.COMPLETED: frozenset(),
    DispatchState.FAULTED: frozenset(),
}


@dataclass
class InvocationContext:
    """Everything a middleware hook can see about the current invocation.

    ``items`` is free-form storage shared by all layers of one invocation,
    e.g. a start timestamp written in ``before`` and read in ``after``.
    ``stage`` is the index of the layer most recently entered; it equals
    the number of layers once the handler itself is running.
    """

    message: Any
    handler: HandlerDescriptor
    services: IServiceProvider
    cancellation: CancellationToken | None = None
    items: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    exception: BaseException | None = None
    state: DispatchState = DispatchState.IDLE
    stage: int | None = None
    correlation_id: str | None = field(default_factory=get_correlation_id)

    @property
    def message_type(self) -> type[Any]:
        return type(self.message)

    def transition(self, new_state: DispatchState) -> None:
        """Move to *new_state*; terminal states can never be left."""
        if new_state not in _ALLOWED[self.state]:
            msg = (
                f"Invalid dispatch state transition {self.state.value} -> "
                f"{new_state.value} for {self.handler.name}"
            )
            raise InvalidStateTransitionError(msg)
        self.state = new_state

    def raise_if_cancelled(self) -> None:
        if self.cancellation is not None:
            self.cancellation.raise_if_cancelled()
