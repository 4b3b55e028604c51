"""INotificationPublisher — fan-out strategy used by ``publish``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from ..dispatch.descriptor import HandlerDescriptor


@dataclass(frozen=True)
class HandlerInvocation:
    """One matched handler, ready to run through its own pipeline.

    Calling ``invoke`` starts a full dispatch of the message to ``handler``.
    """

    handler: HandlerDescriptor
    invoke: Callable[[], Awaitable[Any]]

    @property
    def name(self) -> str:
        return self.handler.name


@runtime_checkable
class INotificationPublisher(Protocol):
    """Decides how the invocations of one ``publish`` call are run."""

    async def publish(
        self, message: Any, invocations: Sequence[HandlerInvocation]
    ) -> None:
        """Run *invocations* (already in resolved order) for *message*."""
        ...
