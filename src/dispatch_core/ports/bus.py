"""Bus protocols — ISender and IPublisher."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..primitives.cancellation import CancellationToken
    from .services import IServiceProvider


@runtime_checkable
class ISender(Protocol):
    """
    Interface for dispatching a message to its single handler.
    """

    async def send(
        self,
        message: Any,
        *,
        services: IServiceProvider | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Any: ...


@runtime_checkable
class IPublisher(Protocol):
    """
    Interface for fanning a message out to every matching handler.
    """

    async def publish(
        self,
        message: Any,
        *,
        services: IServiceProvider | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None: ...
