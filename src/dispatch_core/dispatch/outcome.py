"""Result wrappers exchanged between handlers, middleware and the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value returned by a CASCADING handler.

    ``primary`` is returned to the caller; every non-``None`` entry of
    ``cascades`` is published once the primary pipeline has completed
    successfully.

    Usage::

        def handle(self, message: PlaceOrder) -> Outcome[Order]:
            order = ...
            return Outcome(order, cascades=(OrderPlaced(order_id=order.id),))
    """

    primary: T
    cascades: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cascades", tuple(self.cascades))


@dataclass(frozen=True)
class ShortCircuit(Generic[T]):
    """Returned from a ``before`` hook to stop the pipeline with ``value``."""

    value: T = None  # type: ignore[assignment]
