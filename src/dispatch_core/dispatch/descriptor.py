"""HandlerDescriptor — immutable description of one registered handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..lifetime.strategies import Lifetime
from ..utils import UNORDERED, name_tuple, type_name


class ResultShape(str, Enum):
    """What a handler's return value means to the dispatcher."""

    VOID = "void"
    VALUE = "value"
    CASCADING = "cascading"


@dataclass(frozen=True)
class MiddlewareReference:
    """A handler's explicit request for a middleware.

    This is the only way ``explicit_only`` middleware joins a pipeline.
    ``order`` overrides the middleware's own order for that handler's
    pipeline only.
    """

    middleware: str | type[Any]
    order: int | None = None

    @property
    def name(self) -> str:
        return type_name(self.middleware)


@dataclass(frozen=True)
class HandlerDescriptor:
    """Descriptor for a handler, produced once by the discovery phase.

    ``name`` defaults to the handler class's qualified name and is the id
    other handlers use in ``order_before`` / ``order_after``. Constraints and
    middleware references may be given as names or as types.
    """

    message_type: type[Any]
    handler_type: type[Any]
    method: str = "handle"
    name: str = ""
    result_shape: ResultShape = ResultShape.VALUE
    lifetime: Lifetime = Lifetime.DEFAULT
    order: int | None = None
    order_before: tuple[str, ...] = field(default_factory=tuple)
    order_after: tuple[str, ...] = field(default_factory=tuple)
    middleware: tuple[MiddlewareReference, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", type_name(self.handler_type))
        object.__setattr__(self, "order_before", name_tuple(self.order_before))
        object.__setattr__(self, "order_after", name_tuple(self.order_after))
        object.__setattr__(
            self,
            "middleware",
            tuple(
                ref
                if isinstance(ref, MiddlewareReference)
                else MiddlewareReference(ref)
                for ref in self.middleware
            ),
        )

    @property
    def effective_order(self) -> int:
        return UNORDERED if self.order is None else self.order

    def __repr__(self) -> str:
        return (
            f"HandlerDescriptor({self.name} handles "
            f"{self.message_type.__name__} via .{self.method})"
        )
