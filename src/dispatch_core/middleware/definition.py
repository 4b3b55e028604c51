"""MiddlewareDescriptor — descriptor for middleware in a pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..dispatch.matching import ANY_MESSAGE
from ..lifetime.strategies import Lifetime
from ..ports.middleware import AFTER_HOOK, BEFORE_HOOK, EXECUTE_HOOK, FINALLY_HOOK
from ..utils import UNORDERED, name_tuple, type_name


@dataclass(frozen=True)
class MiddlewareDescriptor:
    """Descriptor for a middleware class.

    Instances are resolved per dispatch according to ``lifetime``; the
    descriptor itself is immutable and shared by every pipeline. Use
    :meth:`for_type` to derive the hook flags from the class.

    ``explicit_only`` middleware is never matched by message type: it only
    joins the pipelines of handlers that reference it.
    """

    middleware_type: type[Any]
    target: type[Any] = ANY_MESSAGE
    name: str = ""
    has_before: bool = False
    has_after: bool = False
    has_finally: bool = False
    has_execute: bool = False
    lifetime: Lifetime = Lifetime.DEFAULT
    order: int | None = None
    order_before: tuple[str, ...] = field(default_factory=tuple)
    order_after: tuple[str, ...] = field(default_factory=tuple)
    explicit_only: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", type_name(self.middleware_type))
        object.__setattr__(self, "order_before", name_tuple(self.order_before))
        object.__setattr__(self, "order_after", name_tuple(self.order_after))

    @classmethod
    def for_type(
        cls, middleware_type: type[Any], **kwargs: Any
    ) -> MiddlewareDescriptor:
        """Build a descriptor, detecting which stage hooks the class defines."""

        def defines(hook: str) -> bool:
            return callable(getattr(middleware_type, hook, None))

        return cls(
            middleware_type=middleware_type,
            has_before=defines(BEFORE_HOOK),
            has_after=defines(AFTER_HOOK),
            has_finally=defines(FINALLY_HOOK),
            has_execute=defines(EXECUTE_HOOK),
            **kwargs,
        )

    @property
    def has_hooks(self) -> bool:
        return self.has_before or self.has_after or self.has_finally or self.has_execute

    @property
    def effective_order(self) -> int:
        return UNORDERED if self.order is None else self.order
