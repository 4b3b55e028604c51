"""MiddlewareRegistry — declarative registration with ordering metadata."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..dispatch.matching import ANY_MESSAGE
from ..lifetime.strategies import Lifetime
from ..primitives.exceptions import HandlerRegistrationError
from .definition import MiddlewareDescriptor

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class MiddlewareRegistry:
    """Collects middleware descriptors, keyed by name.

    Ordering is not decided here: each pipeline orders its own candidate
    set (see :class:`~dispatch_core.middleware.assembler.PipelineAssembler`).
    Lower ``order`` values run first, i.e. further out in the onion.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, MiddlewareDescriptor] = {}
        self._version = 0

    # ── Registration ─────────────────────────────────────────────

    def register(
        self,
        middleware_cls: type[Any],
        *,
        target: type[Any] = ANY_MESSAGE,
        name: str = "",
        lifetime: Lifetime = Lifetime.DEFAULT,
        order: int | None = None,
        order_before: Iterable[str | type[Any]] = (),
        order_after: Iterable[str | type[Any]] = (),
        explicit_only: bool = False,
    ) -> MiddlewareDescriptor:
        """Register a middleware class.

        Parameters
        ----------
        middleware_cls:
            Class defining at least one of ``before``, ``after``,
            ``finally_`` or ``execute``.
        target:
            Message type, base class or interface the middleware applies to.
            Defaults to every message.
        order:
            Lower = outermost. ``None`` sorts after every explicit order.
        order_before / order_after:
            Names (or classes) of middleware this one must precede / follow.
        explicit_only:
            Only add this middleware to handlers that reference it.
        """
        descriptor = MiddlewareDescriptor.for_type(
            middleware_cls,
            target=target,
            name=name,
            lifetime=lifetime,
            order=order,
            order_before=tuple(order_before),
            order_after=tuple(order_after),
            explicit_only=explicit_only,
        )
        return self.register_descriptor(descriptor)

    def register_descriptor(
        self, descriptor: MiddlewareDescriptor
    ) -> MiddlewareDescriptor:
        """Register a descriptor built by an external discovery phase."""
        if not descriptor.has_hooks:
            msg = (
                f"Middleware {descriptor.name} defines none of "
                "before/after/finally_/execute"
            )
            raise HandlerRegistrationError(msg)
        existing = self._descriptors.get(descriptor.name)
        if (
            existing is not None
            and existing.middleware_type is not descriptor.middleware_type
        ):
            msg = (
                f"Duplicate middleware name {descriptor.name}: "
                f"{existing.middleware_type.__name__} already registered, "
                f"cannot register {descriptor.middleware_type.__name__}"
            )
            raise HandlerRegistrationError(msg)
        self._descriptors[descriptor.name] = descriptor
        self._version += 1
        logger.debug(
            "Registered middleware %s (order=%s, target=%s, explicit_only=%s)",
            descriptor.name,
            descriptor.order,
            descriptor.target.__name__,
            descriptor.explicit_only,
        )
        return descriptor

    def add(
        self,
        middleware_cls: type[Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Decorator-style registration.

        Usage::

            @registry.add
            class MyMiddleware: ...

            @registry.add(order=10, explicit_only=True)
            class RetryingMiddleware: ...
        """
        if middleware_cls is None:
            # Called as @registry.add(order=...)
            def wrapper(cls: type[Any]) -> type[Any]:
                self.register(cls, **kwargs)
                return cls

            return wrapper

        # Called as @registry.add
        self.register(middleware_cls, **kwargs)
        return middleware_cls

    # ── Retrieval ────────────────────────────────────────────────

    def get(self, name: str) -> MiddlewareDescriptor | None:
        return self._descriptors.get(name)

    def descriptors(self) -> list[MiddlewareDescriptor]:
        """Return every descriptor in registration order."""
        return list(self._descriptors.values())

    @property
    def version(self) -> int:
        """Incremented on every change; pipeline caches compare against it."""
        return self._version

    def __len__(self) -> int:
        return len(self._descriptors)

    # ── Cleanup ──────────────────────────────────────────────────

    def clear(self) -> None:
        """Remove all registrations (testing utility)."""
        self._descriptors.clear()
        self._version += 1
