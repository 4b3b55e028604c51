"""Handler Registry with conflict detection and type-matched lookup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..lifetime.strategies import Lifetime
from ..primitives.exceptions import AmbiguousHandlerError, HandlerRegistrationError
from .descriptor import HandlerDescriptor, MiddlewareReference, ResultShape
from .matching import MatchKind, match_kind

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Primary declarative store of :class:`HandlerDescriptor` records.

    This is the **single source of truth** for the application's handler
    configuration. Descriptors are registered during bootstrapping, by hand
    or by a discovery phase, and are treated as immutable afterwards.

    Any number of handlers may be registered per message type; the
    "exactly one" rule applies to ``send`` only and is checked by
    :meth:`validate` at startup and by the dispatcher at call time.

    **Conflict detection:** registering a *different* descriptor under an
    existing (message type, name) pair raises
    :class:`HandlerRegistrationError`. Re-registering an identical
    descriptor is a no-op.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Any], list[HandlerDescriptor]] = {}
        self._version = 0

    # ── Registration ─────────────────────────────────────────────

    def register(self, descriptor: HandlerDescriptor) -> HandlerDescriptor:
        """Register a descriptor built by an external discovery phase."""
        if not callable(getattr(descriptor.handler_type, descriptor.method, None)):
            msg = (
                f"Handler {descriptor.name} has no callable "
                f"'{descriptor.method}' method"
            )
            raise HandlerRegistrationError(msg)

        handlers = self._handlers.setdefault(descriptor.message_type, [])
        for existing in handlers:
            if existing.name != descriptor.name:
                continue
            if existing == descriptor:
                return existing
            msg = (
                f"Duplicate handler name {descriptor.name} for "
                f"{descriptor.message_type.__name__} with a different "
                "configuration"
            )
            raise HandlerRegistrationError(msg)

        handlers.append(descriptor)
        self._version += 1
        logger.debug(
            "Registered handler %s -> %s (lifetime=%s, order=%s)",
            descriptor.message_type.__name__,
            descriptor.name,
            descriptor.lifetime.value,
            descriptor.order,
        )
        return descriptor

    def register_handler(
        self,
        message_type: type[Any],
        handler_cls: type[Any],
        *,
        method: str = "handle",
        name: str = "",
        result_shape: ResultShape = ResultShape.VALUE,
        lifetime: Lifetime = Lifetime.DEFAULT,
        order: int | None = None,
        order_before: Iterable[str | type[Any]] = (),
        order_after: Iterable[str | type[Any]] = (),
        middleware: Iterable[MiddlewareReference | str | type[Any]] = (),
    ) -> HandlerDescriptor:
        """Build and register a descriptor for *handler_cls*."""
        return self.register(
            HandlerDescriptor(
                message_type=message_type,
                handler_type=handler_cls,
                method=method,
                name=name,
                result_shape=result_shape,
                lifetime=lifetime,
                order=order,
                order_before=tuple(order_before),  # type: ignore[arg-type]
                order_after=tuple(order_after),  # type: ignore[arg-type]
                middleware=tuple(middleware),  # type: ignore[arg-type]
            )
        )

    def add(self, message_type: type[Any], **kwargs: Any) -> Any:
        """Decorator-style registration.

        Usage::

            @registry.add(PlaceOrder, result_shape=ResultShape.CASCADING)
            class PlaceOrderHandler:
                async def handle(self, message: PlaceOrder) -> Outcome[str]: ...
        """

        def wrapper(cls: type[Any]) -> type[Any]:
            self.register_handler(message_type, cls, **kwargs)
            return cls

        return wrapper

    # ── Lookup ───────────────────────────────────────────────────

    def get_handlers(self, message_type: type[Any]) -> list[HandlerDescriptor]:
        """Return handlers registered for exactly *message_type*."""
        return list(self._handlers.get(message_type, []))

    def find_handlers(
        self, message_type: type[Any]
    ) -> list[tuple[HandlerDescriptor, MatchKind]]:
        """Return every handler whose message type matches *message_type*.

        Matches by exact type, base class, implemented interface or
        ``ANY_MESSAGE``, in registration order.
        """
        matched: list[tuple[HandlerDescriptor, MatchKind]] = []
        for registered_type, handlers in self._handlers.items():
            kind = match_kind(registered_type, message_type)
            if kind is None:
                continue
            matched.extend((handler, kind) for handler in handlers)
        return matched

    @property
    def version(self) -> int:
        """Incremented on every change; lookup caches compare against it."""
        return self._version

    # ── Validation ───────────────────────────────────────────────

    def validate(self, request_types: Iterable[type[Any]] = ()) -> None:
        """Check that every request (``send``) type has at most one handler.

        Raises
        ------
        AmbiguousHandlerError
            For the first request type with more than one handler.
        """
        for message_type in request_types:
            handlers = self._handlers.get(message_type, [])
            if len(handlers) > 1:
                raise AmbiguousHandlerError(message_type, [h.name for h in handlers])

    # ── Introspection ────────────────────────────────────────────

    def get_registered_handlers(self) -> dict[str, list[str]]:
        """Return a snapshot of all registered handlers (for debugging)."""
        return {
            k.__name__: [h.name for h in v] for k, v in self._handlers.items()
        }

    # ── Cleanup ──────────────────────────────────────────────────

    def clear(self) -> None:
        """Clear all registered handlers (testing utility)."""
        self._handlers.clear()
        self._version += 1


__all__ = ["HandlerRegistry"]
