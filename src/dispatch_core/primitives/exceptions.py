"""Dispatch and configuration exceptions for dispatch-core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence


class DispatchError(Exception):
    """Root exception for the entire dispatch-core package."""


class HandlerError(DispatchError):
    """Base class for all handler related errors (registration, lookup, execution)."""


class NoHandlerFoundError(HandlerError):
    """Raised by ``send`` when no handler is registered for the message type.

    Raised during resolution, before any middleware stage has run.
    """

    def __init__(self, message_type: type[Any]) -> None:
        self.message_type = message_type
        super().__init__(f"No handler registered for {message_type.__name__}")


class AmbiguousHandlerError(HandlerError):
    """Raised when more than one handler is registered for a ``send`` message.

    This is a configuration error: it is reported by
    :meth:`~dispatch_core.dispatch.registry.HandlerRegistry.validate` at
    startup and again at dispatch time if validation was skipped.
    """

    def __init__(self, message_type: type[Any], handler_names: Sequence[str]) -> None:
        self.message_type = message_type
        self.handler_names = tuple(handler_names)
        super().__init__(
            f"Multiple handlers registered for {message_type.__name__}: "
            f"{', '.join(self.handler_names)}"
        )


class HandlerRegistrationError(HandlerError):
    """Raised when a handler or middleware registration is invalid.

    Usage: registries raise this for duplicate names or descriptors that
    point at a missing handler method.
    """


class HandlerFaultError(HandlerError):
    """Wraps the exception raised by one handler's pipeline during a publish."""

    def __init__(self, handler_name: str, error: BaseException) -> None:
        self.handler_name = handler_name
        self.error = error
        super().__init__(f"Handler {handler_name} failed: {error!r}")
        self.__cause__ = error


class AggregateFaultError(HandlerError):
    """One or more handlers failed during a single ``publish`` call.

    Raised by the sequential and parallel notification publishers once every
    handler has run.
    """

    def __init__(self, errors: Sequence[HandlerFaultError]) -> None:
        self.errors: list[HandlerFaultError] = list(errors)
        names = ", ".join(e.handler_name for e in self.errors)
        super().__init__(f"{len(self.errors)} handler(s) failed: {names}")

    @property
    def exceptions(self) -> list[BaseException]:
        """The original exceptions, in handler order."""
        return [e.error for e in self.errors]


class CascadeFaultError(HandlerError):
    """Publishing cascaded messages failed after the primary handler succeeded.

    The primary result is not rolled back; it is available as ``result``.
    """

    def __init__(self, result: Any, errors: Sequence[BaseException]) -> None:
        self.result = result
        self.errors: list[BaseException] = list(errors)
        super().__init__(
            f"{len(self.errors)} cascaded message(s) failed to publish. "
            f"First error: {self.errors[0] if self.errors else 'unknown'}"
        )


class DispatchCancelledError(DispatchError):
    """A dispatch observed a cancellation request before starting a stage."""


class InvalidStateTransitionError(DispatchError):
    """Raised when a dispatch attempts to leave a terminal state."""
