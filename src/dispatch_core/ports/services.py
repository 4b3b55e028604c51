"""IServiceProvider — the host application's dependency-resolution callback."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class IServiceProvider(Protocol):
    """Resolves handler and middleware instances for the dispatcher.

    ``get`` is called on every invocation for TRANSIENT, SCOPED and
    SINGLETON lifetimes; the provider (usually one per request scope) owns
    their caching. ``create`` builds a DEFAULT-lifetime instance together
    with its own dependencies; the dispatcher caches that result.
    """

    def get(self, cls: type[T]) -> T:
        """Return an instance of *cls* from the current scope."""
        ...

    def create(self, cls: type[T]) -> T:
        """Construct a new instance of *cls*, resolving its dependencies."""
        ...


class DefaultServiceProvider:
    """Minimal provider: ``cls()`` unless an instance or factory is registered.

    Usage::

        provider = DefaultServiceProvider(
            {RetryMiddleware: RetryMiddleware(RetryPolicy(max_attempts=3))}
        )
    """

    def __init__(self, registrations: dict[type[Any], Any] | None = None) -> None:
        self._registrations: dict[type[Any], Any] = dict(registrations or {})

    def register(self, cls: type[Any], instance_or_factory: Any) -> None:
        """Register an instance, or a zero-argument factory, for *cls*."""
        self._registrations[cls] = instance_or_factory

    def get(self, cls: type[T]) -> T:
        return self.create(cls)

    def create(self, cls: type[T]) -> T:
        registered = self._registrations.get(cls)
        if registered is None:
            return cls()
        if isinstance(registered, cls):
            return registered
        return registered()  # type: ignore[no-any-return]
