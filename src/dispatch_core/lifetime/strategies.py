"""Lifetime policies and the strategy objects that resolve instances."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

from .cache import InstanceCache

if TYPE_CHECKING:
    from ..ports.services import IServiceProvider


class Lifetime(str, Enum):
    """How handler and middleware instances are obtained.

    ``DEFAULT`` instances are built once and cached by the dispatcher. The
    other lifetimes are requested from the caller's service provider on
    every invocation and the provider decides what that means.
    """

    DEFAULT = "default"
    TRANSIENT = "transient"
    SCOPED = "scoped"
    SINGLETON = "singleton"


class LifetimeStrategy(ABC):
    """Obtains an instance of a handler or middleware class."""

    @abstractmethod
    def resolve(self, cls: type[Any], services: IServiceProvider) -> Any:
        """Return the instance to invoke for this dispatch."""
        ...


class CachedLifetimeStrategy(LifetimeStrategy):
    """DEFAULT lifetime: build through ``services.create`` once, then reuse."""

    def __init__(self, cache: InstanceCache) -> None:
        self._cache = cache

    def resolve(self, cls: type[Any], services: IServiceProvider) -> Any:
        return self._cache.get_or_create(cls, lambda: services.create(cls))


class ProviderLifetimeStrategy(LifetimeStrategy):
    """TRANSIENT / SCOPED / SINGLETON: always ask the caller's provider."""

    def resolve(self, cls: type[Any], services: IServiceProvider) -> Any:
        return services.get(cls)


class LifetimeResolver:
    """Maps a configured lifetime onto its strategy object.

    A descriptor declaring ``DEFAULT`` takes the configured global default
    for its kind; only when that default is also ``DEFAULT`` is the instance
    cached internally.
    """

    def __init__(
        self,
        cache: InstanceCache | None = None,
        *,
        default_handler_lifetime: Lifetime = Lifetime.DEFAULT,
        default_middleware_lifetime: Lifetime = Lifetime.DEFAULT,
    ) -> None:
        self.cache = cache if cache is not None else InstanceCache()
        self.default_handler_lifetime = default_handler_lifetime
        self.default_middleware_lifetime = default_middleware_lifetime
        provider_strategy = ProviderLifetimeStrategy()
        self._strategies: dict[Lifetime, LifetimeStrategy] = {
            Lifetime.DEFAULT: CachedLifetimeStrategy(self.cache),
            Lifetime.TRANSIENT: provider_strategy,
            Lifetime.SCOPED: provider_strategy,
            Lifetime.SINGLETON: provider_strategy,
        }

    def effective_handler_lifetime(self, lifetime: Lifetime) -> Lifetime:
        if lifetime is Lifetime.DEFAULT:
            return self.default_handler_lifetime
        return lifetime

    def effective_middleware_lifetime(self, lifetime: Lifetime) -> Lifetime:
        if lifetime is Lifetime.DEFAULT:
            return self.default_middleware_lifetime
        return lifetime

    def resolve(
        self, cls: type[Any], lifetime: Lifetime, services: IServiceProvider
    ) -> Any:
        """Resolve *cls* with an already effective *lifetime*."""
        return self._strategies[lifetime].resolve(cls, services)
