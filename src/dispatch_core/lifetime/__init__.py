"""Instance lifetime policies and the internal instance cache."""

from __future__ import annotations

from .cache import InstanceCache
from .strategies import (
    CachedLifetimeStrategy,
    Lifetime,
    LifetimeResolver,
    LifetimeStrategy,
    ProviderLifetimeStrategy,
)

__all__ = [
    "CachedLifetimeStrategy",
    "InstanceCache",
    "Lifetime",
    "LifetimeResolver",
    "LifetimeStrategy",
    "ProviderLifetimeStrategy",
]
