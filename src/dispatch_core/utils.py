"""Common utility functions and helpers."""

from __future__ import annotations

import sys
from inspect import isawaitable
from typing import Any

#: Effective order of a descriptor that does not declare one.
UNORDERED = sys.maxsize


def type_name(value: str | type[Any]) -> str:
    """Return the identity used for *value* in ordering constraints."""
    if isinstance(value, str):
        return value
    return value.__qualname__


def name_tuple(values: Any) -> tuple[str, ...]:
    """Normalise a sequence of names or types into a tuple of names."""
    if not values:
        return ()
    if isinstance(values, (str, type)):
        values = (values,)
    return tuple(type_name(v) for v in values)


async def maybe_await(value: Any) -> Any:
    """Await *value* when it is awaitable, otherwise return it unchanged."""
    if isawaitable(value):
        return await value
    return value
