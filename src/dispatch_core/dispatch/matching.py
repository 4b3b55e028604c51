"""Message-type matching: exact, base class, interface or any message."""

from __future__ import annotations

import inspect
from abc import ABC
from enum import Enum
from typing import Any, Final

#: Target meaning "every message"; middleware or handlers registered for it
#: apply to all message types.
ANY_MESSAGE: Final[type[Any]] = object


class MatchKind(str, Enum):
    """How a registration target matched a message type."""

    EXACT = "exact"
    BASE = "base"
    INTERFACE = "interface"
    ANY = "any"

    @property
    def specificity(self) -> int:
        """Tie-break rank between middleware of equal order; lower sorts first.

        Exact and base-class matches share a rank, then interfaces, then
        ``ANY_MESSAGE``.
        """
        return _SPECIFICITY[self]


_SPECIFICITY: Final[dict[MatchKind, int]] = {
    MatchKind.EXACT: 0,
    MatchKind.BASE: 0,
    MatchKind.INTERFACE: 1,
    MatchKind.ANY: 2,
}


def is_interface(target: type[Any]) -> bool:
    """Return ``True`` for protocols, ABC markers and abstract classes."""
    return bool(
        getattr(target, "_is_protocol", False)
        or ABC in target.__bases__
        or inspect.isabstract(target)
    )


def match_kind(target: type[Any], message_type: type[Any]) -> MatchKind | None:
    """Classify how *target* applies to *message_type*, or ``None``."""
    if target is ANY_MESSAGE:
        return MatchKind.ANY
    if target is message_type:
        return MatchKind.EXACT
    if target in message_type.__mro__:
        return MatchKind.INTERFACE if is_interface(target) else MatchKind.BASE
    try:
        # Structural protocols and ABCs with registered virtual subclasses
        implemented = issubclass(message_type, target)
    except TypeError:
        return None
    return MatchKind.INTERFACE if implemented else None
