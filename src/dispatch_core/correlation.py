"""Correlation ID context — ties cascaded messages back to their origin."""

from __future__ import annotations

import contextlib
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

# ContextVar for correlation/causation tracking across async boundaries.
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_causation_id: ContextVar[str | None] = ContextVar("causation_id", default=None)


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID in context."""
    _correlation_id.set(correlation_id)


def get_causation_id() -> str | None:
    """Get current causation ID from context."""
    return _causation_id.get()


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def message_correlation_id(message: Any) -> str | None:
    """Return the correlation ID carried by *message*, if any."""
    value = getattr(message, "correlation_id", None)
    return str(value) if value else None


@contextlib.contextmanager
def correlation_scope(message: Any) -> Iterator[str]:
    """Run a dispatch of *message* under a correlation scope.

    The message's own correlation ID wins, then the ambient one, then a new
    one is generated. The message ID (when present) becomes the causation ID
    for anything dispatched inside the scope, such as cascaded messages.
    """
    correlation_id = (
        message_correlation_id(message)
        or get_correlation_id()
        or generate_correlation_id()
    )
    causation = getattr(message, "message_id", None)
    correlation_token = _correlation_id.set(correlation_id)
    causation_token = _causation_id.set(str(causation) if causation else None)
    try:
        yield correlation_id
    finally:
        _causation_id.reset(causation_token)
        _correlation_id.reset(correlation_token)
