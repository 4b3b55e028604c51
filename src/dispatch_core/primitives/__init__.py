"""Primitives: exceptions, cancellation."""

from __future__ import annotations

from .cancellation import CancellationToken
from .exceptions import (
    AggregateFaultError,
    AmbiguousHandlerError,
    CascadeFaultError,
    DispatchCancelledError,
    DispatchError,
    HandlerError,
    HandlerFaultError,
    HandlerRegistrationError,
    InvalidStateTransitionError,
    NoHandlerFoundError,
)

__all__ = [
    "AggregateFaultError",
    "AmbiguousHandlerError",
    "CancellationToken",
    "CascadeFaultError",
    "DispatchCancelledError",
    "DispatchError",
    "HandlerError",
    "HandlerFaultError",
    "HandlerRegistrationError",
    "InvalidStateTransitionError",
    "NoHandlerFoundError",
]
