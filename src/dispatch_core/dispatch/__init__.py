"""Dispatch — descriptors, registry, invocation context and the Dispatcher."""

from .matching import ANY_MESSAGE, MatchKind, is_interface, match_kind
from .outcome import Outcome, ShortCircuit
from .descriptor import HandlerDescriptor, MiddlewareReference, ResultShape
from .context import DispatchState, InvocationContext
from .message import Message
from .registry import HandlerRegistry
from .dispatcher import Dispatcher  # imports middleware/publishers; keep last

__all__ = [
    "ANY_MESSAGE",
    "DispatchState",
    "Dispatcher",
    "HandlerDescriptor",
    "HandlerRegistry",
    "InvocationContext",
    "MatchKind",
    "Message",
    "MiddlewareReference",
    "Outcome",
    "ResultShape",
    "ShortCircuit",
    "is_interface",
    "match_kind",
]
