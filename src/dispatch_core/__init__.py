"""dispatch_core — in-process message dispatch with ordered middleware pipelines."""

from .primitives import (
    AggregateFaultError,
    AmbiguousHandlerError,
    CancellationToken,
    CascadeFaultError,
    DispatchCancelledError,
    DispatchError,
    HandlerError,
    HandlerFaultError,
    HandlerRegistrationError,
    InvalidStateTransitionError,
    NoHandlerFoundError,
)
from .ordering import OrderingCycle, SortResult, topological_sort
from .lifetime import InstanceCache, Lifetime
from .ports import (
    DefaultServiceProvider,
    HandlerInvocation,
    INotificationPublisher,
    IPublisher,
    ISender,
    IServiceProvider,
)
from .correlation import correlation_scope, get_correlation_id, set_correlation_id

# dispatch must be imported before middleware.
from .dispatch import (
    ANY_MESSAGE,
    Dispatcher,
    DispatchState,
    HandlerDescriptor,
    HandlerRegistry,
    InvocationContext,
    MatchKind,
    Message,
    MiddlewareReference,
    Outcome,
    ResultShape,
    ShortCircuit,
)
from .middleware import (
    CachingMiddleware,
    LoggingMiddleware,
    MiddlewareDescriptor,
    MiddlewareRegistry,
    PipelineAssembler,
    PipelineInstance,
    ResultCache,
    RetryMiddleware,
    RetryPolicy,
)
from .publishers import (
    FireAndForgetPublisher,
    NotificationStrategy,
    ParallelWaitAllPublisher,
    SequentialPublisher,
    create_notification_publisher,
)
from .config import DispatchSettings

__all__ = [
    "ANY_MESSAGE",
    "AggregateFaultError",
    "AmbiguousHandlerError",
    "CachingMiddleware",
    "CancellationToken",
    "CascadeFaultError",
    "DefaultServiceProvider",
    "DispatchCancelledError",
    "DispatchError",
    "DispatchSettings",
    "DispatchState",
    "Dispatcher",
    "FireAndForgetPublisher",
    "HandlerDescriptor",
    "HandlerError",
    "HandlerFaultError",
    "HandlerInvocation",
    "HandlerRegistrationError",
    "HandlerRegistry",
    "INotificationPublisher",
    "IPublisher",
    "ISender",
    "IServiceProvider",
    "InstanceCache",
    "InvalidStateTransitionError",
    "InvocationContext",
    "Lifetime",
    "LoggingMiddleware",
    "MatchKind",
    "Message",
    "MiddlewareDescriptor",
    "MiddlewareReference",
    "MiddlewareRegistry",
    "NoHandlerFoundError",
    "NotificationStrategy",
    "OrderingCycle",
    "Outcome",
    "ParallelWaitAllPublisher",
    "PipelineAssembler",
    "PipelineInstance",
    "ResultCache",
    "ResultShape",
    "RetryMiddleware",
    "RetryPolicy",
    "SequentialPublisher",
    "ShortCircuit",
    "SortResult",
    "correlation_scope",
    "create_notification_publisher",
    "get_correlation_id",
    "set_correlation_id",
    "topological_sort",
]
