"""Dispatcher — central dispatch point for send and publish."""

from __future__ import annotations

import functools
import logging
import threading
from typing import TYPE_CHECKING, Any

from ..config import DispatchSettings
from ..correlation import correlation_scope
from ..lifetime.strategies import LifetimeResolver
from ..middleware.assembler import PipelineAssembler
from ..middleware.registry import MiddlewareRegistry
from ..ordering.topological import topological_sort
from ..ports.publisher import HandlerInvocation
from ..ports.services import DefaultServiceProvider
from ..primitives.exceptions import (
    AmbiguousHandlerError,
    CascadeFaultError,
    NoHandlerFoundError,
)
from ..publishers.factory import create_notification_publisher
from ..utils import maybe_await
from .context import DispatchState, InvocationContext
from .descriptor import HandlerDescriptor, ResultShape
from .outcome import Outcome

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..lifetime.cache import InstanceCache
    from ..ports.publisher import INotificationPublisher
    from ..ports.services import IServiceProvider
    from ..primitives.cancellation import CancellationToken
    from .registry import HandlerRegistry

logger = logging.getLogger(__name__)


def _to_outcome(shape: ResultShape, result: Any) -> Outcome[Any]:
    if shape is ResultShape.VOID:
        return Outcome(None)
    if shape is ResultShape.CASCADING and isinstance(result, Outcome):
        return result
    return Outcome(result)


class Dispatcher:
    """Routes messages through their middleware pipelines to handlers.

    ``send`` requires exactly one handler registered for the message's
    exact type. ``publish`` fans out to every handler matching the message
    by exact type, base class, interface or ``ANY_MESSAGE``, using the
    configured notification strategy. Either way each handler runs inside
    its own pipeline, assembled once and cached.

    Parameters
    ----------
    registry:
        :class:`~dispatch_core.dispatch.registry.HandlerRegistry` instance.
    middleware_registry:
        Optional
        :class:`~dispatch_core.middleware.registry.MiddlewareRegistry`.
    settings:
        Optional :class:`~dispatch_core.config.DispatchSettings`.
    services:
        Default :class:`~dispatch_core.ports.services.IServiceProvider`,
        used when a call does not pass its own scope. Defaults to
        :class:`~dispatch_core.ports.services.DefaultServiceProvider`.
    notification_publisher:
        Overrides the publisher selected by ``settings.notification_strategy``.
    instance_cache:
        Optional shared :class:`~dispatch_core.lifetime.cache.InstanceCache`.
    request_types:
        Message types used with ``send``; validated for ambiguous handlers
        at construction when ``settings.validate_on_startup`` is set.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        middleware_registry: MiddlewareRegistry | None = None,
        settings: DispatchSettings | None = None,
        services: IServiceProvider | None = None,
        notification_publisher: INotificationPublisher | None = None,
        instance_cache: InstanceCache | None = None,
        request_types: Iterable[type[Any]] = (),
    ) -> None:
        self._registry = registry
        self._settings = settings or DispatchSettings()
        self._middleware_registry = middleware_registry or MiddlewareRegistry()
        self._assembler = PipelineAssembler(self._middleware_registry)
        self._lifetimes = LifetimeResolver(
            instance_cache,
            default_handler_lifetime=self._settings.default_handler_lifetime,
            default_middleware_lifetime=self._settings.default_middleware_lifetime,
        )
        self._services: IServiceProvider = services or DefaultServiceProvider()
        self._publisher = notification_publisher or create_notification_publisher(
            self._settings.notification_strategy,
            max_concurrency=self._settings.max_concurrency,
        )
        self._publish_handlers: dict[type[Any], list[HandlerDescriptor]] = {}
        self._publish_version = registry.version
        self._lock = threading.Lock()

        if self._settings.validate_on_startup:
            registry.validate(request_types)

    # ── Public API ───────────────────────────────────────────────

    @property
    def settings(self) -> DispatchSettings:
        return self._settings

    @property
    def notification_publisher(self) -> INotificationPublisher:
        return self._publisher

    @property
    def assembler(self) -> PipelineAssembler:
        return self._assembler

    @property
    def instance_cache(self) -> InstanceCache:
        return self._lifetimes.cache

    async def send(
        self,
        message: Any,
        *,
        services: IServiceProvider | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Any:
        """Dispatch *message* to its single handler and return the result.

        Cascaded messages are published after the handler's pipeline has
        completed; if any of them fails a :class:`CascadeFaultError`
        carrying the primary result is raised.

        Raises
        ------
        NoHandlerFoundError
            No handler is registered for the exact message type.
        AmbiguousHandlerError
            More than one handler is registered for it.
        """
        message_type = type(message)
        handlers = self._registry.get_handlers(message_type)
        if not handlers:
            raise NoHandlerFoundError(message_type)
        if len(handlers) > 1:
            raise AmbiguousHandlerError(message_type, [h.name for h in handlers])

        scope = services or self._services
        with correlation_scope(message):
            outcome = await self._invoke(message, handlers[0], scope, cancellation)
            await self._publish_cascades(outcome, scope, cancellation)
        return outcome.primary

    async def publish(
        self,
        message: Any,
        *,
        services: IServiceProvider | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Fan *message* out to every matching handler.

        Completion and failure reporting depend on the notification
        strategy. Publishing a message nobody handles is a no-op.
        """
        handlers = self.get_publish_handlers(type(message))
        if not handlers:
            logger.debug("No handlers for published %s", type(message).__name__)
            return

        scope = services or self._services
        invocations = [
            HandlerInvocation(
                handler,
                functools.partial(
                    self._invoke_notification, message, handler, scope, cancellation
                ),
            )
            for handler in handlers
        ]
        await self._publisher.publish(message, invocations)

    def get_publish_handlers(
        self, message_type: type[Any]
    ) -> list[HandlerDescriptor]:
        """Return the handlers ``publish`` runs for *message_type*, in order."""
        if self._publish_version != self._registry.version:
            with self._lock:
                self._publish_handlers.clear()
                self._publish_version = self._registry.version

        try:
            return self._publish_handlers[message_type]
        except KeyError:
            pass

        matched = [
            handler for handler, _ in self._registry.find_handlers(message_type)
        ]
        result = topological_sort(
            matched,
            lambda h: h.name,
            lambda h: h.order_before,
            lambda h: h.order_after,
            lambda h: h.effective_order,
        )
        with self._lock:
            return self._publish_handlers.setdefault(message_type, result.items)

    # ── Internals ────────────────────────────────────────────────

    async def _invoke_notification(
        self,
        message: Any,
        handler: HandlerDescriptor,
        services: IServiceProvider,
        cancellation: CancellationToken | None,
    ) -> Any:
        with correlation_scope(message):
            outcome = await self._invoke(message, handler, services, cancellation)
            await self._publish_cascades(outcome, services, cancellation)
        return outcome.primary

    async def _invoke(
        self,
        message: Any,
        handler: HandlerDescriptor,
        services: IServiceProvider,
        cancellation: CancellationToken | None,
    ) -> Outcome[Any]:
        """Resolve instances and run one handler through its pipeline."""
        context = InvocationContext(
            message=message,
            handler=handler,
            services=services,
            cancellation=cancellation,
        )
        context.transition(DispatchState.RESOLVING)
        try:
            pipeline = self._assembler.get_pipeline(type(message), handler)
            middleware = [
                self._lifetimes.resolve(
                    layer.descriptor.middleware_type,
                    self._lifetimes.effective_middleware_lifetime(
                        layer.descriptor.lifetime
                    ),
                    services,
                )
                for layer in pipeline.layers
            ]
            instance = self._lifetimes.resolve(
                handler.handler_type,
                self._lifetimes.effective_handler_lifetime(handler.lifetime),
                services,
            )
            method = getattr(instance, handler.method)

            async def _call_handler() -> Any:
                result = await maybe_await(method(message))
                if handler.result_shape is ResultShape.VOID:
                    return None
                if handler.result_shape is ResultShape.CASCADING:
                    return _to_outcome(handler.result_shape, result)
                return result

            context.transition(DispatchState.EXECUTING)
            result = await pipeline.execute(context, middleware, _call_handler)
        except BaseException as exc:
            context.exception = exc
            context.transition(DispatchState.FAULTED)
            raise

        context.transition(DispatchState.COMPLETED)
        return _to_outcome(handler.result_shape, result)

    async def _publish_cascades(
        self,
        outcome: Outcome[Any],
        services: IServiceProvider,
        cancellation: CancellationToken | None,
    ) -> None:
        """Publish cascaded messages independently of one another."""
        errors: list[BaseException] = []
        for cascade in outcome.cascades:
            if cascade is None:
                continue
            try:
                await self.publish(
                    cascade, services=services, cancellation=cancellation
                )
            except Exception as exc:
                logger.warning(
                    "Cascaded %s failed to publish: %s", type(cascade).__name__, exc
                )
                errors.append(exc)
        if errors:
            raise CascadeFaultError(outcome.primary, errors)
