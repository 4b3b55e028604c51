from unittest.mock import MagicMock

import pytest

from dispatch_core import (
    ANY_MESSAGE,
    AmbiguousHandlerError,
    CascadeFaultError,
    DefaultServiceProvider,
    Dispatcher,
    DispatchSettings,
    DispatchState,
    HandlerRegistry,
    InvalidStateTransitionError,
    IPublisher,
    ISender,
    IServiceProvider,
    Lifetime,
    Message,
    MiddlewareRegistry,
    NoHandlerFoundError,
    Outcome,
    ResultShape,
    get_correlation_id,
)

# --- Test Models ---

events: list[str] = []
contexts: list = []


@pytest.fixture(autouse=True)
def _reset() -> None:
    events.clear()
    contexts.clear()


class PlaceOrder(Message):
    sku: str


class OrderPlaced(Message):
    sku: str


class Ping:
    pass


class Trace:
    def before(self, message, context) -> None:
        events.append(f"trace.before:{type(message).__name__}")
        contexts.append(context)

    def after(self, message, context) -> None:
        events.append("trace.after")

    def finally_(self, message, context) -> None:
        events.append(f"trace.finally:{context.state.value}")


class PingHandler:
    async def handle(self, message: Ping) -> str:
        events.append("ping")
        return "pong"


class FailingPingHandler:
    def handle(self, message: Ping) -> str:
        raise RuntimeError("kaboom")


class PlaceOrderHandler:
    def handle(self, message: PlaceOrder) -> Outcome[str]:
        events.append(f"place:{message.sku}")
        return Outcome(
            f"order-{message.sku}", cascades=(OrderPlaced(sku=message.sku), None)
        )


class OrderPlacedHandler:
    received: list[OrderPlaced] = []

    async def handle(self, message: OrderPlaced) -> None:
        OrderPlacedHandler.received.append(message)
        events.append(f"placed:{message.sku}")


class BrokenOrderPlacedHandler:
    def handle(self, message: OrderPlaced) -> None:
        raise ValueError("mail server down")


class CatchAllHandler:
    def handle(self, message: object) -> None:
        events.append(f"catch-all:{type(message).__name__}")


@pytest.fixture
def registry() -> HandlerRegistry:
    return HandlerRegistry()


@pytest.fixture
def middleware() -> MiddlewareRegistry:
    return MiddlewareRegistry()


# --- Send ---


@pytest.mark.asyncio
async def test_send_returns_handler_result(registry: HandlerRegistry) -> None:
    registry.register_handler(Ping, PingHandler)
    dispatcher = Dispatcher(registry)

    result = await dispatcher.send(Ping())

    assert result == "pong"
    assert events == ["ping"]


@pytest.mark.asyncio
async def test_send_without_handler_fails_before_middleware(
    registry: HandlerRegistry, middleware: MiddlewareRegistry
) -> None:
    middleware.register(Trace)
    dispatcher = Dispatcher(registry, middleware_registry=middleware)

    with pytest.raises(NoHandlerFoundError, match="Ping"):
        await dispatcher.send(Ping())

    assert events == []


@pytest.mark.asyncio
async def test_send_ignores_base_and_any_handlers(registry: HandlerRegistry) -> None:
    registry.register_handler(ANY_MESSAGE, CatchAllHandler)
    dispatcher = Dispatcher(registry)

    with pytest.raises(NoHandlerFoundError):
        await dispatcher.send(Ping())


def test_ambiguous_send_handler_is_a_startup_error(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(Ping, PingHandler)
    registry.register_handler(Ping, FailingPingHandler)

    with pytest.raises(AmbiguousHandlerError) as exc_info:
        Dispatcher(registry, request_types=[Ping])

    assert exc_info.value.handler_names == ("PingHandler", "FailingPingHandler")


@pytest.mark.asyncio
async def test_ambiguous_send_is_rejected_at_call_time(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(Ping, PingHandler)
    registry.register_handler(Ping, FailingPingHandler)
    dispatcher = Dispatcher(
        registry, settings=DispatchSettings(validate_on_startup=False)
    )

    with pytest.raises(AmbiguousHandlerError):
        await dispatcher.send(Ping())

    assert events == []


@pytest.mark.asyncio
async def test_void_handler_result_is_discarded(registry: HandlerRegistry) -> None:
    registry.register_handler(Ping, PingHandler, result_shape=ResultShape.VOID)
    dispatcher = Dispatcher(registry)

    assert await dispatcher.send(Ping()) is None
    assert events == ["ping"]


@pytest.mark.asyncio
async def test_middleware_wraps_handler(
    registry: HandlerRegistry, middleware: MiddlewareRegistry
) -> None:
    registry.register_handler(Ping, PingHandler)
    middleware.register(Trace)
    dispatcher = Dispatcher(registry, middleware_registry=middleware)

    await dispatcher.send(Ping())

    assert events == [
        "trace.before:Ping",
        "ping",
        "trace.after",
        "trace.finally:executing",
    ]


# --- Lifetimes ---


@pytest.mark.asyncio
async def test_default_lifetime_instances_are_cached(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(Ping, PingHandler)
    services = MagicMock(spec=IServiceProvider)
    services.create.side_effect = lambda cls: cls()
    dispatcher = Dispatcher(registry, services=services)

    await dispatcher.send(Ping())
    await dispatcher.send(Ping())

    services.create.assert_called_once_with(PingHandler)
    services.get.assert_not_called()
    assert PingHandler in dispatcher.instance_cache


@pytest.mark.asyncio
async def test_scoped_lifetime_asks_caller_scope_every_time(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(Ping, PingHandler, lifetime=Lifetime.SCOPED)
    dispatcher = Dispatcher(registry)
    scope = MagicMock(spec=IServiceProvider)
    scope.get.side_effect = lambda cls: cls()

    await dispatcher.send(Ping(), services=scope)
    await dispatcher.send(Ping(), services=scope)

    assert scope.get.call_count == 2
    assert len(dispatcher.instance_cache) == 0


@pytest.mark.asyncio
async def test_global_default_lifetime_applies_to_default_descriptors(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(Ping, PingHandler)
    services = MagicMock(spec=IServiceProvider)
    services.get.side_effect = lambda cls: cls()
    dispatcher = Dispatcher(
        registry,
        services=services,
        settings=DispatchSettings(default_handler_lifetime=Lifetime.TRANSIENT),
    )

    await dispatcher.send(Ping())

    services.get.assert_called_once_with(PingHandler)
    services.create.assert_not_called()


# --- Cascades ---


@pytest.mark.asyncio
async def test_cascaded_messages_are_published_after_success(
    registry: HandlerRegistry,
) -> None:
    OrderPlacedHandler.received.clear()
    registry.register_handler(
        PlaceOrder, PlaceOrderHandler, result_shape=ResultShape.CASCADING
    )
    registry.register_handler(OrderPlaced, OrderPlacedHandler)
    dispatcher = Dispatcher(registry)
    command = PlaceOrder(sku="A-1")

    result = await dispatcher.send(command)

    assert result == "order-A-1"
    assert events == ["place:A-1", "placed:A-1"]
    cascaded = OrderPlacedHandler.received[0]
    assert cascaded.causation_id == command.message_id
    assert cascaded.correlation_id is not None
    assert get_correlation_id() is None


@pytest.mark.asyncio
async def test_cascade_failure_keeps_primary_result(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(
        PlaceOrder, PlaceOrderHandler, result_shape=ResultShape.CASCADING
    )
    registry.register_handler(OrderPlaced, BrokenOrderPlacedHandler)
    dispatcher = Dispatcher(registry)

    with pytest.raises(CascadeFaultError) as exc_info:
        await dispatcher.send(PlaceOrder(sku="B-2"))

    assert exc_info.value.result == "order-B-2"
    assert events == ["place:B-2"]


@pytest.mark.asyncio
async def test_cascades_are_not_published_when_handler_fails(
    registry: HandlerRegistry, middleware: MiddlewareRegistry
) -> None:
    class RejectingMiddleware:
        def after(self, message, context) -> None:
            raise PermissionError("rejected")

    registry.register_handler(
        PlaceOrder, PlaceOrderHandler, result_shape=ResultShape.CASCADING
    )
    registry.register_handler(OrderPlaced, OrderPlacedHandler)
    middleware.register(RejectingMiddleware, target=PlaceOrder)
    dispatcher = Dispatcher(registry, middleware_registry=middleware)

    with pytest.raises(PermissionError):
        await dispatcher.send(PlaceOrder(sku="C-3"))

    assert events == ["place:C-3"]


# --- State Machine ---


@pytest.mark.asyncio
async def test_invocation_completes(
    registry: HandlerRegistry, middleware: MiddlewareRegistry
) -> None:
    registry.register_handler(Ping, PingHandler)
    middleware.register(Trace)
    dispatcher = Dispatcher(registry, middleware_registry=middleware)

    await dispatcher.send(Ping())

    context = contexts[0]
    assert context.state is DispatchState.COMPLETED
    assert context.result == "pong"
    with pytest.raises(InvalidStateTransitionError):
        context.transition(DispatchState.FAULTED)


@pytest.mark.asyncio
async def test_invocation_faults(
    registry: HandlerRegistry, middleware: MiddlewareRegistry
) -> None:
    registry.register_handler(Ping, FailingPingHandler)
    middleware.register(Trace)
    dispatcher = Dispatcher(registry, middleware_registry=middleware)

    with pytest.raises(RuntimeError, match="kaboom"):
        await dispatcher.send(Ping())

    context = contexts[0]
    assert context.state is DispatchState.FAULTED
    assert isinstance(context.exception, RuntimeError)
    assert context.state.is_terminal


# --- Publish ---


@pytest.mark.asyncio
async def test_publish_reaches_every_matching_handler_in_order(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(ANY_MESSAGE, CatchAllHandler, order=0)
    registry.register_handler(
        OrderPlaced, OrderPlacedHandler, order_before=(CatchAllHandler,)
    )
    dispatcher = Dispatcher(registry)

    await dispatcher.publish(OrderPlaced(sku="D-4"))

    assert events == ["placed:D-4", "catch-all:OrderPlaced"]


@pytest.mark.asyncio
async def test_publish_without_handlers_is_a_no_op(
    registry: HandlerRegistry,
) -> None:
    dispatcher = Dispatcher(registry)

    await dispatcher.publish(Ping())

    assert events == []


def test_publish_handler_order_is_cached_until_registry_changes(
    registry: HandlerRegistry,
) -> None:
    registry.register_handler(OrderPlaced, OrderPlacedHandler)
    dispatcher = Dispatcher(registry)

    first = dispatcher.get_publish_handlers(OrderPlaced)
    assert dispatcher.get_publish_handlers(OrderPlaced) is first

    registry.register_handler(ANY_MESSAGE, CatchAllHandler)
    handlers = dispatcher.get_publish_handlers(OrderPlaced)

    assert [h.name for h in handlers] == ["OrderPlacedHandler", "CatchAllHandler"]


@pytest.mark.asyncio
async def test_services_override_per_call(registry: HandlerRegistry) -> None:
    registry.register_handler(Ping, PingHandler, lifetime=Lifetime.SCOPED)
    dispatcher = Dispatcher(registry)
    handler = PingHandler()

    scope = DefaultServiceProvider({PingHandler: handler})

    assert await dispatcher.send(Ping(), services=scope) == "pong"
    assert events == ["ping"]


def test_dispatcher_implements_bus_ports(registry: HandlerRegistry) -> None:
    dispatcher = Dispatcher(registry)

    assert isinstance(dispatcher, ISender)
    assert isinstance(dispatcher, IPublisher)
