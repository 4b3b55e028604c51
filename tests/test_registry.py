from typing import Protocol, runtime_checkable

import pytest

from dispatch_core import (
    ANY_MESSAGE,
    AmbiguousHandlerError,
    HandlerDescriptor,
    HandlerRegistrationError,
    HandlerRegistry,
    Lifetime,
    MatchKind,
    MiddlewareReference,
    ResultShape,
)
from dispatch_core.dispatch import match_kind

# --- Test Models ---


@runtime_checkable
class HasTenant(Protocol):
    tenant_id: str


class DomainEvent:
    pass


class UserCreated(DomainEvent):
    def __init__(self) -> None:
        self.tenant_id = "t-1"


class UserCreatedHandler:
    def handle(self, message: UserCreated) -> None: ...


class AuditHandler:
    def handle(self, message: DomainEvent) -> None: ...


class TenantHandler:
    def handle(self, message: HasTenant) -> None: ...


class NoMethodHandler:
    pass


# --- Registration ---


def test_register_handler_builds_descriptor() -> None:
    registry = HandlerRegistry()

    descriptor = registry.register_handler(
        UserCreated,
        UserCreatedHandler,
        lifetime=Lifetime.SCOPED,
        order=3,
        order_after=(AuditHandler,),
        middleware=("RetryMiddleware",),
    )

    assert descriptor.name == "UserCreatedHandler"
    assert descriptor.order_after == ("AuditHandler",)
    assert descriptor.middleware == (MiddlewareReference("RetryMiddleware"),)
    assert registry.get_handlers(UserCreated) == [descriptor]
    assert registry.get_registered_handlers() == {
        "UserCreated": ["UserCreatedHandler"]
    }


def test_decorator_registration() -> None:
    registry = HandlerRegistry()

    @registry.add(UserCreated, result_shape=ResultShape.VOID)
    class DecoratedHandler:
        def handle(self, message: UserCreated) -> None: ...

    [descriptor] = registry.get_handlers(UserCreated)
    assert descriptor.handler_type is DecoratedHandler
    assert descriptor.result_shape is ResultShape.VOID


def test_missing_method_is_rejected() -> None:
    registry = HandlerRegistry()

    with pytest.raises(HandlerRegistrationError, match="no callable 'handle'"):
        registry.register_handler(UserCreated, NoMethodHandler)


def test_identical_registration_is_a_no_op() -> None:
    registry = HandlerRegistry()
    registry.register_handler(UserCreated, UserCreatedHandler)
    version = registry.version

    registry.register(HandlerDescriptor(UserCreated, UserCreatedHandler))

    assert len(registry.get_handlers(UserCreated)) == 1
    assert registry.version == version


def test_conflicting_registration_is_rejected() -> None:
    registry = HandlerRegistry()
    registry.register_handler(UserCreated, UserCreatedHandler)

    with pytest.raises(HandlerRegistrationError, match="Duplicate handler name"):
        registry.register_handler(UserCreated, UserCreatedHandler, order=1)


def test_validate_reports_ambiguous_request_types() -> None:
    registry = HandlerRegistry()
    registry.register_handler(UserCreated, UserCreatedHandler)
    registry.register_handler(UserCreated, AuditHandler)

    registry.validate([DomainEvent])
    with pytest.raises(AmbiguousHandlerError, match="UserCreated"):
        registry.validate([UserCreated])


def test_clear_bumps_version() -> None:
    registry = HandlerRegistry()
    registry.register_handler(UserCreated, UserCreatedHandler)
    version = registry.version

    registry.clear()

    assert registry.get_handlers(UserCreated) == []
    assert registry.version > version


# --- Matching ---


def test_find_handlers_matches_exact_base_interface_and_any() -> None:
    registry = HandlerRegistry()
    registry.register_handler(UserCreated, UserCreatedHandler)
    registry.register_handler(DomainEvent, AuditHandler)
    registry.register_handler(HasTenant, TenantHandler)
    registry.register_handler(ANY_MESSAGE, AuditHandler, name="CatchAll")

    matched = [(d.name, kind) for d, kind in registry.find_handlers(UserCreated)]

    assert matched == [
        ("UserCreatedHandler", MatchKind.EXACT),
        ("AuditHandler", MatchKind.BASE),
        ("CatchAll", MatchKind.ANY),
    ]


def test_declared_protocol_subclass_matches_as_interface() -> None:
    class TenantEvent(HasTenant):
        tenant_id = "t-2"

    assert match_kind(HasTenant, TenantEvent) is MatchKind.INTERFACE
    assert match_kind(DomainEvent, TenantEvent) is None
    assert match_kind(ANY_MESSAGE, TenantEvent) is MatchKind.ANY


def test_specificity_ranks() -> None:
    assert MatchKind.EXACT.specificity == MatchKind.BASE.specificity == 0
    assert MatchKind.INTERFACE.specificity == 1
    assert MatchKind.ANY.specificity == 2
