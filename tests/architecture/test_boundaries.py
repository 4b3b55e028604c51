from pytest_archon import archrule


def test_primitives_isolation() -> None:
    """
    Primitives layer is the lowest level.
    It must not import from dispatch, middleware, publishers or ports.
    """
    (
        archrule("primitives_isolation")
        .match("dispatch_core.primitives*")
        .should_not_import("dispatch_core.dispatch*")
        .should_not_import("dispatch_core.middleware*")
        .should_not_import("dispatch_core.publishers*")
        .should_not_import("dispatch_core.ports*")
        .check("dispatch_core")
    )


def test_ordering_independence() -> None:
    """
    The topological sort is generic over the items it orders.
    It must not know about handlers or middleware.
    """
    (
        archrule("ordering_independence")
        .match("dispatch_core.ordering*")
        .should_not_import("dispatch_core.dispatch*")
        .should_not_import("dispatch_core.middleware*")
        .should_not_import("dispatch_core.publishers*")
        .check("dispatch_core")
    )


def test_utils_isolation() -> None:
    """
    Shared helpers must not depend on any dispatch component.
    """
    (
        archrule("utils_isolation")
        .match("dispatch_core.utils")
        .match("dispatch_core.correlation")
        .should_not_import("dispatch_core.dispatch*")
        .should_not_import("dispatch_core.middleware*")
        .should_not_import("dispatch_core.publishers*")
        .check("dispatch_core")
    )
