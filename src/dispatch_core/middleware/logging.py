"""LoggingMiddleware — logs handler execution details."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..dispatch.context import InvocationContext

logger = logging.getLogger("dispatch_core.middleware")

_START_KEY = "logging.start"


class LoggingMiddleware:
    """Logs message name, handler, duration and correlation_id per invocation."""

    def before(self, message: Any, context: InvocationContext) -> None:
        context.items[_START_KEY] = time.perf_counter()
        logger.info(
            "Handling %s with %s (correlation_id=%s)",
            type(message).__name__,
            context.handler.name,
            context.correlation_id,
        )

    def after(self, message: Any, context: InvocationContext) -> None:
        logger.info(
            "%s completed in %.2fms", type(message).__name__, _elapsed_ms(context)
        )

    def finally_(self, message: Any, context: InvocationContext) -> None:
        if context.exception is not None:
            logger.error(
                "%s failed after %.2fms",
                type(message).__name__,
                _elapsed_ms(context),
                exc_info=context.exception,
            )


def _elapsed_ms(context: InvocationContext) -> float:
    start = context.items.get(_START_KEY, time.perf_counter())
    return (time.perf_counter() - start) * 1000
