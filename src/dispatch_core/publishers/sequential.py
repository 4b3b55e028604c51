"""SequentialPublisher — one handler at a time, in resolved order."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..primitives.exceptions import AggregateFaultError, HandlerFaultError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..ports.publisher import HandlerInvocation

logger = logging.getLogger("dispatch_core.publishers")


class SequentialPublisher:
    """Awaits each handler before starting the next.

    A failing handler does not stop the remaining ones; once all have run,
    the failures are raised together as :class:`AggregateFaultError`.
    """

    async def publish(
        self, message: Any, invocations: Sequence[HandlerInvocation]
    ) -> None:
        errors: list[HandlerFaultError] = []
        for invocation in invocations:
            try:
                await invocation.invoke()
            except Exception as exc:
                logger.exception(
                    "Handler %s failed for %s",
                    invocation.name,
                    type(message).__name__,
                )
                errors.append(HandlerFaultError(invocation.name, exc))
        if errors:
            raise AggregateFaultError(errors)
