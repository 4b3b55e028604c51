"""ParallelWaitAllPublisher — start every handler, wait for all of them."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from ..primitives.exceptions import AggregateFaultError, HandlerFaultError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..ports.publisher import HandlerInvocation

logger = logging.getLogger("dispatch_core.publishers")


class ParallelWaitAllPublisher:
    """Runs all handlers concurrently and waits for every one to finish.

    Tasks are created in resolved order, so that order governs when each
    handler starts, not when it completes. Sibling failures never cancel
    other handlers; they are raised together as
    :class:`AggregateFaultError` once everything has finished.

    Handlers overlap only at their ``await`` points. A synchronous
    ``handle`` runs inline on the event loop thread, so a blocking one holds
    up every sibling until it returns; such handlers should hand their work
    to ``asyncio.to_thread`` themselves.

    Parameters
    ----------
    max_concurrency:
        Optional cap on handlers running at the same time for one publish.
    """

    def __init__(self, max_concurrency: int | None = None) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = max_concurrency

    async def publish(
        self, message: Any, invocations: Sequence[HandlerInvocation]
    ) -> None:
        if not invocations:
            return

        semaphore = (
            asyncio.Semaphore(self._max_concurrency)
            if self._max_concurrency is not None
            else None
        )

        async def _run(invocation: HandlerInvocation) -> Any:
            if semaphore is None:
                return await invocation.invoke()
            async with semaphore:
                return await invocation.invoke()

        tasks = [asyncio.ensure_future(_run(invocation)) for invocation in invocations]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        errors: list[HandlerFaultError] = []
        for invocation, result in zip(invocations, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Handler %s failed for %s",
                    invocation.name,
                    type(message).__name__,
                    exc_info=result,
                )
                errors.append(HandlerFaultError(invocation.name, result))
        if errors:
            raise AggregateFaultError(errors)
