"""FireAndForgetPublisher — schedule every handler and return immediately."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..ports.publisher import HandlerInvocation

logger = logging.getLogger("dispatch_core.publishers")


class FireAndForgetPublisher:
    """Schedules one task per handler without waiting for any of them.

    ``publish`` returns before any handler has started. Failures are logged
    and never reach the caller. Handlers may outlive the caller's scope, so
    scoped services they depend on must stay usable until they finish.

    Pending tasks are referenced until done; :meth:`join` waits for them,
    which is useful during shutdown and in tests.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    async def publish(
        self, message: Any, invocations: Sequence[HandlerInvocation]
    ) -> None:
        loop = asyncio.get_running_loop()
        message_name = type(message).__name__
        for invocation in invocations:
            task = loop.create_task(invocation.invoke())
            self._tasks.add(task)
            task.add_done_callback(
                functools.partial(self._on_done, invocation.name, message_name)
            )

    def _on_done(
        self, handler_name: str, message_name: str, task: asyncio.Task[Any]
    ) -> None:
        """Log exceptions instead of letting them surface anywhere."""
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug(
                "Fire-and-forget handler %s for %s was cancelled",
                handler_name,
                message_name,
            )
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Fire-and-forget handler %s failed for %s: %s",
                handler_name,
                message_name,
                exc,
                exc_info=exc,
            )

    @property
    def pending(self) -> int:
        """Number of handler tasks that have not finished yet."""
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until every scheduled handler, including late ones, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
