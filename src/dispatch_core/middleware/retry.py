"""RetryMiddleware — re-runs the inner pipeline with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any

from ..primitives.exceptions import DispatchCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..dispatch.context import InvocationContext

logger = logging.getLogger("dispatch_core.middleware")


class RetryPolicy:
    """Configurable retry with exponential backoff and jitter."""

    def __init__(
        self,
        *,
        max_attempts: int = 3,
        base_delay: float = 0.1,
        max_delay: float = 10.0,
        jitter: bool = True,
        retry_on: tuple[type[Exception], ...] = (Exception,),
    ) -> None:
        """Configure retry behavior.

        Args:
            max_attempts: Maximum number of attempts (including the first).
            base_delay: Initial delay in seconds before the first retry.
            max_delay: Cap on delay in seconds.
            jitter: If True, add random jitter to delays to avoid thundering herd.
            retry_on: Exception types that trigger a retry.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0 or max_delay < 0:
            raise ValueError("base_delay and max_delay must be >= 0")
        if base_delay > max_delay:
            raise ValueError("base_delay must be <= max_delay")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.retry_on = retry_on

    def should_retry(self, attempt: int, exc: BaseException) -> bool:
        """Return True if *exc* on 1-based *attempt* allows another attempt."""
        if isinstance(exc, DispatchCancelledError):
            return False
        return isinstance(exc, self.retry_on) and 1 <= attempt < self.max_attempts

    def delay_for_attempt(self, attempt: int) -> float:
        """Return delay in seconds after the given 1-based attempt.

        Uses exponential backoff: base_delay * 2^(attempt-1), capped by max_delay.
        If jitter is enabled, multiplies by a random factor in [0.5, 1.5].
        """
        if attempt < 1:
            return 0.0
        delay = min(
            self.base_delay * (2 ** (attempt - 1)),
            self.max_delay,
        )
        if self.jitter:
            delay = delay * (0.5 + random.random())  # noqa: S311
        return float(max(0.0, delay))


class RetryMiddleware:
    """Wraps everything inside its layer with retry logic.

    Intended to be registered ``explicit_only`` with a low order, so it only
    wraps handlers that ask for it and sits outside their other middleware::

        middleware.register(RetryMiddleware, order=0, explicit_only=True)
        services.register(RetryMiddleware, RetryMiddleware(RetryPolicy()))

    Cancellation is never retried.
    """

    def __init__(self, policy: RetryPolicy | None = None) -> None:
        self._policy = policy or RetryPolicy()

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        message: Any,
        context: InvocationContext,
        call_next: Callable[[], Awaitable[Any]],
    ) -> Any:
        attempt = 1
        while True:
            try:
                return await call_next()
            except Exception as exc:
                if not self._policy.should_retry(attempt, exc):
                    raise
                delay = self._policy.delay_for_attempt(attempt)
                logger.warning(
                    "Attempt %d/%d for %s failed (%s); retrying in %.3fs",
                    attempt,
                    self._policy.max_attempts,
                    type(message).__name__,
                    exc,
                    delay,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                context.raise_if_cancelled()
                attempt += 1
