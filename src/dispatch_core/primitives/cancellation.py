"""CancellationToken — cooperative cancellation for dispatches."""

from __future__ import annotations

import threading

from .exceptions import DispatchCancelledError


class CancellationToken:
    """Thread-safe, one-way cancellation flag.

    Stages observe the token before they start; a running stage is never
    interrupted.

    Usage::

        token = CancellationToken()
        task = asyncio.create_task(dispatcher.send(msg, cancellation=token))
        token.cancel("shutting down")
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Only the first reason is kept."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise :class:`DispatchCancelledError` if cancellation was requested."""
        if self._event.is_set():
            raise DispatchCancelledError(self._reason or "Dispatch was cancelled")
