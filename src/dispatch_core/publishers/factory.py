"""Notification strategy selection."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .fire_and_forget import FireAndForgetPublisher
from .parallel import ParallelWaitAllPublisher
from .sequential import SequentialPublisher

if TYPE_CHECKING:
    from ..ports.publisher import INotificationPublisher


class NotificationStrategy(str, Enum):
    """Concurrency and failure semantics of ``publish``."""

    SEQUENTIAL = "sequential"
    PARALLEL_WAIT_ALL = "parallel_wait_all"
    FIRE_AND_FORGET = "fire_and_forget"


def create_notification_publisher(
    strategy: NotificationStrategy, *, max_concurrency: int | None = None
) -> INotificationPublisher:
    """Build the publisher implementing *strategy*.

    ``max_concurrency`` only applies to ``PARALLEL_WAIT_ALL``.
    """
    if strategy is NotificationStrategy.SEQUENTIAL:
        return SequentialPublisher()
    if strategy is NotificationStrategy.PARALLEL_WAIT_ALL:
        return ParallelWaitAllPublisher(max_concurrency)
    if strategy is NotificationStrategy.FIRE_AND_FORGET:
        return FireAndForgetPublisher()
    msg = f"Unknown notification strategy: {strategy!r}"
    raise ValueError(msg)
