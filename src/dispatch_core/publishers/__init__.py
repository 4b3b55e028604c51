"""Notification publishers — fan-out strategies for ``publish``."""

from .factory import NotificationStrategy, create_notification_publisher
from .fire_and_forget import FireAndForgetPublisher
from .parallel import ParallelWaitAllPublisher
from .sequential import SequentialPublisher

__all__ = [
    "FireAndForgetPublisher",
    "NotificationStrategy",
    "ParallelWaitAllPublisher",
    "SequentialPublisher",
    "create_notification_publisher",
]
