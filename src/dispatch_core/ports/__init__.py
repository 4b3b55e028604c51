from .bus import IPublisher, ISender
from .middleware import IAfterHook, IBeforeHook, IExecuteHook, IFinallyHook
from .publisher import HandlerInvocation, INotificationPublisher
from .services import DefaultServiceProvider, IServiceProvider

__all__ = [
    "DefaultServiceProvider",
    "HandlerInvocation",
    "IAfterHook",
    "IBeforeHook",
    "IExecuteHook",
    "IFinallyHook",
    "INotificationPublisher",
    "IPublisher",
    "ISender",
    "IServiceProvider",
]
