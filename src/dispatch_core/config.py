"""DispatchSettings — global configuration consumed by the Dispatcher."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from .lifetime.strategies import Lifetime
from .publishers.factory import NotificationStrategy

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "DISPATCH_"


class DispatchSettings(BaseModel):
    """Global defaults for lifetimes and the notification strategy.

    Descriptors declaring ``Lifetime.DEFAULT`` take the matching
    ``default_*_lifetime`` here; when that is also ``DEFAULT`` the instance
    is cached by the dispatcher for the life of the process.

    Usage::

        settings = DispatchSettings(
            notification_strategy=NotificationStrategy.PARALLEL_WAIT_ALL,
            max_concurrency=8,
        )
        dispatcher = Dispatcher(registry, settings=settings)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_handler_lifetime: Lifetime = Lifetime.DEFAULT
    default_middleware_lifetime: Lifetime = Lifetime.DEFAULT
    notification_strategy: NotificationStrategy = NotificationStrategy.SEQUENTIAL
    max_concurrency: int | None = Field(default=None, ge=1)
    validate_on_startup: bool = True

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, *, prefix: str = ENV_PREFIX
    ) -> DispatchSettings:
        """Load settings from ``DISPATCH_*`` environment variables.

        ``DISPATCH_NOTIFICATION_STRATEGY=parallel_wait_all`` sets
        ``notification_strategy``, and so on for every field. Unset
        variables keep their defaults.
        """
        source = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = source.get(f"{prefix}{field_name.upper()}")
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls.model_validate(values)
