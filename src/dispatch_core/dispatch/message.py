"""Message base class — optional convenience base for dispatched messages."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

from ..correlation import get_causation_id, get_correlation_id


class Message(BaseModel):
    """
    Base for messages passed to ``send`` or ``publish``.

    Any Python object can be dispatched; this base only adds immutability
    and tracing metadata. Messages:
    - Are frozen, so a message can be safely shared by concurrent handlers
    - Carry a ``message_id`` that becomes the causation ID of cascades
    - Inherit ``correlation_id`` and ``causation_id`` from the current
      dispatch scope (see :func:`~dispatch_core.correlation.correlation_scope`)

    A message created inside a handler therefore links back to the message
    being handled without any explicit plumbing.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    correlation_id: str | None = Field(default_factory=get_correlation_id)
    causation_id: str | None = Field(default_factory=get_causation_id)
