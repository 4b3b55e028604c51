"""PipelineAssembler — selects and orders the middleware for each handler."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from ..dispatch.matching import ANY_MESSAGE, MatchKind, is_interface, match_kind
from ..ordering.topological import has_relative_constraints, topological_sort
from .pipeline import PipelineInstance, PipelineLayer

if TYPE_CHECKING:
    from ..dispatch.descriptor import HandlerDescriptor
    from .definition import MiddlewareDescriptor
    from .registry import MiddlewareRegistry

logger = logging.getLogger(__name__)


def _layer_before(layer: PipelineLayer) -> tuple[str, ...]:
    return layer.descriptor.order_before


def _layer_after(layer: PipelineLayer) -> tuple[str, ...]:
    return layer.descriptor.order_after


def _layer_name(layer: PipelineLayer) -> str:
    return layer.name


def _layer_order(layer: PipelineLayer) -> int:
    return layer.order


def _target_kind(target: type[Any]) -> MatchKind:
    """Specificity of an explicitly referenced middleware's own target."""
    if target is ANY_MESSAGE:
        return MatchKind.ANY
    return MatchKind.INTERFACE if is_interface(target) else MatchKind.EXACT


class PipelineAssembler:
    """Builds one :class:`PipelineInstance` per (message type, handler).

    Candidates are every non-``explicit_only`` middleware whose target
    matches the message type (exact, base class, interface or any message)
    plus the middleware the handler references explicitly. Pipelines are
    built once and cached; concurrent first builds produce identical
    pipelines and the first one stored is kept.
    """

    def __init__(self, registry: MiddlewareRegistry) -> None:
        self._registry = registry
        self._pipelines: dict[
            tuple[type[Any], HandlerDescriptor], PipelineInstance
        ] = {}
        self._version = registry.version
        self._lock = threading.Lock()

    def get_pipeline(
        self, message_type: type[Any], handler: HandlerDescriptor
    ) -> PipelineInstance:
        """Return the cached pipeline, assembling it on first use."""
        if self._version != self._registry.version:
            self.clear()

        key = (message_type, handler)
        try:
            return self._pipelines[key]
        except KeyError:
            pass

        pipeline = self.assemble(message_type, handler)
        with self._lock:
            return self._pipelines.setdefault(key, pipeline)

    def assemble(
        self, message_type: type[Any], handler: HandlerDescriptor
    ) -> PipelineInstance:
        """Compute the ordered pipeline without consulting the cache."""
        candidates: dict[str, PipelineLayer] = {}

        for descriptor in self._registry.descriptors():
            if descriptor.explicit_only:
                continue
            kind = match_kind(descriptor.target, message_type)
            if kind is not None:
                candidates[descriptor.name] = PipelineLayer(
                    descriptor, descriptor.effective_order, kind
                )

        for reference in handler.middleware:
            referenced: MiddlewareDescriptor | None = self._registry.get(
                reference.name
            )
            if referenced is None:
                logger.debug(
                    "Handler %s references unknown middleware %s; skipped",
                    handler.name,
                    reference.name,
                )
                continue

            existing = candidates.get(referenced.name)
            if existing is not None:
                if reference.order is not None:
                    candidates[referenced.name] = PipelineLayer(
                        existing.descriptor, reference.order, existing.match, True
                    )
                continue

            order = (
                reference.order
                if reference.order is not None
                else referenced.effective_order
            )
            kind = match_kind(referenced.target, message_type) or _target_kind(
                referenced.target
            )
            candidates[referenced.name] = PipelineLayer(referenced, order, kind, True)

        layers = list(candidates.values())
        result = topological_sort(
            layers, _layer_name, _layer_before, _layer_after, _layer_order
        )
        ordered = result.items
        if not has_relative_constraints(
            layers, _layer_name, _layer_before, _layer_after
        ):
            ordered = sorted(
                ordered, key=lambda layer: (layer.order, layer.match.specificity)
            )

        pipeline = PipelineInstance(
            message_type=message_type,
            handler=handler,
            layers=tuple(ordered),
            cycles=result.cycles,
        )
        logger.debug(
            "Assembled pipeline for %s -> %s: %s",
            message_type.__name__,
            handler.name,
            pipeline.middleware_names,
        )
        return pipeline

    def clear(self) -> None:
        """Drop every cached pipeline."""
        with self._lock:
            self._pipelines.clear()
            self._version = self._registry.version
