"""Deterministic ordering of middleware and handlers."""

from __future__ import annotations

from .topological import (
    OrderingCycle,
    SortResult,
    has_relative_constraints,
    topological_sort,
)

__all__ = [
    "OrderingCycle",
    "SortResult",
    "has_relative_constraints",
    "topological_sort",
]
