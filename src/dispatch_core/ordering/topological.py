"""topological_sort — order items under OrderBefore/OrderAfter constraints.

Kahn's algorithm with a ready queue keyed by ``(numeric order, id)`` so the
output is a pure function of the input. Cycles are reported, never dropped.
"""

from __future__ import annotations

import heapq
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OrderingCycle:
    """Non-fatal diagnostic: these items could not be ordered by constraint.

    They were appended to the result in ``(numeric order, id)`` order.
    """

    participants: tuple[str, ...]

    def __str__(self) -> str:
        return f"Ordering cycle detected among: {', '.join(self.participants)}"


@dataclass(frozen=True)
class SortResult(Generic[T]):
    """Ordered items plus any cycle diagnostics raised while sorting."""

    items: list[T]
    cycles: tuple[OrderingCycle, ...] = field(default_factory=tuple)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)


def has_relative_constraints(
    items: Iterable[T],
    key: Callable[[T], str],
    order_before: Callable[[T], Iterable[str]],
    order_after: Callable[[T], Iterable[str]],
) -> bool:
    """Return ``True`` if any OrderBefore/OrderAfter id names another item.

    Ids outside *items* and self-references produce no edge and are not
    counted.
    """
    item_list = list(items)
    counts = Counter(key(item) for item in item_list)
    for item in item_list:
        own = key(item)
        for target in (*order_before(item), *order_after(item)):
            # an id shared by two items still links them
            if counts[target] > (1 if target == own else 0):
                return True
    return False


def topological_sort(
    items: Iterable[T],
    key: Callable[[T], str],
    order_before: Callable[[T], Iterable[str]],
    order_after: Callable[[T], Iterable[str]],
    numeric_order: Callable[[T], int],
) -> SortResult[T]:
    """Sort *items* respecting relative constraints, numeric order as tiebreak.

    Parameters
    ----------
    items:
        Candidate items. Every item appears exactly once in the result.
    key:
        Returns the id other items refer to in their constraints.
    order_before:
        Ids this item must precede. Ids outside *items* are ignored.
    order_after:
        Ids this item must follow. Ids outside *items* are ignored.
    numeric_order:
        Primary sort key. With no relative constraints the result is a
        stable sort on this key alone.
    """
    item_list = list(items)
    if len(item_list) <= 1:
        return SortResult(item_list)

    if not has_relative_constraints(item_list, key, order_before, order_after):
        return SortResult(sorted(item_list, key=numeric_order))

    keys = [key(item) for item in item_list]
    orders = [numeric_order(item) for item in item_list]
    positions: dict[str, list[int]] = {}
    for index, item_key in enumerate(keys):
        positions.setdefault(item_key, []).append(index)

    # successors[i] holds the indexes that must come after item i
    successors: list[set[int]] = [set() for _ in item_list]
    for index, item in enumerate(item_list):
        for target in order_before(item):
            for other in positions.get(target, ()):
                if other != index:
                    successors[index].add(other)
        for source in order_after(item):
            for other in positions.get(source, ()):
                if other != index:
                    successors[other].add(index)

    in_degree = [0] * len(item_list)
    for targets in successors:
        for other in targets:
            in_degree[other] += 1

    def sort_key(index: int) -> tuple[int, str, int]:
        return (orders[index], keys[index], index)

    ready = [sort_key(i) for i in range(len(item_list)) if in_degree[i] == 0]
    heapq.heapify(ready)

    ordered: list[int] = []
    while ready:
        _, _, current = heapq.heappop(ready)
        ordered.append(current)
        for other in successors[current]:
            in_degree[other] -= 1
            if in_degree[other] == 0:
                heapq.heappush(ready, sort_key(other))

    cycles: tuple[OrderingCycle, ...] = ()
    if len(ordered) < len(item_list):
        remaining = sorted(
            (i for i in range(len(item_list)) if in_degree[i] > 0), key=sort_key
        )
        cycle = OrderingCycle(tuple(keys[i] for i in remaining))
        logger.warning("%s; falling back to numeric order", cycle)
        cycles = (cycle,)
        ordered.extend(remaining)

    return SortResult([item_list[i] for i in ordered], cycles)
