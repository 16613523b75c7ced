"""Result ordering policies.

Three total orderings over aggregated results. Every policy breaks ties with
an explicit secondary key, and sorting never mutates its input.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from findr.models.result import AggregatedResult


class SortOrder(str, Enum):
    """Ordering policy for aggregated results."""

    RELEVANCE = "relevance"
    RECENCY = "recency"
    SOURCE = "source"

    @classmethod
    def parse(cls, value: str) -> SortOrder:
        """Resolve a sort order name or alias (case-insensitive).

        Raises:
            ValueError: If the value names no known order.
        """
        order = _ALIASES.get(value.strip().lower())
        if order is None:
            raise ValueError(f'Unknown sort order "{value}". Use relevance | recency | source.')
        return order


_ALIASES: dict[str, SortOrder] = {
    "relevance": SortOrder.RELEVANCE,
    "rel": SortOrder.RELEVANCE,
    "recency": SortOrder.RECENCY,
    "recent": SortOrder.RECENCY,
    "newest": SortOrder.RECENCY,
    "source": SortOrder.SOURCE,
    "provider": SortOrder.SOURCE,
}


def _relevance_key(result: AggregatedResult) -> tuple[Any, ...]:
    return (-len(result.provider_ids), -result.score_or_zero, -result.effective_timestamp)


def _recency_key(result: AggregatedResult) -> tuple[Any, ...]:
    return (-result.effective_timestamp, -result.score_or_zero)


def _source_key(result: AggregatedResult) -> tuple[Any, ...]:
    return (-len(result.provider_ids), ",".join(result.provider_ids), -result.score_or_zero)


_SORT_KEYS: dict[SortOrder, Callable[[AggregatedResult], tuple[Any, ...]]] = {
    SortOrder.RELEVANCE: _relevance_key,
    SortOrder.RECENCY: _recency_key,
    SortOrder.SOURCE: _source_key,
}


def sort_results(results: Sequence[AggregatedResult], order: SortOrder | str = SortOrder.RELEVANCE) -> list[AggregatedResult]:
    """Return a new list of ``results`` ordered by ``order``.

    - ``relevance``: most providers first, then highest summed score, then
      newest effective timestamp.
    - ``recency``: newest effective timestamp first, then highest score.
    - ``source``: most providers first, then the comma-joined provider id
      list ascending, then highest score.

    A missing score counts as 0; the effective timestamp is the explicit
    timestamp, else the time the result was received.
    """
    return sorted(results, key=_SORT_KEYS[SortOrder(order)])
