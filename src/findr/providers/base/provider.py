"""Base search provider — Abstract interface for every result source.

Every search backend plugs into findr by implementing this interface. A
provider is responsible for:
  1. Executing a query against its backend
  2. Mapping backend hits to ``RawResult`` objects
  3. Honoring the cancellation token it is given

The aggregator owns everything else: caching, merging, ordering, and error
bookkeeping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from findr.core.cancellation import CancellationToken
from findr.models.result import RawResult


class SearchProvider(ABC):
    """Abstract base class for search providers.

    Subclasses must define ``id`` and ``display_name`` and implement
    ``search()``. ``description`` and ``enabled_by_default`` are optional;
    a provider whose ``enabled_by_default`` is ``None`` starts enabled.

    A provider given an already-cancelled token must return an empty list
    immediately instead of raising.
    """

    id: str
    display_name: str
    description: str | None = None
    enabled_by_default: bool | None = None

    @abstractmethod
    async def search(
        self,
        query: str,
        *,
        limit: int | None,
        cancel: CancellationToken,
    ) -> list[RawResult]:
        """Execute a search query against the backend.

        Args:
            query: The search query string.
            limit: Optional hint for the number of results wanted.
            cancel: Cancellation token owned by the aggregator.

        Returns:
            Raw results, in the provider's own order.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
