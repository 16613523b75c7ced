"""Aggregator — Core orchestrator for the meta-search fan-out.

One search runs through these stages:
  1. Fan-out: one task per enabled provider, all running concurrently
  2. Fetch: each task consults the result cache, else calls the provider
     and writes the results back to the cache
  3. Fold: completions are drained in arrival order; successes are merged
     into a per-URL table, failures are recorded per provider
  4. Emit: after every completion the merged list is rebuilt, re-sorted,
     and yielded as a ``SearchSnapshot``

Supports two output modes:
  - **Streaming** (``search_stream``) — Yields a snapshot per completion.
  - **Complete** (``search``) — Drains the stream and returns the last snapshot.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
import uuid
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from findr.cache.store import ResultCache, make_cache_key
from findr.core.cancellation import DEFAULT_REASON, CancellationToken
from findr.core.merge import MergeTable
from findr.core.sorting import SortOrder, sort_results
from findr.exceptions import ProviderError, SearchCancelledError
from findr.models.query import SearchOptions
from findr.models.response import ProviderErrorRecord, SearchSnapshot
from findr.models.result import RawResult
from findr.providers.base.provider import SearchProvider
from findr.providers.base.registry import ProviderRegistration, ProviderRegistry
from findr.providers.loader import register_providers

if TYPE_CHECKING:
    from findr.config.settings import Settings

logger = logging.getLogger(__name__)

ABANDONED_REASON = "Search abandoned by consumer"

# Strong references to fetch and provider tasks until they finish.
_inflight: set[asyncio.Future[Any]] = set()


def _keep_alive(coro: Any) -> asyncio.Future[Any]:
    task = asyncio.ensure_future(coro)
    _inflight.add(task)
    task.add_done_callback(_inflight.discard)
    return task


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class ProviderOutcome:
    """What one provider contributed to a search: results or an error."""

    provider: SearchProvider
    results: list[RawResult] | None = None
    error: BaseException | None = None
    from_cache: bool = False


class Aggregator:
    """Core orchestrator for aggregated, streamed searches.

    Attributes:
        registry: Registry of search providers.
        cache: Result cache, or None to always call providers.
        default_sort: Sort order used when options give none.
        default_limit: Result-count hint used when options give none.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        cache: ResultCache | None = None,
        *,
        default_sort: SortOrder = SortOrder.RELEVANCE,
        default_limit: int | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.registry = registry if registry is not None else ProviderRegistry()
        self.cache = cache
        self.default_sort = default_sort
        self.default_limit = default_limit
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> Aggregator:
        """Build an aggregator, its cache, and its providers from settings."""
        cache = ResultCache.from_settings(settings.cache) if settings.cache.enabled else None
        aggregator = cls(
            cache=cache,
            default_sort=settings.search.default_sort,
            default_limit=settings.search.default_limit,
        )
        register_providers(aggregator.registry, settings.search)
        return aggregator

    # ──────────────────────────────────────────────────────────────────────
    # Registry passthroughs
    # ──────────────────────────────────────────────────────────────────────

    def register(self, provider: SearchProvider) -> None:
        self.registry.register(provider)

    def list_providers(self, order_by: Literal["id", "name"] = "id") -> list[ProviderRegistration]:
        return self.registry.list(order_by)

    def get_provider(self, provider_id: str) -> SearchProvider | None:
        return self.registry.get(provider_id)

    def enabled_ids(self) -> list[str]:
        return self.registry.enabled_ids()

    def set_enabled(self, provider_id: str, enabled: bool) -> None:
        self.registry.set_enabled(provider_id, enabled)

    def toggle(self, provider_id: str) -> bool:
        return self.registry.toggle(provider_id)

    def set_enabled_ids(self, provider_ids: Iterable[str]) -> None:
        self.registry.set_enabled_ids(provider_ids)

    # ──────────────────────────────────────────────────────────────────────
    # Complete mode
    # ──────────────────────────────────────────────────────────────────────

    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> SearchSnapshot:
        """Run a search to completion and return the final snapshot.

        Returns an empty snapshot when no provider is enabled.
        """
        options = self._resolve_options(options)
        final = SearchSnapshot(query=query, sort_order=options.sort_order)
        async for snapshot in self.search_stream(query, options, cancel=cancel):
            final = snapshot
        return final

    # ──────────────────────────────────────────────────────────────────────
    # Streaming mode
    # ──────────────────────────────────────────────────────────────────────

    async def search_stream(
        self,
        query: str,
        options: SearchOptions | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[SearchSnapshot]:
        """Run a search, yielding a snapshot after every provider completion.

        The stream ends once every enabled provider has produced results or
        failed; it is empty when no provider is enabled. Closing the stream
        early cancels the search's internal token, so providers still in
        flight are told to stop and nothing further is emitted.

        Args:
            query: The search query.
            options: Limit hint and sort order.
            cancel: Optional caller-owned token; cancelling it cancels every
                provider call still in flight.

        Yields:
            SearchSnapshot instances, in fold order.
        """
        options = self._resolve_options(options)
        providers = self.registry.enabled_providers()
        if not providers:
            logger.info("No providers enabled, skipping search for query: %s", query)
            return

        start_time = time.monotonic()
        search_id = f"search_{uuid.uuid4().hex[:12]}"
        token = CancellationToken()
        unlink = cancel.link(token) if cancel is not None else None

        logger.info("[%s] Searching %d providers for query: %s", search_id, len(providers), query)

        tasks = [_keep_alive(self._fetch(provider, query, options.limit, token)) for provider in providers]
        pending = [provider.id for provider in providers]
        table = MergeTable()
        errors: list[ProviderErrorRecord] = []

        try:
            for completed in asyncio.as_completed(tasks):
                outcome = await completed
                provider = outcome.provider
                pending.remove(provider.id)

                if outcome.error is None:
                    added = table.add(provider.id, provider.display_name, outcome.results or [])
                    logger.debug(
                        "[%s] Provider '%s' returned %d results%s",
                        search_id,
                        provider.id,
                        added,
                        " (cached)" if outcome.from_cache else "",
                    )
                else:
                    errors.append(ProviderErrorRecord.from_exception(provider.id, provider.display_name, outcome.error))

                yield self._snapshot(query, options.sort_order, table, errors, pending)

            logger.info(
                "[%s] Search complete: %d results, %d provider errors in %d ms",
                search_id,
                len(table),
                len(errors),
                int((time.monotonic() - start_time) * 1000),
            )
        finally:
            if unlink is not None:
                unlink()
            if pending:
                token.cancel(ABANDONED_REASON)
                logger.info("[%s] Stream closed with %d providers still pending", search_id, len(pending))

    # ──────────────────────────────────────────────────────────────────────
    # Shared internals
    # ──────────────────────────────────────────────────────────────────────

    def _resolve_options(self, options: SearchOptions | None) -> SearchOptions:
        if options is None:
            return SearchOptions(limit=self.default_limit, sort_order=self.default_sort)
        if options.limit is None and self.default_limit is not None:
            return options.model_copy(update={"limit": self.default_limit})
        return options

    def _snapshot(
        self,
        query: str,
        sort_order: SortOrder,
        table: MergeTable,
        errors: list[ProviderErrorRecord],
        pending: list[str],
    ) -> SearchSnapshot:
        results = table.build(received_at=self._clock())
        return SearchSnapshot(
            query=query,
            sort_order=sort_order,
            results=sort_results(results, sort_order),
            errors=list(errors),
            pending=list(pending),
        )

    async def _fetch(
        self,
        provider: SearchProvider,
        query: str,
        limit: int | None,
        token: CancellationToken,
    ) -> ProviderOutcome:
        """Fetch one provider's results. Never raises; failures become outcomes."""
        try:
            token.raise_if_cancelled()

            cached = await self._read_cache(provider.id, query, limit)
            token.raise_if_cancelled()
            if cached is not None:
                return ProviderOutcome(provider, results=cached, from_cache=True)

            results = await self._call_provider(provider, query, limit, token)
            await self._write_cache(provider.id, query, limit, results)
            return ProviderOutcome(provider, results=results)
        except SearchCancelledError as e:
            logger.info("Provider '%s' cancelled: %s", provider.id, e.reason)
            return ProviderOutcome(provider, error=e)
        except Exception as e:
            logger.warning("Provider '%s' failed: %s", provider.id, e)
            return ProviderOutcome(provider, error=e)

    async def _call_provider(
        self,
        provider: SearchProvider,
        query: str,
        limit: int | None,
        token: CancellationToken,
    ) -> list[RawResult]:
        """Call the provider, racing it against the cancellation token.

        A provider still running when the token fires is left to finish on
        its own; its late outcome is only logged.
        """
        call = _keep_alive(provider.search(query, limit=limit, cancel=token))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if token.cancelled:
            call.add_done_callback(functools.partial(_log_late_outcome, provider.id))
            raise SearchCancelledError(token.reason or DEFAULT_REASON)

        # A provider that raises CancelledError on its own fails alone.
        if call.cancelled():
            raise ProviderError(f"Provider '{provider.id}' call was cancelled")

        return _coerce_results(call.result())

    async def _read_cache(self, provider_id: str, query: str, limit: int | None) -> list[RawResult] | None:
        if self.cache is None:
            return None
        try:
            cached = await self.cache.get(make_cache_key(provider_id, query, limit))
            if cached is None:
                return None
            return [RawResult.model_validate(item) for item in cached]
        except Exception:
            logger.warning("Failed to read cache for provider '%s'", provider_id, exc_info=True)
            return None

    async def _write_cache(self, provider_id: str, query: str, limit: int | None, results: list[RawResult]) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(
                make_cache_key(provider_id, query, limit),
                [result.model_dump(mode="json", exclude_none=True) for result in results],
            )
        except Exception:
            logger.warning("Failed to update cache for provider '%s'", provider_id, exc_info=True)


def _coerce_results(raw: Any) -> list[RawResult]:
    """Accept ``RawResult`` objects or plain dicts; anything else yields no results."""
    if not isinstance(raw, list):
        return []
    return [item if isinstance(item, RawResult) else RawResult.model_validate(item) for item in raw]


def _log_late_outcome(provider_id: str, future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.debug("Provider '%s' failed after cancellation: %s", provider_id, exc)
    else:
        logger.debug("Provider '%s' resolved after cancellation; result ignored", provider_id)
