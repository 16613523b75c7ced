"""Findr Python SDK — Async and sync clients for the Findr REST API.

Usage::

    # Async
    async with AsyncFindrClient("http://localhost:8080") as client:
        snapshot = await client.search("terminal ui")

    # Sync (wraps async client internally)
    client = FindrClient("http://localhost:8080")
    snapshot = client.search("terminal ui", sort_order="recency")
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import logging
from collections.abc import AsyncIterator, Coroutine, Iterator
from typing import Any, TypeVar, cast

import httpx

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Response types (plain dicts, mirroring the server's JSON)
# ═══════════════════════════════════════════════════════════════════════════════

Snapshot = dict[str, Any]
"""One search snapshot dict (mirrors ``SearchSnapshot`` JSON)."""

StreamEvent = dict[str, Any]
"""A single SSE event dict with ``event`` and ``data`` keys."""

ProviderInfo = dict[str, Any]
"""A provider description dict (``id``, ``display_name``, ``description``, ``enabled``)."""


def _search_payload(query: str, limit: int | None, sort_order: str | None, stream: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"stream": stream}
    if limit is not None:
        options["limit"] = limit
    if sort_order is not None:
        options["sort_order"] = sort_order
    return {"query": query, "options": options}


# ═══════════════════════════════════════════════════════════════════════════════
# Async client
# ═══════════════════════════════════════════════════════════════════════════════


class AsyncFindrClient:
    """Async Python client for the Findr API.

    Args:
        base_url: Findr server URL, e.g. ``"http://localhost:8080"``.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        async with AsyncFindrClient("http://localhost:8080") as client:
            async for event in client.search_stream("meilisearch"):
                if event["event"] == "snapshot":
                    print(len(event["data"]["results"]))
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        timeout: float = 60.0,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            **httpx_kwargs,
        )

    async def __aenter__(self) -> AsyncFindrClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── Health ──

    async def health(self) -> dict[str, Any]:
        resp = await self._client.get("/v1/health")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    # ── Providers ──

    async def list_providers(self, *, order_by: str = "id") -> list[ProviderInfo]:
        """List registered providers, ordered by ``"id"`` or ``"name"``."""
        resp = await self._client.get("/v1/providers", params={"order_by": order_by})
        resp.raise_for_status()
        return cast(list[ProviderInfo], resp.json())

    async def set_enabled(self, provider_id: str, enabled: bool) -> ProviderInfo:
        resp = await self._client.put(f"/v1/providers/{provider_id}/enabled", json={"enabled": enabled})
        resp.raise_for_status()
        return cast(ProviderInfo, resp.json())

    async def toggle(self, provider_id: str) -> ProviderInfo:
        resp = await self._client.post(f"/v1/providers/{provider_id}/toggle")
        resp.raise_for_status()
        return cast(ProviderInfo, resp.json())

    async def set_enabled_ids(self, provider_ids: list[str]) -> list[ProviderInfo]:
        """Enable exactly ``provider_ids`` and disable every other provider."""
        resp = await self._client.put("/v1/providers/enabled", json={"provider_ids": provider_ids})
        resp.raise_for_status()
        return cast(list[ProviderInfo], resp.json())

    # ── Cache ──

    async def clear_cache(self) -> dict[str, Any]:
        resp = await self._client.delete("/v1/cache")
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    # ── Search (complete mode) ──

    async def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        sort_order: str | None = None,
    ) -> Snapshot:
        """Run an aggregated search and return the final snapshot.

        Args:
            query: Search query.
            limit: Result-count hint passed to every provider.
            sort_order: ``"relevance"``, ``"recency"`` or ``"source"``.

        Returns:
            The final snapshot as a dict.
        """
        resp = await self._client.post("/v1/search", json=_search_payload(query, limit, sort_order, False))
        resp.raise_for_status()
        return cast(dict[str, Any], resp.json())

    # ── Search (streaming mode) ──

    async def search_stream(
        self,
        query: str,
        *,
        limit: int | None = None,
        sort_order: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run an aggregated search, yielding SSE events as providers complete.

        Yields:
            StreamEvent dicts with ``event`` (``snapshot`` | ``done`` |
            ``error``) and ``data`` (dict) keys.
        """
        payload = _search_payload(query, limit, sort_order, True)
        async with self._client.stream("POST", "/v1/search", json=payload) as resp:
            resp.raise_for_status()
            async for event in _parse_sse_stream(resp):
                yield event


# ═══════════════════════════════════════════════════════════════════════════════
# Sync client (wraps AsyncFindrClient)
# ═══════════════════════════════════════════════════════════════════════════════


class FindrClient:
    """Synchronous Python client for the Findr API.

    Wraps :class:`AsyncFindrClient` using ``asyncio.run``; each call opens
    and closes its own connection.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        timeout: float = 60.0,
        **httpx_kwargs: Any,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._httpx_kwargs = httpx_kwargs

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run an async coroutine synchronously."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # Already inside an event loop (e.g. Jupyter)
            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, coro).result()
        return asyncio.run(coro)

    def _make_client(self) -> AsyncFindrClient:
        return AsyncFindrClient(
            self._base_url,
            timeout=self._timeout,
            **self._httpx_kwargs,
        )

    def health(self) -> dict[str, Any]:
        async def _call() -> dict[str, Any]:
            async with self._make_client() as c:
                return await c.health()

        return self._run(_call())

    def list_providers(self, *, order_by: str = "id") -> list[ProviderInfo]:
        async def _call() -> list[ProviderInfo]:
            async with self._make_client() as c:
                return await c.list_providers(order_by=order_by)

        return self._run(_call())

    def set_enabled(self, provider_id: str, enabled: bool) -> ProviderInfo:
        async def _call() -> ProviderInfo:
            async with self._make_client() as c:
                return await c.set_enabled(provider_id, enabled)

        return self._run(_call())

    def toggle(self, provider_id: str) -> ProviderInfo:
        async def _call() -> ProviderInfo:
            async with self._make_client() as c:
                return await c.toggle(provider_id)

        return self._run(_call())

    def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        sort_order: str | None = None,
    ) -> Snapshot:
        async def _call() -> Snapshot:
            async with self._make_client() as c:
                return await c.search(query, limit=limit, sort_order=sort_order)

        return self._run(_call())

    def search_stream(
        self,
        query: str,
        *,
        limit: int | None = None,
        sort_order: str | None = None,
    ) -> Iterator[StreamEvent]:
        """Run a streaming search; returns an iterator over the collected events."""

        async def _collect() -> list[StreamEvent]:
            events: list[StreamEvent] = []
            async with self._make_client() as c:
                async for ev in c.search_stream(query, limit=limit, sort_order=sort_order):
                    events.append(ev)
            return events

        return iter(self._run(_collect()))


# ═══════════════════════════════════════════════════════════════════════════════
# SSE parser
# ═══════════════════════════════════════════════════════════════════════════════


async def _parse_sse_stream(response: httpx.Response) -> AsyncIterator[StreamEvent]:
    """Parse an SSE event stream from an httpx response.

    Yields:
        Dicts with ``event`` and ``data`` keys.
    """
    event_type: str = ""
    data_lines: list[str] = []

    async for line in response.aiter_lines():
        if line.startswith("event:"):
            event_type = line[len("event:") :].strip()
        elif line.startswith("data:"):
            data_lines.append(line[len("data:") :].strip())
        elif line == "" and event_type:
            raw_data = "\n".join(data_lines)
            try:
                parsed = json.loads(raw_data)
            except json.JSONDecodeError:
                logger.debug("Non-JSON SSE payload for event '%s'", event_type)
                parsed = {"raw": raw_data}
            yield {"event": event_type, "data": parsed}
            event_type = ""
            data_lines = []
