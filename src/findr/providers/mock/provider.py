"""Mock provider — Deterministic sample results for development and testing.

Filters a small fixed corpus by case-insensitive substring match on title and
description. An empty query returns the whole corpus.

Usage::

    provider = MockProvider(delay_seconds=0)
    results = await provider.search("cli", limit=5, cancel=CancellationToken())
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from findr.core.cancellation import CancellationToken
from findr.models.result import RawResult
from findr.providers.base.provider import SearchProvider

DEFAULT_RESULT_LIMIT = 10

_MOCK_DATA: list[dict[str, Any]] = [
    {
        "title": "Building pluggable TUIs with OpenTUI",
        "description": "A step-by-step guide on architecting modular terminal UIs with plugins.",
        "url": "https://example.com/guides/pluggable-tui",
    },
    {
        "title": "Search API landscape in 2025",
        "description": "Compare Brave, Google, Exa, and other search APIs for developer tooling.",
        "url": "https://example.com/articles/search-api-landscape-2025",
    },
    {
        "title": "Efficient CLI productivity workflows",
        "description": "Learn how to navigate CLI applications using Vim-style motions.",
        "url": "https://example.com/blog/cli-productivity",
    },
    {
        "title": "Integrating vector databases with Meilisearch",
        "description": "Blend keyword and semantic search results via a custom plugin architecture.",
        "url": "https://example.com/tutorials/meilisearch-integration",
    },
    {
        "title": "Prompt engineering for meta-search",
        "description": "Strategies for orchestrating LLM-powered search pipelines effectively.",
        "url": "https://example.com/prompts/meta-search",
    },
]


class MockProvider(SearchProvider):
    """Search provider backed by a fixed in-memory corpus.

    Args:
        delay_seconds: Simulated network latency.
        provider_id: Override the provider id (lets tests register several).
        display_name: Override the display name.
        **kwargs: Extra keyword arguments (ignored, for config compat).
    """

    description = "Returns deterministic sample results for development and testing."
    enabled_by_default = True

    def __init__(
        self,
        delay_seconds: float = 0.12,
        provider_id: str = "mock",
        display_name: str = "Local Mock",
        **kwargs: Any,
    ) -> None:
        self.id = provider_id
        self.display_name = display_name
        self._delay_seconds = delay_seconds

    async def search(
        self,
        query: str,
        *,
        limit: int | None,
        cancel: CancellationToken,
    ) -> list[RawResult]:
        if cancel.cancelled:
            return []

        if self._delay_seconds > 0:
            await asyncio.sleep(self._delay_seconds)

        return self._filter(query)[: limit or DEFAULT_RESULT_LIMIT]

    def _filter(self, query: str) -> list[RawResult]:
        needle = query.strip().lower()
        now = int(time.time() * 1000)
        matches = [
            item for item in _MOCK_DATA if not needle or needle in f"{item['title']} {item['description']}".lower()
        ]
        return [
            RawResult(**item, score=1, timestamp=now, metadata={"mock_index": index})
            for index, item in enumerate(matches)
        ]
