"""Tests for the built-in mock provider."""

from __future__ import annotations

from findr.core.cancellation import CancellationToken
from findr.providers.mock import MockProvider


async def test_filters_by_substring_case_insensitively() -> None:
    provider = MockProvider(delay_seconds=0)

    results = await provider.search("MEILISEARCH", limit=None, cancel=CancellationToken())

    assert [r.url for r in results] == ["https://example.com/tutorials/meilisearch-integration"]
    assert results[0].score == 1
    assert results[0].metadata == {"mock_index": 0}


async def test_empty_query_returns_whole_corpus() -> None:
    provider = MockProvider(delay_seconds=0)

    results = await provider.search("   ", limit=None, cancel=CancellationToken())

    assert len(results) == 5


async def test_limit_is_honored() -> None:
    provider = MockProvider(delay_seconds=0)

    results = await provider.search("", limit=2, cancel=CancellationToken())

    assert len(results) == 2


async def test_pre_cancelled_token_returns_nothing() -> None:
    provider = MockProvider(delay_seconds=10)
    token = CancellationToken()
    token.cancel()

    assert await provider.search("", limit=None, cancel=token) == []


def test_identity_overrides() -> None:
    provider = MockProvider(provider_id="mock-2", display_name="Second Mock", unused="ignored")

    assert provider.id == "mock-2"
    assert provider.display_name == "Second Mock"
    assert provider.enabled_by_default is True
    assert repr(provider) == "MockProvider(id='mock-2')"
