"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from findr.cache.store import ResultCache
from findr.config.settings import Settings
from findr.core.aggregator import Aggregator
from findr.core.cancellation import CancellationToken
from findr.models.result import RawResult
from findr.providers.base.provider import SearchProvider
from findr.providers.base.registry import ProviderRegistry


class StubProvider(SearchProvider):
    """Scriptable provider for tests.

    Returns ``results`` (or raises ``error``), optionally waiting on ``gate``
    first. Every call is counted in ``calls``.
    """

    def __init__(
        self,
        provider_id: str,
        results: list[RawResult | dict[str, Any]] | None = None,
        *,
        display_name: str | None = None,
        error: BaseException | None = None,
        gate: asyncio.Event | None = None,
        enabled_by_default: bool | None = None,
    ) -> None:
        self.id = provider_id
        self.display_name = display_name or provider_id.title()
        self.enabled_by_default = enabled_by_default
        self._results = results or []
        self._error = error
        self._gate = gate
        self.calls = 0
        self.limits: list[int | None] = []
        self.tokens: list[CancellationToken] = []

    async def search(self, query: str, *, limit: int | None, cancel: CancellationToken) -> list[RawResult]:
        self.calls += 1
        self.limits.append(limit)
        self.tokens.append(cancel)
        if self._gate is not None:
            await self._gate.wait()
        if self._error is not None:
            raise self._error
        return list(self._results)


@pytest.fixture
def stub_provider() -> type[StubProvider]:
    """The ``StubProvider`` class, for building scripted providers."""
    return StubProvider


@pytest.fixture
def cache_file(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "search-cache.json"


@pytest.fixture
def result_cache(cache_file: Path) -> ResultCache:
    return ResultCache(cache_file)


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def aggregator(registry: ProviderRegistry) -> Aggregator:
    """Aggregator with an empty registry and no cache."""
    return Aggregator(registry)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create a test Settings instance with an isolated cache and an instant mock provider."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        cache={"dir": tmp_path / "cache"},
        search={"providers": {"mock": {"extra": {"delay_seconds": 0}}}},
    )


def raw(url: str, title: str = "Result", **fields: Any) -> RawResult:
    """Shorthand for building a ``RawResult``."""
    return RawResult(title=title, url=url, **fields)


@pytest.fixture
def make_raw():
    return raw
