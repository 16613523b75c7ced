"""Tests for result ordering policies."""

from __future__ import annotations

import pytest

from findr.core.sorting import SortOrder, sort_results
from findr.models.result import AggregatedResult


def _result(
    url: str,
    *,
    providers: list[str] | None = None,
    score: float | None = None,
    timestamp: int | None = None,
    received_at: int = 0,
) -> AggregatedResult:
    providers = providers or ["alpha"]
    return AggregatedResult(
        id=url,
        title=url,
        url=url,
        score=score,
        timestamp=timestamp,
        provider_ids=providers,
        provider_names=[p.title() for p in providers],
        received_at=received_at,
    )


def _urls(results: list[AggregatedResult]) -> list[str]:
    return [r.url for r in results]


class TestRelevance:
    def test_more_providers_first(self) -> None:
        single = _result("single", score=100)
        double = _result("double", providers=["beta", "alpha"], score=1)

        assert _urls(sort_results([single, double])) == ["double", "single"]

    def test_score_breaks_provider_count_ties(self) -> None:
        low, high = _result("low", score=1), _result("high", score=5)

        assert _urls(sort_results([low, high], SortOrder.RELEVANCE)) == ["high", "low"]

    def test_missing_score_counts_as_zero(self) -> None:
        missing, negative = _result("missing"), _result("negative", score=-1)

        assert _urls(sort_results([negative, missing])) == ["missing", "negative"]

    def test_timestamp_breaks_score_ties(self) -> None:
        older = _result("older", score=2, timestamp=100)
        newer = _result("newer", score=2, timestamp=200)

        assert _urls(sort_results([older, newer])) == ["newer", "older"]

    def test_received_at_stands_in_for_missing_timestamp(self) -> None:
        explicit = _result("explicit", timestamp=100, received_at=1)
        implicit = _result("implicit", received_at=500)

        assert _urls(sort_results([explicit, implicit])) == ["implicit", "explicit"]


class TestRecency:
    def test_newest_first(self) -> None:
        results = [_result("a", timestamp=1), _result("c", timestamp=3), _result("b", timestamp=2)]

        assert _urls(sort_results(results, SortOrder.RECENCY)) == ["c", "b", "a"]

    def test_score_breaks_timestamp_ties(self) -> None:
        results = [_result("low", timestamp=5, score=1), _result("high", timestamp=5, score=9)]

        assert _urls(sort_results(results, "recency")) == ["high", "low"]

    def test_provider_count_is_ignored(self) -> None:
        popular = _result("popular", providers=["b", "a"], timestamp=1)
        fresh = _result("fresh", timestamp=2)

        assert _urls(sort_results([popular, fresh], SortOrder.RECENCY)) == ["fresh", "popular"]


class TestSource:
    def test_groups_by_provider_list(self) -> None:
        results = [
            _result("beta-only", providers=["beta"]),
            _result("alpha-only", providers=["alpha"]),
            _result("both", providers=["beta", "alpha"]),
        ]

        assert _urls(sort_results(results, SortOrder.SOURCE)) == ["both", "alpha-only", "beta-only"]

    def test_score_orders_within_a_provider(self) -> None:
        results = [_result("one", score=1), _result("three", score=3), _result("two", score=2)]

        assert _urls(sort_results(results, SortOrder.SOURCE)) == ["three", "two", "one"]


class TestSortResults:
    def test_does_not_mutate_input(self) -> None:
        results = [_result("low", score=1), _result("high", score=2)]
        original = list(results)

        sorted_results = sort_results(results)

        assert results == original
        assert sorted_results is not results

    @pytest.mark.parametrize("order", list(SortOrder))
    def test_sorting_is_idempotent(self, order: SortOrder) -> None:
        results = [
            _result("a", providers=["beta", "alpha"], score=1, timestamp=5),
            _result("b", score=3, timestamp=9),
            _result("c", providers=["beta"], timestamp=1, received_at=7),
            _result("d", score=3, timestamp=2),
        ]

        once = sort_results(results, order)

        assert _urls(sort_results(once, order)) == _urls(once)

    def test_empty_input(self) -> None:
        assert sort_results([], SortOrder.SOURCE) == []

    def test_unknown_order_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            sort_results([], "alphabetical")


class TestSortOrderParse:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("relevance", SortOrder.RELEVANCE),
            ("REL", SortOrder.RELEVANCE),
            ("recency", SortOrder.RECENCY),
            ("newest", SortOrder.RECENCY),
            (" recent ", SortOrder.RECENCY),
            ("source", SortOrder.SOURCE),
            ("provider", SortOrder.SOURCE),
        ],
    )
    def test_aliases(self, value: str, expected: SortOrder) -> None:
        assert SortOrder.parse(value) is expected

    def test_unknown_value(self) -> None:
        with pytest.raises(ValueError, match="Unknown sort order"):
            SortOrder.parse("random")
