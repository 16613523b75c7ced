"""Merge table — Groups raw results by URL and combines each group.

Combination over a closed field set:

- contributions are ordered by descending provider id (a provider's own
  duplicates keep their arrival order)
- ``title``, ``description``, ``timestamp`` and ``metadata`` are folded in
  that order, each non-empty later value replacing the earlier one
- ``metadata`` is replaced as a whole, never deep-merged
- ``score`` is the sum of every supplied score, ``None`` if none was supplied
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from findr.models.result import AggregatedResult, RawResult


@dataclass(frozen=True, slots=True)
class Contribution:
    """One raw result together with the provider that returned it."""

    provider_id: str
    provider_name: str
    result: RawResult


def combine_contributions(
    result_id: str,
    contributions: Sequence[Contribution],
    *,
    received_at: int,
) -> AggregatedResult:
    """Combine every contribution for one URL into an ``AggregatedResult``.

    Raises:
        ValueError: If ``contributions`` is empty.
    """
    if not contributions:
        raise ValueError("cannot combine an empty contribution list")

    ordered = sorted(contributions, key=lambda c: c.provider_id, reverse=True)

    first = ordered[0].result
    title, description, url = first.title, first.description, first.url
    timestamp, metadata = first.timestamp, first.metadata
    score: float | None = None
    provider_ids: list[str] = []
    provider_names: list[str] = []

    for contribution in ordered:
        raw = contribution.result
        if raw.title:
            title = raw.title
        if raw.description:
            description = raw.description
        if raw.timestamp is not None:
            timestamp = raw.timestamp
        if raw.metadata is not None:
            metadata = raw.metadata
        if raw.score is not None:
            score = raw.score if score is None else score + raw.score
        if contribution.provider_id not in provider_ids:
            provider_ids.append(contribution.provider_id)
            provider_names.append(contribution.provider_name)

    return AggregatedResult(
        id=result_id,
        title=title,
        description=description,
        url=url,
        score=score,
        timestamp=timestamp,
        metadata=dict(metadata) if metadata is not None else None,
        provider_ids=provider_ids,
        provider_names=provider_names,
        received_at=received_at,
    )


@dataclass
class _Group:
    result_id: str
    contributions: list[Contribution] = field(default_factory=list)


class MergeTable:
    """Per-URL accumulation of raw results for one search.

    Owned by a single coordinating routine; not safe for concurrent writers.
    """

    def __init__(self) -> None:
        self._groups: dict[str, _Group] = {}

    def add(self, provider_id: str, provider_name: str, results: Iterable[RawResult]) -> int:
        """Fold one provider's results in. Returns the number of results added."""
        count = 0
        for raw in results:
            group = self._groups.get(raw.url)
            if group is None:
                group = self._groups[raw.url] = _Group(result_id=uuid.uuid4().hex[:12])
            group.contributions.append(Contribution(provider_id, provider_name, raw))
            count += 1
        return count

    def build(self, *, received_at: int) -> list[AggregatedResult]:
        """Combine every group, in first-seen URL order."""
        return [
            combine_contributions(group.result_id, group.contributions, received_at=received_at)
            for group in self._groups.values()
        ]

    def __len__(self) -> int:
        return len(self._groups)
