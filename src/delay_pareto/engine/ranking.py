"""Ranking engine — aggregate delay per entity and assign a dense rank.

Rows are ordered by metric sum descending; equal sums are ordered by
ascending grouping key. The cumulative aggregator walks rows in exactly this
order, so both stages agree on tie handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from delay_pareto.engine.classifier import Category
from delay_pareto.engine.dimensions import Dimension
from delay_pareto.engine.filters import FilterContext
from delay_pareto.ingestion.fact_table import FactRecord


@dataclass(frozen=True)
class RankedEntity:
    """One grouping-key value with its ranking and Pareto position."""
    key: str
    metric_sum: int
    rank: int
    cumulative_sum: int = 0
    cumulative_pct: float | None = None  # None when the grand total is 0
    category: Category | None = None
    boundary_label: float | None = None


def aggregate_metric(records: Iterable[FactRecord], dimension: Dimension) -> dict[str, int]:
    """Sum the metric per distinct grouping key."""
    aggregated: dict[str, int] = {}
    for record in records:
        key = dimension.key_of(record)
        aggregated[key] = aggregated.get(key, 0) + record.metric
    return aggregated


def rank_order(aggregated: dict[str, int]) -> list[tuple[str, int]]:
    """(key, sum) pairs by sum descending, then key ascending."""
    return sorted(aggregated.items(), key=lambda x: (-x[1], x[0]))


def dense_rank(sums: list[int]) -> list[int]:
    """Dense ranks for sums already sorted descending."""
    ranks: list[int] = []
    rank = 0
    previous = None
    for value in sums:
        if value != previous:
            rank += 1
            previous = value
        ranks.append(rank)
    return ranks


def rank_entities(context: FilterContext) -> list[RankedEntity]:
    """Rank every entity of the active dimension within the candidate scope.

    Returns:
        RankedEntity rows ordered by rank, cumulative fields unset. Empty
        when no candidate records exist.
    """
    ordered = rank_order(aggregate_metric(context.candidate_records(), context.dimension))
    ranks = dense_rank([value for _, value in ordered])
    return [
        RankedEntity(key=key, metric_sum=value, rank=rank)
        for (key, value), rank in zip(ordered, ranks)
    ]
