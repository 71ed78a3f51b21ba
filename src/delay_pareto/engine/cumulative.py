"""Cumulative aggregator — running delay and share of the grand total.

The grand total spans the candidate scope (every filter except the active
dimension's entity selection). Rows tied on rank form one tier and share the
cumulative sum through the end of that tier.
"""

from __future__ import annotations

from dataclasses import replace

from delay_pareto.engine.filters import FilterContext
from delay_pareto.engine.ranking import RankedEntity


def grand_total(context: FilterContext) -> int:
    """Metric sum over the context's candidate records."""
    return sum(r.metric for r in context.candidate_records())


def accumulate(ranked: list[RankedEntity], total: int) -> list[RankedEntity]:
    """Fill cumulative_sum and cumulative_pct for rank-ordered rows.

    Args:
        ranked: Output of rank_entities, ordered by rank ascending.
        total: Grand total to divide by. Zero yields blank percentages.

    Returns:
        New RankedEntity rows in the same order.
    """
    tier_sums: dict[int, int] = {}
    for row in ranked:
        tier_sums[row.rank] = tier_sums.get(row.rank, 0) + row.metric_sum

    running: dict[int, int] = {}
    cumulative = 0
    for rank in sorted(tier_sums):
        cumulative += tier_sums[rank]
        running[rank] = cumulative

    rows: list[RankedEntity] = []
    for row in ranked:
        cumulative_sum = running[row.rank]
        pct = cumulative_sum / total if total else None
        rows.append(replace(row, cumulative_sum=cumulative_sum, cumulative_pct=pct))
    return rows
