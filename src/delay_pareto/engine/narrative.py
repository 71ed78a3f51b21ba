"""Narrative title — one sentence on how concentrated the delay is."""

from __future__ import annotations

from delay_pareto.engine.classifier import at_or_below
from delay_pareto.engine.dimensions import Dimension
from delay_pareto.engine.ranking import RankedEntity


def a_tier_coverage(rows: list[RankedEntity], a_pct: float) -> tuple[int, float]:
    """Count of rows at or below a_pct and the largest share among them."""
    within = [
        row.cumulative_pct for row in rows
        if row.cumulative_pct is not None and at_or_below(row.cumulative_pct, a_pct)
    ]
    if not within:
        return 0, 0.0
    return len(within), max(within)


def build_narrative(
    rows: list[RankedEntity],
    dimension: Dimension,
    a_pct: float,
    metric_label: str = "delivery delay",
) -> str:
    """E.g. Top 2 Suppliers contribute 65.00% of total delivery delay."""
    count, coverage = a_tier_coverage(rows, a_pct)
    if count == 0:
        return (
            f"No {dimension.display_name} fall within the top "
            f"{a_pct * 100:.0f}% of total {metric_label}."
        )
    return (
        f"Top {count} {dimension.display_name} contribute "
        f"{coverage * 100:.2f}% of total {metric_label}."
    )
