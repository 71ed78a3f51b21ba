"""ABC classifier — map a cumulative percentage onto tier A, B or C."""

from __future__ import annotations

import math
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING

from delay_pareto.engine.thresholds import ThresholdConfig

if TYPE_CHECKING:
    from delay_pareto.engine.ranking import RankedEntity


class Category(str, Enum):
    A = "A"  # vital few
    B = "B"
    C = "C"  # trivial many


CATEGORY_ORDER: tuple[Category, ...] = (Category.A, Category.B, Category.C)


def at_or_below(value: float, limit: float) -> bool:
    """value <= limit, tolerant of float error in sums such as 0.7 + 0.2."""
    return value <= limit or math.isclose(value, limit, rel_tol=1e-9, abs_tol=1e-12)


def classify(
    cumulative_pct: float | None,
    thresholds: ThresholdConfig,
    per_entity: bool = True,
) -> Category | None:
    """Assign the tier for one cumulative percentage.

    Args:
        cumulative_pct: Fraction of the grand total through this entity's rank.
        thresholds: Current A% / B% pair.
        per_entity: False when evaluated at grand-total granularity.

    Returns:
        The Category, or None for grand-total rows and blank percentages.
    """
    if not per_entity or cumulative_pct is None:
        return None
    if at_or_below(cumulative_pct, thresholds.a_pct):
        return Category.A
    if at_or_below(cumulative_pct, thresholds.ab_pct):
        return Category.B
    return Category.C


def classify_entities(
    rows: list[RankedEntity],
    thresholds: ThresholdConfig,
) -> list[RankedEntity]:
    return [replace(row, category=classify(row.cumulative_pct, thresholds)) for row in rows]
