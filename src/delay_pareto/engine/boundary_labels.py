"""Boundary labels — annotate only the first and last point of each tier.

A row is labelled with its cumulative percentage when, rounded to the label
precision, it equals the smallest or largest cumulative percentage within its
own category. Interior rows and uncategorised rows stay blank.
"""

from __future__ import annotations

from dataclasses import replace

from delay_pareto.engine.classifier import Category
from delay_pareto.engine.ranking import RankedEntity


def category_bounds(rows: list[RankedEntity]) -> dict[Category, tuple[float, float]]:
    """(min, max) cumulative percentage per category present in rows."""
    bounds: dict[Category, tuple[float, float]] = {}
    for row in rows:
        if row.category is None or row.cumulative_pct is None:
            continue
        pct = row.cumulative_pct
        if row.category in bounds:
            lo, hi = bounds[row.category]
            bounds[row.category] = (min(lo, pct), max(hi, pct))
        else:
            bounds[row.category] = (pct, pct)
    return bounds


def boundary_label(
    row: RankedEntity,
    bounds: dict[Category, tuple[float, float]],
    precision: int = 4,
) -> float | None:
    if row.category is None or row.cumulative_pct is None or row.category not in bounds:
        return None
    lo, hi = bounds[row.category]
    value = round(row.cumulative_pct, precision)
    if value == round(lo, precision) or value == round(hi, precision):
        return row.cumulative_pct
    return None


def label_boundaries(rows: list[RankedEntity], precision: int = 4) -> list[RankedEntity]:
    """Return rows with boundary_label set on each tier's transition points."""
    bounds = category_bounds(rows)
    return [replace(row, boundary_label=boundary_label(row, bounds, precision)) for row in rows]
