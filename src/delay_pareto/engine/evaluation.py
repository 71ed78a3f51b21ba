"""Pareto evaluation — one full recomputation pass over a filter context.

evaluate() is a pure function of (FilterContext, ThresholdConfig):

1. Rank entities of the active dimension over the candidate scope
2. Accumulate running delay against the candidate grand total
3. Classify each row into A / B / C
4. Keep the rows the caller selected and label tier transition points
5. Summarise per category and compose the narrative title

EvaluationSession wraps evaluate() for an interactive caller: it turns UI
inputs into a context, memoizes results by (context, thresholds) and keeps
the last good result when an input is rejected.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, Mapping

import pandas as pd

from delay_pareto.config.settings import settings
from delay_pareto.engine.boundary_labels import label_boundaries
from delay_pareto.engine.classifier import CATEGORY_ORDER, Category, classify_entities
from delay_pareto.engine.cumulative import accumulate
from delay_pareto.engine.dimensions import Dimension, InvalidDimension
from delay_pareto.engine.filters import FilterContext
from delay_pareto.engine.narrative import build_narrative
from delay_pareto.engine.ranking import RankedEntity, rank_entities
from delay_pareto.engine.thresholds import ThresholdConfig, ThresholdStore
from delay_pareto.ingestion.fact_table import FactRecord

logger = logging.getLogger(__name__)


ENTITY_COLUMNS = [
    "key",
    "metric_sum",
    "rank",
    "cumulative_sum",
    "cumulative_pct",
    "category",
    "boundary_label",
]


@dataclass(frozen=True)
class CategorySummary:
    """Aggregate row for one tier."""
    category: Category
    total_metric: int
    count: int


@dataclass(frozen=True)
class ParetoEvaluation:
    """Everything the presentation layer needs for one context."""
    dimension: Dimension
    thresholds: ThresholdConfig
    grand_total: int
    entities: tuple[RankedEntity, ...]  # visible rows, rank order
    categories: tuple[CategorySummary, ...]  # CATEGORY_ORDER
    narrative: str


def summarize_categories(rows: list[RankedEntity]) -> list[CategorySummary]:
    """Total delay and entity count per tier, zero rows for empty tiers."""
    totals = {c: 0 for c in CATEGORY_ORDER}
    counts = {c: 0 for c in CATEGORY_ORDER}
    for row in rows:
        if row.category is None:
            continue
        totals[row.category] += row.metric_sum
        counts[row.category] += 1
    return [
        CategorySummary(category=c, total_metric=totals[c], count=counts[c])
        for c in CATEGORY_ORDER
    ]


def evaluate(
    context: FilterContext,
    thresholds: ThresholdConfig,
    precision: int | None = None,
    metric_label: str | None = None,
) -> ParetoEvaluation:
    """Run ranking, accumulation, classification, labelling and narrative.

    Args:
        context: Records, active dimension and filters.
        thresholds: A% / B% pair for the classifier.
        precision: Decimal places for boundary label matching
            (default settings.label_precision).
        metric_label: Metric wording in the narrative
            (default settings.metric_label).
    """
    if precision is None:
        precision = settings.label_precision
    if metric_label is None:
        metric_label = settings.metric_label

    ranked = rank_entities(context)
    # ranking covers every candidate record, so its sums make up the grand total
    total = sum(row.metric_sum for row in ranked)
    rows = accumulate(ranked, total)
    rows = classify_entities(rows, thresholds)

    visible = [row for row in rows if context.is_visible(row.key)]
    visible = label_boundaries(visible, precision)

    result = ParetoEvaluation(
        dimension=context.dimension,
        thresholds=thresholds,
        grand_total=total,
        entities=tuple(visible),
        categories=tuple(summarize_categories(visible)),
        narrative=build_narrative(visible, context.dimension, thresholds.a_pct, metric_label),
    )
    logger.debug(
        "Evaluated %s: %d ranked, %d visible, total=%d, A/B/C=%s",
        context.dimension.display_name,
        len(rows),
        len(visible),
        total,
        "/".join(str(s.count) for s in result.categories),
    )
    return result


def get_category_items(result: ParetoEvaluation, category: Category | str) -> list[RankedEntity]:
    """Get all visible rows in a specific category."""
    return [row for row in result.entities if row.category == category]


def to_frame(result: ParetoEvaluation) -> pd.DataFrame:
    """Per-entity output rows as a DataFrame (category as its letter)."""
    records = []
    for row in result.entities:
        data = asdict(row)
        data["category"] = row.category.value if row.category is not None else None
        records.append(data)
    return pd.DataFrame(records, columns=ENTITY_COLUMNS)


def _pct(value: float | None) -> str:
    return "-" if value is None else f"{value * 100:.2f}%"


def format_pareto_table(result: ParetoEvaluation) -> str:
    """Format an evaluation as a text table."""
    name = result.dimension.display_name
    lines = [
        f"Pareto Analysis by {name}",
        f"{'=' * 72}",
        f"Total: {result.grand_total:,}  (A <= {_pct(result.thresholds.a_pct)}, "
        f"B <= {_pct(result.thresholds.ab_pct)})",
        f"",
        f"{'Rank':<6}{'Key':<24}{'Delay':>9}{'Cum':>9}{'Cum%':>9}{'Class':>6}{'Label':>9}",
        f"{'-' * 72}",
    ]
    for row in result.entities:
        category = row.category.value if row.category is not None else "-"
        label = _pct(row.boundary_label) if row.boundary_label is not None else ""
        lines.append(
            f"{row.rank:<6}{row.key[:23]:<24}{row.metric_sum:>9,}{row.cumulative_sum:>9,}"
            f"{_pct(row.cumulative_pct):>9}{category:>6}{label:>9}"
        )
    lines.append(f"{'-' * 72}")
    for summary in result.categories:
        lines.append(
            f"{summary.category.value}: {summary.count} {name.lower()} "
            f"({summary.total_metric:,} total)"
        )
    lines.append(result.narrative)
    return "\n".join(lines)


class EvaluationSession:
    """Recompute on every UI change, remembering the last valid result."""

    def __init__(
        self,
        records: Iterable[FactRecord],
        store: ThresholdStore | None = None,
        cache_size: int | None = None,
        precision: int | None = None,
        metric_label: str | None = None,
    ) -> None:
        self.records = tuple(records)
        self.store = store if store is not None else ThresholdStore()
        self.cache_size = settings.evaluation_cache_size if cache_size is None else cache_size
        # fixed for the session's lifetime; cached results depend on them
        self.precision = settings.label_precision if precision is None else precision
        self.metric_label = settings.metric_label if metric_label is None else metric_label
        self.last_result: ParetoEvaluation | None = None
        self._cache: OrderedDict[tuple[FilterContext, ThresholdConfig], ParetoEvaluation] = OrderedDict()

    def evaluate(
        self,
        dimension: int,
        date_from: date | None = None,
        date_to: date | None = None,
        selections: Mapping[int, Iterable[str]] | None = None,
    ) -> ParetoEvaluation:
        """Evaluate the current inputs against the store's thresholds.

        Raises:
            InvalidDimension: The selector index (or a selection key) is not
                0, 1 or 2. last_result is left unchanged.
        """
        try:
            context = FilterContext.build(self.records, dimension, date_from, date_to, selections)
        except InvalidDimension:
            logger.warning("Rejected dimension input %r; keeping previous result", dimension)
            raise

        thresholds = self.store.config
        key = (context, thresholds)
        result = self._cache.get(key)
        if result is None:
            result = evaluate(context, thresholds, self.precision, self.metric_label)
            if self.cache_size > 0:
                self._cache[key] = result
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)
        else:
            self._cache.move_to_end(key)
            logger.debug("Evaluation cache hit for %s", context.dimension.display_name)

        self.last_result = result
        return result

    def clear_cache(self) -> None:
        self._cache.clear()
