"""Filter context — the explicit scope every engine computation receives.

A context carries the record set, the active grouping dimension, an optional
order-date window and per-dimension entity selections. Two scopes derive
from it:

- candidate records: all filters applied except the selection on the active
  dimension. Ranking, cumulative sums and the grand total use this scope, so
  an entity keeps its place on the Pareto curve when other entities are
  deselected.
- visible keys: the entities of the active dimension the caller asked to see.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Mapping

from delay_pareto.engine.dimensions import Dimension, select_dimension
from delay_pareto.ingestion.fact_table import FactRecord


@dataclass(frozen=True)
class FilterContext:
    records: tuple[FactRecord, ...]
    dimension: Dimension
    date_from: date | None = None
    date_to: date | None = None
    # sorted (dimension, keys) pairs so the context stays hashable
    selections: tuple[tuple[Dimension, frozenset[str]], ...] = field(default=())

    def __post_init__(self) -> None:
        # order dates are plain dates; a datetime bound would not compare with them
        for name in ("date_from", "date_to"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())

    @classmethod
    def build(
        cls,
        records: Iterable[FactRecord],
        dimension: int,
        date_from: date | None = None,
        date_to: date | None = None,
        selections: Mapping[int, Iterable[str]] | None = None,
    ) -> FilterContext:
        """Create a context from loosely typed UI inputs.

        Args:
            records: The full fact set.
            dimension: Selector index (or Dimension) of the grouping key.
            date_from: Inclusive lower bound on order date.
            date_to: Inclusive upper bound on order date.
            selections: Selector index -> entity keys kept for that dimension.

        Raises:
            InvalidDimension: If dimension or a selection key is not 0, 1 or 2.
        """
        pairs = sorted(
            (select_dimension(dim), frozenset(str(k) for k in keys))
            for dim, keys in (selections or {}).items()
        )
        return cls(
            records=tuple(records),
            dimension=select_dimension(dimension),
            date_from=date_from,
            date_to=date_to,
            selections=tuple(pairs),
        )

    def selection_for(self, dimension: Dimension) -> frozenset[str] | None:
        for dim, keys in self.selections:
            if dim == dimension:
                return keys
        return None

    def with_dimension(self, dimension: int) -> FilterContext:
        """Same filters, different grouping dimension."""
        return FilterContext(
            records=self.records,
            dimension=select_dimension(dimension),
            date_from=self.date_from,
            date_to=self.date_to,
            selections=self.selections,
        )

    def _in_date_range(self, record: FactRecord) -> bool:
        if self.date_from is not None and record.order_date < self.date_from:
            return False
        if self.date_to is not None and record.order_date > self.date_to:
            return False
        return True

    def candidate_records(self) -> list[FactRecord]:
        """Records under every filter except the active dimension's selection."""
        others = [(d, keys) for d, keys in self.selections if d != self.dimension]
        return [
            r for r in self.records
            if self._in_date_range(r)
            and all(d.key_of(r) in keys for d, keys in others)
        ]

    def visible_records(self) -> list[FactRecord]:
        """Records under every filter, including the active selection."""
        active = self.selection_for(self.dimension)
        candidates = self.candidate_records()
        if active is None:
            return candidates
        return [r for r in candidates if self.dimension.key_of(r) in active]

    def is_visible(self, key: str) -> bool:
        active = self.selection_for(self.dimension)
        return active is None or key in active
