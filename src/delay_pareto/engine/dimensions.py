"""Dimension selector — maps a selector index to the grouping key rule."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from delay_pareto.ingestion.fact_table import FactRecord


class InvalidDimension(ValueError):
    """Raised when a selector index does not name a grouping dimension."""


class Dimension(IntEnum):
    PRODUCT = 0
    SUPPLIER = 1
    REGION = 2

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def field(self) -> str:
        """FactRecord attribute holding this dimension's grouping key."""
        return _FIELDS[self]

    def key_of(self, record: FactRecord) -> str:
        return getattr(record, _FIELDS[self])


_LABELS = {
    Dimension.PRODUCT: "Product Code",
    Dimension.SUPPLIER: "Supplier Name",
    Dimension.REGION: "Region",
}

_DISPLAY_NAMES = {
    Dimension.PRODUCT: "Products",
    Dimension.SUPPLIER: "Suppliers",
    Dimension.REGION: "Regions",
}

_FIELDS = {
    Dimension.PRODUCT: "product",
    Dimension.SUPPLIER: "supplier",
    Dimension.REGION: "region",
}


@dataclass(frozen=True)
class DimensionOption:
    """One row of the dimension selector table."""
    label: str
    order: int


DIMENSION_TABLE: list[DimensionOption] = [
    DimensionOption(label=d.label, order=int(d)) for d in Dimension
]


def select_dimension(index: int) -> Dimension:
    """Resolve a selector index (0, 1, 2) to its Dimension.

    Raises:
        InvalidDimension: If index is not one of the selector orders.
    """
    # bool is an int subclass; True must not select Supplier
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidDimension(f"Dimension index must be an integer, got {index!r}")
    try:
        return Dimension(index)
    except ValueError:
        raise InvalidDimension(
            f"Dimension index {index} is outside 0..{len(Dimension) - 1}"
        ) from None


def key_extractor(index: int) -> Callable[[FactRecord], str]:
    """Return the grouping key function for a selector index."""
    return select_dimension(index).key_of
