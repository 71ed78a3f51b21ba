"""Fact table interface — validated delivery rows as immutable FactRecords.

Cleaning and type coercion happen upstream. This module only maps the
validated table's columns onto FactRecord and rejects rows that break the
contract the engine relies on (unique order ids, non-negative delays).
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

import pandas as pd

logger = logging.getLogger(__name__)


ORDER_ID = "Order ID"
SUPPLIER_NAME = "Supplier Name"
PRODUCT_CODE = "Product Code"
DELIVERY_DELAY = "Delivery Delay (days)"
ORDER_DATE = "Order Date"
REGION = "Region"
REMARKS = "Remarks"

FACT_COLUMNS = (
    ORDER_ID,
    SUPPLIER_NAME,
    PRODUCT_CODE,
    DELIVERY_DELAY,
    ORDER_DATE,
    REGION,
    REMARKS,
)
_REQUIRED_COLUMNS = tuple(c for c in FACT_COLUMNS if c != REMARKS)


class FactTableError(ValueError):
    """Raised when the fact table does not satisfy the ingestion contract."""


@dataclass(frozen=True)
class FactRecord:
    """One delivery order."""
    order_id: int
    product: str
    supplier: str
    region: str
    metric: int  # delivery delay in days
    order_date: date
    remarks: str = ""


def _to_date(value: Any, order_id: int) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise FactTableError(f"Order {order_id}: unreadable order date {value!r}")


def _to_int(value: Any, column: str) -> int:
    """Whole numbers only; 2.0 is accepted, 2.9 is rejected rather than truncated."""
    if isinstance(value, bool):
        raise FactTableError(f"{column} must be an integer, got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        if not float(value).is_integer():
            raise FactTableError(f"{column} must be an integer, got {value!r}")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise FactTableError(f"{column} must be an integer, got {value!r}")


def _to_record(row: dict) -> FactRecord:
    missing = [c for c in _REQUIRED_COLUMNS if c not in row]
    if missing:
        raise FactTableError(f"Missing fact table column(s): {', '.join(missing)}")

    order_id = _to_int(row[ORDER_ID], ORDER_ID)
    metric = _to_int(row[DELIVERY_DELAY], DELIVERY_DELAY)

    if metric < 0:
        raise FactTableError(f"Order {order_id}: negative delivery delay {metric}")

    remarks = row.get(REMARKS)
    return FactRecord(
        order_id=order_id,
        product=str(row[PRODUCT_CODE]),
        supplier=str(row[SUPPLIER_NAME]),
        region=str(row[REGION]),
        metric=metric,
        order_date=_to_date(row[ORDER_DATE], order_id),
        remarks="" if remarks is None else str(remarks),
    )


def records_from_rows(rows: Iterable[dict]) -> tuple[FactRecord, ...]:
    """Convert validated fact table rows into FactRecords.

    Args:
        rows: Dicts keyed by the fact table column names (FACT_COLUMNS).

    Returns:
        Tuple of FactRecords in input order.

    Raises:
        FactTableError: On a missing column, duplicate Order ID or negative delay.
    """
    records: list[FactRecord] = []
    seen: set[int] = set()
    for row in rows:
        record = _to_record(row)
        if record.order_id in seen:
            raise FactTableError(f"Duplicate Order ID {record.order_id}")
        seen.add(record.order_id)
        records.append(record)

    logger.info("Loaded %d fact records", len(records))
    return tuple(records)


def records_from_frame(df: pd.DataFrame) -> tuple[FactRecord, ...]:
    """Convert a validated fact table DataFrame into FactRecords."""
    missing = [c for c in _REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise FactTableError(f"Missing fact table column(s): {', '.join(missing)}")

    if REMARKS in df.columns:
        df = df.fillna({REMARKS: ""})
    return records_from_rows(df.to_dict(orient="records"))
