"""
Dataset-wide metrics over the filtered records.

The total quantity computed here is the denominator of every share-of-total
percentage shown in the dashboard and written to exports.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from matrix_analytics.column_resolver import FieldKeys, column_values
from matrix_analytics.logger import debug_watcher
from matrix_analytics.value_parser import parse_quantity_series


@dataclass(frozen=True)
class Metrics:
    """Distinct orders, creators and contents plus total quantity."""

    orders: int = 0
    creators: int = 0
    contents: int = 0
    qty: int = 0


def _distinct_non_empty(values: pd.Series) -> int:
    return int(values[values != ""].nunique())


@debug_watcher
def summarize_metrics(rows: pd.DataFrame, keys: FieldKeys) -> Metrics:
    """
    Count distinct non-empty identifiers and sum quantities.

    Blank identifiers are not counted, but their quantities still add to the
    total.
    """
    if rows.empty:
        return Metrics()

    return Metrics(
        orders=_distinct_non_empty(column_values(rows, keys.order)),
        creators=_distinct_non_empty(column_values(rows, keys.creator)),
        contents=_distinct_non_empty(column_values(rows, keys.id)),
        qty=int(parse_quantity_series(column_values(rows, keys.qty)).sum()),
    )


def share_of_total(qty: int, total: int) -> str:
    """
    Percentage of `total` carried by `qty`, one decimal place.

    Rounds half up; returns "0.0" when the total is zero.
    """
    if total <= 0:
        return "0.0"
    share = Decimal(qty) * 100 / Decimal(total)
    return str(share.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def share_ratio(qty: int, total: int) -> float:
    """Fraction of `total` carried by `qty` (0.0 when the total is zero)."""
    if total <= 0:
        return 0.0
    return qty / total
