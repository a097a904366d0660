"""
Quantity parsing for free-form export values.

Quantities are whole item counts: thousands separators and stray symbols are
removed, fractional parts are truncated, and anything unusable becomes 0.
"""

from __future__ import annotations

import re
from typing import Any

import pandas as pd

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_DIGITS = re.compile(r"^\d+")

# Larger values are ids pasted into the quantity column, not item counts.
# Capped values sum inside int64 for up to 9 million rows.
MAX_QUANTITY = 10**12


def _normalize_number_string(text: str) -> str:
    cleaned = text.replace(",", "")
    return _NON_NUMERIC.sub("", cleaned)


def parse_quantity(value: Any) -> int:
    """
    Coerce a quantity cell into a non-negative integer.

    "1,234" -> 1234, "12.9" -> 12, "abc" -> 0, "" -> 0, "-5" -> 0.
    Values above MAX_QUANTITY normalize to 0. Never raises.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if pd.isna(value) or value < 0 or value > MAX_QUANTITY:
            return 0
        return int(value)

    text = str(value).strip()
    if not text or text.startswith("-"):
        return 0

    match = _LEADING_DIGITS.match(_normalize_number_string(text))
    if match is None:
        return 0
    quantity = int(match.group(0))
    return quantity if quantity <= MAX_QUANTITY else 0


def parse_quantity_series(series: pd.Series) -> pd.Series:
    return series.map(parse_quantity).astype("int64")
