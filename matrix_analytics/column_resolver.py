"""
Column Resolver Module - Alias-Based Header Resolution

Maps the logical fields of an export (content id, date, order id, creator,
product name, quantity, sku id) to the header names actually present in the
loaded files. Export formats name their columns differently, so each field is
matched by case-insensitive substring against an ordered alias list:

- The first alias in the list has priority over later aliases
- Within one alias, the first matching header (by header order) wins
- No match falls back to the first alias itself, which never hits a record

Example:
    headers ["Order ID", "Creator Username", "Quantity Sold"]
    -> order="Order ID", creator="Creator Username", qty="Quantity Sold"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pandas as pd

from matrix_analytics.config import FIELD_ALIASES, LOGICAL_FIELDS
from matrix_analytics.logger import debug_watcher, get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldResolution:
    """Outcome of resolving one logical field against a header list."""

    field: str
    header: str
    matched_alias: str = ""
    resolved: bool = False


@dataclass(frozen=True)
class FieldKeys:
    """
    Resolved header name for every logical field.

    Each attribute holds exactly one header string. Unresolved fields hold
    their fallback alias and are listed in `unresolved`.
    """

    id: str
    date: str
    order: str
    creator: str
    sku_name: str
    qty: str
    sku_id: str
    resolutions: tuple[FieldResolution, ...] = field(default=(), compare=False)

    @property
    def unresolved(self) -> tuple[str, ...]:
        return tuple(r.field for r in self.resolutions if not r.resolved)

    @property
    def searchable(self) -> tuple[str, str, str, str]:
        """Headers the search box matches against."""
        return (self.id, self.creator, self.sku_id, self.sku_name)

    def as_dict(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in LOGICAL_FIELDS}


def find_header(headers: Sequence[str], aliases: Sequence[str]) -> tuple[str, str] | None:
    """
    Find the header matching the highest-priority alias.

    Returns:
        (header, alias) or None when no alias matches any header.
    """
    lowered = [(header, header.lower()) for header in headers]
    for alias in aliases:
        needle = alias.lower()
        for header, header_lower in lowered:
            if needle in header_lower:
                return header, alias
    return None


def resolve_field(
    field_name: str,
    headers: Sequence[str],
    aliases: Sequence[str],
) -> FieldResolution:
    match = find_header(headers, aliases)
    if match is None:
        return FieldResolution(field=field_name, header=aliases[0], resolved=False)
    header, alias = match
    return FieldResolution(field=field_name, header=header, matched_alias=alias, resolved=True)


@debug_watcher
def resolve_field_keys(
    headers: Sequence[str],
    aliases: Mapping[str, Sequence[str]] | None = None,
) -> FieldKeys:
    """
    Resolve every logical field against a header list.

    Args:
        headers: Canonical header list of the dataset.
        aliases: Optional per-field alias overrides, merged over
                 config.FIELD_ALIASES.

    Returns:
        FieldKeys with one header per logical field.
    """
    table = {**FIELD_ALIASES, **(aliases or {})}
    resolutions = tuple(
        resolve_field(name, headers, table[name]) for name in LOGICAL_FIELDS
    )

    keys = FieldKeys(
        **{r.field: r.header for r in resolutions},
        resolutions=resolutions,
    )

    if keys.unresolved:
        logger.warning(
            f"Unresolved columns {list(keys.unresolved)}; "
            "their values read as blank and group under the default labels."
        )
    return keys


def get_resolution_statistics(keys: FieldKeys) -> dict[str, Any]:
    """
    Summarize a resolution for logging and display.

    Returns:
        Dictionary with resolved/unresolved counts, success rate and the
        per-field header mapping.
    """
    total = len(keys.resolutions)
    resolved = sum(1 for r in keys.resolutions if r.resolved)
    return {
        "total_fields": total,
        "resolved": resolved,
        "unresolved": total - resolved,
        "success_rate": (resolved / total * 100) if total else 0.0,
        "unresolved_fields": list(keys.unresolved),
        "mapping": {
            r.field: {"header": r.header, "alias": r.matched_alias, "resolved": r.resolved}
            for r in keys.resolutions
        },
    }


def column_values(rows: pd.DataFrame, key: str) -> pd.Series:
    """
    Read one resolved column as strings.

    A key that is not a column of `rows` (an unresolved field) reads as an
    all-blank series instead of raising.
    """
    if key in rows.columns:
        return rows[key].fillna("").astype(str)
    return pd.Series("", index=rows.index, dtype=object)
