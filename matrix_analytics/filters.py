"""
Search filtering over loaded records.

A search string is split on whitespace into lowercase tokens. A record is kept
when every token is a substring of at least one searchable field (content id,
creator, sku id, product name): tokens narrow by intersection, while each token
may match any of the fields.
"""

from __future__ import annotations

import pandas as pd

from matrix_analytics.column_resolver import FieldKeys, column_values
from matrix_analytics.logger import debug_watcher, get_logger

logger = get_logger(__name__)


def tokenize_search(search_term: str | None) -> list[str]:
    if not search_term:
        return []
    return search_term.lower().split()


@debug_watcher
def filter_records(rows: pd.DataFrame, keys: FieldKeys, search_term: str | None) -> pd.DataFrame:
    """
    Keep the records matching every search token.

    Args:
        rows: Loaded records.
        keys: Resolved field keys.
        search_term: Free-text search; blank keeps all records.

    Returns:
        The same frame when the search is blank, otherwise the matching subset
        in original order.
    """
    tokens = tokenize_search(search_term)
    if not tokens:
        return rows

    haystacks = [column_values(rows, key).str.lower() for key in keys.searchable]

    mask = pd.Series(True, index=rows.index)
    for token in tokens:
        token_mask = pd.Series(False, index=rows.index)
        for haystack in haystacks:
            token_mask |= haystack.str.contains(token, regex=False)
        mask &= token_mask

    filtered = rows.loc[mask]
    logger.debug(f"Search {tokens} kept {len(filtered)} of {len(rows)} records")
    return filtered


def append_search_token(search_term: str, token: str) -> str:
    """
    Extend a search with a drill-down token.

    An empty search becomes the token; a search already containing the token
    (case-insensitive) is returned unchanged.
    """
    if not search_term:
        return token
    if token.lower() in search_term.lower():
        return search_term
    return f"{search_term.strip()} {token}"
