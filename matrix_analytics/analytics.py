"""
Dashboard pipeline: filter, aggregate and summarize in one call.

Every change of the loaded dataset or the search term recomputes the whole
snapshot from the full record set; nothing is updated incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from matrix_analytics.aggregation import AggregatedViews, aggregate_records
from matrix_analytics.file_loader import Dataset
from matrix_analytics.filters import filter_records, tokenize_search
from matrix_analytics.logger import debug_watcher, get_logger
from matrix_analytics.metrics import Metrics, summarize_metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything the dashboard shows for one (dataset, search term) pair."""

    search_term: str
    tokens: tuple[str, ...]
    filtered: pd.DataFrame = field(compare=False, repr=False)
    views: AggregatedViews = AggregatedViews()
    metrics: Metrics = Metrics()

    @property
    def record_count(self) -> int:
        return len(self.filtered)

    def ranked(self, mode: str) -> tuple:
        return self.views.for_mode(mode)


@debug_watcher
def compute_dashboard(dataset: Dataset, search_term: str = "") -> DashboardSnapshot:
    """
    Build the dashboard snapshot for a dataset and search term.

    Args:
        dataset: Loaded records with resolved field keys.
        search_term: Free-text search; blank keeps every record.

    Returns:
        DashboardSnapshot with the filtered records, the three ranked views
        and the metrics over the filtered records.
    """
    keys = dataset.field_keys
    filtered = filter_records(dataset.rows, keys, search_term)

    snapshot = DashboardSnapshot(
        search_term=search_term,
        tokens=tuple(tokenize_search(search_term)),
        filtered=filtered,
        views=aggregate_records(filtered, keys),
        metrics=summarize_metrics(filtered, keys),
    )
    logger.info(
        f"Dashboard: {snapshot.record_count} of {len(dataset.rows)} records, "
        f"{snapshot.metrics.qty} items, search={search_term!r}"
    )
    return snapshot
