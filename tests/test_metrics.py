"""
Tests for dataset metrics and share-of-total formatting.
"""

import sys
from pathlib import Path

import pandas as pd

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from matrix_analytics.aggregation import aggregate_records
from matrix_analytics.column_resolver import resolve_field_keys
from matrix_analytics.csv_parser import parse_csv_text
from matrix_analytics.metrics import Metrics, share_of_total, share_ratio, summarize_metrics


def test_summarize_metrics_counts_distinct_non_empty():
    parsed = parse_csv_text(
        "Order ID,Content ID,Creator Username,Quantity\n"
        "o1,v1,alice,3\n"
        "o1,v2,alice,2\n"
        "o2,,bob,1,000\n"
        ",v2,,4\n"
    )
    keys = resolve_field_keys(parsed.headers)
    metrics = summarize_metrics(parsed.rows, keys)

    assert metrics.orders == 2
    assert metrics.creators == 2
    assert metrics.contents == 2
    # "1,000" splits into two fields here, so that row contributes 1
    assert metrics.qty == 3 + 2 + 1 + 4


def test_summarize_metrics_quoted_quantity():
    parsed = parse_csv_text('Order ID,Quantity\no1,"1,000"\no2,abc\n')
    metrics = summarize_metrics(parsed.rows, resolve_field_keys(parsed.headers))
    assert metrics.qty == 1000
    assert metrics.orders == 2


def test_summarize_metrics_empty():
    keys = resolve_field_keys([])
    assert summarize_metrics(pd.DataFrame(dtype=object), keys) == Metrics()


def test_share_of_total():
    assert share_of_total(8, 8) == "100.0"
    assert share_of_total(1, 3) == "33.3"
    assert share_of_total(2, 3) == "66.7"
    assert share_of_total(0, 8) == "0.0"


def test_share_of_total_rounds_half_up():
    assert share_of_total(1, 16) == "6.3"
    assert share_of_total(1, 8) == "12.5"


def test_share_of_total_zero_total():
    assert share_of_total(0, 0) == "0.0"
    assert share_of_total(5, 0) == "0.0"


def test_share_ratio():
    assert share_ratio(1, 4) == 0.25
    assert share_ratio(3, 0) == 0.0


def test_summarize_metrics_oversized_quantity():
    parsed = parse_csv_text(
        "Order ID,Creator Username,Quantity\n"
        "o1,alice,123456789012345678901\n"
        "o2,bob,2\n"
    )
    keys = resolve_field_keys(parsed.headers)
    assert summarize_metrics(parsed.rows, keys).qty == 2

    views = aggregate_records(parsed.rows, keys)
    assert [(c.id, c.context_qty) for c in views.creator] == [("bob", 2), ("alice", 0)]
