"""
Tests for the product / creator / video aggregation engine.
"""

import dataclasses
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from matrix_analytics.aggregation import AggregatedViews, aggregate_records, prepare_work_frame
from matrix_analytics.column_resolver import resolve_field_keys
from matrix_analytics.config import DEFAULT_LABELS
from matrix_analytics.csv_parser import parse_csv_text
from matrix_analytics.metrics import summarize_metrics

HEADER = "Order ID,Content ID,Creator Username,Product Name,Seller SKU,Quantity,Date\n"

TWO_VIDEOS_CSV = HEADER + (
    "o1,v1,A,Widget,s1,3,2024-01-01\n"
    "o2,v2,A,Widget,s1,5,2024-01-02\n"
)

MIXED_CSV = HEADER + (
    "o1,v1,alice,Widget,w-red,3,2024-01-01\n"
    "o2,v1,alice,Widget,w-blue,4,2024-01-01\n"
    "o3,v2,alice,Gadget,g-1,2,2024-01-05\n"
    "o4,v3,bob,Widget,w-red,6,2024-02-01\n"
    "o5,v3,bob,Gadget,g-1,1,2024-02-01\n"
    "o6,v4,carol,Gizmo,z-1,9,2024-03-01\n"
    "o7,v1,alice,Widget,w-red,2,2024-01-09\n"
    "o8,v5,bob,Widget,w-blue,0,2024-02-03\n"
)


def _aggregate(text, labels=None):
    parsed = parse_csv_text(text)
    keys = resolve_field_keys(parsed.headers)
    return parsed.rows, keys, aggregate_records(parsed.rows, keys, labels)


def _is_descending(quantities):
    return all(a >= b for a, b in zip(quantities, quantities[1:]))


class TestCreatorView:
    """Creator rollups with nested video and sku breakdowns."""

    def test_two_videos_one_sku(self):
        _, _, views = _aggregate(TWO_VIDEOS_CSV)
        assert len(views.creator) == 1

        creator = views.creator[0]
        assert creator.id == "A"
        assert creator.context_qty == 8
        assert [(s.id, s.qty) for s in creator.ranked_skus] == [("s1", 8)]
        assert [(v.id, v.qty) for v in creator.ranked_videos] == [("v2", 5), ("v1", 3)]

    def test_video_entries_carry_date_and_skus(self):
        _, _, views = _aggregate(MIXED_CSV)
        alice = next(c for c in views.creator if c.id == "alice")
        v1 = next(v for v in alice.ranked_videos if v.id == "v1")

        assert v1.qty == 9
        assert v1.date == "2024-01-01"
        assert [(s.id, s.qty) for s in v1.skus] == [("w-red", 5), ("w-blue", 4)]

    def test_breakdowns_sum_to_context(self):
        _, _, views = _aggregate(MIXED_CSV)
        for creator in views.creator:
            assert sum(s.qty for s in creator.ranked_skus) == creator.context_qty
            assert sum(v.qty for v in creator.ranked_videos) == creator.context_qty
            for video in creator.ranked_videos:
                assert sum(s.qty for s in video.skus) == video.qty


class TestVideoView:
    """Video rollups."""

    def test_first_seen_creator_and_date(self):
        _, _, views = _aggregate(MIXED_CSV)
        v1 = next(v for v in views.video if v.id == "v1")
        assert v1.creator == "alice"
        assert v1.date == "2024-01-01"
        assert v1.context_qty == 9

    def test_first_seen_creator_when_video_shared(self):
        _, _, views = _aggregate(HEADER + "o1,v9,first,P,s,1,d1\no2,v9,second,P,s,1,d2\n")
        assert views.video[0].creator == "first"
        assert views.video[0].date == "d1"

    def test_sku_names(self):
        _, _, views = _aggregate(MIXED_CSV)
        v3 = next(v for v in views.video if v.id == "v3")
        assert [(s.id, s.name, s.qty) for s in v3.ranked_skus] == [
            ("w-red", "Widget", 6),
            ("g-1", "Gadget", 1),
        ]

    def test_breakdowns_sum_to_context(self):
        _, _, views = _aggregate(MIXED_CSV)
        for video in views.video:
            assert sum(s.qty for s in video.ranked_skus) == video.context_qty


class TestProductView:
    """Product rollups with sku variants."""

    def test_variants(self):
        _, _, views = _aggregate(MIXED_CSV)
        widget = views.product[0]
        assert widget.id == "Widget"
        assert widget.context_qty == 15
        assert [(v.id, v.qty) for v in widget.ranked_variants] == [("w-red", 11), ("w-blue", 4)]

    def test_breakdowns_sum_to_context(self):
        _, _, views = _aggregate(MIXED_CSV)
        for product in views.product:
            assert sum(v.qty for v in product.ranked_variants) == product.context_qty


class TestRanking:
    """Ordering guarantees shared by every view."""

    def test_views_sum_to_metrics_total(self):
        rows, keys, views = _aggregate(MIXED_CSV)
        total = summarize_metrics(rows, keys).qty
        assert total == 27
        for mode in ("product", "creator", "video"):
            assert sum(item.context_qty for item in views.for_mode(mode)) == total

    def test_every_sequence_descending(self):
        _, _, views = _aggregate(MIXED_CSV)
        for mode in ("product", "creator", "video"):
            assert _is_descending([item.context_qty for item in views.for_mode(mode)])
        for creator in views.creator:
            assert _is_descending([s.qty for s in creator.ranked_skus])
            assert _is_descending([v.qty for v in creator.ranked_videos])
            for video in creator.ranked_videos:
                assert _is_descending([s.qty for s in video.skus])
        for video in views.video:
            assert _is_descending([s.qty for s in video.ranked_skus])
        for product in views.product:
            assert _is_descending([v.qty for v in product.ranked_variants])

    def test_ties_keep_first_appearance(self):
        _, _, views = _aggregate(HEADER + "o1,v1,bob,P,s,2,d\no2,v2,carol,P,s,2,d\n")
        assert [c.id for c in views.creator] == ["bob", "carol"]

        _, _, views = _aggregate(HEADER + "o1,v2,carol,P,s,2,d\no2,v1,bob,P,s,2,d\n")
        assert [c.id for c in views.creator] == ["carol", "bob"]

    def test_ties_in_breakdowns_keep_first_appearance(self):
        _, _, views = _aggregate(HEADER + "o1,v1,A,P,s-b,1,d\no2,v1,A,P,s-a,1,d\n")
        assert [s.id for s in views.creator[0].ranked_skus] == ["s-b", "s-a"]

    def test_zero_quantity_entries_included(self):
        _, _, views = _aggregate(MIXED_CSV)
        assert views.video[-1].id == "v5"
        assert views.video[-1].context_qty == 0


class TestDefaultLabels:
    """Blank grouping values fall under the default labels."""

    def test_blank_values_use_labels(self):
        _, _, views = _aggregate(HEADER + "o1,,,,,4,\n")
        assert views.creator[0].id == DEFAULT_LABELS["creator"]
        assert views.video[0].id == DEFAULT_LABELS["id"]
        assert views.product[0].id == DEFAULT_LABELS["sku_name"]
        assert views.product[0].ranked_variants[0].id == DEFAULT_LABELS["sku_id"]
        assert views.creator[0].context_qty == 4

    def test_labels_are_distinct(self):
        assert len(set(DEFAULT_LABELS.values())) == len(DEFAULT_LABELS)

    def test_label_override(self):
        _, _, views = _aggregate(HEADER + "o1,v1,,P,s,1,d\n", labels={"creator": "(none)"})
        assert views.creator[0].id == "(none)"

    def test_unresolved_columns_group_under_labels(self):
        _, _, views = _aggregate("Order ID,Quantity\no1,2\no2,3\n")
        assert [(c.id, c.context_qty) for c in views.creator] == [(DEFAULT_LABELS["creator"], 5)]

    def test_work_frame_columns(self):
        parsed = parse_csv_text(TWO_VIDEOS_CSV)
        work = prepare_work_frame(parsed.rows, resolve_field_keys(parsed.headers))
        assert list(work.columns) == ["video_id", "creator", "sku_id", "sku_name", "qty", "date"]
        assert work["qty"].tolist() == [3, 5]


class TestAggregateRecords:
    """General behavior of aggregate_records."""

    def test_empty_input(self):
        keys = resolve_field_keys([])
        assert aggregate_records(pd.DataFrame(dtype=object), keys) == AggregatedViews()

    def test_idempotent(self):
        parsed = parse_csv_text(MIXED_CSV)
        keys = resolve_field_keys(parsed.headers)
        assert aggregate_records(parsed.rows, keys) == aggregate_records(parsed.rows, keys)

    def test_does_not_modify_input(self):
        parsed = parse_csv_text(MIXED_CSV)
        before = parsed.rows.copy()
        aggregate_records(parsed.rows, resolve_field_keys(parsed.headers))
        pd.testing.assert_frame_equal(parsed.rows, before)

    def test_results_are_immutable(self):
        _, _, views = _aggregate(TWO_VIDEOS_CSV)
        with pytest.raises(dataclasses.FrozenInstanceError):
            views.creator[0].context_qty = 0

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            AggregatedViews().for_mode("sku")
