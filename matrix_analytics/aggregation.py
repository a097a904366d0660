"""
Aggregation Engine - Product / Creator / Video Rollups

Folds the filtered records into three ranked views:
- Product: total per product name, broken down by sku id (variants)
- Creator: total per creator, broken down by video (each with its own sku
  breakdown) and by sku id
- Video: total per content id, with first-seen creator and date, broken down
  by sku id (with first-seen product name)

Grouping runs on pandas with groups kept in first-seen order; the grouped
frames are then frozen into immutable dataclasses. Every ranked sequence is
sorted by descending quantity with a stable sort, so ties keep the order in
which they first appear in the records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pandas as pd

from matrix_analytics.column_resolver import FieldKeys, column_values
from matrix_analytics.config import DEFAULT_LABELS, VIEW_MODES
from matrix_analytics.logger import debug_watcher, get_logger
from matrix_analytics.value_parser import parse_quantity_series

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)


@dataclass(frozen=True)
class RankedQty:
    """One ranked breakdown entry: an id and its quantity."""

    id: str
    qty: int


@dataclass(frozen=True)
class RankedSku:
    """Sku entry of a video breakdown, with its first-seen product name."""

    id: str
    name: str
    qty: int


@dataclass(frozen=True)
class CreatorVideo:
    """A creator's video with its quantity, first-seen date and sku breakdown."""

    id: str
    qty: int
    date: str
    skus: tuple[RankedQty, ...] = ()


@dataclass(frozen=True)
class VideoAggregate:
    id: str
    creator: str
    date: str
    context_qty: int
    ranked_skus: tuple[RankedSku, ...] = ()


@dataclass(frozen=True)
class CreatorAggregate:
    id: str
    context_qty: int
    ranked_videos: tuple[CreatorVideo, ...] = ()
    ranked_skus: tuple[RankedQty, ...] = ()


@dataclass(frozen=True)
class ProductAggregate:
    id: str
    context_qty: int
    ranked_variants: tuple[RankedQty, ...] = ()


@dataclass(frozen=True)
class AggregatedViews:
    """The three ranked views of one filtered record set."""

    product: tuple[ProductAggregate, ...] = ()
    creator: tuple[CreatorAggregate, ...] = ()
    video: tuple[VideoAggregate, ...] = ()

    def for_mode(self, mode: str) -> tuple:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode!r}. Expected one of {VIEW_MODES}")
        return getattr(self, mode)


def _labelled(rows: pd.DataFrame, key: str, label: str) -> pd.Series:
    values = column_values(rows, key).str.strip()
    return values.where(values != "", label)


def prepare_work_frame(
    rows: pd.DataFrame,
    keys: FieldKeys,
    labels: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """
    Project records onto the grouping columns.

    Blank grouping values are replaced by their default labels and quantities
    are normalized to integers.
    """
    labels = {**DEFAULT_LABELS, **(labels or {})}
    return pd.DataFrame({
        "video_id": _labelled(rows, keys.id, labels["id"]),
        "creator": _labelled(rows, keys.creator, labels["creator"]),
        "sku_id": _labelled(rows, keys.sku_id, labels["sku_id"]),
        "sku_name": _labelled(rows, keys.sku_name, labels["sku_name"]),
        "qty": parse_quantity_series(column_values(rows, keys.qty)),
        "date": column_values(rows, keys.date),
    }, index=rows.index)


def _rank(frame: pd.DataFrame, column: str = "qty") -> pd.DataFrame:
    # Stable mergesort keeps first-seen order among equal quantities
    return frame.sort_values(column, ascending=False, kind="stable")


def _grouped(work: pd.DataFrame, by: list[str], **aggregations: tuple[str, str]) -> pd.DataFrame:
    """Group in first-seen order, aggregate, and rank by quantity."""
    frame = work.groupby(by, sort=False).agg(**aggregations).reset_index()
    return _rank(frame)


def _breakdowns(ranked: pd.DataFrame, parent: str) -> dict[str, pd.DataFrame]:
    """Split an already ranked breakdown frame by its parent key."""
    return {key: group for key, group in ranked.groupby(parent, sort=False)}


def _ranked_qty(frame: pd.DataFrame | None, id_column: str) -> tuple[RankedQty, ...]:
    if frame is None:
        return ()
    return tuple(
        RankedQty(id=str(row_id), qty=int(qty))
        for row_id, qty in zip(frame[id_column], frame["qty"])
    )


def _build_video_view(work: pd.DataFrame) -> tuple[VideoAggregate, ...]:
    totals = _grouped(
        work, ["video_id"],
        creator=("creator", "first"),
        date=("date", "first"),
        qty=("qty", "sum"),
    )
    skus = _breakdowns(
        _grouped(work, ["video_id", "sku_id"], name=("sku_name", "first"), qty=("qty", "sum")),
        "video_id",
    )

    views = []
    for row in totals.itertuples(index=False):
        video_skus = skus.get(row.video_id)
        ranked = () if video_skus is None else tuple(
            RankedSku(id=str(sku_id), name=str(name), qty=int(qty))
            for sku_id, name, qty in zip(video_skus["sku_id"], video_skus["name"], video_skus["qty"])
        )
        views.append(VideoAggregate(
            id=str(row.video_id),
            creator=str(row.creator),
            date=str(row.date),
            context_qty=int(row.qty),
            ranked_skus=ranked,
        ))
    return tuple(views)


def _build_creator_view(work: pd.DataFrame) -> tuple[CreatorAggregate, ...]:
    totals = _grouped(work, ["creator"], qty=("qty", "sum"))
    videos = _breakdowns(
        _grouped(work, ["creator", "video_id"], date=("date", "first"), qty=("qty", "sum")),
        "creator",
    )
    skus = _breakdowns(
        _grouped(work, ["creator", "sku_id"], qty=("qty", "sum")),
        "creator",
    )
    # Sku breakdown of each (creator, video) pair
    video_skus = {
        (creator, video_id): group
        for (creator, video_id), group in _grouped(
            work, ["creator", "video_id", "sku_id"], qty=("qty", "sum")
        ).groupby(["creator", "video_id"], sort=False)
    }

    views = []
    for creator, qty in zip(totals["creator"], totals["qty"]):
        creator_videos = videos.get(creator)
        ranked_videos = () if creator_videos is None else tuple(
            CreatorVideo(
                id=str(video_id),
                qty=int(video_qty),
                date=str(date),
                skus=_ranked_qty(video_skus.get((creator, video_id)), "sku_id"),
            )
            for video_id, date, video_qty in zip(
                creator_videos["video_id"], creator_videos["date"], creator_videos["qty"]
            )
        )
        views.append(CreatorAggregate(
            id=str(creator),
            context_qty=int(qty),
            ranked_videos=ranked_videos,
            ranked_skus=_ranked_qty(skus.get(creator), "sku_id"),
        ))
    return tuple(views)


def _build_product_view(work: pd.DataFrame) -> tuple[ProductAggregate, ...]:
    totals = _grouped(work, ["sku_name"], qty=("qty", "sum"))
    variants = _breakdowns(
        _grouped(work, ["sku_name", "sku_id"], qty=("qty", "sum")),
        "sku_name",
    )
    return tuple(
        ProductAggregate(
            id=str(name),
            context_qty=int(qty),
            ranked_variants=_ranked_qty(variants.get(name), "sku_id"),
        )
        for name, qty in zip(totals["sku_name"], totals["qty"])
    )


@debug_watcher
def aggregate_records(
    rows: pd.DataFrame,
    keys: FieldKeys,
    labels: Mapping[str, str] | None = None,
) -> AggregatedViews:
    """
    Build the product, creator and video views of a record set.

    Args:
        rows: Filtered records.
        keys: Resolved field keys.
        labels: Optional overrides for the blank-value labels.

    Returns:
        AggregatedViews with every view and nested breakdown ranked by
        descending quantity.
    """
    if rows.empty:
        return AggregatedViews()

    work = prepare_work_frame(rows, keys, labels)
    views = AggregatedViews(
        product=_build_product_view(work),
        creator=_build_creator_view(work),
        video=_build_video_view(work),
    )
    logger.debug(
        f"Aggregated {len(work)} records into {len(views.product)} products, "
        f"{len(views.creator)} creators, {len(views.video)} videos"
    )
    return views
