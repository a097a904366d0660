"""
Visualization module for the Matrix Analytics dashboard.

Renders KPIs, the ranked product / creator / video cards, drill-down buttons
and video previews from a DashboardSnapshot.
"""

from __future__ import annotations

import re
from typing import Callable

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

from matrix_analytics.aggregation import CreatorAggregate, ProductAggregate, VideoAggregate
from matrix_analytics.analytics import DashboardSnapshot
from matrix_analytics.column_resolver import FieldKeys, get_resolution_statistics
from matrix_analytics.config import VIDEO_EMBED_URL, VIDEO_PAGE_URL
from matrix_analytics.metrics import share_of_total

# (view mode to switch to, token to append to the search)
DrillHandler = Callable[[str, str], None]

_VIDEO_ID = re.compile(r"\d{15,}")


def clean_video_id(content_id: str) -> str:
    """Extract the numeric video id (15+ digits) from a content id or URL."""
    match = _VIDEO_ID.search(content_id)
    return match.group(0) if match else content_id.strip()


def video_embed_url(content_id: str) -> str:
    return VIDEO_EMBED_URL.format(video_id=clean_video_id(content_id))


def video_page_url(content_id: str) -> str:
    return VIDEO_PAGE_URL.format(video_id=content_id)


def _fmt(num: int) -> str:
    return f"{num:,}"


def render_metrics(snapshot: DashboardSnapshot) -> None:
    metrics = snapshot.metrics
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Orders (filtered)", _fmt(metrics.orders))
    col2.metric("Items Sold (filtered)", _fmt(metrics.qty))
    col3.metric("Creators", _fmt(metrics.creators))
    col4.metric("Contents", _fmt(metrics.contents))


def render_resolution_report(keys: FieldKeys) -> None:
    """Show which header each logical field resolved to."""
    stats = get_resolution_statistics(keys)
    report = pd.DataFrame([
        {
            "Field": field_name,
            "Header": entry["header"],
            "Matched Alias": entry["alias"],
            "Resolved": "✓" if entry["resolved"] else "✗",
        }
        for field_name, entry in stats["mapping"].items()
    ])
    st.dataframe(report, use_container_width=True, hide_index=True)
    if stats["unresolved_fields"]:
        st.warning(
            f"Unresolved columns: {', '.join(stats['unresolved_fields'])}. "
            "Their values read as blank and group under the default labels."
        )


def _drill_button(label: str, mode: str, token: str, key: str, on_drill: DrillHandler) -> None:
    st.button(label, key=key, on_click=on_drill, args=(mode, token))


def render_product_card(item: ProductAggregate, total: int, rank: int, on_drill: DrillHandler) -> None:
    with st.container(border=True):
        left, right = st.columns([4, 1])
        with left:
            _drill_button(f"🛍️ {item.id}", "creator", item.id, f"product-{rank}", on_drill)
            variant_cols = st.columns(min(len(item.ranked_variants), 4) or 1)
            for i, variant in enumerate(item.ranked_variants):
                with variant_cols[i % len(variant_cols)]:
                    _drill_button(
                        f"# {variant.id} · {_fmt(variant.qty)}",
                        "creator", variant.id, f"product-{rank}-variant-{i}", on_drill,
                    )
        with right:
            st.metric("Items Sold", _fmt(item.context_qty))
            st.caption(f"Share of total: {share_of_total(item.context_qty, total)}%")


def render_creator_card(item: CreatorAggregate, total: int, rank: int, on_drill: DrillHandler) -> None:
    with st.container(border=True):
        head, skus_col, videos_col, stats_col = st.columns([2, 2, 3, 1])
        with head:
            st.subheader(item.id)
            st.caption(f"🎬 {_fmt(len(item.ranked_videos))} videos · 📦 {_fmt(item.context_qty)} items")
            _drill_button("Video details →", "video", item.id, f"creator-{rank}", on_drill)
        with skus_col:
            st.markdown("**SKU Breakdown**")
            st.dataframe(
                pd.DataFrame([{"SKU": s.id, "Qty": s.qty} for s in item.ranked_skus]),
                use_container_width=True,
                hide_index=True,
            )
        with videos_col:
            st.markdown("**Related Videos**")
            for video in item.ranked_videos:
                skus = ", ".join(f"{s.id}: {_fmt(s.qty)}" for s in video.skus)
                st.markdown(
                    f"[{video.id}]({video_page_url(video.id)}) · **{_fmt(video.qty)}**"
                    f"  \n<small>{video.date} · {skus}</small>",
                    unsafe_allow_html=True,
                )
        with stats_col:
            st.metric("Filtered Items", _fmt(item.context_qty))
            st.caption(f"Total: {_fmt(total)}")
            st.caption(f"Share: {share_of_total(item.context_qty, total)}%")


def render_video_card(item: VideoAggregate, total: int, rank: int, on_drill: DrillHandler) -> None:
    with st.container(border=True):
        preview, details = st.columns([1, 3])
        with preview:
            # Embeds load only on request
            if st.toggle("Load preview", key=f"video-{rank}-preview"):
                components.iframe(video_embed_url(item.id), width=320, height=570)
            else:
                st.caption(f"VIDEO ID: {clean_video_id(item.id)}")
        with details:
            top, stats = st.columns([3, 1])
            with top:
                st.markdown(f"[{item.id}]({video_page_url(item.id)})")
                st.caption(f"Date: {item.date or 'unknown'}")
                _drill_button(f"👤 {item.creator}", "creator", item.creator, f"video-{rank}", on_drill)
            with stats:
                st.metric("Items Sold", _fmt(item.context_qty))
                st.caption(f"Share: {share_of_total(item.context_qty, total)}%")

            st.markdown("**SKU Composition**")
            for i, sku in enumerate(item.ranked_skus):
                label = (
                    f"{sku.name} · ID {sku.id} · {_fmt(sku.qty)} sold "
                    f"({share_of_total(sku.qty, item.context_qty)}%)"
                )
                _drill_button(label, "creator", sku.id, f"video-{rank}-sku-{i}", on_drill)


_CARD_RENDERERS = {
    "product": render_product_card,
    "creator": render_creator_card,
    "video": render_video_card,
}


def render_dashboard(
    snapshot: DashboardSnapshot,
    mode: str,
    on_drill: DrillHandler,
    limit: int | None = None,
) -> None:
    """
    Render the ranked cards of one view mode.

    Args:
        snapshot: Current dashboard snapshot.
        mode: "product", "creator" or "video".
        on_drill: Callback receiving (view mode, search token) on drill-down.
        limit: Optional cap on the number of cards rendered.
    """
    items = snapshot.ranked(mode)
    if not items:
        st.info("No records match the current search.")
        return

    render = _CARD_RENDERERS[mode]
    shown = items[:limit] if limit else items
    for rank, item in enumerate(shown):
        render(item, snapshot.metrics.qty, rank, on_drill)

    if len(shown) < len(items):
        st.caption(f"Showing {len(shown)} of {len(items)} entries")
