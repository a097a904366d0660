"""
Export Formatter Module - Report Output for the Current View

Serializes the ranked aggregates of one view mode into a report:
- CSV text prefixed with a byte-order mark so spreadsheet tools detect UTF-8
- An .xlsx workbook with a formatted header row and numeric share column

Column layout per view mode:
- product: Product Name, Quantity, Share, SKU Breakdown
- creator: Creator, Quantity, Share, Video Count, SKU Breakdown, Video IDs
- video:   Content ID, Creator, Quantity, Share, Date, SKU Breakdown

The formatter only builds the payload; writing it to disk or offering it as a
download is left to the caller.
"""

from __future__ import annotations

import io
import re
from datetime import date
from typing import TYPE_CHECKING, Any

import xlsxwriter

from matrix_analytics.aggregation import (
    CreatorAggregate,
    ProductAggregate,
    VideoAggregate,
)
from matrix_analytics.config import EXPORT_COLUMNS, EXPORT_SETTINGS, MODE_LABELS, VIEW_MODES
from matrix_analytics.logger import debug_watcher
from matrix_analytics.metrics import Metrics, share_of_total, share_ratio

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_LINE_BREAK = re.compile(r"\r?\n|\r")
_NEEDS_QUOTES = (",", '"', "\n", "\r")


def _check_mode(mode: str) -> None:
    if mode not in VIEW_MODES:
        raise ValueError(f"Unknown view mode: {mode!r}. Expected one of {VIEW_MODES}")


def escape_csv_field(value: Any) -> str:
    """
    Render one CSV cell.

    Values are trimmed; a value containing a comma, quote or line break is
    quoted, with quotes doubled and line breaks replaced by a single space.
    """
    text = "" if value is None else str(value).strip()
    if any(token in text for token in _NEEDS_QUOTES):
        return '"' + _LINE_BREAK.sub(" ", text.replace('"', '""')) + '"'
    return text


def format_breakdown(entries: Iterable[Any], label: str = "id") -> str:
    """
    Flatten a ranked breakdown into "label(qty件) | label(qty件)".

    Args:
        entries: Ranked entries with a `qty` attribute.
        label: Attribute rendered before the quantity ("id" or "name").
    """
    unit = EXPORT_SETTINGS["qty_unit"]
    return EXPORT_SETTINGS["breakdown_separator"].join(
        f"{getattr(entry, label)}({entry.qty}{unit})" for entry in entries
    )


def _product_row(item: ProductAggregate, total: int) -> list[Any]:
    return [
        item.id,
        item.context_qty,
        f"{share_of_total(item.context_qty, total)}%",
        format_breakdown(item.ranked_variants),
    ]


def _creator_row(item: CreatorAggregate, total: int) -> list[Any]:
    separator = EXPORT_SETTINGS["breakdown_separator"]
    return [
        item.id,
        item.context_qty,
        f"{share_of_total(item.context_qty, total)}%",
        len(item.ranked_videos),
        format_breakdown(item.ranked_skus),
        separator.join(video.id for video in item.ranked_videos),
    ]


def _video_row(item: VideoAggregate, total: int) -> list[Any]:
    return [
        item.id,
        item.creator,
        item.context_qty,
        f"{share_of_total(item.context_qty, total)}%",
        item.date,
        format_breakdown(item.ranked_skus, label="name"),
    ]


_ROW_BUILDERS = {
    "product": _product_row,
    "creator": _creator_row,
    "video": _video_row,
}


def build_report_rows(mode: str, aggregates: Sequence[Any], metrics: Metrics) -> list[list[Any]]:
    """
    Build the report table (header row first) for a view mode.

    Raises:
        ValueError: If `mode` is not a known view mode.
    """
    _check_mode(mode)
    builder = _ROW_BUILDERS[mode]
    rows: list[list[Any]] = [list(EXPORT_COLUMNS[mode])]
    rows.extend(builder(item, metrics.qty) for item in aggregates)
    return rows


@debug_watcher
def export_csv(mode: str, aggregates: Sequence[Any], metrics: Metrics) -> str:
    """
    Render the current view as BOM-prefixed CSV text.

    An empty view produces a header-only report.
    """
    lines = [
        ",".join(escape_csv_field(value) for value in row)
        for row in build_report_rows(mode, aggregates, metrics)
    ]
    return EXPORT_SETTINGS["bom"] + "".join(f"{line}\n" for line in lines)


@debug_watcher
def export_xlsx(mode: str, aggregates: Sequence[Any], metrics: Metrics) -> bytes:
    """
    Render the current view as an .xlsx workbook.

    Same table as the CSV report, except the share column holds a numeric
    fraction formatted as a percentage.
    """
    table = build_report_rows(mode, aggregates, metrics)
    header, body = table[0], table[1:]
    share_col = header.index("Share")

    buffer = io.BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
    try:
        worksheet = workbook.add_worksheet(MODE_LABELS[mode])
        formats = {
            "header": workbook.add_format({
                "bold": True,
                "bg_color": "#4472C4",
                "font_color": "#FFFFFF",
                "border": 1,
                "align": "center",
                "valign": "vcenter",
                "text_wrap": True,
            }),
            "percentage": workbook.add_format({
                "num_format": EXPORT_SETTINGS["percentage_format"],
                "border": 1,
            }),
            "integer": workbook.add_format({
                "num_format": EXPORT_SETTINGS["integer_format"],
                "border": 1,
            }),
            "default": workbook.add_format({"border": 1}),
        }

        for col, title in enumerate(header):
            worksheet.write_string(0, col, title, formats["header"])

        for row_idx, (item, values) in enumerate(zip(aggregates, body), start=1):
            for col, value in enumerate(values):
                if col == share_col:
                    ratio = share_ratio(item.context_qty, metrics.qty)
                    worksheet.write_number(row_idx, col, ratio, formats["percentage"])
                elif isinstance(value, int):
                    worksheet.write_number(row_idx, col, value, formats["integer"])
                else:
                    worksheet.write_string(row_idx, col, str(value), formats["default"])

        # Auto-fit column widths from the header and a sample of rows
        for col, title in enumerate(header):
            sample = [len(str(values[col])) for values in body[:100]]
            worksheet.set_column(col, col, min(max([len(title), *sample]) + 2, 60))

        worksheet.freeze_panes(1, 0)
    finally:
        workbook.close()

    return buffer.getvalue()


def export_filename(mode: str, on: date | None = None, ext: str = "csv") -> str:
    """Build the report file name, e.g. Matrix_Analytics_Creators_2026-01-31.csv."""
    _check_mode(mode)
    day = on or date.today()
    return EXPORT_SETTINGS["filename_pattern"].format(
        mode=MODE_LABELS[mode],
        date=day.strftime(EXPORT_SETTINGS["date_format"]),
        ext=ext,
    )
