"""
Matrix Analytics Report Runner - Batch Execution

Runs the dashboard pipeline without the browser UI:

1. Validate configuration
2. Load CSV exports (given files, or every CSV in the drop zone)
3. Resolve columns and report unresolved fields
4. Filter by the search term
5. Aggregate by product, creator and video; summarize metrics
6. Log the top entries of the selected view
7. Write the report for the selected view (CSV or Excel)

Usage:
    python main.py [--file <filepath> ...] [--search <terms>] [--view <mode>]

Examples:
    python main.py                                    # All CSVs in data/dropzone
    python main.py -f jan.csv -f feb.csv -m product   # Two exports, product view
    python main.py -s "widget alice" --format xlsx    # Filtered creator report as Excel
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from matrix_analytics.analytics import compute_dashboard
from matrix_analytics.column_resolver import get_resolution_statistics
from matrix_analytics.config import (
    DEFAULT_VIEW_MODE,
    DROPZONE_PATH,
    OUTPUT_PATH,
    VIEW_MODES,
    validate_config,
)
from matrix_analytics.exporter import export_csv, export_filename, export_xlsx
from matrix_analytics.file_loader import HeaderMismatchError, load_files, scan_dropzone
from matrix_analytics.metrics import share_of_total


def log(message: str, level: str = "INFO") -> None:
    """Simple logging function."""
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] [{level}] {message}")


def run_report(
    files: list[Path | str] | None = None,
    search_term: str = "",
    view_mode: str = DEFAULT_VIEW_MODE,
    output_path: Path | str | None = None,
    output_format: str = "csv",
    strict_headers: bool | None = None,
    top_n: int = 10,
) -> Path | None:
    """
    Run the complete report pipeline.

    Args:
        files: CSV files to load. If None or empty, scans the drop zone.
        search_term: Free-text search applied before aggregation.
        view_mode: "product", "creator" or "video".
        output_path: Output directory. If None, uses default.
        output_format: "csv" or "xlsx".
        strict_headers: Reject files whose header row differs from the first.
        top_n: Number of ranked entries to log.

    Returns:
        Path to the written report, or None if nothing was loaded.
    """
    start_time = datetime.now()
    log("=" * 60)
    log("MATRIX ANALYTICS REPORT")
    log("=" * 60)

    # Step 1: Validate configuration
    log("Step 1: Validating configuration...")
    is_valid, errors = validate_config()
    if not is_valid:
        log(f"Configuration errors: {errors}", "ERROR")
        return None
    log("Configuration validated successfully")

    # Step 2: Load data
    log("Step 2: Loading CSV exports...")
    paths = [Path(f) for f in files] if files else scan_dropzone(DROPZONE_PATH)
    if not paths:
        log(f"No CSV files given and none found in {DROPZONE_PATH}", "ERROR")
        return None

    dataset = load_files(paths, strict=strict_headers)
    if dataset.is_empty:
        log("No records loaded!", "ERROR")
        return None
    log(f"Loaded {len(dataset.rows)} rows from {len(dataset.sources)} file(s): {dataset.sources}")

    # Step 3: Column resolution
    log("Step 3: Resolving columns...")
    stats = get_resolution_statistics(dataset.field_keys)
    for field_name, entry in stats["mapping"].items():
        status = "OK" if entry["resolved"] else "UNRESOLVED"
        log(f"  {field_name:<9} -> {entry['header']} [{status}]")
    if stats["unresolved_fields"]:
        log(f"Unresolved fields read as blank: {stats['unresolved_fields']}", "WARN")

    # Steps 4-5: Filter, aggregate, summarize
    log(f"Step 4: Filtering and aggregating (search={search_term!r})...")
    snapshot = compute_dashboard(dataset, search_term)
    metrics = snapshot.metrics
    log(f"  Records: {snapshot.record_count} of {len(dataset.rows)}")
    log(f"  Orders: {metrics.orders}, Items: {metrics.qty}, "
        f"Creators: {metrics.creators}, Contents: {metrics.contents}")

    # Step 6: Top entries
    items = snapshot.ranked(view_mode)
    log(f"Step 5: Top {min(top_n, len(items))} of {len(items)} ({view_mode} view):")
    for rank, item in enumerate(items[:top_n], start=1):
        share = share_of_total(item.context_qty, metrics.qty)
        log(f"  {rank:>3}. {item.id} - {item.context_qty} ({share}%)")

    # Step 7: Write report
    output_dir = Path(output_path) if output_path else OUTPUT_PATH
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / export_filename(view_mode, ext=output_format)

    log(f"Step 6: Writing {output_format.upper()} report...")
    if output_format == "xlsx":
        output_file.write_bytes(export_xlsx(view_mode, items, metrics))
    else:
        output_file.write_text(export_csv(view_mode, items, metrics), encoding="utf-8")

    elapsed = (datetime.now() - start_time).total_seconds()
    log("=" * 60)
    log("REPORT COMPLETE")
    log("=" * 60)
    log(f"Report: {output_file}")
    log(f"Execution time: {elapsed:.1f} seconds")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="Matrix Analytics - creator / video / product sales report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                               # All CSVs in the drop zone
  python main.py -f a.csv -f b.csv             # Specific files
  python main.py -s "widget alice" -m video    # Filtered video view
  python main.py --format xlsx -o reports/     # Excel report in reports/
        """
    )

    parser.add_argument(
        "--file", "-f",
        action="append",
        default=None,
        help="CSV export to load (repeatable; scans the drop zone if omitted)"
    )
    parser.add_argument(
        "--search", "-s",
        type=str,
        default="",
        help="Space-separated keywords; every keyword must match"
    )
    parser.add_argument(
        "--view", "-m",
        choices=VIEW_MODES,
        default=DEFAULT_VIEW_MODE,
        help=f"View to report (default: {DEFAULT_VIEW_MODE})"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output directory (optional, uses default exports/ if not provided)"
    )
    parser.add_argument(
        "--format",
        choices=("csv", "xlsx"),
        default="csv",
        help="Report format (default: csv)"
    )
    parser.add_argument(
        "--strict-headers",
        action="store_true",
        help="Fail when files do not share the same header row"
    )
    parser.add_argument(
        "--top", "-n",
        type=int,
        default=10,
        help="Number of ranked entries to print (default: 10)"
    )

    args = parser.parse_args(argv)

    try:
        result = run_report(
            files=args.file,
            search_term=args.search,
            view_mode=args.view,
            output_path=args.output,
            output_format=args.format,
            strict_headers=args.strict_headers or None,
            top_n=args.top,
        )
    except HeaderMismatchError as e:
        log(f"Header mismatch: {e}", "ERROR")
        return 1
    except Exception as e:
        log(f"Report failed: {e}", "ERROR")
        import traceback
        traceback.print_exc()
        return 1

    return 0 if result is not None else 1


if __name__ == "__main__":
    sys.exit(main())
