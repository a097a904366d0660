"""Matrix Analytics: Streamlit dashboard for creator / video / product sales exports."""

import datetime
from pathlib import Path

import streamlit as st

from matrix_analytics.analytics import compute_dashboard
from matrix_analytics.column_resolver import get_resolution_statistics
from matrix_analytics.config import DEFAULT_VIEW_MODE, MODE_LABELS, VIEW_MODES, ensure_directories
from matrix_analytics.exporter import export_csv, export_filename, export_xlsx
from matrix_analytics.file_loader import HeaderMismatchError, load_uploads
from matrix_analytics.filters import append_search_token
from matrix_analytics.logger import LOG_FILE, get_logger
from matrix_analytics.visuals import render_dashboard, render_metrics, render_resolution_report

# Get logger
logger = get_logger(__name__)

ensure_directories()

st.set_page_config(
    page_title="Matrix Analytics",
    layout="wide",
)

# Initialize session state
if "dataset" not in st.session_state:
    st.session_state.dataset = None
if "search_term" not in st.session_state:
    st.session_state.search_term = ""
if "view_mode" not in st.session_state:
    st.session_state.view_mode = DEFAULT_VIEW_MODE
if "processing_log" not in st.session_state:
    st.session_state.processing_log = []


def log_ingestion(files: list[str], rows: int) -> None:
    st.session_state.processing_log.append(
        {
            "timestamp": datetime.datetime.now().isoformat(),
            "files": list(files),
            "rows": rows,
        }
    )


def drill_into(mode: str, token: str) -> None:
    """Switch view and narrow the search to a related entity."""
    st.session_state.view_mode = mode
    st.session_state.search_term = append_search_token(st.session_state.search_term, token)


def clear_search() -> None:
    st.session_state.search_term = ""


# --- Sidebar: Data Source ---

st.sidebar.header("Data Source")

uploaded = st.sidebar.file_uploader(
    "Upload CSV exports",
    type=["csv"],
    accept_multiple_files=True,
)
strict_headers = st.sidebar.checkbox(
    "Require identical headers across files",
    value=False,
    help="Reject files whose header row differs from the first file instead of aligning their columns.",
)

if uploaded and st.sidebar.button("Load into session", type="primary", use_container_width=True):
    try:
        dataset = load_uploads(((f.name, f.getvalue()) for f in uploaded), strict=strict_headers)
    except HeaderMismatchError as e:
        logger.error(f"Upload rejected: {e}")
        st.sidebar.error(str(e))
    else:
        st.session_state.dataset = dataset
        st.session_state.search_term = ""
        log_ingestion(dataset.sources, len(dataset.rows))
        st.sidebar.success(f"Loaded {len(dataset.sources)} file(s), {len(dataset.rows):,} rows.")

dataset = st.session_state.dataset

if dataset is not None:
    with st.sidebar.expander("Column Resolution", expanded=bool(dataset.field_keys.unresolved)):
        stats = get_resolution_statistics(dataset.field_keys)
        st.caption(f"{stats['resolved']} of {stats['total_fields']} fields resolved")
        render_resolution_report(dataset.field_keys)

# Debug Mode section
st.sidebar.divider()
enable_debug = st.sidebar.checkbox("Enable Verbose Debugging", value=False)

if enable_debug:
    with st.sidebar.expander("Debug Log", expanded=True):
        if Path(LOG_FILE).exists():
            try:
                with open(LOG_FILE, "r", encoding="utf-8") as f:
                    lines = f.readlines()
                    # Show last 50 lines
                    last_lines = lines[-50:] if len(lines) > 50 else lines
                    if last_lines:
                        st.code("".join(last_lines), language="text")
                    else:
                        st.info("Debug log is empty.")
            except OSError as e:
                st.error(f"Error reading debug log: {e}")
        else:
            st.info("Debug log file not found. Load data to generate logs.")

# --- Main area ---

st.title("Matrix Analytics")

if dataset is None or dataset.is_empty:
    st.info(
        "👋 Welcome! Upload one or more CSV exports in the sidebar.\n\n"
        "Then:\n"
        "1. Type space-separated keywords (product, creator, SKU, content id) to narrow the data\n"
        "2. Switch between the Products, Creators and Videos views\n"
        "3. Click a product, creator or SKU to drill into it\n"
        "4. Download the current view as CSV or Excel"
    )
else:
    view_mode = st.radio(
        "View",
        VIEW_MODES,
        format_func=lambda mode: MODE_LABELS[mode],
        horizontal=True,
        key="view_mode",
    )

    search_col, clear_col = st.columns([12, 1])
    with search_col:
        st.text_input(
            "Search",
            key="search_term",
            placeholder="Keywords separated by spaces: product name, creator... (all must match)",
            label_visibility="collapsed",
        )
    with clear_col:
        st.button("✕", on_click=clear_search, disabled=not st.session_state.search_term)

    snapshot = compute_dashboard(dataset, st.session_state.search_term)
    render_metrics(snapshot)

    items = snapshot.ranked(view_mode)
    csv_col, xlsx_col, _ = st.columns([1, 1, 4])
    with csv_col:
        st.download_button(
            "Export CSV",
            data=export_csv(view_mode, items, snapshot.metrics).encode("utf-8"),
            file_name=export_filename(view_mode),
            mime="text/csv",
            disabled=not items,
            use_container_width=True,
        )
    with xlsx_col:
        st.download_button(
            "Export Excel",
            data=export_xlsx(view_mode, items, snapshot.metrics) if items else b"",
            file_name=export_filename(view_mode, ext="xlsx"),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            disabled=not items,
            use_container_width=True,
        )

    st.divider()
    render_dashboard(snapshot, view_mode, on_drill=drill_into)

# Processing log
if st.session_state.processing_log:
    with st.expander("Processing log"):
        for entry in reversed(st.session_state.processing_log):
            st.json(entry)
