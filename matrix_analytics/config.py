"""
Configuration Module - Centralized Configuration Hub

Contains all configurable parameters for the Matrix Analytics dashboard:
- Directory paths
- Column alias table for header resolution
- Default labels for blank grouping keys
- View modes and export layout settings
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


# ============================================================================
# DIRECTORY PATHS
# ============================================================================

# Project root directory (parent of matrix_analytics/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Input directory scanned by the CLI when no files are given
DROPZONE_PATH = PROJECT_ROOT / "data" / "dropzone"

# Output directory for exported reports
OUTPUT_PATH = PROJECT_ROOT / "exports"

# Configuration file directory
CONFIG_DIR = PROJECT_ROOT / "config"


# ============================================================================
# INPUT SETTINGS
# ============================================================================

# Tried in order when decoding uploaded bytes; latin-1 never fails so it goes last
CSV_ENCODINGS = ["utf-8", "gb18030", "latin-1"]

# When True, a later file whose header row differs from the first file's is
# rejected instead of being re-resolved and aligned by logical field.
STRICT_HEADER_MATCH = False


# ============================================================================
# FIELD ALIASES
# ============================================================================
# Logical field -> ordered alias substrings (case-insensitive).
# The first alias wins over later ones; the first alias is also the fallback
# key when no header matches.
#
# Note: Aliases are loaded from JSON files if available (see bottom of file)
# Default values are defined in _FIELD_ALIASES_DEFAULT below.

LOGICAL_FIELDS = ("id", "date", "order", "creator", "sku_name", "qty", "sku_id")


# ============================================================================
# VIEW MODES
# ============================================================================

VIEW_MODES = ("product", "creator", "video")
DEFAULT_VIEW_MODE = "creator"

MODE_LABELS = {
    "product": "Products",
    "creator": "Creators",
    "video": "Videos",
}


# ============================================================================
# OUTPUT FORMAT SETTINGS
# ============================================================================

EXPORT_SETTINGS = {
    "filename_pattern": "Matrix_Analytics_{mode}_{date}.{ext}",
    "date_format": "%Y-%m-%d",
    "breakdown_separator": " | ",
    "qty_unit": "件",
    "bom": "\ufeff",
    "percentage_format": "0.0%",
    "integer_format": "#,##0",
}

EXPORT_COLUMNS = {
    "product": ["Product Name", "Quantity", "Share", "SKU Breakdown"],
    "creator": ["Creator", "Quantity", "Share", "Video Count", "SKU Breakdown", "Video IDs"],
    "video": ["Content ID", "Creator", "Quantity", "Share", "Date", "SKU Breakdown"],
}

# Video preview endpoints (cosmetic, used by the dashboard only)
VIDEO_EMBED_URL = "https://www.tiktok.com/embed/v2/{video_id}"
VIDEO_PAGE_URL = "https://www.tiktok.com/@/video/{video_id}"


# ============================================================================
# CONFIG LOADING AND VALIDATION
# ============================================================================

def _load_field_aliases_from_json(defaults: dict[str, list[str]]) -> dict[str, list[str]]:
    """Load field aliases from JSON file, merge with defaults."""
    aliases_file = CONFIG_DIR / "field_aliases.json"
    if aliases_file.exists():
        try:
            with open(aliases_file, "r", encoding="utf-8") as f:
                data = json.load(f)
                if "aliases" in data:
                    merged = {field: list(values) for field, values in defaults.items()}
                    for field, values in data["aliases"].items():
                        if field in merged and isinstance(values, list) and values:
                            merged[field] = [str(v) for v in values]
                    return merged
        except Exception as e:
            import warnings
            warnings.warn(f"Failed to load field aliases from JSON: {e}. Using defaults.")
    return defaults


def _load_default_labels_from_json(defaults: dict[str, str]) -> dict[str, str]:
    """Load blank-key labels from JSON file, merge with defaults."""
    labels_file = CONFIG_DIR / "default_labels.json"
    if labels_file.exists():
        try:
            with open(labels_file, "r", encoding="utf-8") as f:
                data = json.load(f)
                if "labels" in data:
                    merged = defaults.copy()
                    merged.update({k: str(v) for k, v in data["labels"].items() if k in defaults})
                    return merged
        except Exception as e:
            import warnings
            warnings.warn(f"Failed to load default labels from JSON: {e}. Using defaults.")
    return defaults


_FIELD_ALIASES_DEFAULT = {
    "id": ["内容ID", "Content ID", "video_id"],
    "date": ["日期", "Date", "created_time"],
    "order": ["订单", "Order ID", "order_id"],
    "creator": ["达人", "username", "Handle"],
    "sku_name": ["商品名称", "Product Name", "title"],
    "qty": ["件数", "Quantity", "Sold", "销量"],
    "sku_id": ["Seller Sku", "SKU ID"],
}

# Substituted when the resolved value of a grouping field is blank
_DEFAULT_LABELS_DEFAULT = {
    "id": "Unknown ID",
    "creator": "Unknown Creator",
    "sku_id": "No SKU",
    "sku_name": "Unnamed Product",
}

# Load from JSON if available, otherwise use defaults
FIELD_ALIASES = _load_field_aliases_from_json(_FIELD_ALIASES_DEFAULT)
DEFAULT_LABELS = _load_default_labels_from_json(_DEFAULT_LABELS_DEFAULT)


def load_config() -> dict[str, Any]:
    """
    Load and return all configuration as a dictionary.

    Returns:
        Dictionary with all configuration values.
    """
    return {
        "project_root": PROJECT_ROOT,
        "dropzone_path": DROPZONE_PATH,
        "output_path": OUTPUT_PATH,
        "config_dir": CONFIG_DIR,
        "csv_encodings": CSV_ENCODINGS,
        "strict_header_match": STRICT_HEADER_MATCH,
        "field_aliases": FIELD_ALIASES,
        "default_labels": DEFAULT_LABELS,
        "view_modes": VIEW_MODES,
        "default_view_mode": DEFAULT_VIEW_MODE,
        "export_settings": EXPORT_SETTINGS,
        "export_columns": EXPORT_COLUMNS,
    }


def validate_config() -> tuple[bool, list[str]]:
    """
    Validate configuration settings.

    Returns:
        Tuple of (is_valid, list_of_errors).
    """
    errors = []

    # Every logical field needs at least one non-empty alias
    for field in LOGICAL_FIELDS:
        aliases = FIELD_ALIASES.get(field)
        if not aliases:
            errors.append(f"No aliases configured for field '{field}'")
        elif any(not str(alias).strip() for alias in aliases):
            errors.append(f"Blank alias configured for field '{field}'")

    # Blank-key labels must be non-empty and distinct per field
    labels = list(DEFAULT_LABELS.values())
    if any(not label.strip() for label in labels):
        errors.append("Default labels must be non-empty")
    if len(set(labels)) != len(labels):
        errors.append(f"Default labels must be distinct: {labels}")

    if DEFAULT_VIEW_MODE not in VIEW_MODES:
        errors.append(f"Default view mode '{DEFAULT_VIEW_MODE}' is not one of {VIEW_MODES}")

    for mode in VIEW_MODES:
        if mode not in EXPORT_COLUMNS:
            errors.append(f"Missing export columns for view mode '{mode}'")

    return len(errors) == 0, errors


def ensure_directories() -> None:
    """Create required directories if they don't exist."""
    DROPZONE_PATH.mkdir(parents=True, exist_ok=True)
    OUTPUT_PATH.mkdir(parents=True, exist_ok=True)
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


if __name__ == "__main__":
    # Validate configuration on direct execution
    print("=" * 60)
    print("Configuration Validation")
    print("=" * 60)

    is_valid, errors = validate_config()

    if is_valid:
        print("[OK] Configuration is valid")
    else:
        print("[ERROR] Configuration has errors:")
        for error in errors:
            print(f"  - {error}")

    print("\nDirectory paths:")
    print(f"  Project Root: {PROJECT_ROOT}")
    print(f"  Dropzone: {DROPZONE_PATH}")
    print(f"  Output: {OUTPUT_PATH}")

    print("\nField aliases:")
    for field, aliases in FIELD_ALIASES.items():
        print(f"  {field}: {aliases}")
