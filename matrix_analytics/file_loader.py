"""
File loader utilities: decoding and multi-file dataset assembly.

Decodes uploaded bytes or files on disk with an encoding fallback list, parses
each file, and merges all files into one Dataset. The first file's header row
is canonical. A later file with a different header row is re-resolved and its
resolved columns renamed to the canonical headers so records line up by
logical field; in strict mode the mismatch is rejected instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from matrix_analytics.column_resolver import FieldKeys, resolve_field_keys
from matrix_analytics.config import CSV_ENCODINGS, STRICT_HEADER_MATCH
from matrix_analytics.csv_parser import ParsedCsv, parse_csv_text
from matrix_analytics.logger import debug_watcher, get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

ALLOWED_SUFFIXES = (".csv",)


class HeaderMismatchError(ValueError):
    """Raised in strict mode when files do not share one header row."""


@dataclass
class Dataset:
    """All loaded records with their canonical headers and resolved keys."""

    headers: list[str]
    rows: pd.DataFrame
    field_keys: FieldKeys
    sources: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.rows.empty


def decode_bytes(data: bytes, encodings: list[str] | None = None) -> str:
    """
    Decode raw file bytes, trying each encoding in turn.

    Raises:
        ValueError: If no encoding can decode the data.
    """
    last_error: Exception | None = None
    for candidate in encodings or CSV_ENCODINGS:
        try:
            return data.decode(candidate)
        except UnicodeDecodeError as exc:
            last_error = exc
            continue
    raise ValueError("Failed to decode CSV bytes") from last_error


def read_text(path: Path | str, encodings: list[str] | None = None) -> str:
    return decode_bytes(Path(path).read_bytes(), encodings)


def _is_hidden_file(path: Path) -> bool:
    """Check if file should be skipped (hidden/system files)."""
    name = path.name.lower()
    return name.startswith(".") or name in ["thumbs.db", "desktop.ini"]


def scan_dropzone(path: Path | str) -> list[Path]:
    """
    List the CSV files of a directory in name order.

    Args:
        path: Directory to scan (not recursive).

    Returns:
        Sorted list of CSV paths; empty if the directory does not exist.
    """
    dropzone = Path(path)
    if not dropzone.is_dir():
        logger.warning(f"Dropzone directory not found: {dropzone}")
        return []
    return sorted(
        p for p in dropzone.iterdir()
        if p.is_file() and not _is_hidden_file(p) and p.suffix.lower() in ALLOWED_SUFFIXES
    )


def _align_to_canonical(
    name: str,
    parsed: ParsedCsv,
    canonical_keys: FieldKeys,
) -> pd.DataFrame:
    """Rename a file's resolved columns to the canonical header of each field."""
    file_keys = resolve_field_keys(parsed.headers)
    canonical = {r.field: r for r in canonical_keys.resolutions}
    renames: dict[str, str] = {}

    for resolution in file_keys.resolutions:
        target = canonical[resolution.field]
        if not resolution.resolved:
            continue
        if not target.resolved:
            logger.warning(
                f"{name}: column '{resolution.header}' resolves '{resolution.field}', "
                "but the first file has no such column; it is kept under its own name."
            )
            continue
        if resolution.header == target.header:
            continue
        if target.header in parsed.rows.columns:
            logger.warning(
                f"{name}: cannot rename '{resolution.header}' to '{target.header}' "
                "because that column already exists."
            )
            continue
        renames[resolution.header] = target.header

    if renames:
        logger.info(f"{name}: aligned columns {renames}")
    return parsed.rows.rename(columns=renames)


@debug_watcher
def load_dataset(
    sources: Iterable[tuple[str, str]],
    *,
    strict: bool | None = None,
) -> Dataset:
    """
    Parse and merge CSV texts into one Dataset.

    Args:
        sources: (name, text) pairs in load order.
        strict: Reject header mismatches instead of aligning them.
                Defaults to config.STRICT_HEADER_MATCH.

    Returns:
        Dataset with canonical headers, all records and resolved keys.

    Raises:
        HeaderMismatchError: In strict mode, when a file's header row differs
            from the first file's.
    """
    strict = STRICT_HEADER_MATCH if strict is None else strict

    canonical_headers: list[str] | None = None
    canonical_keys: FieldKeys | None = None
    frames: list[pd.DataFrame] = []
    names: list[str] = []

    for name, text in sources:
        parsed = parse_csv_text(text)
        if not parsed.headers:
            logger.debug(f"Skipping empty file: {name}")
            continue

        if canonical_headers is None:
            canonical_headers = parsed.headers
            canonical_keys = resolve_field_keys(canonical_headers)
            frames.append(parsed.rows)
        elif parsed.headers == canonical_headers:
            frames.append(parsed.rows)
        elif strict:
            raise HeaderMismatchError(
                f"{name}: header row {parsed.headers} differs from {canonical_headers}"
            )
        else:
            logger.warning(f"{name}: header row differs from the first file; re-resolving columns")
            frames.append(_align_to_canonical(name, parsed, canonical_keys))

        names.append(name)
        logger.info(f"Processed: {name} ({parsed.row_count} rows)")

    if canonical_headers is None:
        return Dataset(
            headers=[],
            rows=pd.DataFrame(dtype=object),
            field_keys=resolve_field_keys([]),
            sources=names,
        )

    rows = pd.concat(frames, ignore_index=True, sort=False).fillna("")
    return Dataset(
        headers=canonical_headers,
        rows=rows,
        field_keys=canonical_keys,
        sources=names,
    )


def load_files(
    paths: Iterable[Path | str],
    *,
    strict: bool | None = None,
    encodings: list[str] | None = None,
) -> Dataset:
    """
    Load CSV files from disk into one Dataset.

    Unreadable files are logged and skipped.
    """
    sources: list[tuple[str, str]] = []
    for path in paths:
        file_path = Path(path)
        try:
            sources.append((file_path.name, read_text(file_path, encodings)))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load {file_path}: {e}")
    return load_dataset(sources, strict=strict)


def load_uploads(
    uploads: Iterable[tuple[str, bytes]],
    *,
    strict: bool | None = None,
) -> Dataset:
    """Load (name, bytes) pairs, e.g. from a browser upload widget."""
    sources: list[tuple[str, str]] = []
    for name, data in uploads:
        try:
            sources.append((name, decode_bytes(data)))
        except ValueError as e:
            logger.warning(f"Failed to decode {name}: {e}")
    return load_dataset(sources, strict=strict)
