"""
CSV Parser Module - Quote-Aware Text to Records

Converts the raw text of one export file into a canonical header list and a
DataFrame of string records.

Rules:
- "\\r\\n" and "\\r" are normalized to "\\n"; blank records are skipped
- A comma separates fields only outside quotes
- Inside a quoted field a doubled quote is one literal quote
- Any other quote toggles the in-quote state and is dropped
- Only a quote opening a field may span lines, and only if it is closed later
- Every field is trimmed; header fields also lose any byte-order mark
- Short rows are padded with "" and surplus fields are dropped

Example:
    'Creator,Qty\\n"Smith, J",3' -> headers=["Creator", "Qty"],
                                    rows=[{"Creator": "Smith, J", "Qty": "3"}]
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

BOM = "\ufeff"
QUOTE = '"'
SEPARATOR = ","


@dataclass
class ParsedCsv:
    """Header list and records parsed from one file."""

    headers: list[str] = field(default_factory=list)
    rows: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def _read_record(
    text: str,
    start: int,
    allow_multiline: bool,
) -> tuple[list[str], int, bool, bool]:
    """
    Read one record starting at `start`.

    A newline inside quotes belongs to the field only when the quote opened
    at the start of the field and `allow_multiline` is set; any other newline
    ends the record.

    Returns:
        (fields, end position, has content, ended inside an open multi-line quote)
    """
    fields: list[str] = []
    current: list[str] = []
    in_quote = False
    multiline_quote = False
    has_content = False

    i = start
    length = len(text)
    while i < length:
        char = text[i]

        if char == QUOTE:
            has_content = True
            if in_quote and i + 1 < length and text[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 2
                continue
            if not in_quote:
                multiline_quote = allow_multiline and not "".join(current).strip()
            in_quote = not in_quote
        elif char == SEPARATOR and not in_quote:
            has_content = True
            fields.append("".join(current))
            current = []
        elif char == "\n":
            if in_quote and multiline_quote:
                current.append(char)
            else:
                fields.append("".join(current))
                return fields, i + 1, has_content, False
        else:
            if not char.isspace():
                has_content = True
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields, length, has_content, in_quote and multiline_quote


def split_records(text: str) -> list[list[str]]:
    """
    Split CSV text into records of untrimmed field values.

    A field whose opening quote starts the field may span lines. A quote
    opened mid-field, or one never closed before the end of the text, ends
    with its line, so a stray quote only damages its own record. Records made
    only of whitespace are dropped.

    Args:
        text: Raw file text.

    Returns:
        List of records, each a list of field strings.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    records: list[list[str]] = []
    allow_multiline = True
    position = 0
    while position < len(text):
        fields, end, has_content, unterminated = _read_record(text, position, allow_multiline)
        if unterminated:
            # Unclosed quote ran to the end of the text; read this and later records line by line
            allow_multiline = False
            fields, end, has_content, _ = _read_record(text, position, allow_multiline)
        if has_content:
            records.append(fields)
        position = end

    return records


def clean_header(value: str) -> str:
    """Trim a header cell and remove byte-order marks."""
    return value.strip().replace(BOM, "").strip()


def parse_csv_text(text: str) -> ParsedCsv:
    """
    Parse the text of one CSV file.

    Never raises on malformed content: short rows get blank fields and a
    stray or unbalanced quote is cut off at the end of its line.

    Args:
        text: Raw file text (UTF-8 decoded, BOM allowed).

    Returns:
        ParsedCsv with the header list and one string record per data row.
    """
    records = split_records(text)
    if not records:
        return ParsedCsv()

    headers = [clean_header(value) for value in records[0]]
    # Duplicate header names collapse to one column; the later value wins
    columns = list(dict.fromkeys(headers))

    rows = []
    for values in records[1:]:
        record: dict[str, str] = {}
        for position, header in enumerate(headers):
            record[header] = values[position].strip() if position < len(values) else ""
        rows.append(record)

    frame = pd.DataFrame(rows, columns=columns, dtype=object)
    return ParsedCsv(headers=headers, rows=frame)
