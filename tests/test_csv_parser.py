"""
Unit tests for the quote-aware CSV parser.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from matrix_analytics.csv_parser import ParsedCsv, parse_csv_text, split_records


class TestParseCsvText:
    """Tests for parse_csv_text."""

    def test_basic_rows(self):
        result = parse_csv_text("Creator,Qty\nalice,3\nbob,5\n")
        assert result.headers == ["Creator", "Qty"]
        assert result.row_count == 2
        assert result.rows.iloc[0].to_dict() == {"Creator": "alice", "Qty": "3"}
        assert result.rows.iloc[1].to_dict() == {"Creator": "bob", "Qty": "5"}

    def test_row_count_ignores_blank_lines(self):
        text = "a,b\n\n1,2\n   \n3,4\n\n"
        result = parse_csv_text(text)
        non_blank_lines = [line for line in text.split("\n") if line.strip()]
        assert result.row_count == len(non_blank_lines) - 1

    def test_every_row_has_header_count_fields(self):
        result = parse_csv_text("a,b,c\n1\n1,2\n1,2,3\n")
        assert list(result.rows.columns) == ["a", "b", "c"]
        assert result.rows.shape == (3, 3)

    def test_short_rows_padded_with_blank(self):
        result = parse_csv_text("a,b,c\n1\n")
        assert result.rows.iloc[0].to_dict() == {"a": "1", "b": "", "c": ""}

    def test_surplus_fields_dropped(self):
        result = parse_csv_text("a,b\n1,2,3,4\n")
        assert result.rows.iloc[0].to_dict() == {"a": "1", "b": "2"}

    def test_quoted_comma(self):
        result = parse_csv_text('Name,Qty\n"Widget, Large",2\n')
        assert result.rows.iloc[0]["Name"] == "Widget, Large"
        assert result.rows.iloc[0]["Qty"] == "2"

    def test_doubled_quotes_unescaped(self):
        result = parse_csv_text('Name\n"He said ""hi"""\n')
        assert result.rows.iloc[0]["Name"] == 'He said "hi"'

    def test_quoted_empty_field(self):
        result = parse_csv_text('a,b,c\n1,"",3\n')
        assert result.rows.iloc[0].to_dict() == {"a": "1", "b": "", "c": "3"}

    def test_embedded_newline(self):
        result = parse_csv_text('Name,Note\n"Widget","line1\nline2"\nGadget,x\n')
        assert result.row_count == 2
        assert result.rows.iloc[0]["Note"] == "line1\nline2"
        assert result.rows.iloc[1]["Name"] == "Gadget"

    def test_embedded_crlf_normalized(self):
        result = parse_csv_text('Name,Note\r\n"A","x\r\ny"\r\n')
        assert result.rows.iloc[0]["Note"] == "x\ny"

    def test_crlf_line_endings(self):
        result = parse_csv_text("a,b\r\n1,2\r\n3,4\r\n")
        assert result.row_count == 2
        assert result.rows.iloc[1].to_dict() == {"a": "3", "b": "4"}

    def test_quote_toggles_mid_field(self):
        result = parse_csv_text('a,b\nab"c,d"e,f\n')
        assert result.rows.iloc[0].to_dict() == {"a": "abc,de", "b": "f"}

    def test_fields_trimmed(self):
        result = parse_csv_text(" a , b \n  1 ,  two  \n")
        assert result.headers == ["a", "b"]
        assert result.rows.iloc[0].to_dict() == {"a": "1", "b": "two"}

    def test_header_bom_stripped(self):
        result = parse_csv_text("\ufeffContent ID,Qty\nv1,1\n")
        assert result.headers == ["Content ID", "Qty"]
        assert result.rows.iloc[0]["Content ID"] == "v1"

    def test_duplicate_header_later_value_wins(self):
        result = parse_csv_text("a,b,a\n1,2,3\n")
        assert result.headers == ["a", "b", "a"]
        assert list(result.rows.columns) == ["a", "b"]
        assert result.rows.iloc[0].to_dict() == {"a": "3", "b": "2"}

    def test_header_only(self):
        result = parse_csv_text("a,b\n")
        assert result.headers == ["a", "b"]
        assert result.row_count == 0
        assert list(result.rows.columns) == ["a", "b"]

    def test_empty_text(self):
        result = parse_csv_text("")
        assert isinstance(result, ParsedCsv)
        assert result.headers == []
        assert result.row_count == 0

    def test_unbalanced_quote_ends_with_its_line(self):
        result = parse_csv_text('a,b\n"open,1\n2,3\n')
        assert result.row_count == 2
        assert result.rows.iloc[0].to_dict() == {"a": "open,1", "b": ""}
        assert result.rows.iloc[1].to_dict() == {"a": "2", "b": "3"}

    def test_stray_quote_mid_field_keeps_later_rows(self):
        text = (
            "Content ID,Creator,Product Name,Seller SKU,Quantity\n"
            'v1,alice,Monitor 27" wide,s1,1\n'
            "v2,bob,Widget,s2,5\n"
            "v3,carol,Gadget,s3,7\n"
        )
        result = parse_csv_text(text)
        assert result.row_count == 3
        assert result.rows.iloc[0]["Product Name"] == "Monitor 27 wide,s1,1"
        assert result.rows.iloc[1].to_dict() == {
            "Content ID": "v2",
            "Creator": "bob",
            "Product Name": "Widget",
            "Seller SKU": "s2",
            "Quantity": "5",
        }
        assert result.rows["Quantity"].tolist() == ["", "5", "7"]

    def test_multiline_field_before_stray_quote(self):
        text = 'Name,Note\nA,"x\ny"\nB,"open\nC,z\n'
        result = parse_csv_text(text)
        assert result.rows["Name"].tolist() == ["A", "B", "C"]
        assert result.rows["Note"].tolist() == ["x\ny", "open", "z"]

    def test_values_are_strings(self):
        result = parse_csv_text("Qty\n0012\n")
        assert result.rows.iloc[0]["Qty"] == "0012"


class TestSplitRecords:
    """Tests for split_records."""

    def test_separator_only_line_kept(self):
        assert split_records("a,b\n,\n") == [["a", "b"], ["", ""]]

    def test_trailing_text_without_newline(self):
        assert split_records("a\nb") == [["a"], ["b"]]
