"""Tests for document text extraction."""

from pathlib import Path

import pytest

from equityplan.exceptions import DocumentParseError
from equityplan.parsing.documents import extract_document_text


class TestExtractDocumentText:
    def test_csv_rows_are_flattened(self, tmp_path: Path):
        path = tmp_path / "grants.csv"
        path.write_text("Grant ID,Type,Shares\nA-1,RSU,400\n,,\nA-2,ISO,1000\n")
        text = extract_document_text(path)
        assert text.splitlines() == [
            "Grant ID | Type | Shares",
            "A-1 | RSU | 400",
            "A-2 | ISO | 1000",
        ]

    def test_tsv(self, tmp_path: Path):
        path = tmp_path / "grants.tsv"
        path.write_text("Grant ID\tShares\nA-1\t400\n")
        assert extract_document_text(path).splitlines()[1] == "A-1 | 400"

    def test_plain_text(self, tmp_path: Path):
        path = tmp_path / "notice.txt"
        path.write_text("Notice of Grant\nGrant ID: A-1\n")
        assert "Grant ID: A-1" in extract_document_text(path)

    def test_unsupported_suffix(self, tmp_path: Path):
        path = tmp_path / "grants.xlsx"
        path.write_bytes(b"PK")
        with pytest.raises(DocumentParseError, match="Unsupported file type"):
            extract_document_text(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DocumentParseError, match="File not found"):
            extract_document_text(tmp_path / "missing.txt")

    def test_empty_document(self, tmp_path: Path):
        path = tmp_path / "blank.txt"
        path.write_text("   \n")
        with pytest.raises(DocumentParseError, match="No extractable text"):
            extract_document_text(path)

    def test_corrupt_pdf(self, tmp_path: Path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"not a pdf")
        with pytest.raises(DocumentParseError, match="PDF could not be read"):
            extract_document_text(path)
