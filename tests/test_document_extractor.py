"""
Tests for document text extraction.
"""

import pytest

from app.core.document_extractor import DocumentExtractor, resolve_format
from app.core.exceptions import ExtractionError
from app.models.pipeline import DocumentFormat


@pytest.fixture
def extractor():
    return DocumentExtractor()


class TestPdfExtraction:
    """Test PDF extraction with pdfplumber."""

    def test_extracts_page_text(self, extractor, sample_pdf_bytes):
        """Page text is extracted with a page marker."""
        document = extractor.extract(sample_pdf_bytes, DocumentFormat.PDF)

        assert "--- Page 1 ---" in document.text
        assert "MRI LUMBAR SPINE" in document.text
        assert document.page_count == 1
        assert document.byte_length == len(sample_pdf_bytes)
        assert document.document_format == DocumentFormat.PDF

    def test_extracts_every_page(self, extractor, multi_page_pdf_bytes):
        """Each page gets its own marker."""
        document = extractor.extract(multi_page_pdf_bytes, DocumentFormat.PDF)

        assert document.page_count == 2
        assert "Page one content" in document.text
        assert "--- Page 2 ---" in document.text
        assert "Page two content" in document.text

    def test_blank_pdf_is_empty_not_error(self, extractor, empty_pdf_bytes):
        """A PDF without text extracts to an empty document."""
        document = extractor.extract(empty_pdf_bytes, DocumentFormat.PDF)

        assert document.text == ""
        assert document.is_empty

    def test_reads_staged_file(self, extractor, sample_pdf_bytes, tmp_path):
        """A staged path is read the same way as raw bytes."""
        path = tmp_path / "report.pdf"
        path.write_bytes(sample_pdf_bytes)

        document = extractor.extract(path, DocumentFormat.PDF)

        assert "MRI LUMBAR SPINE" in document.text
        assert document.byte_length == len(sample_pdf_bytes)

    def test_corrupt_pdf_raises(self, extractor):
        """Bytes that are not a PDF raise ExtractionError."""
        with pytest.raises(ExtractionError):
            extractor.extract(b"this is not a pdf at all", DocumentFormat.PDF)

    def test_truncated_pdf_raises(self, extractor, sample_pdf_bytes):
        """A PDF cut short raises ExtractionError."""
        with pytest.raises(ExtractionError):
            extractor.extract(sample_pdf_bytes[:20], DocumentFormat.PDF)

    def test_tables_to_text(self, extractor):
        """Table rows are flattened to pipe-separated lines."""
        tables = [[["Glucose", "95", None], ["HbA1c", "5.4", "%"]], []]

        assert extractor._tables_to_text(tables) == "Glucose | 95 | \nHbA1c | 5.4 | %"


class TestTextExtraction:
    """Test plain text reports."""

    def test_utf8(self, extractor):
        document = extractor.extract("Hémoglobine: 14 g/dL".encode("utf-8"), DocumentFormat.TEXT)
        assert document.text == "Hémoglobine: 14 g/dL"

    def test_latin1_fallback(self, extractor):
        document = extractor.extract("Hémoglobine".encode("latin-1"), DocumentFormat.TEXT)
        assert document.text == "Hémoglobine"

    def test_binary_content_raises(self, extractor):
        """Binary data declared as text raises ExtractionError."""
        with pytest.raises(ExtractionError):
            extractor.extract(b"\x00\x01\x02binary", DocumentFormat.TEXT)


class TestResolveFormat:
    """Test declared format resolution."""

    def test_extension_wins(self):
        assert resolve_format("labs.txt", "application/pdf") == DocumentFormat.TEXT
        assert resolve_format("scan.PDF", "text/plain") == DocumentFormat.PDF

    def test_content_type(self):
        assert resolve_format(None, "text/plain; charset=utf-8") == DocumentFormat.TEXT
        assert resolve_format("report", "application/pdf") == DocumentFormat.PDF

    def test_defaults_to_pdf(self):
        assert resolve_format(None, None) == DocumentFormat.PDF
        assert resolve_format("upload", "application/octet-stream") == DocumentFormat.PDF
