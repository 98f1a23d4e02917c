"""
Document text extraction for MedReport Explainer.

Extracts plain text from uploaded medical reports:
- pdfplumber for PDF page text and tables
- UTF-8 / Latin-1 decoding for plain text reports
"""

import io
from pathlib import Path
from typing import Optional, Tuple, Union

import pdfplumber

from app.core.exceptions import ExtractionError
from app.models.pipeline import DocumentFormat, ExtractedDocument
from app.utils.logger import get_logger

logger = get_logger("document_extractor")

DocumentSource = Union[bytes, Path]


def resolve_format(
    filename: Optional[str] = None,
    content_type: Optional[str] = None
) -> DocumentFormat:
    """
    Work out the declared format of an upload.

    The filename extension wins, then the declared content type. Anything
    undeclared is treated as a PDF report.
    """
    ext = Path(filename).suffix.lower() if filename else ""
    if ext == ".txt":
        return DocumentFormat.TEXT
    if ext == ".pdf":
        return DocumentFormat.PDF

    if content_type:
        ctype = content_type.split(";")[0].strip().lower()
        if ctype == "text/plain":
            return DocumentFormat.TEXT
        if ctype == "application/pdf":
            return DocumentFormat.PDF

    return DocumentFormat.PDF


class DocumentExtractor:
    """
    Extracts text from uploaded documents.

    A document that opens cleanly but carries no text (for example a
    scanned, image-only PDF) yields an empty ``ExtractedDocument`` rather
    than an error.
    """

    def extract(
        self,
        source: DocumentSource,
        document_format: DocumentFormat,
        filename: str = "document"
    ) -> ExtractedDocument:
        """
        Extract text from raw bytes or a staged file.

        Args:
            source: Raw document bytes or path to a staged copy
            document_format: Declared document format
            filename: Original filename for logging

        Returns:
            ExtractedDocument

        Raises:
            ExtractionError: If the document cannot be read in its format
        """
        logger.info(
            "Starting text extraction",
            filename=filename,
            document_format=document_format.value
        )

        if document_format == DocumentFormat.TEXT:
            text, byte_length = self._extract_text_file(source)
            page_count = 1
        else:
            text, page_count, byte_length = self._extract_pdf(source)

        document = ExtractedDocument(
            text=text.strip(),
            byte_length=byte_length,
            page_count=page_count,
            document_format=document_format
        )

        if document.is_empty:
            logger.warning(
                "Document contains no readable text",
                filename=filename,
                page_count=page_count
            )
        else:
            logger.info(
                "Text extraction successful",
                filename=filename,
                text_length=len(document.text),
                page_count=page_count
            )
        return document

    def _extract_pdf(self, source: DocumentSource) -> Tuple[str, int, int]:
        """Extract page text and table rows with pdfplumber."""
        if isinstance(source, Path):
            byte_length = source.stat().st_size
            opener = str(source)
        else:
            byte_length = len(source)
            opener = io.BytesIO(source)

        all_text = []
        try:
            with pdfplumber.open(opener) as pdf:
                page_count = len(pdf.pages)

                for i, page in enumerate(pdf.pages):
                    page_text = page.extract_text() or ""
                    table_text = self._tables_to_text(page.extract_tables())

                    if page_text:
                        all_text.append(f"--- Page {i + 1} ---")
                        all_text.append(page_text)

                    if table_text:
                        all_text.append("--- Tables ---")
                        all_text.append(table_text)
        except Exception as e:
            raise ExtractionError(f"PDF could not be parsed: {e}") from e

        return "\n\n".join(all_text), page_count, byte_length

    def _extract_text_file(self, source: DocumentSource) -> Tuple[str, int]:
        """Decode a plain text report."""
        content = source.read_bytes() if isinstance(source, Path) else source

        if b"\x00" in content:
            raise ExtractionError("Text document contains binary data")

        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError:
            text = content.decode("latin-1")

        return text, len(content)

    def _tables_to_text(self, tables: list) -> str:
        """Convert extracted tables to text format."""
        if not tables:
            return ""

        text_parts = []
        for table in tables:
            if not table:
                continue
            for row in table:
                if row:
                    cells = [str(cell or "").strip() for cell in row]
                    text_parts.append(" | ".join(cells))

        return "\n".join(text_parts)
