"""
Upload validation utilities for MedReport Explainer.

Handles validation of incoming pipeline requests including:
- Instruction presence
- Exactly one document source (file or URL)
- File size limits
- File extension validation
"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from app.config import settings
from app.core.exceptions import ValidationError
from app.models.pipeline import UploadRequest


class UploadValidator:
    """
    Validates upload requests before any extraction or generation work.

    Ensures requests:
    - Carry a non-empty instruction
    - Carry exactly one non-empty document source
    - Are within size limits
    - Have an allowed extension when a filename is given
    """

    def __init__(
        self,
        max_file_size: Optional[int] = None,
        allowed_extensions: Optional[list[str]] = None
    ):
        self.max_file_size = max_file_size or settings.max_file_size_bytes
        self.allowed_extensions = allowed_extensions or (
            settings.pdf_extensions + settings.text_extensions
        )

    def validate(self, request: UploadRequest) -> None:
        """
        Validate an upload request.

        Args:
            request: Incoming upload request

        Raises:
            ValidationError: If the request breaks any upload rule
        """
        self.validate_instruction(request.instruction)

        has_file = bool(request.document_bytes)
        has_url = bool(request.source_url and request.source_url.strip())

        if has_file and has_url:
            raise ValidationError("Provide either a file or a source_url, not both")
        if has_url:
            self.validate_source_url(request.source_url)
            return
        if request.document_bytes is not None and not has_file:
            raise ValidationError("Empty file uploaded")
        if not has_file:
            raise ValidationError("Missing file in request")

        self.validate_file_size(request.document_bytes)
        if request.filename:
            self.validate_extension(request.filename)

    def validate_instruction(self, instruction: Optional[str]) -> None:
        """Check the caller supplied a non-empty instruction."""
        if not instruction or not instruction.strip():
            raise ValidationError("Missing message in request body")

    def validate_file_size(self, file_content: bytes) -> None:
        """Check the document is within the size limit."""
        if len(file_content) > self.max_file_size:
            max_mb = self.max_file_size // (1024 * 1024)
            raise ValidationError(f"File exceeds maximum size of {max_mb}MB")

    def validate_extension(self, filename: str) -> None:
        """Check an extension, when present, is one we can extract."""
        ext = Path(filename).suffix.lower()
        if ext and ext not in self.allowed_extensions:
            raise ValidationError(
                f"File extension '{ext}' not allowed. "
                f"Allowed: {', '.join(self.allowed_extensions)}"
            )

    def validate_source_url(self, source_url: str) -> None:
        """Check a document URL is an absolute http(s) URL."""
        parsed = urlparse(source_url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("source_url must be an http or https URL")
