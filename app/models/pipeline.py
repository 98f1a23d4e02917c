"""
Request-scoped data model for the explanation pipeline.

None of these objects outlive a single pipeline invocation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class DocumentFormat(str, Enum):
    """Declared format of an uploaded document."""
    PDF = "pdf"
    TEXT = "text"


class StageName(str, Enum):
    """Generative-text stages of the pipeline."""
    EXPLANATION = "explanation"
    CONCISE_SUMMARY = "concise_summary"
    IMAGE_PROMPT = "image_prompt"


class ErrorKind(str, Enum):
    """Why a stage did not produce text."""
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    EMPTY_RESPONSE = "empty_response"


NO_SUMMARY_AVAILABLE = "No summary available."


@dataclass
class UploadRequest:
    """A single call into the pipeline, as received at the HTTP boundary."""

    instruction: Optional[str]
    document_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None
    source_url: Optional[str] = None


@dataclass(frozen=True)
class ExtractedDocument:
    """Plain text derived from one uploaded document."""

    text: str
    byte_length: int
    page_count: int
    document_format: DocumentFormat

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class Ok:
    """A stage produced usable text."""
    text: str


@dataclass(frozen=True)
class Degraded:
    """A soft stage failed; ``fallback_text`` is its documented stand-in."""
    reason: ErrorKind
    fallback_text: str = NO_SUMMARY_AVAILABLE


StageOutcome = Union[Ok, Degraded]


@dataclass(frozen=True)
class StageResult:
    """Outcome of one generative-text stage invocation."""

    stage: StageName
    outcome: StageOutcome

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Ok)

    @property
    def text(self) -> Optional[str]:
        if isinstance(self.outcome, Ok):
            return self.outcome.text
        return None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        if isinstance(self.outcome, Degraded):
            return self.outcome.reason
        return None


@dataclass(frozen=True)
class ImageResult:
    """Outcome of the image-synthesis stage, when it was attempted."""

    image_reference: Optional[str]

    @property
    def succeeded(self) -> bool:
        return self.image_reference is not None
