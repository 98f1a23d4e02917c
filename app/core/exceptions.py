"""
Exception taxonomy for MedReport Explainer.

Pipeline errors carry the HTTP status and a generic public message so the
API layer can answer without echoing provider or parser internals.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for errors that abort a pipeline invocation."""

    status_code = 500
    error_code = "PIPELINE_ERROR"
    public_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: str, stage: Optional[str] = None):
        self.message = message
        self.stage = stage
        super().__init__(self.message)


class ValidationError(PipelineError):
    """Missing or malformed caller input."""

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, stage: Optional[str] = "validation"):
        super().__init__(message, stage=stage)

    @property
    def public_message(self) -> str:
        # Validation messages describe the caller's own input
        return self.message


class ExtractionError(PipelineError):
    """The document could not be read in its declared format."""

    error_code = "EXTRACTION_ERROR"
    public_message = "Error processing file"

    def __init__(self, message: str, stage: Optional[str] = "extraction"):
        super().__init__(message, stage=stage)


class GenerationError(PipelineError):
    """A hard generative stage failed or timed out."""

    error_code = "GENERATION_ERROR"
    public_message = "Error generating explanation"


class ProviderError(Exception):
    """A generative provider call failed (transport, API or empty response)."""

    def __init__(self, message: str, empty_response: bool = False):
        self.message = message
        self.empty_response = empty_response
        super().__init__(self.message)


class ConfigurationError(Exception):
    """Fatal startup configuration problem, such as a missing credential."""
