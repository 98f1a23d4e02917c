"""
Pydantic schemas for MedReport Explainer API.

Defines request/response models for all API endpoints.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


# =============================================================================
# Pipeline
# =============================================================================

class PipelineResponse(BaseModel):
    """Explanation of an uploaded document plus an optional illustration."""

    explanation: str = Field(
        alias="response",
        description="Patient-friendly explanation of the document"
    )
    image_reference: Optional[str] = Field(
        default=None,
        alias="image",
        description="URL of an illustration of the key finding, if one was generated"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("explanation")
    @classmethod
    def explanation_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("explanation must be a non-empty string")
        return value


class AdditionalInfoResponse(BaseModel):
    """Background information about a single medical topic."""

    info: str = Field(description="Patient-friendly information about the topic")


# =============================================================================
# Health & Status
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    provider: str = Field(description="Configured generative provider")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Error Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(description="Error type")
    message: str = Field(description="Human-readable error message")
    error_code: str = Field(description="Machine-readable error code")

    model_config = ConfigDict(from_attributes=True)
