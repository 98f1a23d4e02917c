"""
Stage definitions for the explanation pipeline.

Each generative-text stage is described as data (prompt, token budget,
failure policy, timeout) so one orchestrator can run all of them.
"""

from dataclasses import dataclass
from enum import Enum

from app.config import Settings
from app.models.pipeline import StageName


class FailurePolicy(str, Enum):
    """What a stage failure means for the whole request."""
    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class StageDefinition:
    """Configuration of one generative-text stage."""

    name: StageName
    max_output_tokens: int
    policy: FailurePolicy
    timeout_seconds: float

    @property
    def is_hard(self) -> bool:
        return self.policy == FailurePolicy.HARD


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable pipeline configuration built at startup."""

    explanation: StageDefinition
    concise_summary: StageDefinition
    image_prompt: StageDefinition
    image_timeout_seconds: float = 60.0
    image_size: str = "512x512"
    enable_image_prompt_stage: bool = False
    max_document_chars: int = 12000
    max_file_size_bytes: int = 10 * 1024 * 1024
    upload_storage: str = "disk"
    temp_dir: str = "uploads"
    source_fetch_timeout_seconds: float = 20.0
    topic_max_tokens: int = 500

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            explanation=StageDefinition(
                name=StageName.EXPLANATION,
                max_output_tokens=settings.explanation_max_tokens,
                policy=FailurePolicy.HARD,
                timeout_seconds=settings.explanation_timeout_seconds,
            ),
            concise_summary=StageDefinition(
                name=StageName.CONCISE_SUMMARY,
                max_output_tokens=settings.summary_max_tokens,
                policy=FailurePolicy.SOFT,
                timeout_seconds=settings.summary_timeout_seconds,
            ),
            image_prompt=StageDefinition(
                name=StageName.IMAGE_PROMPT,
                max_output_tokens=settings.image_prompt_max_tokens,
                policy=FailurePolicy.SOFT,
                timeout_seconds=settings.image_prompt_timeout_seconds,
            ),
            image_timeout_seconds=settings.image_timeout_seconds,
            image_size=settings.image_size,
            enable_image_prompt_stage=settings.enable_image_prompt_stage,
            max_document_chars=settings.max_document_chars,
            max_file_size_bytes=settings.max_file_size_bytes,
            upload_storage=settings.upload_storage,
            temp_dir=settings.temp_dir,
            source_fetch_timeout_seconds=settings.source_fetch_timeout_seconds,
            topic_max_tokens=settings.topic_max_tokens,
        )
