"""
Maps internal stage results onto the public pipeline response.
"""

from typing import Optional

from app.core.exceptions import GenerationError
from app.models.pipeline import ImageResult, Ok, StageName, StageResult
from app.models.schemas import PipelineResponse


def assemble_response(
    explanation: StageResult,
    image: Optional[ImageResult] = None
) -> PipelineResponse:
    """
    Build the caller-visible response.

    The explanation is always a non-empty string; the image reference is
    None when the image stage was skipped or failed.

    Raises:
        GenerationError: If the explanation stage produced no usable text
    """
    if not isinstance(explanation.outcome, Ok) or not explanation.outcome.text.strip():
        raise GenerationError(
            "Explanation stage produced no text",
            stage=StageName.EXPLANATION.value
        )

    return PipelineResponse(
        explanation=explanation.outcome.text,
        image_reference=image.image_reference if image else None
    )
