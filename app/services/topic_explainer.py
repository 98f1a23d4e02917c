"""
Background information about a single medical topic.

One text completion, independent of the document pipeline.
"""

import asyncio
from typing import Optional

from app.core.exceptions import GenerationError, ProviderError, ValidationError
from app.core.llm_engine import TextClient
from app.core.prompts import build_topic_prompt
from app.utils.logger import get_logger

logger = get_logger("topic_explainer")


class TopicExplainer:
    """Answers the "tell me more about X" requests from the result page."""

    def __init__(
        self,
        text_client: TextClient,
        max_output_tokens: int = 500,
        timeout_seconds: float = 60.0
    ):
        self.text_client = text_client
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds

    async def explain(self, topic: Optional[str]) -> str:
        """
        Explain a topic in patient-friendly language.

        Raises:
            ValidationError: If the topic is missing
            GenerationError: If the provider fails or times out
        """
        if not topic or not topic.strip():
            raise ValidationError("Missing topic query parameter")

        prompt = build_topic_prompt(topic)
        try:
            info = await asyncio.wait_for(
                self.text_client.complete(
                    prompt.system,
                    prompt.user,
                    self.max_output_tokens
                ),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error("Topic request timed out", topic=topic)
            raise GenerationError("Topic request timed out", stage="topic") from e
        except ProviderError as e:
            logger.error("Topic request failed", topic=topic, error=e.message)
            raise GenerationError(f"Topic request failed: {e.message}", stage="topic") from e

        logger.info("Topic explained", topic=topic, length=len(info))
        return info
