"""
MedReport Explainer - Generative Text Clients

Wraps the "complete this conversation" capability of the configured
provider behind a single ``complete`` coroutine. Provider failures are
raised as ProviderError; the pipeline decides whether a failure is fatal.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from app.config import ProviderConfig
from app.core.exceptions import ProviderError
from app.utils.logger import get_logger

logger = get_logger("llm_engine")


class TextClient(ABC):
    """Generative-text capability used by every pipeline stage."""

    model: str

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int
    ) -> str:
        """
        Complete a two-message conversation.

        Args:
            system_prompt: Instructions for the model
            user_prompt: Content to respond to
            max_output_tokens: Output token ceiling

        Returns:
            Non-empty completion text

        Raises:
            ProviderError: On transport, API or empty-response failure
        """
        raise NotImplementedError


class OpenAITextClient(TextClient):
    """Text client built on the OpenAI chat completions API."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[Any] = None
    ) -> None:
        self.model = config.text_model
        self._client = client or openai.AsyncOpenAI(
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            base_url=config.base_url,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_output_tokens,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ProviderError(f"Text provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ProviderError(f"Text provider API error: {exc}") from exc

        try:
            if not response.choices:
                raise ProviderError("Text provider returned no choices", empty_response=True)
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError(
                f"Text provider returned malformed response: {exc}",
                empty_response=True
            ) from exc
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("Text provider returned empty response", empty_response=True)

        logger.debug(
            "Completion received",
            model=self.model,
            length=len(content)
        )
        return content.strip()


class GeminiTextClient(TextClient):
    """Text client built on the Google Gen AI SDK."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[Any] = None
    ) -> None:
        self.model = config.text_model
        self._client = client or genai.Client(
            api_key=config.api_key,
            http_options=genai_types.HttpOptions(
                timeout=int(config.timeout_seconds * 1000)
            ),
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int
    ) -> str:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=user_prompt,
                config=genai_types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    max_output_tokens=max_output_tokens,
                ),
            )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Text provider network error: {exc}") from exc
        except genai_errors.APIError as exc:
            raise ProviderError(f"Text provider API error: {exc}") from exc

        try:
            content = response.text
        except (AttributeError, ValueError) as exc:
            raise ProviderError(
                f"Text provider returned malformed response: {exc}",
                empty_response=True
            ) from exc
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("Text provider returned empty response", empty_response=True)

        logger.debug(
            "Completion received",
            model=self.model,
            length=len(content)
        )
        return content.strip()


def create_text_client(config: ProviderConfig) -> TextClient:
    """Build the text client for the configured provider."""
    if config.provider == "gemini":
        return GeminiTextClient(config)
    return OpenAITextClient(config)
