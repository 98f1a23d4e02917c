"""
MedReport Explainer - Generative Image Clients

Wraps the "synthesize an image from a text prompt" capability. A missing
image is never fatal: every failure is logged and reported as ``None``.
"""

import base64
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

logger = get_logger("image_engine")

DEFAULT_IMAGE_SIZE = "512x512"

# Aspect ratios accepted by Imagen models
SUPPORTED_ASPECT_RATIOS = {
    "1:1": 1.0,
    "3:4": 3 / 4,
    "4:3": 4 / 3,
    "9:16": 9 / 16,
    "16:9": 16 / 9,
}


def size_to_aspect_ratio(size: str) -> str:
    """Map a ``WIDTHxHEIGHT`` size to the closest supported aspect ratio."""
    try:
        width, height = (int(part) for part in size.lower().split("x"))
        ratio = width / height
    except (ValueError, ZeroDivisionError):
        return "1:1"
    return min(
        SUPPORTED_ASPECT_RATIOS,
        key=lambda name: abs(SUPPORTED_ASPECT_RATIOS[name] - ratio)
    )


class ImageClient(ABC):
    """Generative-image capability used by the last pipeline stage."""

    model: str

    async def synthesize(
        self,
        prompt: str,
        size: str = DEFAULT_IMAGE_SIZE
    ) -> Optional[str]:
        """
        Generate one image for a prompt.

        Args:
            prompt: Text description of the image
            size: Requested ``WIDTHxHEIGHT`` size

        Returns:
            Image URL (or data URL), or None if generation failed
        """
        try:
            reference = await self._generate(prompt, size)
        except ProviderError as e:
            logger.warning(
                "Image generation failed",
                model=self.model,
                error=e.message
            )
            return None
        except Exception as e:
            logger.error(
                "Image generation failed unexpectedly",
                model=self.model,
                error_type=type(e).__name__,
                error=str(e)
            )
            return None

        logger.info("Image generated", model=self.model, size=size)
        return reference

    @abstractmethod
    async def _generate(self, prompt: str, size: str) -> str:
        """Call the provider; raise ProviderError on any failure."""
        raise NotImplementedError


class OpenAIImageClient(ImageClient):
    """Image client built on the OpenAI images API."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[Any] = None
    ) -> None:
        self.model = config.image_model
        self._client = client or openai.AsyncOpenAI(
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            base_url=config.base_url,
        )

    async def _generate(self, prompt: str, size: str) -> str:
        try:
            response = await self._client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=size,
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ProviderError(f"Image provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ProviderError(f"Image provider API error: {exc}") from exc

        try:
            data = response.data
            url = data[0].url if data else None
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError(
                f"Image provider returned malformed response: {exc}",
                empty_response=True
            ) from exc
        if not isinstance(url, str) or not url:
            raise ProviderError("Image provider returned no image", empty_response=True)
        return url


class GeminiImageClient(ImageClient):
    """Image client built on Imagen through the Google Gen AI SDK."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[Any] = None
    ) -> None:
        self.model = config.image_model
        self._client = client or genai.Client(
            api_key=config.api_key,
            http_options=genai_types.HttpOptions(
                timeout=int(config.timeout_seconds * 1000)
            ),
        )

    async def _generate(self, prompt: str, size: str) -> str:
        try:
            response = await self._client.aio.models.generate_images(
                model=self.model,
                prompt=prompt,
                config=genai_types.GenerateImagesConfig(
                    number_of_images=1,
                    aspect_ratio=size_to_aspect_ratio(size),
                ),
            )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Image provider network error: {exc}") from exc
        except genai_errors.APIError as exc:
            raise ProviderError(f"Image provider API error: {exc}") from exc

        try:
            generated = response.generated_images
            image = generated[0].image if generated else None
            image_bytes = image.image_bytes if image is not None else None
            mime_type = (image.mime_type if image is not None else None) or "image/png"
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError(
                f"Image provider returned malformed response: {exc}",
                empty_response=True
            ) from exc
        if not isinstance(image_bytes, bytes) or not image_bytes:
            raise ProviderError("Image provider returned no image", empty_response=True)

        encoded = base64.b64encode(image_bytes).decode("utf-8")
        return f"data:{mime_type};base64,{encoded}"


def create_image_client(config: ProviderConfig) -> ImageClient:
    """Build the image client for the configured provider."""
    if config.provider == "gemini":
        return GeminiImageClient(config)
    return OpenAIImageClient(config)
