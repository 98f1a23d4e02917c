"""
Configuration management for MedReport Explainer.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables or .env file.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "MedReport Explainer"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 3000

    # ==========================================================================
    # Generative Provider
    # ==========================================================================
    llm_provider: Literal["openai", "gemini"] = "openai"
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = "gpt-4o"
    openai_image_model: str = "dall-e-2"
    gemini_api_key: str = ""
    gemini_text_model: str = "gemini-2.0-flash"
    gemini_image_model: str = "imagen-3.0-generate-002"
    provider_timeout_seconds: float = 60.0

    # ==========================================================================
    # Pipeline Stages
    # ==========================================================================
    explanation_max_tokens: int = 1500
    summary_max_tokens: int = 100
    image_prompt_max_tokens: int = 300
    topic_max_tokens: int = 500
    explanation_timeout_seconds: float = 90.0
    summary_timeout_seconds: float = 30.0
    image_prompt_timeout_seconds: float = 30.0
    image_timeout_seconds: float = 60.0
    image_size: str = "512x512"
    enable_image_prompt_stage: bool = False
    concurrent_stages: bool = True
    max_document_chars: int = 12000

    # ==========================================================================
    # File Upload
    # ==========================================================================
    max_file_size_mb: int = 10
    allowed_pdf_extensions: str = ".pdf"
    allowed_text_extensions: str = ".txt"
    upload_storage: Literal["disk", "memory"] = "disk"
    temp_dir: str = "uploads"
    source_fetch_timeout_seconds: float = 20.0

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def max_file_size_bytes(self) -> int:
        """Maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def pdf_extensions(self) -> list[str]:
        """List of allowed PDF extensions."""
        return [ext.strip() for ext in self.allowed_pdf_extensions.split(",")]

    @property
    def text_extensions(self) -> list[str]:
        """List of allowed text extensions."""
        return [ext.strip() for ext in self.allowed_text_extensions.split(",")]


@dataclass(frozen=True)
class ProviderConfig:
    """
    Immutable provider configuration shared by the generative clients.

    Built once at startup and injected into clients, never read from
    module globals at call time.
    """

    provider: str
    api_key: str = field(repr=False)
    text_model: str
    image_model: str
    timeout_seconds: float = 60.0
    base_url: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderConfig":
        """
        Resolve the active provider's credential and models.

        Raises:
            ConfigurationError: If the provider's API key is not set
        """
        if settings.llm_provider == "gemini":
            api_key = settings.gemini_api_key
            env_name = "GEMINI_API_KEY"
            text_model = settings.gemini_text_model
            image_model = settings.gemini_image_model
            base_url = None
        else:
            api_key = settings.openai_api_key
            env_name = "OPENAI_API_KEY"
            text_model = settings.openai_text_model
            image_model = settings.openai_image_model
            base_url = settings.openai_base_url or None

        if not api_key:
            raise ConfigurationError(f"Missing {env_name} environment variable")

        return cls(
            provider=settings.llm_provider,
            api_key=api_key,
            text_model=text_model,
            image_model=image_model,
            timeout_seconds=settings.provider_timeout_seconds,
            base_url=base_url,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
