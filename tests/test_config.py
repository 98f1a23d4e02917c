"""
Tests for settings and runtime configuration objects.
"""

import asyncio

import pytest

from app.config import ProviderConfig, Settings
from app.core.exceptions import ConfigurationError
from app.core.stages import FailurePolicy, PipelineConfig
from app.dependencies import build_services
from app.main import create_app, lifespan
from app.models.pipeline import StageName


class TestProviderConfig:
    """Test credential resolution."""

    def test_openai_defaults(self):
        config = ProviderConfig.from_settings(
            Settings(_env_file=None, openai_api_key="sk-test")
        )

        assert config.provider == "openai"
        assert config.api_key == "sk-test"
        assert config.text_model == "gpt-4o"
        assert config.image_model == "dall-e-2"
        assert config.base_url is None

    def test_gemini(self):
        config = ProviderConfig.from_settings(
            Settings(_env_file=None, llm_provider="gemini", gemini_api_key="g-test")
        )

        assert config.provider == "gemini"
        assert config.api_key == "g-test"
        assert config.text_model.startswith("gemini")

    def test_missing_key_raises(self):
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            ProviderConfig.from_settings(Settings(_env_file=None, openai_api_key=""))

    def test_key_not_in_repr(self):
        config = ProviderConfig.from_settings(
            Settings(_env_file=None, openai_api_key="sk-secret")
        )
        assert "sk-secret" not in repr(config)

    def test_immutable(self):
        config = ProviderConfig.from_settings(
            Settings(_env_file=None, openai_api_key="sk-test")
        )
        with pytest.raises(AttributeError):
            config.api_key = "other"


class TestPipelineConfig:
    """Test stage definitions built from settings."""

    def test_stage_policies(self):
        config = PipelineConfig.from_settings(Settings(_env_file=None))

        assert config.explanation.name == StageName.EXPLANATION
        assert config.explanation.policy == FailurePolicy.HARD
        assert config.concise_summary.policy == FailurePolicy.SOFT
        assert config.image_prompt.policy == FailurePolicy.SOFT

    def test_token_budgets(self):
        config = PipelineConfig.from_settings(
            Settings(_env_file=None, summary_max_tokens=60)
        )

        assert config.explanation.max_output_tokens == 1500
        assert config.concise_summary.max_output_tokens == 60


class TestStartup:
    """Test that a missing credential is fatal at startup."""

    def test_build_services_requires_credential(self):
        with pytest.raises(ConfigurationError):
            build_services(Settings(_env_file=None, openai_api_key=""))

    def test_lifespan_fails_without_credential(self, tmp_path):
        app = create_app(
            settings=Settings(_env_file=None, openai_api_key="", temp_dir=str(tmp_path))
        )

        async def start():
            async with lifespan(app):
                pass

        with pytest.raises(ConfigurationError):
            asyncio.run(start())

    def test_lifespan_builds_services(self, tmp_path):
        app = create_app(
            settings=Settings(_env_file=None, openai_api_key="sk-test", temp_dir=str(tmp_path))
        )

        async def start():
            async with lifespan(app):
                return app.state.services

        services = asyncio.run(start())
        assert services.pipeline is not None
        assert services.topic_explainer is not None
