"""
Service wiring for MedReport Explainer.

Builds the pipeline and topic explainer from settings at startup and
exposes them to routes as FastAPI dependencies.
"""

from dataclasses import dataclass

from fastapi import Request

from app.config import ProviderConfig, Settings
from app.core.image_engine import create_image_client
from app.core.llm_engine import create_text_client
from app.core.stages import PipelineConfig
from app.services.report_pipeline import ReportPipeline
from app.services.topic_explainer import TopicExplainer


@dataclass(frozen=True)
class Services:
    pipeline: ReportPipeline
    topic_explainer: TopicExplainer


def build_services(settings: Settings) -> Services:
    """
    Construct provider clients and services.

    Raises:
        ConfigurationError: If the provider credential is missing
    """
    provider_config = ProviderConfig.from_settings(settings)
    pipeline_config = PipelineConfig.from_settings(settings)
    text_client = create_text_client(provider_config)
    image_client = create_image_client(provider_config)

    return Services(
        pipeline=ReportPipeline(
            text_client=text_client,
            image_client=image_client,
            config=pipeline_config,
            run_stages_concurrently=settings.concurrent_stages
        ),
        topic_explainer=TopicExplainer(
            text_client=text_client,
            max_output_tokens=pipeline_config.topic_max_tokens,
            timeout_seconds=pipeline_config.explanation.timeout_seconds
        ),
    )


def get_pipeline(request: Request) -> ReportPipeline:
    """Pipeline built during application startup."""
    return request.app.state.services.pipeline


def get_topic_explainer(request: Request) -> TopicExplainer:
    """Topic explainer built during application startup."""
    return request.app.state.services.topic_explainer
