"""
Shared fixtures: PDF documents, deterministic provider doubles and a
pipeline wired to them.
"""

import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.config import Settings
from app.core.stages import PipelineConfig
from app.services.report_pipeline import ReportPipeline

from fakes import CountingExtractor, FakeImageClient, FakeTextClient


def _pdf(*pages):
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for lines in pages:
        y = 720
        for line in lines:
            c.drawString(72, y, line)
            y -= 18
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Single-page MRI report."""
    return _pdf([
        "MRI LUMBAR SPINE",
        "Findings: Mild disc bulge at L4-L5 with slight nerve root contact.",
        "Impression: Mild degenerative changes.",
    ])


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Two-page report with known text on each page."""
    return _pdf(["Page one content"], ["Page two content"])


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Valid PDF with a blank page."""
    return _pdf([])


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        temp_dir=str(tmp_path / "uploads"),
        explanation_timeout_seconds=0.5,
        summary_timeout_seconds=0.5,
        image_prompt_timeout_seconds=0.5,
        image_timeout_seconds=0.5,
    )


@pytest.fixture()
def pipeline_config(test_settings) -> PipelineConfig:
    return PipelineConfig.from_settings(test_settings)


@pytest.fixture()
def text_client() -> FakeTextClient:
    return FakeTextClient()


@pytest.fixture()
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture()
def extractor() -> CountingExtractor:
    return CountingExtractor()


@pytest.fixture()
def pipeline(text_client, image_client, extractor, pipeline_config) -> ReportPipeline:
    return ReportPipeline(
        text_client=text_client,
        image_client=image_client,
        config=pipeline_config,
        extractor=extractor
    )
