"""
API routes for MedReport Explainer.

Defines the REST endpoints in front of the explanation pipeline.
"""

import asyncio
from typing import Any, Awaitable, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import PlainTextResponse, Response

from app.dependencies import get_pipeline, get_topic_explainer
from app.models.pipeline import UploadRequest
from app.models.schemas import (
    AdditionalInfoResponse,
    ErrorResponse,
    HealthResponse,
    PipelineResponse,
)
from app.services.report_pipeline import ReportPipeline
from app.services.topic_explainer import TopicExplainer
from app.utils.logger import get_logger

logger = get_logger("routes")

router = APIRouter()

DISCONNECT_POLL_SECONDS = 0.5
UPLOAD_CHUNK_BYTES = 64 * 1024

# Non-standard status recorded when the caller went away mid-request
CLIENT_CLOSED_REQUEST = 499


async def run_unless_disconnected(request: Request, work: Awaitable[Any]) -> Any:
    """
    Await ``work`` while watching the inbound connection.

    If the client disconnects first, the work is cancelled and an empty
    response is returned; nobody is left to receive an error.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if task in done:
                return task.result()
            if await request.is_disconnected():
                logger.info(
                    "Client disconnected, abandoning request",
                    path=request.url.path
                )
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                return Response(status_code=CLIENT_CLOSED_REQUEST)
    finally:
        if not task.done():
            task.cancel()


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read an upload, stopping one byte past ``max_bytes``.

    An oversize upload is returned truncated to ``max_bytes + 1`` so the
    size check still rejects it without the whole body in memory.
    """
    chunks = []
    remaining = max_bytes + 1
    while remaining > 0:
        chunk = await file.read(min(UPLOAD_CHUNK_BYTES, remaining))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


# =============================================================================
# Health Check
# =============================================================================

@router.get("/", include_in_schema=False, response_class=PlainTextResponse)
async def welcome():
    """Plain-text greeting for anyone opening the API root."""
    return "Welcome to the AI medical report analysis server!"


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check(request: Request):
    """
    Check if the service is healthy and running.

    Returns basic health status and version information.
    """
    app_settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        version=app_settings.app_version,
        provider=app_settings.llm_provider
    )


# =============================================================================
# Document Explanation
# =============================================================================

@router.post(
    "/chat",
    response_model=PipelineResponse,
    tags=["Explanation"],
    summary="Explain an uploaded medical report",
    responses={
        400: {"model": ErrorResponse, "description": "Missing message or document"},
        500: {"model": ErrorResponse, "description": "Extraction or generation failed"}
    }
)
async def chat(
    request: Request,
    file: Optional[UploadFile] = File(None, description="Medical report (PDF or text)"),
    message: Optional[str] = Form(None, description="What the patient wants to know"),
    source_url: Optional[str] = Form(None, description="URL of the report instead of an upload"),
    pipeline: ReportPipeline = Depends(get_pipeline)
):
    """
    Explain a medical report in plain language.

    Accepts a multipart body with the report in ``file`` (or a
    ``source_url``) and the patient's question in ``message``.

    Returns the explanation in ``response`` and, when one could be
    generated, an illustration of the key finding in ``image``.
    """
    try:
        content = (
            await read_upload(file, pipeline.config.max_file_size_bytes)
            if file is not None else None
        )
        upload = UploadRequest(
            instruction=message,
            document_bytes=content,
            filename=file.filename if file is not None else None,
            content_type=file.content_type if file is not None else None,
            source_url=source_url
        )
        return await run_unless_disconnected(request, pipeline.run(upload))
    finally:
        if file is not None:
            await file.close()


# =============================================================================
# Additional Information
# =============================================================================

@router.get(
    "/api/additional-info",
    response_model=AdditionalInfoResponse,
    tags=["Explanation"],
    summary="Patient-friendly information about a topic",
    responses={
        400: {"model": ErrorResponse, "description": "Missing topic"},
        500: {"model": ErrorResponse, "description": "Generation failed"}
    }
)
async def additional_info(
    request: Request,
    topic: Optional[str] = Query(None, description="Medical topic to explain"),
    explainer: TopicExplainer = Depends(get_topic_explainer)
):
    """Explain a single medical term or condition mentioned in a report."""
    info = await run_unless_disconnected(request, explainer.explain(topic))
    if isinstance(info, Response):
        return info
    return AdditionalInfoResponse(info=info)
