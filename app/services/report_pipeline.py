"""
Report pipeline service for MedReport Explainer.

Orchestrates one document-to-explanation run:

    validate -> extract -> (explanation || summary -> [image prompt] -> image) -> assemble

The explanation stage is hard: its failure or timeout aborts the request.
The summary, image-prompt and image stages are soft: their failures only
remove the illustration from the response.
"""

import asyncio
import time
from typing import Optional, Tuple

from app.core.document_extractor import DocumentExtractor, resolve_format
from app.core.exceptions import GenerationError, ProviderError
from app.core.image_engine import ImageClient
from app.core.llm_engine import TextClient
from app.core.prompts import build_image_synthesis_prompt, build_stage_prompt
from app.core.stages import PipelineConfig, StageDefinition
from app.models.pipeline import (
    Degraded,
    ErrorKind,
    ExtractedDocument,
    ImageResult,
    Ok,
    StageResult,
    UploadRequest,
)
from app.models.schemas import PipelineResponse
from app.services.result_assembler import assemble_response
from app.utils.document_fetcher import DocumentFetcher
from app.utils.file_validators import UploadValidator
from app.utils.logger import get_logger
from app.utils.upload_buffer import staged_upload

logger = get_logger("report_pipeline")


class ReportPipeline:
    """
    Main orchestrator for MedReport Explainer.

    Coordinates:
    - Upload validation
    - Document staging and text extraction
    - Explanation and concise-summary generation (concurrently)
    - Image synthesis gated on a usable summary
    - Response assembly

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        text_client: TextClient,
        image_client: ImageClient,
        config: PipelineConfig,
        extractor: Optional[DocumentExtractor] = None,
        validator: Optional[UploadValidator] = None,
        fetcher: Optional[DocumentFetcher] = None,
        run_stages_concurrently: bool = True
    ):
        self.text_client = text_client
        self.image_client = image_client
        self.config = config
        self.extractor = extractor or DocumentExtractor()
        self.validator = validator or UploadValidator(
            max_file_size=config.max_file_size_bytes
        )
        self.fetcher = fetcher or DocumentFetcher(
            timeout_seconds=config.source_fetch_timeout_seconds,
            max_bytes=config.max_file_size_bytes
        )
        self.run_stages_concurrently = run_stages_concurrently

    async def run(self, request: UploadRequest) -> PipelineResponse:
        """
        Run the full pipeline for one upload.

        Args:
            request: Validated or unvalidated upload request

        Returns:
            PipelineResponse with explanation and optional image reference

        Raises:
            ValidationError: Missing instruction or document
            ExtractionError: Document unreadable in its declared format
            GenerationError: Explanation stage failed or timed out
        """
        self.validator.validate(request)

        start_time = time.time()

        content = request.document_bytes
        filename = request.filename
        content_type = request.content_type
        if request.source_url:
            fetched = await self.fetcher.fetch(request.source_url.strip())
            content = fetched.content
            filename = filename or fetched.filename
            content_type = content_type or fetched.content_type

        instruction = request.instruction.strip()

        with staged_upload(
            content,
            storage=self.config.upload_storage,
            temp_dir=self.config.temp_dir
        ) as buffer:
            document_format = resolve_format(filename, content_type)
            document = await asyncio.to_thread(
                self.extractor.extract,
                buffer.source,
                document_format,
                filename or "document"
            )

            explanation, image = await self._generate(document, instruction)

        response = assemble_response(explanation, image)

        logger.info(
            "Pipeline complete",
            processing_time_ms=int((time.time() - start_time) * 1000),
            has_image=response.image_reference is not None
        )
        return response

    async def _generate(
        self,
        document: ExtractedDocument,
        instruction: str
    ) -> Tuple[StageResult, Optional[ImageResult]]:
        """Run the explanation branch and the illustration branch."""
        if not self.run_stages_concurrently:
            explanation = await self._run_stage(
                self.config.explanation, document, instruction
            )
            _, image = await self._illustrate(document, instruction)
            return explanation, image

        explanation_task = asyncio.create_task(
            self._run_stage(self.config.explanation, document, instruction)
        )
        illustration_task = asyncio.create_task(
            self._illustrate(document, instruction)
        )
        try:
            explanation = await explanation_task
            _, image = await illustration_task
        finally:
            # Hard failure or caller disconnect: abandon in-flight calls
            for task in (explanation_task, illustration_task):
                if not task.done():
                    task.cancel()

        return explanation, image

    async def _illustrate(
        self,
        document: ExtractedDocument,
        instruction: str
    ) -> Tuple[StageResult, Optional[ImageResult]]:
        """Concise summary, then image synthesis when the summary is usable."""
        summary = await self._run_stage(
            self.config.concise_summary, document, instruction
        )
        if not isinstance(summary.outcome, Ok):
            logger.info(
                "Skipping image synthesis",
                reason=summary.outcome.fallback_text
            )
            return summary, None

        caption = summary.outcome.text
        if self.config.enable_image_prompt_stage:
            brief = await self._run_stage(
                self.config.image_prompt, document, instruction
            )
            if isinstance(brief.outcome, Ok):
                caption = brief.outcome.text

        return summary, await self._synthesize(caption)

    async def _run_stage(
        self,
        definition: StageDefinition,
        document: ExtractedDocument,
        instruction: str
    ) -> StageResult:
        """Run one text stage and apply its failure policy."""
        prompt = build_stage_prompt(
            definition.name,
            document.text,
            instruction,
            self.config.max_document_chars
        )
        stage_start = time.time()

        try:
            text = await asyncio.wait_for(
                self.text_client.complete(
                    prompt.system,
                    prompt.user,
                    definition.max_output_tokens
                ),
                timeout=definition.timeout_seconds
            )
        except asyncio.TimeoutError:
            kind = ErrorKind.TIMEOUT
            cause = f"timed out after {definition.timeout_seconds}s"
        except ProviderError as e:
            kind = ErrorKind.EMPTY_RESPONSE if e.empty_response else ErrorKind.PROVIDER_ERROR
            cause = e.message
        except Exception as e:
            kind = ErrorKind.PROVIDER_ERROR
            cause = f"unexpected {type(e).__name__}: {e}"
        else:
            logger.info(
                "Stage complete",
                stage=definition.name.value,
                duration_ms=int((time.time() - stage_start) * 1000)
            )
            return StageResult(stage=definition.name, outcome=Ok(text))

        if definition.is_hard:
            logger.error(
                "Stage failed",
                stage=definition.name.value,
                error_kind=kind.value,
                cause=cause
            )
            raise GenerationError(
                f"{definition.name.value} stage failed: {cause}",
                stage=definition.name.value
            )

        logger.warning(
            "Stage degraded",
            stage=definition.name.value,
            error_kind=kind.value,
            cause=cause
        )
        return StageResult(stage=definition.name, outcome=Degraded(reason=kind))

    async def _synthesize(self, caption: str) -> ImageResult:
        """Generate the illustration; a timeout counts as no image."""
        prompt = build_image_synthesis_prompt(caption)
        try:
            reference = await asyncio.wait_for(
                self.image_client.synthesize(prompt, self.config.image_size),
                timeout=self.config.image_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Image synthesis timed out",
                timeout_seconds=self.config.image_timeout_seconds
            )
            reference = None
        return ImageResult(image_reference=reference)
