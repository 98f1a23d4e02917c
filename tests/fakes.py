"""
Deterministic provider doubles for pipeline and API tests.
"""

import asyncio

from app.core.document_extractor import DocumentExtractor
from app.core.exceptions import ProviderError
from app.core.image_engine import ImageClient
from app.core.llm_engine import TextClient
from app.core.prompts import (
    CONCISE_SUMMARY_SYSTEM_PROMPT,
    EXPLANATION_SYSTEM_PROMPT,
    IMAGE_PROMPT_SYSTEM_PROMPT,
)
from app.models.pipeline import StageName

EXPLANATION_TEXT = (
    "Your MRI shows a small bulge in the disc between two lower back bones. "
    "This is common and often not serious."
)
SUMMARY_TEXT = "Mild disc bulge at L4-L5 pressing slightly on a nerve root."
IMAGE_PROMPT_TEXT = "Side view of the lumbar spine highlighting the L4-L5 disc."
IMAGE_URL = "https://images.example.test/illustration.png"

_STAGE_BY_SYSTEM_PROMPT = {
    EXPLANATION_SYSTEM_PROMPT: StageName.EXPLANATION,
    CONCISE_SUMMARY_SYSTEM_PROMPT: StageName.CONCISE_SUMMARY,
    IMAGE_PROMPT_SYSTEM_PROMPT: StageName.IMAGE_PROMPT,
}

_HANG = object()


class FakeTextClient(TextClient):
    """Answers by stage; stages can be told to fail or hang."""

    model = "fake-text"

    def __init__(self):
        self.responses = {
            StageName.EXPLANATION: EXPLANATION_TEXT,
            StageName.CONCISE_SUMMARY: SUMMARY_TEXT,
            StageName.IMAGE_PROMPT: IMAGE_PROMPT_TEXT,
            "topic": "Sciatica is pain that travels along the sciatic nerve.",
        }
        self.calls = []

    def fail(self, stage, error=None):
        self.responses[stage] = error or ProviderError("provider unavailable")

    def hang(self, stage):
        self.responses[stage] = _HANG

    def calls_for(self, stage):
        return [call for call in self.calls if call[0] == stage]

    async def complete(self, system_prompt, user_prompt, max_output_tokens):
        stage = _STAGE_BY_SYSTEM_PROMPT.get(system_prompt, "topic")
        self.calls.append((stage, user_prompt, max_output_tokens))
        outcome = self.responses[stage]
        if outcome is _HANG:
            await asyncio.sleep(3600)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeImageClient(ImageClient):
    """Returns a fixed URL; can be told to fail or hang."""

    model = "fake-image"

    def __init__(self):
        self.reference = IMAGE_URL
        self.error = None
        self.hangs = False
        self.calls = []

    async def _generate(self, prompt, size):
        self.calls.append((prompt, size))
        if self.hangs:
            await asyncio.sleep(3600)
        if self.error is not None:
            raise self.error
        return self.reference


class CountingExtractor(DocumentExtractor):
    """Real extractor that records how often it ran."""

    def __init__(self):
        self.calls = 0

    def extract(self, source, document_format, filename="document"):
        self.calls += 1
        return super().extract(source, document_format, filename)


