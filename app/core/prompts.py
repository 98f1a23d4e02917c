"""
Prompt construction for MedReport Explainer.

Pure functions: every prompt sent to the generative providers is built
here, one system/user pair per pipeline stage.
"""

from dataclasses import dataclass

from app.models.pipeline import StageName

DEFAULT_MAX_DOCUMENT_CHARS = 12000
MAX_IMAGE_PROMPT_CHARS = 1000


@dataclass(frozen=True)
class PromptPair:
    """System and user prompt for one text completion."""
    system: str
    user: str


EXPLANATION_SYSTEM_PROMPT = """You are an experienced physician who explains medical reports to patients.
The patient has uploaded a medical report. Read it carefully and explain every
important point clearly and accurately, as you would to an adult who has not
finished high school.

GUIDELINES:
- Say for each finding whether it looks normal, concerning, or needs further investigation
- Describe where in the body a finding is (for example which spinal segment or brain region) so the patient can picture it
- Explain symptoms and effects beyond pain, such as how a condition can affect other parts of the body
- Explain medical terms in plain language
- Offer to go deeper into any topic the patient wants to learn more about
- Keep the explanation memorable and reassuring in tone
- Do not provide a diagnosis or prescribe treatment; recommend discussing the report with their doctor"""

CONCISE_SUMMARY_SYSTEM_PROMPT = """You summarize medical reports for an illustrator.
Summarize the report in 1-2 sentences, focusing on the single most critical
finding that would benefit from a visual explanation. Reply with the summary only."""

IMAGE_PROMPT_SYSTEM_PROMPT = """You prepare briefs for medical illustrations.
Analyze the medical report and describe the most important details that could be
visualized: key medical terms, the anatomy involved, and the specific symptoms or
conditions most relevant to a visual aid. Reply with a short description only."""

NO_TEXT_NOTICE = (
    "No readable text was found in the uploaded document. It may be a scanned "
    "image or an empty file. Tell the patient that the document could not be read "
    "and suggest uploading a text-based copy of the report."
)

IMAGE_STYLE_PREFIX = (
    "Clear, friendly educational medical illustration for a patient, "
    "no text or labels. "
)

TOPIC_PROMPT_TEMPLATE = (
    "Provide detailed information about {topic} suitable for a patient with no "
    "medical background. Include key points, implications, and what the patient "
    "should understand about this condition."
)

_SYSTEM_PROMPTS = {
    StageName.EXPLANATION: EXPLANATION_SYSTEM_PROMPT,
    StageName.CONCISE_SUMMARY: CONCISE_SUMMARY_SYSTEM_PROMPT,
    StageName.IMAGE_PROMPT: IMAGE_PROMPT_SYSTEM_PROMPT,
}


def truncate_document(text: str, max_chars: int = DEFAULT_MAX_DOCUMENT_CHARS) -> str:
    """Trim document text to the prompt budget, marking the cut."""
    text = text.strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "\n[... report truncated ...]"


def build_stage_prompt(
    stage: StageName,
    extracted_text: str,
    instruction: str,
    max_document_chars: int = DEFAULT_MAX_DOCUMENT_CHARS
) -> PromptPair:
    """
    Build the prompt pair for a pipeline stage.

    Args:
        stage: Pipeline stage being prompted
        extracted_text: Text extracted from the uploaded document
        instruction: Free-text instruction supplied by the caller
        max_document_chars: Upper bound on document text included

    Returns:
        PromptPair for the text completion
    """
    system = _SYSTEM_PROMPTS[stage]
    body = truncate_document(extracted_text, max_document_chars)

    if stage == StageName.EXPLANATION:
        content = body or NO_TEXT_NOTICE
        user = f"{instruction.strip()}\nFile Content:\n{content}"
    elif body:
        user = f"Medical Report:\n{body}"
    else:
        user = NO_TEXT_NOTICE

    return PromptPair(system=system, user=user)


def build_image_synthesis_prompt(caption: str) -> str:
    """Turn a short caption into an image-generation prompt."""
    prompt = IMAGE_STYLE_PREFIX + " ".join(caption.split())
    return prompt[:MAX_IMAGE_PROMPT_CHARS]


def build_topic_prompt(topic: str) -> PromptPair:
    """Prompt for background information about one medical topic."""
    return PromptPair(
        system="You explain medical topics to patients in plain language.",
        user=TOPIC_PROMPT_TEMPLATE.format(topic=topic.strip())
    )
