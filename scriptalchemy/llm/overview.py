"""
scriptalchemy.llm.overview - Global transcript analysis (LLM Pass 1).

Reads the whole transcript once for summary, pacing and hook scores,
dominant tone, recurring patterns, and writing style.
"""

from __future__ import annotations

from collections.abc import Sequence

from scriptalchemy.llm.client import StructuredLLM
from scriptalchemy.llm.parsing import parse_llm_json, validate_global_response
from scriptalchemy.llm.schemas import GLOBAL_ANALYSIS_SCHEMA
from scriptalchemy.llm.templates import PromptTemplateManager, build_full_text
from scriptalchemy.logging import logger
from scriptalchemy.models import GlobalAnalysis, Segment


def analyze_global(
    segments: Sequence[Segment],
    client: StructuredLLM,
    template_manager: PromptTemplateManager,
    language: str = "en",
    max_chars: int = 300_000,
    score_policy: str = "clamp",
) -> GlobalAnalysis:
    """Run the global analysis pass over a transcript.

    Args:
        segments: Segments to analyze
        client: StructuredLLM implementation
        template_manager: PromptTemplateManager instance
        language: Output language code for prose fields
        max_chars: Character budget for the transcript text
        score_policy: "clamp" or "reject" for out-of-range scores

    Returns:
        Validated GlobalAnalysis

    Raises:
        CredentialError: If the client has no API key
        LLMError: If the request fails or the response is unusable
    """
    transcript = build_full_text(segments, max_chars)

    prompt = template_manager.render(
        "global_analysis.txt",
        {"TRANSCRIPT": transcript},
        language=language,
    )

    logger.debug("Sending global analysis prompt (%d chars)", len(prompt))

    response = client.generate_structured(prompt, GLOBAL_ANALYSIS_SCHEMA)

    data = parse_llm_json(response)
    return validate_global_response(data, score_policy=score_policy)
