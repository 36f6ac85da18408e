"""
scriptalchemy.llm.labels - Per-batch segment labeling (LLM Pass 2).

Labels each segment of a batch with its structural role and a short
rationale. A bad response degrades to fallback labels instead of failing.
"""

from __future__ import annotations

from collections.abc import Sequence

from scriptalchemy.exceptions import ConfigError, LLMResponseError
from scriptalchemy.llm.client import StructuredLLM
from scriptalchemy.llm.parsing import extract_result_array
from scriptalchemy.llm.reconcile import BATCH_ERROR, fallback_batch, reconcile_batch
from scriptalchemy.llm.schemas import BATCH_LABELS_SCHEMA
from scriptalchemy.llm.templates import PromptTemplateManager, format_segments_for_prompt
from scriptalchemy.logging import logger
from scriptalchemy.models import AnalyzedSegment, Segment


def label_batch(
    batch: Sequence[Segment],
    summary: str,
    client: StructuredLLM,
    template_manager: PromptTemplateManager,
    language: str = "en",
) -> list[AnalyzedSegment]:
    """Label one batch of segments.

    Request failures and undecodable responses are logged and turned into
    MAIN_CONTENT fallbacks. Configuration errors (missing credentials)
    still propagate.

    Args:
        batch: Segments in this batch
        summary: Global summary used as context
        client: StructuredLLM implementation
        template_manager: PromptTemplateManager instance
        language: Output language code for rationales

    Returns:
        One AnalyzedSegment per input segment, in order
    """
    prompt = template_manager.render(
        "batch_labels.txt",
        {
            "SUMMARY": summary,
            "SEGMENTS": format_segments_for_prompt(batch),
        },
        language=language,
    )

    try:
        response = client.generate_structured(prompt, BATCH_LABELS_SCHEMA)
    except ConfigError:
        raise
    except LLMResponseError as e:
        logger.warning("Batch starting at segment %d returned no content: %s", batch[0].index, e)
        return reconcile_batch(batch, [])
    except Exception as e:
        logger.warning("Batch starting at segment %d failed: %s", batch[0].index, e)
        return fallback_batch(batch, BATCH_ERROR)

    try:
        results = extract_result_array(response)
    except LLMResponseError as e:
        logger.warning("Could not decode batch starting at segment %d: %s", batch[0].index, e)
        results = []

    return reconcile_batch(batch, results)
