"""
scriptalchemy.llm.reconcile - Map batch labeling results onto segments.

Every input segment yields exactly one AnalyzedSegment; entries the model
skipped or mislabeled fall back to MAIN_CONTENT.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from scriptalchemy.models import AnalyzedSegment, Segment, SegmentLabel

ANALYSIS_MISSING = "Analysis missing"
BATCH_ERROR = "Error in analysis"

FALLBACK_LABEL = SegmentLabel.MAIN_CONTENT


def result_index(entry: Any) -> int | None:
    """Return the segment index an AI result entry refers to, if any.

    Accepts ints, integral floats ("3.0"-style numbers), and numeric strings.
    """
    if not isinstance(entry, dict):
        return None
    value = entry.get("index")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def annotate(segment: Segment, label: SegmentLabel, rationale: str) -> AnalyzedSegment:
    return AnalyzedSegment(**segment.model_dump(), label=label, rationale=rationale)


def reconcile_batch(
    batch: Sequence[Segment],
    ai_results: Sequence[Any],
    missing_rationale: str = ANALYSIS_MISSING,
) -> list[AnalyzedSegment]:
    """Attach AI labels to the original segments of one batch.

    The first result whose index matches a segment wins; later duplicates
    are ignored. A missing entry or a label outside SegmentLabel gives
    MAIN_CONTENT with the placeholder rationale.

    Args:
        batch: Original segments, in order
        ai_results: Decoded result entries (may be empty or malformed)
        missing_rationale: Rationale used for unmatched segments

    Returns:
        One AnalyzedSegment per input segment, in input order
    """
    by_index: dict[int, Any] = {}
    for entry in ai_results:
        index = result_index(entry)
        if index is not None and index not in by_index:
            by_index[index] = entry

    analyzed = []
    for segment in batch:
        entry = by_index.get(segment.index)
        label = SegmentLabel.coerce(entry.get("label")) if entry else None

        if label is None:
            analyzed.append(annotate(segment, FALLBACK_LABEL, missing_rationale))
            continue

        rationale = entry.get("analysis")
        if not isinstance(rationale, str) or not rationale.strip():
            rationale = missing_rationale
        analyzed.append(annotate(segment, label, rationale.strip()))

    return analyzed


def fallback_batch(
    batch: Sequence[Segment],
    rationale: str = BATCH_ERROR,
) -> list[AnalyzedSegment]:
    """Label a whole batch MAIN_CONTENT after a failed request."""
    return [annotate(segment, FALLBACK_LABEL, rationale) for segment in batch]
