"""
scriptalchemy.parse - Transcript parsing.

Pipeline Stage 1: Turn raw subtitle text (indexed SRT blocks, or free
text with [m:ss] markers) into ordered Segments.
"""

from __future__ import annotations

from scriptalchemy.exceptions import TranscriptFormatError
from scriptalchemy.models import Segment
from scriptalchemy.parse.freeform import convert_freeform
from scriptalchemy.parse.srt import parse_transcript, timestamp_to_seconds

__all__ = [
    "convert_freeform",
    "load_transcript",
    "parse_transcript",
    "timestamp_to_seconds",
]


def load_transcript(
    raw_text: str,
    min_tail_seconds: int = 3,
    words_per_second: float = 3.0,
) -> list[Segment]:
    """Parse a transcript in either supported format.

    Tries the indexed format first and falls back to bracket markers.

    Raises:
        TranscriptFormatError: If neither format yields any segment
    """
    segments = parse_transcript(raw_text)
    if segments:
        return segments

    converted = convert_freeform(
        raw_text,
        min_tail_seconds=min_tail_seconds,
        words_per_second=words_per_second,
    )
    if converted:
        segments = parse_transcript(converted)
    if not segments:
        raise TranscriptFormatError(
            "No subtitle blocks or [m:ss] time markers found in transcript"
        )
    return segments
