"""
scriptalchemy.parse.freeform - Bracket-timestamp transcript conversion.

Converts free text with inline ``[m:ss]`` / ``[mm:ss]`` / ``[h:mm:ss]``
markers into indexed subtitle text that parse_transcript accepts.
"""

from __future__ import annotations

import math
import re

from scriptalchemy.parse.srt import format_timestamp

_MARKER_RE = re.compile(r"\[(\d{1,2}:\d{2}|\d:\d{2}:\d{2})\]")

DEFAULT_MIN_TAIL_SECONDS = 3
DEFAULT_WORDS_PER_SECOND = 3.0


def marker_to_seconds(marker: str) -> int:
    """Convert "m:ss" or "h:mm:ss" to whole seconds."""
    parts = [int(p) for p in marker.split(":")]
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    return parts[0] * 3600 + parts[1] * 60 + parts[2]


def estimate_tail_seconds(
    text: str,
    min_seconds: int = DEFAULT_MIN_TAIL_SECONDS,
    words_per_second: float = DEFAULT_WORDS_PER_SECOND,
) -> int:
    """Estimate how long the last marker's text takes to speak."""
    word_count = len(text.split())
    return max(min_seconds, math.ceil(word_count / words_per_second))


def convert_freeform(
    raw_text: str,
    *,
    min_tail_seconds: int = DEFAULT_MIN_TAIL_SECONDS,
    words_per_second: float = DEFAULT_WORDS_PER_SECOND,
) -> str:
    """Convert bracket-timestamped text to indexed subtitle text.

    Text between a marker and the next one (or the end of input) becomes a
    single-line block with whitespace runs collapsed to single spaces.
    Empty stretches are skipped and do not consume an index. A
    block ends where the next marker starts; the final block's end is
    estimated from its word count.

    Args:
        raw_text: Transcript text with inline time markers
        min_tail_seconds: Minimum duration of the final block
        words_per_second: Speaking rate used to size the final block

    Returns:
        Indexed subtitle text, or "" when no usable marker is found
    """
    markers = list(_MARKER_RE.finditer(raw_text))
    if not markers:
        return ""

    blocks = []
    for i, current in enumerate(markers):
        following = markers[i + 1] if i + 1 < len(markers) else None
        content_end = following.start() if following else len(raw_text)
        # Blank lines inside a block would split it when re-parsed
        content = " ".join(raw_text[current.end() : content_end].split())
        if not content:
            continue

        start = marker_to_seconds(current.group(1))
        if following:
            end = marker_to_seconds(following.group(1))
        else:
            end = start + estimate_tail_seconds(content, min_tail_seconds, words_per_second)

        blocks.append(
            f"{len(blocks) + 1}\n{format_timestamp(start)} --> {format_timestamp(end)}\n{content}\n\n"
        )

    return "".join(blocks)
