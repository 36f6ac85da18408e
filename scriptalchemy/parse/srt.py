"""
scriptalchemy.parse.srt - Indexed (SRT) subtitle parsing.

Parses blank-line separated subtitle blocks into ordered Segments with
second-granularity offsets. Malformed blocks are dropped, never raised.
"""

from __future__ import annotations

import re

from pydantic import ValidationError

from scriptalchemy.logging import logger
from scriptalchemy.models import Segment

# HH:MM:SS,mmm --> HH:MM:SS,mmm
_TIMESTAMP_RE = re.compile(r"(\d{2}:\d{2}:\d{2},\d{3}) --> (\d{2}:\d{2}:\d{2},\d{3})")

_BLOCK_SEPARATOR_RE = re.compile(r"\n[ \t]*\n")

_MARKUP_RE = re.compile(r"<[^>]*>")


def timestamp_to_seconds(timestamp: str) -> float:
    """Convert "HH:MM:SS,mmm" to seconds.

    >>> timestamp_to_seconds("01:02:03,500")
    3723.5
    """
    clock, millis = timestamp.split(",")
    hours, minutes, seconds = clock.split(":")
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + int(millis) / 1000


def format_timestamp(seconds: float) -> str:
    """Format seconds as "HH:MM:SS,mmm"."""
    total_ms = int(round(seconds * 1000))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def normalize_newlines(text: str) -> str:
    """Strip a UTF-8 BOM and convert CRLF/CR line endings to LF."""
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_transcript(raw_text: str) -> list[Segment]:
    """Parse indexed subtitle text into segments.

    Each block needs an integer index line, a timestamp line and at least
    one text line. Blocks failing any of these are skipped.

    Args:
        raw_text: Raw subtitle file content

    Returns:
        Segments in block order (possibly empty)
    """
    text = normalize_newlines(raw_text).strip()
    if not text:
        return []

    segments = []
    for block_number, block in enumerate(_BLOCK_SEPARATOR_RE.split(text), start=1):
        segment = _parse_block(block.strip("\n"))
        if segment is None:
            logger.debug("Skipping malformed subtitle block #%d", block_number)
            continue
        segments.append(segment)

    return segments


def _parse_block(block: str) -> Segment | None:
    lines = block.split("\n")
    if len(lines) < 3:
        return None

    try:
        index = int(lines[0].strip())
    except ValueError:
        return None

    match = _TIMESTAMP_RE.search(lines[1])
    if not match:
        return None

    start_time, end_time = match.group(1), match.group(2)
    text = _MARKUP_RE.sub("", " ".join(lines[2:])).strip()

    try:
        return Segment(
            index=index,
            start_time=start_time,
            end_time=end_time,
            text=text,
            start_seconds=timestamp_to_seconds(start_time),
            end_seconds=timestamp_to_seconds(end_time),
        )
    except ValidationError:
        return None

