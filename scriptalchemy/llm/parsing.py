"""
scriptalchemy.llm.parsing - LLM output JSON parsing with validation.

Handles fenced or slightly broken JSON from the model, the lenient
array lookup used for batch labeling, and validation of the global and
template responses against their declared shape.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from scriptalchemy.exceptions import LLMResponseError
from scriptalchemy.logging import logger
from scriptalchemy.models import (
    BlueprintSection,
    GlobalAnalysis,
    MasterTemplate,
    SegmentLabel,
    WritingStyle,
)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*", re.IGNORECASE)


def strip_code_fences(response: str) -> str:
    """Remove markdown code fences wrapped around a response."""
    text = (response or "").strip()
    if "```" in text:
        text = _FENCE_RE.sub("", text).strip()
    return text


def repair_json(text: str) -> str:
    """Attempt to repair common JSON issues.

    Args:
        text: JSON string with potential issues

    Returns:
        Repaired JSON string
    """
    # Remove trailing commas before } or ]
    text = re.sub(r",(\s*[}\]])", r"\1", text)

    open_braces = text.count("{") - text.count("}")
    open_brackets = text.count("[") - text.count("]")

    if open_braces > 0:
        text += "}" * open_braces
    if open_brackets > 0:
        text += "]" * open_brackets

    return text


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(repair_json(text))
    except json.JSONDecodeError:
        return None


def _first_json_span(text: str) -> str | None:
    """Return the outermost {...} or [...] span that starts first."""
    starts = [pos for pos in (text.find("{"), text.find("[")) if pos >= 0]
    if not starts:
        return None
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return text[start:]
    return text[start : end + 1]


def parse_json_value(response: str) -> Any:
    """Parse a JSON value (object or array) from an LLM response.

    Handles:
    - Markdown code blocks (```json ... ```)
    - Trailing commas and unclosed brackets
    - Text before/after the JSON

    Raises:
        LLMResponseError: If no JSON value can be recovered
    """
    text = strip_code_fences(response)
    if not text:
        raise LLMResponseError("Empty response from LLM")

    value = _loads(text)
    if value is not None:
        return value

    span = _first_json_span(text)
    if span is not None:
        value = _loads(span)
        if value is not None:
            return value

    raise LLMResponseError(
        f"Failed to parse LLM response as JSON after repair attempts.\n\n"
        f"Response (first 500 chars):\n{text[:500]}"
    )


def parse_llm_json(response: str) -> dict[str, Any]:
    """Parse a JSON object from an LLM response.

    Raises:
        LLMResponseError: If parsing fails or the value is not an object
    """
    value = parse_json_value(response)
    if not isinstance(value, dict):
        raise LLMResponseError(f"Expected a JSON object, got {type(value).__name__}")
    return value


def extract_result_array(response: str) -> list[Any]:
    """Locate the per-segment result list in a batch response.

    Models sometimes wrap the requested array in an object such as
    ``{"results": [...]}``; the first array-valued property is used then.

    Raises:
        LLMResponseError: If the response does not parse or holds no array
    """
    value = parse_json_value(response)
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for item in value.values():
            if isinstance(item, list):
                return item
    raise LLMResponseError("No result array found in batch response")


def _field(data: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _string(value: Any, default: str = "") -> str:
    return value.strip() if isinstance(value, str) else default


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def normalize_score(value: Any, name: str, policy: str = "clamp") -> int:
    """Validate a 0-100 score from the global pass.

    Non-numeric and non-finite values are always rejected. Out-of-range values are clamped
    (with a warning) under the "clamp" policy and rejected under "reject".

    Raises:
        LLMResponseError: If the score is unusable under the policy
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LLMResponseError(f"'{name}' must be a number, got {value!r}")
    if not math.isfinite(value):
        raise LLMResponseError(f"'{name}' must be a finite number, got {value!r}")

    score = int(round(value))
    if 0 <= score <= 100:
        return score

    if policy == "reject":
        raise LLMResponseError(f"'{name}' out of range [0, 100]: {value}")

    clamped = min(100, max(0, score))
    logger.warning("Clamping out-of-range %s %s to %d", name, value, clamped)
    return clamped


def validate_global_response(data: dict[str, Any], score_policy: str = "clamp") -> GlobalAnalysis:
    """Validate and normalize the global analysis response.

    Args:
        data: Parsed JSON from LLM
        score_policy: "clamp" or "reject" for out-of-range scores

    Returns:
        GlobalAnalysis with normalized fields

    Raises:
        LLMResponseError: If required fields are missing or invalid
    """
    summary = _field(data, "summary", "summary")
    if not isinstance(summary, str) or not summary.strip():
        raise LLMResponseError("Global analysis response missing 'summary'")

    style_data = _field(data, "writingStyle", "writing_style")
    writing_style = None
    if isinstance(style_data, dict):
        writing_style = WritingStyle(
            tone_keywords=_string_list(_field(style_data, "toneKeywords", "tone_keywords")),
            voice_description=_string(_field(style_data, "voiceDescription", "voice_description")),
            instructional_directive=_string(
                _field(style_data, "instructionalDirective", "instructional_directive")
            ),
            rhetorical_devices=_string_list(
                _field(style_data, "rhetoricalDevices", "rhetorical_devices")
            ),
            complexity_level=_string(_field(style_data, "complexityLevel", "complexity_level")),
        )

    return GlobalAnalysis(
        summary=summary.strip(),
        pacing_score=normalize_score(
            _field(data, "pacingScore", "pacing_score"), "pacingScore", score_policy
        ),
        hook_score=normalize_score(
            _field(data, "hookScore", "hook_score"), "hookScore", score_policy
        ),
        dominant_tone=_string(_field(data, "dominantTone", "dominant_tone")),
        key_patterns=_string_list(_field(data, "keyPatterns", "key_patterns")),
        writing_style=writing_style,
    )


def validate_template_response(data: dict[str, Any]) -> MasterTemplate:
    """Validate and normalize the master template response.

    Unknown section labels are mapped to OTHER.

    Raises:
        LLMResponseError: If the blueprint is missing or not a list
    """
    structure = data.get("structure")
    if not isinstance(structure, list):
        raise LLMResponseError("Template response missing 'structure' list")

    sections = []
    for i, item in enumerate(structure):
        if not isinstance(item, dict):
            logger.warning("Skipping blueprint entry %d: not an object", i)
            continue

        label = SegmentLabel.coerce(item.get("section"))
        if label is None:
            logger.warning("Unknown blueprint section %r, using OTHER", item.get("section"))
            label = SegmentLabel.OTHER

        duration = _field(item, "durationPercent", "duration_percent", "")
        sections.append(
            BlueprintSection(
                section=label,
                duration_percent=str(duration).strip() if duration is not None else "",
                description=_string(item.get("description")),
                example_phrases=_string_list(_field(item, "examplePhrases", "example_phrases")),
            )
        )

    return MasterTemplate(
        title=_string(data.get("title")) or "Untitled template",
        target_audience=_string(_field(data, "targetAudience", "target_audience")),
        structure=sections,
        winning_formula=_string(_field(data, "winningFormula", "winning_formula")),
        tips=_string_list(data.get("tips")),
    )
