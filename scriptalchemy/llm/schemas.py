"""
scriptalchemy.llm.schemas - Declared response schemas for each LLM request.

Plain JSON-schema dicts handed to StructuredLLM.generate_structured.
"""

from __future__ import annotations

from typing import Any

from scriptalchemy.models import SegmentLabel

LABEL_VALUES = [label.value for label in SegmentLabel]

_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": _STRING}

WRITING_STYLE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "toneKeywords": _STRING_LIST,
        "voiceDescription": _STRING,
        "instructionalDirective": _STRING,
        "rhetoricalDevices": _STRING_LIST,
        "complexityLevel": _STRING,
    },
}

GLOBAL_ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": _STRING,
        "pacingScore": {"type": "number", "minimum": 0, "maximum": 100},
        "hookScore": {"type": "number", "minimum": 0, "maximum": 100},
        "dominantTone": _STRING,
        "keyPatterns": _STRING_LIST,
        "writingStyle": WRITING_STYLE_SCHEMA,
    },
    "required": ["summary", "pacingScore", "hookScore"],
}

BATCH_LABELS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "index": {"type": "number", "description": "The ID provided in input"},
            "label": {"type": "string", "enum": LABEL_VALUES},
            "analysis": {
                "type": "string",
                "description": "Max 10 words reason in target language",
            },
        },
        "required": ["index", "label"],
    },
}

MASTER_TEMPLATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": _STRING,
        "targetAudience": _STRING,
        "structure": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "section": {"type": "string", "enum": LABEL_VALUES},
                    "durationPercent": _STRING,
                    "description": _STRING,
                    "examplePhrases": _STRING_LIST,
                },
            },
        },
        "winningFormula": _STRING,
        "tips": _STRING_LIST,
    },
    "required": ["title", "structure"],
}
