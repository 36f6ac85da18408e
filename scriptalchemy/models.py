"""
scriptalchemy.models - Transcript, analysis, and template data models.

Models serialize with camelCase keys (``startTime``, ``pacingScore``...),
which is also the key style of the LLM response schemas. Python code uses
the snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SegmentLabel(str, Enum):
    """Structural role of a transcript segment."""

    HOOK = "HOOK"
    SETUP = "SETUP"
    MAIN_CONTENT = "MAIN_CONTENT"
    PATTERN_INTERRUPT = "PATTERN_INTERRUPT"
    ENDING = "ENDING"
    CTA = "CTA"
    OTHER = "OTHER"

    @classmethod
    def coerce(cls, value: object) -> SegmentLabel | None:
        """Return the label matching value (case-insensitive), or None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class ProcessingStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Segment(_CamelModel):
    """One timestamped unit of transcript text."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    index: int = Field(ge=1)
    start_time: str
    end_time: str
    text: str
    start_seconds: float = Field(ge=0.0)
    end_seconds: float = Field(ge=0.0)

    @model_validator(mode="after")
    def check_order(self) -> Segment:
        if self.start_seconds > self.end_seconds:
            raise ValueError(
                f"Segment {self.index} ends ({self.end_time}) before it starts ({self.start_time})"
            )
        return self

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class AnalyzedSegment(Segment):
    """A segment with its structural label and a short rationale."""

    label: SegmentLabel
    rationale: str = Field(alias="analysis")


class WritingStyle(_CamelModel):
    tone_keywords: list[str] = Field(default_factory=list)
    voice_description: str = ""
    instructional_directive: str = ""
    rhetorical_devices: list[str] = Field(default_factory=list)
    complexity_level: str = ""


class GlobalAnalysis(_CamelModel):
    """Whole-transcript fields produced by the global pass."""

    summary: str
    pacing_score: int = Field(ge=0, le=100)
    hook_score: int = Field(ge=0, le=100)
    dominant_tone: str = ""
    key_patterns: list[str] = Field(default_factory=list)
    writing_style: WritingStyle | None = None


class ScriptAnalysis(GlobalAnalysis):
    """Completed analysis of one transcript."""

    segments: list[AnalyzedSegment] = Field(default_factory=list)
    llm_model: str | None = None
    analyzed_at: str | None = None
    duration_limit_minutes: int = 0

    def label_counts(self) -> dict[SegmentLabel, int]:
        counts: dict[SegmentLabel, int] = {}
        for seg in self.segments:
            counts[seg.label] = counts.get(seg.label, 0) + 1
        return counts


class BlueprintSection(_CamelModel):
    section: SegmentLabel
    duration_percent: str = ""
    description: str = ""
    example_phrases: list[str] = Field(default_factory=list)


class MasterTemplate(_CamelModel):
    """Cross-script structural formula synthesized from several analyses."""

    title: str
    target_audience: str = ""
    structure: list[BlueprintSection] = Field(default_factory=list)
    winning_formula: str = ""
    tips: list[str] = Field(default_factory=list)
    llm_model: str | None = None
    generated_at: str | None = None
    source_count: int = 0


class ScriptFile(_CamelModel):
    """A transcript file tracked by a project manifest."""

    id: str
    filename: str
    source_file: str = ""
    added: str = Field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))
    status: ProcessingStatus = ProcessingStatus.QUEUED
    segment_count: int = 0
    progress: str | None = None
    error: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("id must not be empty")
        return v
