"""
scriptalchemy.llm.templates - Prompt template loading and rendering.

Uses Jinja2 to load and render the prompt templates shipped in the
package's prompts/ directory (or a project-local override directory).
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

from scriptalchemy.models import ScriptAnalysis, Segment, SegmentLabel

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

LANGUAGE_NAMES = {
    "en": "English",
    "vi": "Vietnamese",
}


class PromptTemplateManager:
    """Manages loading and rendering of prompt templates."""

    def __init__(self, prompts_dir: Path | None = None) -> None:
        self.prompts_dir = prompts_dir or PROMPTS_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.prompts_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._cache: dict[str, Template] = {}

    def get_template(self, name: str) -> Template:
        """Load a template by name.

        Raises:
            FileNotFoundError: If template doesn't exist
        """
        if name not in self._cache:
            template_path = self.prompts_dir / name
            if not template_path.exists():
                raise FileNotFoundError(f"Template not found: {template_path}")
            self._cache[name] = self.env.get_template(name)
        return self._cache[name]

    def render(
        self,
        template_name: str,
        variables: dict[str, Any],
        language: str = "en",
    ) -> str:
        """Render a template with variables plus the language rule inputs."""
        template = self.get_template(template_name)
        context = {
            "LANGUAGE_NAME": language_name(language),
            "LABELS": [label.value for label in SegmentLabel],
            **variables,
        }
        return template.render(**context)

    def list_templates(self) -> list[str]:
        """List available templates."""
        if not self.prompts_dir.exists():
            return []
        return sorted(f.name for f in self.prompts_dir.glob("*.txt"))


def language_name(language: str) -> str:
    """Human-readable name of an output language code."""
    return LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["en"])


def build_full_text(segments: Sequence[Segment], max_chars: int) -> str:
    """Join segment texts with single spaces, truncated to max_chars."""
    return " ".join(seg.text for seg in segments)[:max_chars]


def format_segments_for_prompt(segments: Sequence[Segment]) -> str:
    """Render one line per segment: ``ID:<index> [<start> - <end>] <text>``."""
    return "\n".join(
        f"ID:{seg.index} [{seg.start_time} - {seg.end_time}] {seg.text}" for seg in segments
    )


def format_analyses_for_prompt(analyses: Sequence[ScriptAnalysis]) -> str:
    """Summarize completed analyses for the master template prompt."""
    blocks = []
    for i, analysis in enumerate(analyses, start=1):
        directive = "N/A"
        if analysis.writing_style and analysis.writing_style.instructional_directive:
            directive = analysis.writing_style.instructional_directive

        lines = [
            f"Script {i}:",
            f"Summary: {analysis.summary}",
            f"Patterns: {', '.join(analysis.key_patterns)}",
            f"Tone: {analysis.dominant_tone}",
            f"Voice Instruction: {directive}",
        ]
        blocks.append("\n".join(lines))

    return "\n---\n".join(blocks)
