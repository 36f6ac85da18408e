"""
scriptalchemy.pipeline - Script analysis orchestration.

One run takes a transcript's segments through the global pass and then
the batch labeling pass, one LLM call at a time, and returns a complete
ScriptAnalysis. A failed batch degrades to fallback labels; a failed
global pass fails the whole run.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from enum import Enum

from scriptalchemy.batching import prepare_batches
from scriptalchemy.config import AnalysisConfig
from scriptalchemy.exceptions import (
    AnalysisError,
    ConfigError,
    TranscriptFormatError,
)
from scriptalchemy.llm.client import StructuredLLM
from scriptalchemy.llm.labels import label_batch
from scriptalchemy.llm.overview import analyze_global
from scriptalchemy.llm.templates import PromptTemplateManager
from scriptalchemy.logging import logger
from scriptalchemy.models import AnalyzedSegment, GlobalAnalysis, ScriptAnalysis, Segment

ProgressCallback = Callable[[str], None]

PROGRESS_MESSAGES = {
    "en": {
        "global": "Analyzing global structure, tone & writing style...",
        "batch": "Analyzing segments batch {current}/{total}...",
        "finalizing": "Finalizing report...",
        "limit": " (First {minutes} mins)",
    },
    "vi": {
        "global": "Đang phân tích cấu trúc tổng thể...",
        "batch": "Đang phân tích chi tiết phần {current}/{total}...",
        "finalizing": "Đang hoàn thiện báo cáo...",
        "limit": " ({minutes} phút đầu)",
    },
}


class AnalysisState(str, Enum):
    IDLE = "idle"
    GLOBAL_ANALYSIS = "global_analysis"
    BATCH_ANALYSIS = "batch_analysis"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


def progress_message(key: str, language: str, limit_minutes: int = 0, **values: int) -> str:
    """Build a localized progress message."""
    messages = PROGRESS_MESSAGES.get(language, PROGRESS_MESSAGES["en"])
    message = messages[key].format(**values)
    if limit_minutes > 0:
        message += messages["limit"].format(minutes=limit_minutes)
    return message


class AnalysisRun:
    """A single analysis of one transcript.

    Progresses IDLE → GLOBAL_ANALYSIS → BATCH_ANALYSIS → FINALIZING and
    ends in DONE or FAILED. A run is used once.
    """

    def __init__(
        self,
        segments: Sequence[Segment],
        client: StructuredLLM,
        config: AnalysisConfig | None = None,
        on_progress: ProgressCallback | None = None,
        template_manager: PromptTemplateManager | None = None,
    ) -> None:
        self.segments = list(segments)
        self.client = client
        self.config = config or AnalysisConfig()
        self.on_progress = on_progress
        self.template_manager = template_manager or PromptTemplateManager()
        self.state = AnalysisState.IDLE
        self.batch_index = 0
        self.batch_count = 0

    def _report(self, key: str, **values: int) -> None:
        if self.on_progress is None:
            return
        self.on_progress(
            progress_message(
                key,
                self.config.output_language,
                self.config.duration_limit_minutes,
                **values,
            )
        )

    def run(self) -> ScriptAnalysis:
        """Execute the run.

        Returns:
            Completed ScriptAnalysis, segments in original order

        Raises:
            TranscriptFormatError: If there are no segments
            DurationRangeError: If the duration limit leaves no segments
            ConfigError: If the LLM credential is missing
            AnalysisError: If the global pass fails
        """
        if self.state is not AnalysisState.IDLE:
            raise AnalysisError(f"Analysis run already used (state: {self.state.value})")

        try:
            return self._run()
        except Exception:
            self.state = AnalysisState.FAILED
            raise

    def _run(self) -> ScriptAnalysis:
        config = self.config
        if not self.segments:
            raise TranscriptFormatError("Transcript contains no segments to analyze")

        batches = prepare_batches(
            self.segments,
            limit_minutes=config.duration_limit_minutes,
            batch_size=config.batch_size,
        )
        analyzed_input = [seg for batch in batches for seg in batch]
        self.batch_count = len(batches)

        self.state = AnalysisState.GLOBAL_ANALYSIS
        self._report("global")
        overview = self._global_pass(analyzed_input)

        self.state = AnalysisState.BATCH_ANALYSIS
        analyzed: list[AnalyzedSegment] = []
        for i, batch in enumerate(batches):
            self.batch_index = i + 1
            self._report("batch", current=i + 1, total=len(batches))
            analyzed.extend(
                label_batch(
                    batch,
                    summary=overview.summary,
                    client=self.client,
                    template_manager=self.template_manager,
                    language=config.output_language,
                )
            )

        self.state = AnalysisState.FINALIZING
        self._report("finalizing")

        model_name = getattr(self.client, "model", None)
        analysis = ScriptAnalysis(
            **overview.model_dump(),
            segments=analyzed,
            llm_model=model_name if isinstance(model_name, str) else None,
            analyzed_at=datetime.now().isoformat(timespec="seconds"),
            duration_limit_minutes=config.duration_limit_minutes,
        )

        self.state = AnalysisState.DONE
        logger.debug(
            "Analysis complete: %d segments in %d batch(es)", len(analyzed), len(batches)
        )
        return analysis

    def _global_pass(self, segments: Sequence[Segment]) -> GlobalAnalysis:
        try:
            return analyze_global(
                segments,
                client=self.client,
                template_manager=self.template_manager,
                language=self.config.output_language,
                max_chars=self.config.max_transcript_chars,
                score_policy=self.config.score_policy,
            )
        except (ConfigError, AnalysisError):
            raise
        except Exception as e:
            raise AnalysisError(f"Global analysis failed: {e}") from e


def run_analysis(
    segments: Sequence[Segment],
    client: StructuredLLM,
    config: AnalysisConfig | None = None,
    on_progress: ProgressCallback | None = None,
    template_manager: PromptTemplateManager | None = None,
) -> ScriptAnalysis:
    """Analyze one transcript end to end.

    Args:
        segments: Parsed transcript segments
        client: StructuredLLM implementation (model lives on the client)
        config: Language, duration limit and batching settings
        on_progress: Called with a human-readable message before each step
        template_manager: PromptTemplateManager instance

    Returns:
        Completed ScriptAnalysis
    """
    run = AnalysisRun(
        segments,
        client=client,
        config=config,
        on_progress=on_progress,
        template_manager=template_manager,
    )
    return run.run()

