"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest
import yaml

from scriptalchemy.models import Segment

# Rich consoles are created at import time and wrap output at 80 columns when
# not attached to a terminal; long tmp paths would split messages mid-phrase.
os.environ.setdefault("COLUMNS", "300")

SAMPLE_SRT = """1
00:00:00,000 --> 00:00:04,200
Stop scrolling. This one habit changed my mornings.

2
00:00:04,200 --> 00:00:09,000
I used to wake up tired every single day.

3
00:00:09,000 --> 00:00:15,500
Here is the <i>exact</i> routine I follow now.

4
00:00:15,500 --> 00:00:20,000
Follow for part two.
"""


class FakeLLM:
    """StructuredLLM stand-in that replays canned responses in order.

    A response that is an Exception instance is raised instead of returned.
    """

    def __init__(self, responses: list[Any], model: str = "fake-model") -> None:
        self.model = model
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.schemas: list[dict[str, Any]] = []

    def generate_structured(self, prompt: str, schema: dict[str, Any]) -> str:
        self.prompts.append(prompt)
        self.schemas.append(schema)
        if not self.responses:
            raise AssertionError("FakeLLM ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)

    def get_token_usage(self) -> dict[str, int]:
        return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


def make_segment(index: int, start: float, end: float | None = None, text: str = "") -> Segment:
    from scriptalchemy.parse.srt import format_timestamp

    end = start + 2.0 if end is None else end
    return Segment(
        index=index,
        start_time=format_timestamp(start),
        end_time=format_timestamp(end),
        text=text or f"Segment number {index}",
        start_seconds=start,
        end_seconds=end,
    )


def global_response(**overrides: Any) -> dict[str, Any]:
    data = {
        "summary": "A morning routine video that promises better energy.",
        "pacingScore": 78,
        "hookScore": 85,
        "dominantTone": "Energetic",
        "keyPatterns": ["Direct address", "Problem then solution"],
        "writingStyle": {
            "toneKeywords": ["upbeat", "casual", "confident"],
            "voiceDescription": "A friend who figured it out",
            "instructionalDirective": "Speak fast and warm, like sharing a secret",
            "rhetoricalDevices": ["Repetition"],
            "complexityLevel": "Simple",
        },
    }
    data.update(overrides)
    return data


def labels_response(segments: list[Segment], label: str = "MAIN_CONTENT") -> list[dict[str, Any]]:
    return [{"index": s.index, "label": label, "analysis": "Delivers the core idea"} for s in segments]


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT


@pytest.fixture
def sample_segments() -> list[Segment]:
    return [make_segment(i, (i - 1) * 5.0, i * 5.0) for i in range(1, 5)]


@pytest.fixture
def sample_global() -> dict[str, Any]:
    return global_response()


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory with basic structure."""
    project_dir = tmp_path / "test_project"
    project_dir.mkdir()
    (project_dir / "data").mkdir()
    (project_dir / "data" / "transcripts").mkdir()
    (project_dir / "data" / "analyses").mkdir()
    (project_dir / "prompts").mkdir()

    config = {"project_name": "test_project", "output_language": "en"}
    with open(project_dir / "scriptalchemy.yaml", "w") as f:
        yaml.dump(config, f)

    manifest = {"project_name": "test_project", "active_id": None, "scripts": []}
    with open(project_dir / "scripts.json", "w") as f:
        json.dump(manifest, f)

    return project_dir
