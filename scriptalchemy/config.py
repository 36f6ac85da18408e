"""
scriptalchemy.config - YAML config loading and validation.

Handles loading scriptalchemy.yaml from a project directory and validating
the analysis settings (model, output language, duration limit, batching).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from scriptalchemy.exceptions import ConfigError

CONFIG_FILENAME = "scriptalchemy.yaml"

SUPPORTED_MODELS = (
    "gemini-2.5-flash",
    "gemini-3-pro-preview",
    "gemini-3-flash-preview",
    "gemini-2.5-flash-lite-latest",
)


class AnalysisConfig(BaseModel):
    """Resolved configuration for an analysis run."""

    project_name: str = "untitled"

    llm_backend: str = "gemini"
    llm_model: str = "gemini-2.5-flash"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout: int = Field(default=300, gt=0)
    max_retries: int = Field(default=1, ge=1)

    output_language: str = "vi"
    duration_limit_minutes: int = Field(default=0, ge=0)

    batch_size: int = Field(default=40, ge=1)
    max_transcript_chars: int = Field(default=300_000, gt=0)
    score_policy: str = "clamp"

    freeform_min_tail_seconds: int = Field(default=3, ge=0)
    freeform_words_per_second: float = Field(default=3.0, gt=0.0)

    @field_validator("llm_backend")
    @classmethod
    def validate_llm_backend(cls, v: str) -> str:
        valid = {"gemini", "openai", "claude", "ollama"}
        if v not in valid:
            raise ValueError(f"llm_backend must be one of: {valid}")
        return v

    @field_validator("output_language")
    @classmethod
    def validate_output_language(cls, v: str) -> str:
        valid = {"en", "vi"}
        if v not in valid:
            raise ValueError(f"output_language must be one of: {valid}")
        return v

    @field_validator("score_policy")
    @classmethod
    def validate_score_policy(cls, v: str) -> str:
        valid = {"clamp", "reject"}
        if v not in valid:
            raise ValueError(f"score_policy must be one of: {valid}")
        return v


def load_config(project_dir: Path) -> AnalysisConfig:
    """Load and validate configuration from a project directory.

    Raises:
        FileNotFoundError: If scriptalchemy.yaml is missing
        ConfigError: If the file is not valid YAML or fails validation
    """
    config_file = project_dir / CONFIG_FILENAME
    if not config_file.exists():
        raise FileNotFoundError(f"No {CONFIG_FILENAME} found in {project_dir}")

    try:
        with open(config_file, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping of settings")

    return build_config(raw_config)


def build_config(values: dict[str, Any]) -> AnalysisConfig:
    """Validate a settings mapping, dropping unset (None) values."""
    cleaned = {key: value for key, value in values.items() if value is not None}
    try:
        return AnalysisConfig(**cleaned)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def create_default_config(project_name: str, language: str = "vi") -> dict[str, Any]:
    """Create a default config mapping for a new project."""
    defaults = build_config({"project_name": project_name, "output_language": language})
    return {
        "project_name": defaults.project_name,
        "llm_backend": defaults.llm_backend,
        "llm_model": defaults.llm_model,
        "output_language": defaults.output_language,
        "duration_limit_minutes": defaults.duration_limit_minutes,
        "batch_size": defaults.batch_size,
        "score_policy": defaults.score_policy,
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
