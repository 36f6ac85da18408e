"""Tests for scriptalchemy.config."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from scriptalchemy.config import (
    AnalysisConfig,
    build_config,
    create_default_config,
    load_config,
    write_config,
)
from scriptalchemy.exceptions import ConfigError


class TestAnalysisConfig:
    def test_default_config(self) -> None:
        config = AnalysisConfig()
        assert config.llm_backend == "gemini"
        assert config.llm_model == "gemini-2.5-flash"
        assert config.output_language == "vi"
        assert config.duration_limit_minutes == 0
        assert config.batch_size == 40
        assert config.max_retries == 1
        assert config.score_policy == "clamp"

    def test_invalid_llm_backend_raises(self) -> None:
        with pytest.raises(ValueError):
            AnalysisConfig(llm_backend="invalid")

    def test_invalid_language_raises(self) -> None:
        with pytest.raises(ValueError):
            AnalysisConfig(output_language="fr")

    def test_invalid_score_policy_raises(self) -> None:
        with pytest.raises(ValueError):
            AnalysisConfig(score_policy="ignore")

    def test_negative_duration_limit_raises(self) -> None:
        with pytest.raises(ValueError):
            AnalysisConfig(duration_limit_minutes=-1)

    def test_zero_batch_size_raises(self) -> None:
        with pytest.raises(ValueError):
            AnalysisConfig(batch_size=0)


class TestBuildConfig:
    def test_none_values_use_defaults(self) -> None:
        config = build_config({"llm_model": None, "duration_limit_minutes": 5})
        assert config.llm_model == "gemini-2.5-flash"
        assert config.duration_limit_minutes == 5

    def test_validation_error_becomes_config_error(self) -> None:
        with pytest.raises(ConfigError):
            build_config({"output_language": "de"})


class TestCreateDefaultConfig:
    def test_sets_project_and_language(self) -> None:
        config = create_default_config("my-channel", language="en")
        assert config["project_name"] == "my-channel"
        assert config["output_language"] == "en"
        assert config["llm_model"] == "gemini-2.5-flash"

    def test_invalid_language_raises(self) -> None:
        with pytest.raises(ConfigError):
            create_default_config("x", language="jp")


class TestLoadConfig:
    def test_load_from_project(self, tmp_project: Path) -> None:
        config = load_config(tmp_project)
        assert config.project_name == "test_project"
        assert config.output_language == "en"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        (tmp_path / "scriptalchemy.yaml").write_text("llm_model: [unclosed")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        (tmp_path / "scriptalchemy.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "scriptalchemy.yaml").write_text("")
        assert load_config(tmp_path).llm_model == "gemini-2.5-flash"

    def test_roundtrip_through_write_config(self, tmp_path: Path) -> None:
        write_config(create_default_config("demo", "vi"), tmp_path / "scriptalchemy.yaml")
        raw = yaml.safe_load((tmp_path / "scriptalchemy.yaml").read_text())
        assert raw["project_name"] == "demo"
        assert load_config(tmp_path).output_language == "vi"
