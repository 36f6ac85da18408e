"""
scriptalchemy.project - Project directory and script queue management.

A project holds scriptalchemy.yaml, a scripts.json manifest of transcript
files with their processing status, and the parsed segments, analyses
and last master template under data/.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from scriptalchemy.config import CONFIG_FILENAME, create_default_config, write_config
from scriptalchemy.exceptions import ProjectError
from scriptalchemy.io import read_json, read_model, read_model_list, write_json, write_model
from scriptalchemy.models import (
    MasterTemplate,
    ProcessingStatus,
    ScriptAnalysis,
    ScriptFile,
    Segment,
)


class Project:
    """Represents a ScriptAlchemy project directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.config_path = path / CONFIG_FILENAME
        self.manifest_path = path / "scripts.json"
        self.data_dir = path / "data"
        self.prompts_dir = path / "prompts"

    @property
    def transcripts_dir(self) -> Path:
        return self.data_dir / "transcripts"

    @property
    def analyses_dir(self) -> Path:
        return self.data_dir / "analyses"

    @property
    def template_path(self) -> Path:
        return self.data_dir / "template.json"

    def exists(self) -> bool:
        return self.config_path.exists() and self.manifest_path.exists()

    def create(self, language: str = "vi") -> None:
        """Create the project directory structure."""
        self.path.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(exist_ok=True)
        self.transcripts_dir.mkdir(exist_ok=True)
        self.analyses_dir.mkdir(exist_ok=True)
        self.prompts_dir.mkdir(exist_ok=True)

        config = create_default_config(self.path.name, language)
        write_config(config, self.config_path)

        manifest = {
            "project_name": self.path.name,
            "created": datetime.now().isoformat(timespec="seconds"),
            "active_id": None,
            "scripts": [],
        }
        write_json(self.manifest_path, manifest)

    def load_manifest(self) -> dict[str, Any]:
        """Load the project manifest."""
        if not self.manifest_path.exists():
            raise ProjectError(f"Manifest not found: {self.manifest_path}")
        return read_json(self.manifest_path)

    def reset_interrupted(self) -> int:
        """Put scripts left in "processing" by an interrupted run back in the queue.

        Returns:
            Number of scripts re-queued
        """
        manifest = self.load_manifest()
        reset = 0
        for record in manifest.get("scripts", []):
            if record.get("status") == ProcessingStatus.PROCESSING.value:
                record["status"] = ProcessingStatus.QUEUED.value
                record["progress"] = None
                reset += 1
        if reset:
            self.save_manifest(manifest)
        return reset

    def save_manifest(self, manifest: dict[str, Any]) -> None:
        """Save the project manifest."""
        write_json(self.manifest_path, manifest)

    def list_scripts(self) -> list[ScriptFile]:
        return [ScriptFile.model_validate(r) for r in self.load_manifest().get("scripts", [])]

    def get_script(self, script_id: str) -> ScriptFile | None:
        """Get a script record by ID from the manifest."""
        for script in self.list_scripts():
            if script.id == script_id:
                return script
        return None

    def add_script(self, source: Path, segments: list[Segment]) -> ScriptFile:
        """Register a parsed transcript as a queued script."""
        manifest = self.load_manifest()
        script = ScriptFile(
            id=generate_script_id(manifest),
            filename=source.name,
            source_file=str(source.resolve()),
            segment_count=len(segments),
        )
        write_model(self.transcripts_dir / f"{script.id}.json", segments)
        manifest.setdefault("scripts", []).append(script.to_dict())
        if manifest.get("active_id") is None:
            manifest["active_id"] = script.id
        self.save_manifest(manifest)
        return script

    def update_script(self, script_id: str, **fields: Any) -> ScriptFile:
        """Update fields of a script record and persist the manifest."""
        manifest = self.load_manifest()
        for i, record in enumerate(manifest.get("scripts", [])):
            if record.get("id") == script_id:
                updated = ScriptFile.model_validate(record).model_copy(update=fields)
                manifest["scripts"][i] = updated.to_dict()
                self.save_manifest(manifest)
                return updated
        raise ProjectError(f"Unknown script: {script_id}")

    def remove_script(self, script_id: str) -> ScriptFile:
        """Drop a script from the queue along with its stored segments and analysis."""
        manifest = self.load_manifest()
        scripts = manifest.get("scripts", [])
        record = next((r for r in scripts if r.get("id") == script_id), None)
        if record is None:
            raise ProjectError(f"Unknown script: {script_id}")

        manifest["scripts"] = [r for r in scripts if r.get("id") != script_id]
        if manifest.get("active_id") == script_id:
            manifest["active_id"] = None
        self.save_manifest(manifest)

        (self.transcripts_dir / f"{script_id}.json").unlink(missing_ok=True)
        (self.analyses_dir / f"{script_id}.json").unlink(missing_ok=True)
        return ScriptFile.model_validate(record)

    def load_segments(self, script_id: str) -> list[Segment]:
        path = self.transcripts_dir / f"{script_id}.json"
        if not path.exists():
            raise ProjectError(f"Transcript data not found for {script_id}")
        return read_model_list(path, Segment)

    def save_analysis(self, script_id: str, analysis: ScriptAnalysis) -> Path:
        path = self.analyses_dir / f"{script_id}.json"
        write_model(path, analysis)
        return path

    def load_analysis(self, script_id: str) -> ScriptAnalysis:
        return read_model(self.analyses_dir / f"{script_id}.json", ScriptAnalysis)

    def completed_analyses(self) -> list[ScriptAnalysis]:
        """Load analyses of every completed script, in manifest order."""
        return [
            self.load_analysis(script.id)
            for script in self.list_scripts()
            if script.status is ProcessingStatus.COMPLETED
        ]

    def save_template(self, template: MasterTemplate) -> Path:
        write_model(self.template_path, template)
        return self.template_path

    def load_template(self) -> MasterTemplate | None:
        if not self.template_path.exists():
            return None
        return read_model(self.template_path, MasterTemplate)


def find_project_dir(start: Path | None = None) -> Path | None:
    """Find the project directory by looking for scriptalchemy.yaml."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists():
            return current
        current = current.parent
    return None


def generate_script_id(manifest: dict[str, Any]) -> str:
    """Generate a unique script ID."""
    existing = {s.get("id", "") for s in manifest.get("scripts", [])}
    counter = 1
    while True:
        script_id = f"script_{counter:03d}"
        if script_id not in existing:
            return script_id
        counter += 1
