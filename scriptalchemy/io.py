"""
scriptalchemy.io - JSON and transcript file helpers, atomic writes.

Centralized I/O for the project layer; the analysis pipeline itself never
touches the filesystem.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


def read_transcript_file(path: Path) -> str:
    """Read a subtitle/transcript file, tolerating a BOM and legacy encodings.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("cp1252", errors="replace")


def read_json(path: Path) -> Any:
    """Read JSON file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.replace(path)


def write_json(path: Path, data: Any, indent: int = 2) -> None:
    """Write JSON atomically: temp file in the same directory, then rename."""
    _atomic_write(path, json.dumps(data, indent=indent, ensure_ascii=False))


def write_text(path: Path, content: str) -> None:
    """Write a text file atomically."""
    _atomic_write(path, content)


def write_model(path: Path, model: BaseModel | list[BaseModel]) -> None:
    """Write a model (or list of models) as camelCase JSON."""
    if isinstance(model, list):
        data = [item.model_dump(mode="json", by_alias=True) for item in model]
    else:
        data = model.model_dump(mode="json", by_alias=True)
    write_json(path, data)


def read_model(path: Path, model_type: type[M]) -> M:
    """Read and validate a model from JSON."""
    return model_type.model_validate(read_json(path))


def read_model_list(path: Path, model_type: type[M]) -> list[M]:
    """Read and validate a JSON array of models."""
    return [model_type.model_validate(item) for item in read_json(path)]
