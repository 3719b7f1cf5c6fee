"""Shared fixtures: throwaway vaults built under tmp_path."""

import json
from pathlib import Path
from typing import Any, Optional

import pytest
import yaml

from vaultkeeper.config import schema_path


def write_schema(vault: Path, document: dict[str, Any]) -> Path:
    path = schema_path(vault)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    return path


def write_note(
    vault: Path,
    relative_path: str,
    metadata: Optional[dict[str, Any]] = None,
    body: str = "Body text.\n",
) -> Path:
    path = vault / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    if metadata is None:
        path.write_text(body, encoding="utf-8")
    else:
        header = yaml.safe_dump(metadata, sort_keys=False)
        path.write_text(f"---\n{header}---\n{body}", encoding="utf-8")
    return path


def read_metadata(path: Path) -> dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    _, header, _ = content.split("---\n", 2)
    return yaml.safe_load(header) or {}


@pytest.fixture
def vault(tmp_path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def ideas_schema() -> dict[str, Any]:
    """Small schema: ideas plus an objective/task hierarchy."""
    return {
        "version": "1.0.0",
        "enums": {"status": ["raw", "backlog", "done"]},
        "types": {
            "idea": {"fields": {"title": {"prompt": "text"}}},
            "objective": {
                "fields": {
                    "status": {"prompt": "select", "enum": "status", "default": "raw"},
                },
            },
            "task": {"extends": "objective", "fields": {"due": {"prompt": "date"}}},
        },
    }


@pytest.fixture
def populated_vault(vault, ideas_schema) -> Path:
    """Ten idea notes and five notes of other types."""
    write_schema(vault, ideas_schema)
    for i in range(10):
        write_note(vault, f"ideas/idea-{i:02d}.md", {"type": "idea", "title": f"Idea {i}"})
    for i in range(3):
        write_note(vault, f"objectives/objective-{i}.md", {"type": "objective", "status": "raw"})
    for i in range(2):
        write_note(vault, f"objectives/tasks/task-{i}.md", {"type": "task", "status": "backlog"})
    return vault
