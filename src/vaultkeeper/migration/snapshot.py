"""Schema snapshot store.

``.vaultkeeper/schema.applied.json`` holds the schema as of the last applied
migration. It is the ``old`` side of every diff; before the first migration it
does not exist and the plan is empty.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from vaultkeeper.config import snapshot_path
from vaultkeeper.file_utils import write_file_atomic
from vaultkeeper.migration.models import SchemaSnapshot


class SnapshotError(Exception):
    """A snapshot or history file exists but cannot be read."""


def load_snapshot(vault: Path) -> Optional[SchemaSnapshot]:
    """Load the last-applied snapshot, or None before the first migration.

    Raises:
        SnapshotError: If the file exists but is corrupt.
    """
    path = snapshot_path(vault)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None

    try:
        return SchemaSnapshot.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as e:
        raise SnapshotError(f"Corrupt schema snapshot at {path}: {e}") from e


def save_snapshot(vault: Path, document: dict[str, Any], schema_version: str) -> SchemaSnapshot:
    """Replace the snapshot with ``document`` at ``schema_version``."""
    snapshot = SchemaSnapshot(
        schema_version=schema_version,
        snapshot_at=datetime.now(timezone.utc),
        document=document,
    )
    path = snapshot_path(vault)
    content = json.dumps(snapshot.model_dump(mode="json", by_alias=True), indent=2) + "\n"
    write_file_atomic(path, content)
    logger.info(f"Saved schema snapshot at version {schema_version}")
    return snapshot


def has_snapshot(vault: Path) -> bool:
    return snapshot_path(vault).is_file()
