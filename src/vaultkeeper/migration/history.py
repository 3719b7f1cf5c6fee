"""Migration history ledger.

``.vaultkeeper/migrations.json`` is append-only: one entry per applied
migration, oldest first. It is read for reporting and never drives logic.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from vaultkeeper.config import history_path
from vaultkeeper.file_utils import write_file_atomic
from vaultkeeper.migration.models import (
    AppliedMigration,
    MigrationHistory,
    MigrationPlan,
    MigrationResult,
)
from vaultkeeper.migration.snapshot import SnapshotError


def load_history(vault: Path) -> MigrationHistory:
    """Load the ledger; an absent file is an empty history."""
    path = history_path(vault)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return MigrationHistory()

    try:
        return MigrationHistory.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as e:
        raise SnapshotError(f"Corrupt migration history at {path}: {e}") from e


def save_history(vault: Path, history: MigrationHistory) -> None:
    content = json.dumps(history.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2)
    write_file_atomic(history_path(vault), content + "\n")


def record_migration(
    vault: Path,
    plan: MigrationPlan,
    result: Optional[MigrationResult] = None,
) -> AppliedMigration:
    """Append an entry for an applied plan."""
    history = load_history(vault)
    entry = AppliedMigration(
        from_version=plan.from_version,
        version=plan.to_version,
        applied_at=datetime.now(timezone.utc),
        operations=plan.operations,
        notes_affected=result.affected_files if result else 0,
        backup_path=result.backup_path if result else None,
    )
    history.applied.append(entry)
    save_history(vault, history)
    logger.info(
        f"Recorded migration {plan.from_version} -> {plan.to_version}",
        notes_affected=entry.notes_affected,
    )
    return entry


def latest_migration(vault: Path) -> Optional[AppliedMigration]:
    applied = load_history(vault).applied
    return applied[-1] if applied else None


def recent_migrations(vault: Path, limit: Optional[int] = None) -> list[AppliedMigration]:
    """Applied migrations, newest first."""
    applied = list(reversed(load_history(vault).applied))
    return applied[:limit] if limit is not None else applied
