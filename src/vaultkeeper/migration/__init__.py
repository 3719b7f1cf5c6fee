"""Schema migrations for vaultkeeper.

Diffs the last-applied schema snapshot against the current schema, suggests a
version bump, and applies the safe part of the plan to existing notes.
"""

from vaultkeeper.migration.models import (
    AddEnumValueOperation,
    AddFieldOperation,
    AddTypeOperation,
    AppliedChange,
    AppliedMigration,
    ChangeFieldOperation,
    FileMigrationResult,
    MigrationHistory,
    MigrationOperation,
    MigrationPlan,
    MigrationResult,
    RemoveEnumValueOperation,
    RemoveFieldOperation,
    RemoveTypeOperation,
    ReparentTypeOperation,
    SchemaSnapshot,
)
from vaultkeeper.migration.diff import describe_operation, diff_schemas, format_plan, plan_to_dict
from vaultkeeper.migration.version import bump_version, suggest_version_bump
from vaultkeeper.migration.snapshot import SnapshotError, load_snapshot, save_snapshot
from vaultkeeper.migration.history import load_history, record_migration
from vaultkeeper.migration.backup import BackupError, create_backup, list_backups, restore_backup
from vaultkeeper.migration.executor import (
    MigrationContext,
    MigrationOutcome,
    apply_migration,
    execute_migration,
    plan_migration,
)

__all__ = [
    # Models
    "AddEnumValueOperation",
    "AddFieldOperation",
    "AddTypeOperation",
    "AppliedChange",
    "AppliedMigration",
    "ChangeFieldOperation",
    "FileMigrationResult",
    "MigrationHistory",
    "MigrationOperation",
    "MigrationPlan",
    "MigrationResult",
    "RemoveEnumValueOperation",
    "RemoveFieldOperation",
    "RemoveTypeOperation",
    "ReparentTypeOperation",
    "SchemaSnapshot",
    # Diff
    "describe_operation",
    "diff_schemas",
    "format_plan",
    "plan_to_dict",
    # Version
    "bump_version",
    "suggest_version_bump",
    # Persistence
    "SnapshotError",
    "load_snapshot",
    "save_snapshot",
    "load_history",
    "record_migration",
    "BackupError",
    "create_backup",
    "list_backups",
    "restore_backup",
    # Executor
    "MigrationContext",
    "MigrationOutcome",
    "apply_migration",
    "execute_migration",
    "plan_migration",
]
