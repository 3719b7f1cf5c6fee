"""Migration executor: applies a plan's safe operations to existing notes.

Only deterministic operations touch files, and of those only ``add-field`` with
a declared default changes anything: the default is written into every note of
the type (or a descendant) that does not have the key yet. ``add-type`` and
``add-enum-value`` only affect future notes. Non-deterministic operations are
never applied here.

Files are processed one at a time in lexical path order. A failure on one file
is recorded and the run continues; there is no cross-file transaction, which is
why the backup is taken before the first write.
"""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import frontmatter
from loguru import logger

from vaultkeeper.discovery import ManagedFile, list_managed_files
from vaultkeeper.file_utils import FileError, read_note, write_note
from vaultkeeper.migration.backup import create_backup
from vaultkeeper.migration.diff import diff_schemas
from vaultkeeper.migration.history import record_migration
from vaultkeeper.migration.models import (
    AddFieldOperation,
    AppliedChange,
    FileMigrationResult,
    MigrationPlan,
    MigrationResult,
    SchemaSnapshot,
)
from vaultkeeper.migration.snapshot import load_snapshot, save_snapshot
from vaultkeeper.migration.version import suggest_version_bump
from vaultkeeper.schema.parser import load_schema_document, parse_raw_schema
from vaultkeeper.schema.resolver import ResolvedSchema, resolve_schema
from vaultkeeper.schema.version import parse_version
from vaultkeeper.schema.writer import set_version, write_schema_document

INITIAL_VERSION = "0.0.0"


# --- Per-file planning ---


def _applies_to(schema: ResolvedSchema, type_name: Optional[str], target: str) -> bool:
    if type_name is None:
        return False
    return type_name == target or schema.is_descendant_of(type_name, target)


def file_type(schema: ResolvedSchema, metadata: dict[str, Any], managed: ManagedFile) -> Optional[str]:
    """Front matter ``type`` when it names a known type, else the directory's type."""
    return schema.resolve_type_from_frontmatter(metadata) or managed.expected_type


def changes_for_file(
    schema: ResolvedSchema,
    type_name: Optional[str],
    metadata: dict[str, Any],
    operations: list[AddFieldOperation],
) -> list[AppliedChange]:
    """Front matter keys a note needs; keys already present are never overwritten."""
    changes: list[AppliedChange] = []
    planned: set[str] = set()
    for op in operations:
        if not _applies_to(schema, type_name, op.type_name):
            continue
        if op.default is None or op.field in metadata or op.field in planned:
            continue
        changes.append(AppliedChange(field=op.field, value=copy.deepcopy(op.default)))
        planned.add(op.field)
    return changes


def apply_changes(post: frontmatter.Post, changes: list[AppliedChange]) -> None:
    """Set changed keys on the post; new keys land after existing ones."""
    for change in changes:
        post.metadata[change.field] = change.value


# --- Execution ---


@dataclass
class _PendingFile:
    managed: ManagedFile
    post: frontmatter.Post
    changes: list[AppliedChange]


def execute_migration(
    vault: Path,
    schema: ResolvedSchema,
    plan: MigrationPlan,
    execute: bool = False,
    backup: bool = True,
) -> MigrationResult:
    """Apply (or preview) a plan's deterministic operations.

    Args:
        vault: Vault root.
        schema: The resolved current schema.
        plan: The plan to apply.
        execute: False for a dry run that writes nothing.
        backup: Copy every file about to be modified before the first write.

    Returns:
        MigrationResult with scanned/affected counts and per-file errors.

    Raises:
        FileWriteError: If the backup cannot be created (nothing has been written yet).
    """
    vault = Path(vault)
    result = MigrationResult(
        dry_run=not execute,
        from_version=plan.from_version,
        to_version=plan.to_version,
    )
    if not plan.has_changes:
        return result

    operations = [op for op in plan.deterministic if isinstance(op, AddFieldOperation)]

    files = list_managed_files(schema, vault)
    result.total_files = len(files)

    pending: list[_PendingFile] = []
    for managed in files:
        try:
            post = read_note(managed.path)
        except FileError as e:
            logger.warning(f"Skipping {managed.relative_path}: {e}")
            result.errors.append(f"{managed.relative_path}: {e}")
            continue

        type_name = file_type(schema, post.metadata, managed)
        changes = changes_for_file(schema, type_name, post.metadata, operations)
        if changes:
            pending.append(_PendingFile(managed=managed, post=post, changes=changes))

    result.affected_files = len(pending)
    logger.debug(
        "Planned migration",
        total_files=result.total_files,
        affected_files=result.affected_files,
        dry_run=result.dry_run,
    )

    if not execute:
        result.file_results = [
            FileMigrationResult(
                path=str(item.managed.path),
                relative_path=item.managed.relative_path,
                changes=item.changes,
            )
            for item in pending
        ]
        return result

    if backup and pending:
        backup_dir = create_backup(
            vault,
            [item.managed.path for item in pending],
            f"schema migration {plan.from_version} -> {plan.to_version}",
        )
        result.backup_path = str(backup_dir)

    for item in pending:
        file_result = FileMigrationResult(
            path=str(item.managed.path),
            relative_path=item.managed.relative_path,
            changes=item.changes,
        )
        try:
            apply_changes(item.post, item.changes)
            write_note(item.managed.path, item.post)
            file_result.applied = True
            logger.debug("Migrated file", path=item.managed.relative_path, changes=len(item.changes))
        except FileError as e:
            logger.warning(f"Failed to migrate {item.managed.relative_path}: {e}")
            file_result.error = str(e)
            result.errors.append(f"{item.managed.relative_path}: {e}")
        result.file_results.append(file_result)

    return result


# --- Migrate workflow ---


@dataclass
class MigrationContext:
    """Everything one migrate/diff invocation needs, loaded fresh from disk."""

    vault: Path
    document: dict[str, Any]
    schema: ResolvedSchema
    snapshot: Optional[SchemaSnapshot]
    plan: MigrationPlan

    @property
    def is_initial(self) -> bool:
        return self.snapshot is None

    @property
    def current_version(self) -> str:
        return self.schema.version


@dataclass
class MigrationOutcome:
    version: str
    initial_snapshot: bool = False
    plan: Optional[MigrationPlan] = None
    result: Optional[MigrationResult] = None


def plan_migration(vault: Path) -> MigrationContext:
    """Diff the last-applied snapshot against the current schema.

    Without a snapshot the plan is empty: there is no baseline to diff against.
    """
    vault = Path(vault)
    document = load_schema_document(vault)
    schema = resolve_schema(parse_raw_schema(document))
    snapshot = load_snapshot(vault)

    if snapshot is None:
        plan = MigrationPlan(from_version=INITIAL_VERSION, to_version=schema.version)
    else:
        plan = diff_schemas(
            parse_raw_schema(snapshot.document),
            schema.raw,
            snapshot.schema_version,
            schema.version,
        )
    return MigrationContext(vault=vault, document=document, schema=schema, snapshot=snapshot, plan=plan)


def target_version(context: MigrationContext, requested: Optional[str] = None) -> str:
    """Version the migration will record.

    An explicit request wins. Otherwise a version already bumped by hand since the
    snapshot is kept, and an unchanged one gets the advisor's suggestion.
    """
    if requested is not None:
        parse_version(requested)
        return requested
    if context.snapshot is not None and context.current_version != context.snapshot.schema_version:
        return context.current_version
    return suggest_version_bump(context.plan, context.current_version)


def apply_migration(
    vault: Path,
    new_version: Optional[str] = None,
    backup: bool = True,
) -> MigrationOutcome:
    """Run the executor, bump the schema version, replace the snapshot, append history.

    With no snapshot yet this only records the current schema as the baseline.

    Raises:
        VersionFormatError: If ``new_version`` is not MAJOR.MINOR.PATCH.
    """
    context = plan_migration(vault)

    if context.is_initial:
        save_snapshot(context.vault, context.document, context.current_version)
        logger.info(f"Created initial schema snapshot at version {context.current_version}")
        return MigrationOutcome(version=context.current_version, initial_snapshot=True)

    if not context.plan.has_changes:
        return MigrationOutcome(version=context.current_version, plan=context.plan)

    version = target_version(context, new_version)
    plan = context.plan.model_copy(update={"to_version": version})

    result = execute_migration(context.vault, context.schema, plan, execute=True, backup=backup)

    document = context.document
    if version != context.current_version:
        document = set_version(document, version)
        write_schema_document(context.vault, document)

    save_snapshot(context.vault, document, version)
    record_migration(context.vault, plan, result)
    logger.info(
        f"Applied schema migration {plan.from_version} -> {version}",
        affected_files=result.affected_files,
        errors=len(result.errors),
    )
    return MigrationOutcome(version=version, plan=plan, result=result)
