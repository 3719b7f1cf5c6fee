"""Backups taken before an executed migration rewrites notes.

Layout::

    .vaultkeeper/backups/<backup id>/
        manifest.json        # timestamp, operation, vault-relative file list
        files/<relative path>

Only the files about to be modified are copied.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from vaultkeeper.config import backups_path
from vaultkeeper.file_utils import FileWriteError, copy_file, ensure_directory, write_file_atomic
from vaultkeeper.utils import relative_posix

MANIFEST_FILE = "manifest.json"
FILES_DIR = "files"


class BackupError(Exception):
    """A backup could not be found or restored."""


class BackupManifest(BaseModel):
    timestamp: datetime
    operation: str
    files: list[str] = Field(default_factory=list)


class BackupInfo(BaseModel):
    id: str
    timestamp: datetime
    operation: str
    file_count: int
    path: str


def _new_backup_id(backups_root: Path) -> str:
    """Timestamp id such as ``2026-01-05T10-30-00``, suffixed when taken twice in a second."""
    base = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    candidate = base
    counter = 1
    while (backups_root / candidate).exists():
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def create_backup(vault: Path, files: Iterable[Path], operation: str) -> Path:
    """Copy ``files`` into a new timestamped backup and return its directory.

    Raises:
        FileWriteError: If a file cannot be copied
    """
    backups_root = backups_path(vault)
    backup_dir = backups_root / _new_backup_id(backups_root)
    files_dir = backup_dir / FILES_DIR
    ensure_directory(files_dir)

    relative_files: list[str] = []
    for file_path in files:
        relative_path = relative_posix(Path(file_path), Path(vault))
        copy_file(Path(file_path), files_dir / relative_path)
        relative_files.append(relative_path)
        logger.debug("Backed up file", path=relative_path)

    manifest = BackupManifest(
        timestamp=datetime.now(timezone.utc),
        operation=operation,
        files=relative_files,
    )
    write_file_atomic(backup_dir / MANIFEST_FILE, manifest.model_dump_json(indent=2) + "\n")
    logger.info(f"Created backup {backup_dir.name} with {len(relative_files)} file(s)")
    return backup_dir


def _read_manifest(backup_dir: Path) -> BackupManifest:
    content = (backup_dir / MANIFEST_FILE).read_text(encoding="utf-8")
    return BackupManifest.model_validate(json.loads(content))


def list_backups(vault: Path) -> list[BackupInfo]:
    """Available backups, newest first. Directories without a valid manifest are skipped."""
    backups_root = backups_path(vault)
    if not backups_root.is_dir():
        return []

    backups: list[BackupInfo] = []
    for entry in backups_root.iterdir():
        if not entry.is_dir():
            continue
        try:
            manifest = _read_manifest(entry)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.debug("Skipping invalid backup", backup=entry.name, error=str(e))
            continue
        backups.append(
            BackupInfo(
                id=entry.name,
                timestamp=manifest.timestamp,
                operation=manifest.operation,
                file_count=len(manifest.files),
                path=str(entry),
            )
        )

    backups.sort(key=lambda info: (info.timestamp, info.id), reverse=True)
    return backups


def restore_backup(vault: Path, backup_id: str) -> list[str]:
    """Copy a backup's files back over the vault.

    Returns:
        Vault-relative paths that were restored

    Raises:
        BackupError: Invalid or unknown backup id, or a file that cannot be restored
    """
    backups_root = backups_path(vault)
    backup_dir = backups_root / backup_id
    if (
        not backup_id
        or backup_id in (".", "..")
        or Path(backup_id).name != backup_id
        or "\\" in backup_id
        or backup_dir.resolve().parent != backups_root.resolve()
    ):
        raise BackupError(f"Invalid backup id: {backup_id}")

    try:
        manifest = _read_manifest(backup_dir)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise BackupError(f"Backup not found: {backup_id}") from e

    restored: list[str] = []
    for relative_path in manifest.files:
        source = backup_dir / FILES_DIR / relative_path
        try:
            copy_file(source, Path(vault) / relative_path)
        except FileWriteError as e:
            raise BackupError(f"Failed to restore {relative_path}: {e}") from e
        restored.append(relative_path)

    logger.info(f"Restored {len(restored)} file(s) from backup {backup_id}")
    return restored
