"""Configuration management for vaultkeeper.

Process-level settings come from environment variables (prefix ``VAULTKEEPER_``)
via Pydantic Settings. Vault-level settings (link format, ignored directories)
live in the schema document itself and are modeled in ``vaultkeeper.schema.models``.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Vault layout: everything vaultkeeper owns lives under this directory.
STATE_DIR = ".vaultkeeper"
SCHEMA_FILE = "schema.json"
SNAPSHOT_FILE = "schema.applied.json"
HISTORY_FILE = "migrations.json"
BACKUPS_DIR = "backups"


class VaultkeeperConfig(BaseSettings):
    """Runtime configuration for the CLI and library entry points."""

    vault: Path = Field(
        default_factory=Path.cwd,
        description="Vault root directory containing .vaultkeeper/schema.json",
    )
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Log level for the stderr sink"
    )
    log_file: Optional[Path] = Field(
        default=None, description="Optional file to mirror log output into"
    )
    backup: bool = Field(
        default=True, description="Back up notes before an executed migration"
    )

    model_config = SettingsConfigDict(
        env_prefix="VAULTKEEPER_",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def state_dir(self) -> Path:
        return state_dir(self.vault)


def state_dir(vault: Path) -> Path:
    """Directory holding the schema, snapshot, history and backups for a vault."""
    return Path(vault) / STATE_DIR


def schema_path(vault: Path) -> Path:
    return state_dir(vault) / SCHEMA_FILE


def snapshot_path(vault: Path) -> Path:
    return state_dir(vault) / SNAPSHOT_FILE


def history_path(vault: Path) -> Path:
    return state_dir(vault) / HISTORY_FILE


def backups_path(vault: Path) -> Path:
    return state_dir(vault) / BACKUPS_DIR
