"""Managed file discovery.

A managed file is a markdown note under some concrete type's output directory.
Each file is tagged with the type whose output directory is the longest prefix
of its path, so ``objectives/tasks/x.md`` is a task even though it also sits
under ``objectives/``.

Results are sorted by vault-relative POSIX path so every consumer processes
files in the same order on every platform.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from vaultkeeper.config import STATE_DIR
from vaultkeeper.file_utils import build_gitignore_spec, should_ignore_file
from vaultkeeper.schema.resolver import ResolvedSchema
from vaultkeeper.utils import relative_posix

NOTE_SUFFIX = ".md"


@dataclass(frozen=True)
class ManagedFile:
    path: Path
    relative_path: str  # vault-relative, forward slashes
    expected_type: Optional[str] = None


def _normalize(directory: str) -> str:
    return directory.strip().strip("/")


def _is_under(relative_path: str, directory: str) -> bool:
    return not directory or relative_path == directory or relative_path.startswith(directory + "/")


def type_directories(schema: ResolvedSchema) -> list[tuple[str, str]]:
    """(output dir, type) pairs, longest directory first.

    Types sharing a directory keep declaration order, so the first declared wins.
    """
    pairs = [(_normalize(schema.types[name].output_dir), name) for name in schema.concrete_type_names()]
    return sorted(pairs, key=lambda pair: -len(pair[0]))


def expected_type_for(relative_path: str, directories: list[tuple[str, str]]) -> Optional[str]:
    """Type owning the longest output-directory prefix of ``relative_path``."""
    for directory, type_name in directories:
        if _is_under(relative_path, directory):
            return type_name
    return None


def _scan_roots(directories: list[tuple[str, str]]) -> list[str]:
    """Distinct output directories with nested ones folded into their parents."""
    roots: list[str] = []
    for directory in sorted({d for d, _ in directories}, key=len):
        if not any(_is_under(directory, root) for root in roots):
            roots.append(directory)
    return roots


def list_managed_files(
    schema: ResolvedSchema,
    root: Path,
    type_filter: Optional[str] = None,
) -> list[ManagedFile]:
    """Every managed note under the schema's output directories.

    Args:
        schema: The resolved schema.
        root: Vault root directory.
        type_filter: Keep only files whose expected type is this type or a descendant.

    Raises:
        SchemaError: If ``type_filter`` names an unknown type.
    """
    root = Path(root)
    family = set(schema.family(type_filter)) if type_filter else None

    directories = type_directories(schema)
    ignored = [_normalize(d) for d in schema.raw.ignored_directories] + [STATE_DIR]
    spec = build_gitignore_spec(root)

    found: dict[str, ManagedFile] = {}
    for scan_root in _scan_roots(directories):
        start = root / scan_root if scan_root else root
        if not start.is_dir():
            continue

        for current, dirs, filenames in os.walk(start):
            current_path = Path(current)

            # Prune hidden, ignored, and gitignored directories in place
            kept = []
            for d in sorted(dirs):
                rel = relative_posix(current_path / d, root)
                if d.startswith(".") or any(_is_under(rel, ignore) for ignore in ignored if ignore):
                    continue
                if spec.match_file(rel + "/"):
                    continue
                kept.append(d)
            dirs[:] = kept

            for filename in filenames:
                if not filename.endswith(NOTE_SUFFIX):
                    continue
                file_path = current_path / filename
                if should_ignore_file(file_path, root, spec):
                    continue
                rel = relative_posix(file_path, root)
                if rel in found:
                    continue
                expected = expected_type_for(rel, directories)
                if expected is None:
                    continue
                if family is not None and expected not in family:
                    continue
                found[rel] = ManagedFile(path=file_path, relative_path=rel, expected_type=expected)

    files = [found[rel] for rel in sorted(found)]
    logger.debug("Discovered managed files", count=len(files), type_filter=type_filter)
    return files
