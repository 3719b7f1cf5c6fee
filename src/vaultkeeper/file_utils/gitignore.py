"""Gitignore pattern handling for vault discovery."""

from pathlib import Path
from typing import List

import pathspec

# Always skipped, whether or not the vault has a .gitignore.
DEFAULT_PATTERNS = [
    # Version control and tool state
    ".git/",
    ".vaultkeeper/",
    ".obsidian/",
    ".trash/",
    # Editor and OS files
    ".idea/",
    ".vscode/",
    "*.swp",
    ".DS_Store",
    # Dependency and build directories that sometimes land in a vault
    "node_modules/",
    "__pycache__/",
    ".venv/",
]


def get_gitignore_patterns(vault_root: Path) -> List[str]:
    """Get ignore patterns: defaults plus the vault's .gitignore, if present.

    Args:
        vault_root: Root directory containing .gitignore

    Returns:
        List of gitignore pattern strings
    """
    patterns = list(DEFAULT_PATTERNS)

    gitignore_path = vault_root / ".gitignore"
    if gitignore_path.exists():
        with open(gitignore_path, encoding="utf-8") as f:
            patterns.extend(
                line.strip() for line in f if line.strip() and not line.strip().startswith("#")
            )

    return patterns


def build_gitignore_spec(vault_root: Path) -> pathspec.PathSpec:
    """Build a PathSpec object from gitignore patterns.

    Args:
        vault_root: Root directory containing .gitignore

    Returns:
        PathSpec object for matching vault-relative paths
    """
    return pathspec.PathSpec.from_lines("gitwildmatch", get_gitignore_patterns(vault_root))


def should_ignore_file(file_path: Path, vault_root: Path, spec: pathspec.PathSpec) -> bool:
    """Check if a file should be ignored based on gitignore patterns.

    Args:
        file_path: Path to the file to check
        vault_root: Vault root the patterns are relative to
        spec: PathSpec built by ``build_gitignore_spec``

    Returns:
        True if the file should be ignored, False otherwise
    """
    try:
        relative_path = file_path.relative_to(vault_root)
    except ValueError:
        # Outside the vault: not ours to ignore
        return False

    return spec.match_file(relative_path.as_posix())
