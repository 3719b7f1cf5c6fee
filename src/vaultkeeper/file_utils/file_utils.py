"""File utility functions: atomic writes and front matter read/write."""

import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import frontmatter
import yaml
from loguru import logger


class FileError(Exception):
    """Base class for file-related errors."""


class FileWriteError(FileError):
    """Error writing to a file."""


class ParseError(FileError):
    """Error parsing file contents."""


# Opening delimiter on the first line, closing delimiter on its own line.
FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def ensure_directory(path: Union[str, Path]) -> None:
    """Create directory if it doesn't exist.

    Args:
        path: Path to directory to create
    """
    Path(path).mkdir(parents=True, exist_ok=True)


def write_file_atomic(path: Union[str, Path], content: str) -> None:
    """Write file atomically using a temporary file in the same directory.

    Args:
        path: Path to write to
        content: Content to write

    Raises:
        FileWriteError: If the write or the final rename fails
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise FileWriteError(f"Failed to write file {path}: {e}") from e

    success = False
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        # mkstemp creates 0600; keep the permissions of the file being replaced
        if path.exists():
            shutil.copymode(path, temp_path)
        Path(temp_path).replace(path)
        success = True
        logger.debug("Wrote file atomically", path=str(path), content_length=len(content))
    except OSError as e:
        logger.error("Failed to write file", path=str(path), error=str(e))
        raise FileWriteError(f"Failed to write file {path}: {e}") from e
    finally:
        if not success:
            Path(temp_path).unlink(missing_ok=True)


def copy_file(source: Path, destination: Path) -> None:
    """Copy a file (with metadata), creating parent directories as needed."""
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
    except OSError as e:
        raise FileWriteError(f"Failed to copy {source} to {destination}: {e}") from e


def has_frontmatter(content: str) -> bool:
    """Check if content starts with a complete front matter block.

    Args:
        content: File content to check

    Returns:
        True if content has opening and closing ``---`` markers
    """
    if not content or not content.startswith("---"):
        return False
    return FRONTMATTER_PATTERN.match(content) is not None


def split_frontmatter(content: str) -> Tuple[str, str]:
    """Split content into the raw YAML block and the untouched body.

    Content without front matter yields an empty YAML block and the content as body.

    Raises:
        ParseError: If content opens a front matter block that is never closed
    """
    match = FRONTMATTER_PATTERN.match(content)
    if match is None:
        if content.startswith("---\n") or content.startswith("---\r\n"):
            raise ParseError("Invalid frontmatter format: missing closing '---'")
        return "", content
    return match.group(1), content[match.end():]


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Parse front matter from content.

    Args:
        content: Content to parse

    Returns:
        Tuple of (front matter dict, body). The body is returned byte-for-byte.

    Raises:
        ParseError: If front matter is not valid YAML or not a mapping
    """
    block, body = split_frontmatter(content)
    if not block.strip():
        return {}, body

    try:
        metadata = yaml.safe_load(block)
    except yaml.YAMLError as e:
        error_msg = str(e)
        suggestions = []
        if "could not find expected ':'" in error_msg:
            suggestions.append(
                "Missing space after colon - YAML requires 'key: value' not 'key:value'"
            )
            for line in block.split("\n"):
                if ":" in line and ": " not in line:
                    suggestions.append(f"Problem line: '{line.strip()}'")
                    break
        if suggestions:
            suggestion_text = "\n  ".join(suggestions)
            raise ParseError(
                f"Invalid YAML in frontmatter: {error_msg}\n\nSuggestions:\n  {suggestion_text}"
            ) from e
        raise ParseError(f"Invalid YAML in frontmatter: {error_msg}") from e

    if metadata is None:
        return {}, body
    if not isinstance(metadata, dict):
        raise ParseError("Frontmatter must be a YAML dictionary")
    return metadata, body


def dump_frontmatter(post: frontmatter.Post) -> str:
    """Serialize a Post back to markdown with block-style YAML front matter.

    Key order is preserved as stored on the post and the body is appended verbatim.
    """
    if not post.metadata:
        return post.content

    yaml_str = yaml.dump(
        post.metadata,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        Dumper=yaml.SafeDumper,
    )
    return f"---\n{yaml_str}---\n{post.content}"


def read_note(path: Path) -> frontmatter.Post:
    """Read a note into a Post whose content is the exact body text.

    Raises:
        ParseError: If the file cannot be read or its front matter is malformed
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Cannot read {path.name}: {e}") from e

    metadata, body = parse_frontmatter(content)
    post = frontmatter.Post(body)
    post.metadata.update(metadata)
    return post


def write_note(path: Path, post: frontmatter.Post) -> None:
    """Rewrite a note from a Post atomically."""
    write_file_atomic(path, dump_frontmatter(post))
