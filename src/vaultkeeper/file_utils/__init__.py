"""vaultkeeper file utilities."""

from .gitignore import should_ignore_file, get_gitignore_patterns, build_gitignore_spec
from .file_utils import (
    FileError,
    FileWriteError,
    ParseError,
    copy_file,
    dump_frontmatter,
    ensure_directory,
    has_frontmatter,
    parse_frontmatter,
    read_note,
    split_frontmatter,
    write_file_atomic,
    write_note,
)

__all__ = [
    "FileError",
    "FileWriteError",
    "ParseError",
    "copy_file",
    "dump_frontmatter",
    "ensure_directory",
    "has_frontmatter",
    "parse_frontmatter",
    "read_note",
    "split_frontmatter",
    "write_file_atomic",
    "write_note",
    "should_ignore_file",
    "get_gitignore_patterns",
    "build_gitignore_spec",
]
