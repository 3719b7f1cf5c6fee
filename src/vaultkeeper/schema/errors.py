"""Schema error hierarchy.

Structure errors abort resolution before any command proceeds. Field definition
errors are fatal for the operation that introduced them and carry suggestions
where one can be derived. Version errors reject non-semver input before any write.
"""

from typing import Optional


class SchemaError(Exception):
    """Base class for schema errors. Always carries a human-readable message."""

    def __init__(self, message: str, suggestions: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.suggestions: list[str] = list(suggestions or [])


class SchemaStructureError(SchemaError):
    """Cycles, unknown parents, duplicate or malformed names."""


class FieldDefinitionError(SchemaError):
    """A field definition that cannot be resolved (missing options, bad relation source)."""

    def __init__(
        self,
        message: str,
        suggestions: Optional[list[str]] = None,
        type_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ):
        super().__init__(message, suggestions)
        self.type_name = type_name
        self.field_name = field_name


class VersionFormatError(SchemaError):
    """A schema version that is not MAJOR.MINOR.PATCH."""
