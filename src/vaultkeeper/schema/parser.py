"""Schema document loading and name validation.

The schema document is plain JSON at ``<vault>/.vaultkeeper/schema.json``. It is
read fresh for every command: loaded as a raw dict (so unrelated content can be
written back untouched), then validated into ``RawSchema`` models.
"""

import json
import re
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from vaultkeeper.config import schema_path
from vaultkeeper.schema.errors import SchemaError, SchemaStructureError
from vaultkeeper.schema.models import IMPLICIT_ROOT, RawSchema

TYPE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")
FIELD_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")


# --- Name validation ---


def validate_type_name(name: str) -> Optional[str]:
    """Return an error message if ``name`` is not a valid new type name, else None."""
    if not name:
        return "Type name is required"
    if not TYPE_NAME_PATTERN.match(name):
        return (
            f'Invalid type name "{name}": must start with a lowercase letter and contain '
            "only lowercase letters, numbers, and hyphens"
        )
    if name == IMPLICIT_ROOT:
        return f'"{IMPLICIT_ROOT}" is a reserved type name'
    return None


def validate_field_name(name: str) -> Optional[str]:
    """Return an error message if ``name`` is not a valid field name, else None."""
    if not name:
        return "Field name is required"
    if not FIELD_NAME_PATTERN.match(name):
        return (
            f'Invalid field name "{name}": must start with a lowercase letter and contain '
            "only lowercase letters, numbers, underscores, and hyphens"
        )
    return None


# --- Loading ---


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """json object hook: duplicate keys would silently drop a type or field."""
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise SchemaStructureError(
                f'Duplicate name "{key}" in schema document; '
                "type, field, and enum names must be unique"
            )
        result[key] = value
    return result


def parse_schema_json(content: str) -> dict[str, Any]:
    """Parse schema document text into a raw dict, rejecting duplicate keys."""
    try:
        document = json.loads(content, object_pairs_hook=_reject_duplicate_keys)
    except json.JSONDecodeError as e:
        raise SchemaStructureError(f"Schema document is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise SchemaStructureError("Schema document must be a JSON object")
    return document


def load_schema_document(vault: Path) -> dict[str, Any]:
    """Read the raw schema document for a vault.

    Raises:
        SchemaError: If the document is missing
        SchemaStructureError: If it is not valid JSON or repeats a key
    """
    path = schema_path(vault)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SchemaError(f"No schema found at {path}") from e

    logger.debug("Loaded schema document", path=str(path))
    return parse_schema_json(content)


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        lines.append(f"  {location}: {detail['msg']}")
    return "Invalid schema document:\n" + "\n".join(lines)


def parse_raw_schema(document: dict[str, Any]) -> RawSchema:
    """Validate a raw document dict into a RawSchema.

    Raises:
        SchemaStructureError: With every validation problem listed
    """
    try:
        return RawSchema.model_validate(document)
    except ValidationError as e:
        raise SchemaStructureError(_format_validation_error(e)) from e


def load_raw_schema(vault: Path) -> RawSchema:
    """Load and validate a vault's schema without resolving inheritance."""
    return parse_raw_schema(load_schema_document(vault))
