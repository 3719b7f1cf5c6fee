"""Schema document writer and type/field edit commands.

Every edit is modeled as load -> pure edit -> validate -> atomic rewrite. The
edit functions take the raw document dict and return a new one; they never
mutate their input. ``write_schema_document`` refuses to write a document that
does not resolve, so a bad edit never reaches disk.

Output is stable and diff-friendly: key order as loaded, 2-space indent,
trailing newline.
"""

import copy
import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from vaultkeeper.config import schema_path
from vaultkeeper.file_utils import write_file_atomic
from vaultkeeper.schema.errors import FieldDefinitionError, SchemaError, SchemaStructureError
from vaultkeeper.schema.models import IMPLICIT_ROOT
from vaultkeeper.schema.parser import parse_raw_schema, validate_field_name, validate_type_name
from vaultkeeper.schema.resolver import ResolvedSchema, resolve_schema
from vaultkeeper.schema.version import parse_version


# --- Serialization ---


def serialize_schema_document(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def validate_document(document: dict[str, Any]) -> ResolvedSchema:
    """Fully resolve a document; raises the first schema error found."""
    return resolve_schema(parse_raw_schema(document))


def write_schema_document(vault: Path, document: dict[str, Any]) -> ResolvedSchema:
    """Validate and atomically write the schema document.

    Returns:
        The resolved schema for the written document.
    """
    resolved = validate_document(document)
    path = schema_path(vault)
    write_file_atomic(path, serialize_schema_document(document))
    logger.info(f"Wrote schema document {path}")
    return resolved


# --- Type edits ---


def _types_of(document: dict[str, Any]) -> dict[str, Any]:
    return document.setdefault("types", {})


def _require_type(document: dict[str, Any], type_name: str) -> dict[str, Any]:
    type_def = document.get("types", {}).get(type_name)
    if type_def is None:
        raise SchemaError(f'Type "{type_name}" does not exist')
    return type_def


def add_type(
    document: dict[str, Any],
    name: str,
    extends: Optional[str] = None,
    **properties: Any,
) -> dict[str, Any]:
    """Declare a new type. Extra keyword properties (plural, recursive, ...) are copied in."""
    error = validate_type_name(name)
    if error:
        raise SchemaStructureError(error)
    if name in document.get("types", {}):
        raise SchemaStructureError(f'Type "{name}" already exists')
    if extends is not None and extends != IMPLICIT_ROOT and extends not in document.get("types", {}):
        raise SchemaStructureError(f'Type "{name}" extends unknown type "{extends}"')

    type_def: dict[str, Any] = {}
    if extends is not None:
        type_def["extends"] = extends
    type_def.update({key: value for key, value in properties.items() if value is not None})
    type_def.setdefault("fields", {})

    updated = copy.deepcopy(document)
    _types_of(updated)[name] = type_def
    return updated


def remove_type(document: dict[str, Any], name: str) -> dict[str, Any]:
    """Remove a type that no other type extends."""
    _require_type(document, name)
    subtypes = [
        other
        for other, type_def in document.get("types", {}).items()
        if other != name and type_def.get("extends") == name
    ]
    if subtypes:
        raise SchemaStructureError(
            f'Cannot remove type "{name}": extended by {", ".join(subtypes)}'
        )

    updated = copy.deepcopy(document)
    del updated["types"][name]
    return updated


# --- Field edits ---


def _inherited_owner(document: dict[str, Any], type_name: str, field_name: str) -> Optional[str]:
    """Ancestor that declares ``field_name`` for ``type_name``, if inherited."""
    resolved = validate_document(document)
    resolved_type = resolved.get_type(type_name)
    if resolved_type is None or not resolved_type.is_inherited(field_name):
        return None
    return resolved_type.owner_of(field_name)


def add_field(
    document: dict[str, Any],
    type_name: str,
    field_name: str,
    definition: dict[str, Any],
) -> dict[str, Any]:
    """Add a field to a type. Re-declaring an inherited field overrides it."""
    type_def = _require_type(document, type_name)
    error = validate_field_name(field_name)
    if error:
        raise FieldDefinitionError(error, type_name=type_name, field_name=field_name)
    if field_name in (type_def.get("fields") or {}):
        raise FieldDefinitionError(
            f'Field "{field_name}" already exists on type "{type_name}"',
            type_name=type_name,
            field_name=field_name,
        )

    updated = copy.deepcopy(document)
    updated["types"][type_name].setdefault("fields", {})[field_name] = dict(definition)
    return updated


def update_field(
    document: dict[str, Any],
    type_name: str,
    field_name: str,
    changes: dict[str, Any],
) -> dict[str, Any]:
    """Change properties of a field declared on ``type_name``.

    A key mapped to None is removed from the definition.

    Raises:
        FieldDefinitionError: If the field is inherited (names the owning type)
            or does not exist.
    """
    type_def = _require_type(document, type_name)
    if field_name not in (type_def.get("fields") or {}):
        owner = _inherited_owner(document, type_name, field_name)
        if owner is not None:
            raise FieldDefinitionError(
                f'Field "{field_name}" on type "{type_name}" is inherited from "{owner}". '
                f'Edit it on "{owner}" instead.',
                suggestions=[owner],
                type_name=type_name,
                field_name=field_name,
            )
        raise FieldDefinitionError(
            f'Field "{field_name}" does not exist on type "{type_name}"',
            type_name=type_name,
            field_name=field_name,
        )

    updated = copy.deepcopy(document)
    field_def = updated["types"][type_name]["fields"][field_name]
    for key, value in changes.items():
        if value is None:
            field_def.pop(key, None)
        else:
            field_def[key] = value
    return updated


def remove_field(document: dict[str, Any], type_name: str, field_name: str) -> dict[str, Any]:
    """Remove a field declared on ``type_name`` (and drop it from field_order)."""
    type_def = _require_type(document, type_name)
    if field_name not in (type_def.get("fields") or {}):
        owner = _inherited_owner(document, type_name, field_name)
        if owner is not None:
            raise FieldDefinitionError(
                f'Field "{field_name}" on type "{type_name}" is inherited from "{owner}". '
                f'Remove it from "{owner}" instead.',
                suggestions=[owner],
                type_name=type_name,
                field_name=field_name,
            )
        raise FieldDefinitionError(
            f'Field "{field_name}" does not exist on type "{type_name}"',
            type_name=type_name,
            field_name=field_name,
        )

    updated = copy.deepcopy(document)
    updated_type = updated["types"][type_name]
    del updated_type["fields"][field_name]
    if field_name in (updated_type.get("field_order") or []):
        updated_type["field_order"] = [f for f in updated_type["field_order"] if f != field_name]
    return updated


# --- Version ---


def set_version(document: dict[str, Any], version: str) -> dict[str, Any]:
    """Set the schema content version. Rejects anything that is not MAJOR.MINOR.PATCH."""
    parse_version(version)
    updated = copy.deepcopy(document)
    updated["version"] = version
    return updated
