"""Enum registry.

Enums are named, ordered lists of unique string values that select fields can
reference instead of carrying inline ``options``. This module validates enum
declarations and references, answers "which enum holds this value?" (used to
explain relation-source mistakes), and provides the enum edit commands that
operate on the raw schema document.

Edit commands are pure: they return a new document and never mutate their input.
"""

import copy
import re
from typing import Any, Mapping, Optional, Sequence

from vaultkeeper.schema.errors import FieldDefinitionError, SchemaError, SchemaStructureError
from vaultkeeper.schema.models import PromptedField, RawField, RawType

ENUM_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")


# --- Validation ---


def validate_enum_name(name: str) -> Optional[str]:
    """Return an error message if ``name`` is not a valid enum name, else None."""
    if not name:
        return "Enum name cannot be empty"
    if name != name.strip():
        return "Enum name cannot have leading/trailing whitespace"
    if not ENUM_NAME_PATTERN.match(name):
        return (
            f'Invalid enum name "{name}": must start with a letter and contain only '
            "letters, numbers, hyphens, and underscores"
        )
    return None


def validate_enum_value(value: str) -> Optional[str]:
    """Return an error message if ``value`` is not a valid enum value, else None."""
    if not value:
        return "Enum value cannot be empty"
    if value != value.strip():
        return "Enum value cannot have leading/trailing whitespace"
    if "," in value:
        return "Enum value cannot contain commas"
    if "\n" in value:
        return "Enum value cannot contain newlines"
    return None


def validate_enum_values(name: str, values: Sequence[str]) -> None:
    """Validate one enum's value list: non-empty, well-formed, unique."""
    if not values:
        raise SchemaStructureError(f'Enum "{name}" must have at least one value')
    seen: set[str] = set()
    for value in values:
        error = validate_enum_value(value)
        if error:
            raise SchemaStructureError(f'Enum "{name}": invalid value "{value}": {error}')
        if value in seen:
            raise SchemaStructureError(f'Enum "{name}" lists "{value}" more than once')
        seen.add(value)


def validate_enums(enums: Mapping[str, Sequence[str]]) -> None:
    """Validate every enum declaration in a schema."""
    for name, values in enums.items():
        error = validate_enum_name(name)
        if error:
            raise SchemaStructureError(error)
        validate_enum_values(name, values)


def allowed_values(field: RawField, enums: Mapping[str, Sequence[str]]) -> list[str]:
    """Values a select field accepts: inline options, else the referenced enum."""
    if not isinstance(field, PromptedField):
        return []
    if field.options:
        return list(field.options)
    if field.enum:
        return list(enums.get(field.enum, []))
    return []


def validate_select_field(
    type_name: str,
    field_name: str,
    field: RawField,
    enums: Mapping[str, Sequence[str]],
) -> None:
    """Check a field's enum reference and select options.

    Raises:
        FieldDefinitionError: Unknown enum, or a select with no options at all.
    """
    if not isinstance(field, PromptedField):
        return

    if field.enum is not None and field.enum not in enums:
        available = ", ".join(enums) or "(none)"
        raise FieldDefinitionError(
            f'Field "{field_name}" on type "{type_name}" references unknown enum '
            f'"{field.enum}". Available enums: {available}',
            type_name=type_name,
            field_name=field_name,
        )

    if field.prompt != "select":
        return

    values = allowed_values(field, enums)
    if not values:
        raise FieldDefinitionError(
            f'Select field "{field_name}" on type "{type_name}" has no options. '
            'Add "options" or reference an "enum".',
            type_name=type_name,
            field_name=field_name,
        )

    defaults = field.default if isinstance(field.default, list) else [field.default]
    for default in defaults:
        if default is not None and default not in values:
            raise FieldDefinitionError(
                f'Default "{default}" for select field "{field_name}" on type "{type_name}" '
                f"is not one of: {', '.join(values)}",
                type_name=type_name,
                field_name=field_name,
            )


def enum_usage(raw_types: Mapping[str, RawType], enum_name: str) -> list[tuple[str, str]]:
    """(type, field) pairs whose own declaration references ``enum_name``."""
    usages = []
    for type_name, raw_type in raw_types.items():
        for field_name, field in raw_type.fields.items():
            if isinstance(field, PromptedField) and field.enum == enum_name:
                usages.append((type_name, field_name))
    return usages


# --- Edit commands (raw document -> new raw document) ---


def _enums_of(document: dict[str, Any]) -> dict[str, list[str]]:
    return document.setdefault("enums", {})


def add_enum(document: dict[str, Any], name: str, values: Sequence[str]) -> dict[str, Any]:
    """Declare a new enum."""
    error = validate_enum_name(name)
    if error:
        raise SchemaStructureError(error)
    if name in document.get("enums", {}):
        raise SchemaError(f'Enum "{name}" already exists')
    validate_enum_values(name, values)

    updated = copy.deepcopy(document)
    _enums_of(updated)[name] = list(values)
    return updated


def remove_enum(document: dict[str, Any], name: str) -> dict[str, Any]:
    """Delete an enum that no field references."""
    if name not in document.get("enums", {}):
        raise SchemaError(f'Enum "{name}" does not exist')

    users = [
        f"{type_name}.{field_name}"
        for type_name, type_def in document.get("types", {}).items()
        for field_name, field in (type_def.get("fields") or {}).items()
        if isinstance(field, dict) and field.get("enum") == name
    ]
    if users:
        raise SchemaError(f'Enum "{name}" is still used by: {", ".join(users)}')

    updated = copy.deepcopy(document)
    del updated["enums"][name]
    return updated


def add_enum_value(document: dict[str, Any], enum_name: str, value: str) -> dict[str, Any]:
    """Append a value to an existing enum."""
    values = document.get("enums", {}).get(enum_name)
    if values is None:
        raise SchemaError(f'Enum "{enum_name}" does not exist')
    error = validate_enum_value(value)
    if error:
        raise SchemaError(error)
    if value in values:
        raise SchemaError(f'Value "{value}" already exists in enum "{enum_name}"')

    updated = copy.deepcopy(document)
    updated["enums"][enum_name].append(value)
    return updated


def remove_enum_value(document: dict[str, Any], enum_name: str, value: str) -> dict[str, Any]:
    """Remove a value from an enum, keeping at least one value."""
    values = document.get("enums", {}).get(enum_name)
    if values is None:
        raise SchemaError(f'Enum "{enum_name}" does not exist')
    if value not in values:
        raise SchemaError(f'Value "{value}" does not exist in enum "{enum_name}"')
    if len(values) == 1:
        raise SchemaError(f'Cannot remove the last value of enum "{enum_name}"')

    updated = copy.deepcopy(document)
    updated["enums"][enum_name].remove(value)
    return updated


def rename_enum_value(
    document: dict[str, Any], enum_name: str, old_value: str, new_value: str
) -> dict[str, Any]:
    """Rename an enum value in place and in the defaults of fields that use the enum."""
    values = document.get("enums", {}).get(enum_name)
    if values is None:
        raise SchemaError(f'Enum "{enum_name}" does not exist')
    if old_value not in values:
        raise SchemaError(f'Value "{old_value}" does not exist in enum "{enum_name}"')
    error = validate_enum_value(new_value)
    if error:
        raise SchemaError(error)
    if new_value in values:
        raise SchemaError(f'Value "{new_value}" already exists in enum "{enum_name}"')

    updated = copy.deepcopy(document)
    enum_values = updated["enums"][enum_name]
    enum_values[enum_values.index(old_value)] = new_value

    for type_def in updated.get("types", {}).values():
        for field in (type_def.get("fields") or {}).values():
            if not isinstance(field, dict) or field.get("enum") != enum_name:
                continue
            default = field.get("default")
            if default == old_value:
                field["default"] = new_value
            elif isinstance(default, list):
                field["default"] = [new_value if v == old_value else v for v in default]
    return updated
