"""Schema diff for vaultkeeper.

Compares the last-applied schema against the current one and classifies every
difference:
  - Deterministic: pure additions (new type, new field, new enum value). Safe to
    apply to existing notes without losing information.
  - Non-deterministic: removals, reparenting, and field shape changes. These can
    orphan existing data, so they are surfaced for a human decision and never
    applied automatically.

Only a type's *own* field declarations are compared. A field inherited from an
ancestor is reported once, on the ancestor.
"""

import json
from typing import Any, Optional

from vaultkeeper.migration.models import (
    AddEnumValueOperation,
    AddFieldOperation,
    AddTypeOperation,
    ChangeFieldOperation,
    MigrationOperation,
    MigrationPlan,
    RemoveEnumValueOperation,
    RemoveFieldOperation,
    RemoveTypeOperation,
    ReparentTypeOperation,
    dump_operation,
)
from vaultkeeper.schema.models import RawField, RawSchema, RawType

# Properties whose change alters how existing values are interpreted.
TRACKED_FIELD_PROPERTIES = ("kind", "prompt", "options", "enum", "source", "multiple", "list_format")


# --- Detection ---


def _field_property(field: RawField, name: str) -> Any:
    if name == "kind":
        return field.kind
    return getattr(field, name, None)


def changed_field_properties(old: RawField, new: RawField) -> list[str]:
    """Tracked properties that differ between two declarations of one field."""
    return [
        name
        for name in TRACKED_FIELD_PROPERTIES
        if _field_property(old, name) != _field_property(new, name)
    ]


def _diff_fields(
    type_name: str, old_type: RawType, new_type: RawType
) -> tuple[list[MigrationOperation], list[MigrationOperation]]:
    deterministic: list[MigrationOperation] = []
    non_deterministic: list[MigrationOperation] = []

    for field_name, definition in new_type.fields.items():
        if field_name not in old_type.fields:
            deterministic.append(
                AddFieldOperation(
                    type_name=type_name,
                    field=field_name,
                    default=definition.default_value,
                )
            )

    for field_name in old_type.fields:
        if field_name not in new_type.fields:
            non_deterministic.append(RemoveFieldOperation(type_name=type_name, field=field_name))

    for field_name, old_definition in old_type.fields.items():
        new_definition = new_type.fields.get(field_name)
        if new_definition is None:
            continue
        changes = changed_field_properties(old_definition, new_definition)
        if changes:
            non_deterministic.append(
                ChangeFieldOperation(type_name=type_name, field=field_name, changes=changes)
            )

    return deterministic, non_deterministic


def _diff_enums(
    old_enums: dict[str, list[str]], new_enums: dict[str, list[str]]
) -> tuple[list[MigrationOperation], list[MigrationOperation]]:
    deterministic: list[MigrationOperation] = []
    non_deterministic: list[MigrationOperation] = []

    for enum_name, values in new_enums.items():
        old_values = set(old_enums.get(enum_name, []))
        for value in values:
            if value not in old_values:
                deterministic.append(AddEnumValueOperation(enum=enum_name, value=value))

    for enum_name, values in old_enums.items():
        new_values = set(new_enums.get(enum_name, []))
        for value in values:
            if value not in new_values:
                non_deterministic.append(RemoveEnumValueOperation(enum=enum_name, value=value))

    return deterministic, non_deterministic


def diff_schemas(
    old: Optional[RawSchema],
    new: RawSchema,
    from_version: str,
    to_version: str,
) -> MigrationPlan:
    """Diff two raw schemas into a classified migration plan.

    Args:
        old: The last-applied schema, or None before the first migration (no changes).
        new: The current schema.
        from_version: Version label for ``old``.
        to_version: Version label for ``new``.
    """
    plan = MigrationPlan(from_version=from_version, to_version=to_version)
    if old is None:
        return plan

    # --- Types ---
    for type_name in new.types:
        if type_name not in old.types:
            plan.deterministic.append(AddTypeOperation(type_name=type_name))

    for type_name in old.types:
        if type_name not in new.types:
            plan.non_deterministic.append(RemoveTypeOperation(type_name=type_name))

    for type_name, old_type in old.types.items():
        new_type = new.types.get(type_name)
        if new_type is None:
            continue

        if old_type.extends != new_type.extends:
            plan.non_deterministic.append(
                ReparentTypeOperation(
                    type_name=type_name,
                    from_parent=old_type.extends,
                    to_parent=new_type.extends,
                )
            )

        added, removed = _diff_fields(type_name, old_type, new_type)
        plan.deterministic.extend(added)
        plan.non_deterministic.extend(removed)

    # --- Enums ---
    added, removed = _diff_enums(old.enums, new.enums)
    plan.deterministic.extend(added)
    plan.non_deterministic.extend(removed)

    return plan


# --- Display ---


def _format_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def describe_operation(operation: MigrationOperation) -> str:
    """One-line human-readable description of an operation."""
    match operation:
        case AddTypeOperation(type_name=type_name):
            return f'+ Add type "{type_name}"'
        case RemoveTypeOperation(type_name=type_name):
            return f'- Remove type "{type_name}"'
        case AddFieldOperation(type_name=type_name, field=field, default=default):
            suffix = f" (default: {_format_value(default)})" if default is not None else " (no default)"
            return f'+ Add field "{field}" to type "{type_name}"{suffix}'
        case RemoveFieldOperation(type_name=type_name, field=field):
            return f'- Remove field "{field}" from type "{type_name}"'
        case AddEnumValueOperation(enum=enum, value=value):
            return f'+ Add value "{value}" to enum "{enum}"'
        case RemoveEnumValueOperation(enum=enum, value=value):
            return f'- Remove value "{value}" from enum "{enum}"'
        case ReparentTypeOperation(type_name=type_name, from_parent=old, to_parent=new):
            return f'~ Change parent of type "{type_name}" from "{old or "meta"}" to "{new or "meta"}"'
        case ChangeFieldOperation(type_name=type_name, field=field, changes=changes):
            return f'~ Change field "{field}" on type "{type_name}" ({", ".join(changes)})'
    raise ValueError(f"Unknown migration operation: {operation!r}")


def format_plan(plan: MigrationPlan) -> str:
    """Plan as plain text, deterministic changes first."""
    lines: list[str] = []

    if plan.deterministic:
        lines.append("Deterministic changes (will be auto-applied):")
        lines.extend(f"  {describe_operation(op)}" for op in plan.deterministic)

    if plan.non_deterministic:
        if lines:
            lines.append("")
        lines.append("Non-deterministic changes (require review, never auto-applied):")
        lines.extend(f"  {describe_operation(op)}" for op in plan.non_deterministic)

    if not lines:
        return "No changes detected."
    return "\n".join(lines)


def plan_to_dict(plan: MigrationPlan) -> dict[str, Any]:
    """JSON-ready view of a plan."""
    return {
        "has_changes": plan.has_changes,
        "from_version": plan.from_version,
        "to_version": plan.to_version,
        "deterministic": [dump_operation(op) for op in plan.deterministic],
        "non_deterministic": [dump_operation(op) for op in plan.non_deterministic],
        "summary": {
            "deterministic_count": len(plan.deterministic),
            "non_deterministic_count": len(plan.non_deterministic),
        },
    }
