"""Field resolution: merge inherited fields, track provenance, compute display order.

Ancestor field maps are applied farthest first and the type's own fields last,
so a nearer declaration replaces a farther one wholesale and becomes that
field's provenance. An inherited, unmodified field keeps its owning ancestor as
provenance; editors use that to redirect changes to the right type.
"""

from typing import Iterable, Mapping, Sequence

from loguru import logger

from vaultkeeper.schema.errors import FieldDefinitionError
from vaultkeeper.schema.models import RawField, RawType
from vaultkeeper.schema.parser import validate_field_name


def validate_field_names(raw_types: Mapping[str, RawType]) -> None:
    """Reject malformed field names anywhere in the schema."""
    for type_name, raw_type in raw_types.items():
        for field_name in raw_type.fields:
            error = validate_field_name(field_name)
            if error:
                raise FieldDefinitionError(
                    f'{error} (type "{type_name}")',
                    type_name=type_name,
                    field_name=field_name,
                )


def _chain(name: str, ancestors: Sequence[str]) -> list[str]:
    """Farthest ancestor first, the type itself last."""
    return list(reversed(ancestors)) + [name]


def merge_fields(
    name: str,
    ancestors: Sequence[str],
    raw_types: Mapping[str, RawType],
) -> tuple[dict[str, RawField], dict[str, str]]:
    """Effective fields for a type and the type that owns each one.

    Returns:
        (fields, provenance) where provenance maps field name -> owning type.
    """
    fields: dict[str, RawField] = {}
    provenance: dict[str, str] = {}
    for current in _chain(name, ancestors):
        raw_type = raw_types.get(current)
        if raw_type is None:
            continue  # implicit root without a declaration
        for field_name, definition in raw_type.fields.items():
            fields[field_name] = definition
            provenance[field_name] = current
    return fields, provenance


def _declared_order(raw_type: RawType) -> list[str]:
    if raw_type.field_order:
        listed = [f for f in raw_type.field_order if f in raw_type.fields]
        return listed + [f for f in raw_type.fields if f not in listed]
    return list(raw_type.fields)


def compute_field_order(
    name: str,
    ancestors: Sequence[str],
    raw_types: Mapping[str, RawType],
    fields: Mapping[str, RawField],
) -> list[str]:
    """Display order for a type's effective fields.

    An explicit ``field_order`` on the type wins: its entries come first and any
    effective field it does not mention follows in inherited order. Entries that
    name no effective field are skipped. Without one, each type in the chain
    contributes its own order, farthest ancestor first.
    """
    inherited: list[str] = []
    seen: set[str] = set()
    for current in _chain(name, ancestors):
        raw_type = raw_types.get(current)
        if raw_type is None:
            continue
        for field_name in _declared_order(raw_type):
            if field_name in fields and field_name not in seen:
                inherited.append(field_name)
                seen.add(field_name)

    raw_type = raw_types.get(name)
    explicit = raw_type.field_order if raw_type is not None else None
    if not explicit:
        return inherited

    unknown = [f for f in explicit if f not in fields]
    if unknown:
        logger.debug("Ignoring unknown field_order entries", type_name=name, fields=unknown)

    ordered = [f for f in dict.fromkeys(explicit) if f in fields]
    return ordered + [f for f in inherited if f not in ordered]


def project_field_order(origin_order: Sequence[str], field_names: Iterable[str]) -> list[str]:
    """Order a subset of fields by an origin type's field order.

    Fields the origin order does not mention are appended in input order.
    """
    requested = list(dict.fromkeys(field_names))
    requested_set = set(requested)
    ordered = [f for f in origin_order if f in requested_set]
    placed = set(ordered)
    return ordered + [f for f in requested if f not in placed]


def group_by_origin(
    name: str,
    fields: Mapping[str, RawField],
    provenance: Mapping[str, str],
) -> tuple[dict[str, RawField], dict[str, dict[str, RawField]]]:
    """Split effective fields into own fields and inherited fields keyed by owner."""
    own: dict[str, RawField] = {}
    inherited: dict[str, dict[str, RawField]] = {}
    for field_name, definition in fields.items():
        owner = provenance.get(field_name, name)
        if owner == name:
            own[field_name] = definition
        else:
            inherited.setdefault(owner, {})[field_name] = definition
    return own, inherited
