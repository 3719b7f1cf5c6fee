"""Schema resolver for vaultkeeper.

Turns a raw schema into concrete per-type definitions in one pass:

  1. Validate enums and type declarations, build the inheritance forest
  2. Merge fields down each ancestor chain, recording provenance
  3. Compute display order, plural, output directory, body sections
  4. Inject a ``parent`` relation into recursive types that lack one
  5. Validate select options and relation sources against the result

Resolution is a pure function of the raw schema: the same input always yields
the same ResolvedSchema, and nothing is cached between invocations.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from vaultkeeper.schema.enums import enum_usage, validate_enums, validate_select_field
from vaultkeeper.schema.errors import SchemaError
from vaultkeeper.schema.fields import (
    compute_field_order,
    group_by_origin,
    merge_fields,
    project_field_order,
    validate_field_names,
)
from vaultkeeper.schema.graph import TypeGraph, build_type_graph
from vaultkeeper.schema.models import (
    IMPLICIT_ROOT,
    BodySection,
    LinkFormat,
    PromptedField,
    RawField,
    RawSchema,
)
from vaultkeeper.schema.naming import plural_for, resolve_output_dir
from vaultkeeper.schema.parser import load_raw_schema
from vaultkeeper.schema.sources import resolve_source_type

PARENT_FIELD = "parent"


# --- Resolved Model ---


@dataclass
class ResolvedType:
    """A type with inheritance applied."""

    name: str
    parent: Optional[str]  # None only for the implicit root
    ancestors: list[str]  # nearest first, implicit root last
    children: list[str]
    fields: dict[str, RawField]
    provenance: dict[str, str]  # field -> type that owns its declaration
    field_order: list[str]
    recursive: bool
    plural: str
    output_dir: str
    filename: Optional[str] = None
    body_sections: list[BodySection] = field(default_factory=list)

    def owner_of(self, field_name: str) -> Optional[str]:
        return self.provenance.get(field_name)

    def is_inherited(self, field_name: str) -> bool:
        owner = self.provenance.get(field_name)
        return owner is not None and owner != self.name


@dataclass
class ResolvedSchema:
    """A loaded schema with every type resolved."""

    raw: RawSchema
    types: dict[str, ResolvedType]
    enums: dict[str, list[str]]
    link_format: LinkFormat = "wikilink"
    graph: Optional[TypeGraph] = None

    @property
    def version(self) -> str:
        return self.raw.version

    def get_type(self, name: str) -> Optional[ResolvedType]:
        return self.types.get(name)

    def require_type(self, name: str) -> ResolvedType:
        resolved = self.types.get(name)
        if resolved is None:
            raise SchemaError(
                f'Unknown type "{name}". Available types: {", ".join(self.concrete_type_names())}'
            )
        return resolved

    def type_names(self) -> list[str]:
        return list(self.types)

    def concrete_type_names(self) -> list[str]:
        """Types that can have notes (everything but the implicit root)."""
        return [name for name in self.types if name != IMPLICIT_ROOT]

    def leaf_type_names(self) -> list[str]:
        return [t.name for t in self.types.values() if not t.children]

    def descendants(self, name: str) -> list[str]:
        result: list[str] = []
        stack = list(reversed(self.require_type(name).children))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.types[current].children))
        return result

    def family(self, name: str) -> list[str]:
        """The type itself followed by all of its descendants."""
        return [name] + self.descendants(name)

    def is_descendant_of(self, name: str, ancestor: str) -> bool:
        resolved = self.types.get(name)
        return resolved is not None and ancestor in resolved.ancestors

    def enum_values(self, enum_name: str) -> list[str]:
        return list(self.enums.get(enum_name, []))

    def enum_usage(self, enum_name: str) -> list[tuple[str, str]]:
        return enum_usage(self.raw.types, enum_name)

    def output_dir(self, name: str) -> str:
        return self.require_type(name).output_dir

    def fields_by_origin(
        self, name: str
    ) -> tuple[dict[str, RawField], dict[str, dict[str, RawField]]]:
        """(own fields, inherited fields grouped by owning ancestor)."""
        resolved = self.require_type(name)
        return group_by_origin(name, resolved.fields, resolved.provenance)

    def field_order_for_origin(self, origin: str, field_names: list[str]) -> list[str]:
        """Project ``field_names`` into ``origin``'s display order."""
        resolved = self.types.get(origin)
        if resolved is None:
            return list(dict.fromkeys(field_names))
        return project_field_order(resolved.field_order, field_names)

    def resolve_type_from_frontmatter(self, metadata: Mapping[str, Any]) -> Optional[str]:
        type_name = metadata.get("type")
        if isinstance(type_name, str) and type_name in self.types:
            return type_name
        return None


# --- Recursive augmentation ---


def parent_relation_source(name: str, declared_parent: Optional[str]) -> str | list[str]:
    """Source of the synthesized parent field.

    Without a declared parent type a note can only nest under its own type;
    with one, it may sit under either the parent type or its own type.
    """
    if declared_parent is None:
        return name
    return [declared_parent, name]


def augment_recursive(
    resolved: ResolvedType,
    declared_parent: Optional[str],
    link_format: LinkFormat,
) -> None:
    """Give a recursive type a ``parent`` relation field unless it already has one."""
    if not resolved.recursive or PARENT_FIELD in resolved.fields:
        return

    resolved.fields[PARENT_FIELD] = PromptedField(
        prompt="relation",
        source=parent_relation_source(resolved.name, declared_parent),
        format=link_format,
        required=False,
    )
    resolved.provenance[PARENT_FIELD] = resolved.name
    if PARENT_FIELD not in resolved.field_order:
        resolved.field_order.append(PARENT_FIELD)


# --- Resolution ---


def _inherited_body_sections(name: str, graph: TypeGraph, raw: RawSchema) -> list[BodySection]:
    for current in [name] + graph.ancestors[name]:
        raw_type = raw.types.get(current)
        if raw_type is not None and raw_type.body_sections:
            return list(raw_type.body_sections)
    return []


def _validate_field_definitions(schema: ResolvedSchema) -> None:
    relation_targets = schema.concrete_type_names()
    for resolved in schema.types.values():
        for field_name, definition in resolved.fields.items():
            # Each declaration is checked once, on the type that owns it.
            if resolved.provenance.get(field_name) != resolved.name:
                continue
            validate_select_field(resolved.name, field_name, definition, schema.enums)
            if isinstance(definition, PromptedField) and definition.prompt == "relation":
                for source in definition.sources:
                    resolve_source_type(
                        source,
                        relation_targets,
                        schema.enums,
                        type_name=resolved.name,
                        field_name=field_name,
                    )


def resolve_schema(raw: RawSchema) -> ResolvedSchema:
    """Resolve a raw schema into concrete types.

    Raises:
        SchemaStructureError: Malformed names, unknown parents, cycles, bad enums.
        FieldDefinitionError: Bad field names, field orders, select options,
            enum references, or relation sources.
    """
    validate_enums(raw.enums)
    graph = build_type_graph(raw)
    validate_field_names(raw.types)

    plurals = {name: plural_for(name, raw.types.get(name)) for name in graph.names}
    link_format = raw.settings.link_format

    types: dict[str, ResolvedType] = {}
    for name in graph.names:
        ancestors = graph.ancestors[name]
        fields, provenance = merge_fields(name, ancestors, raw.types)
        raw_type = raw.types.get(name)
        resolved = ResolvedType(
            name=name,
            parent=graph.parents[name],
            ancestors=list(ancestors),
            children=list(graph.children[name]),
            fields=fields,
            provenance=provenance,
            field_order=compute_field_order(name, ancestors, raw.types, fields),
            recursive=raw_type.recursive if raw_type is not None else False,
            plural=plurals[name],
            output_dir=resolve_output_dir(name, ancestors, raw.types, plurals),
            filename=raw_type.filename if raw_type is not None else None,
            body_sections=_inherited_body_sections(name, graph, raw),
        )
        augment_recursive(resolved, graph.declared_parents[name], link_format)
        types[name] = resolved

    schema = ResolvedSchema(
        raw=raw,
        types=types,
        enums={name: list(values) for name, values in raw.enums.items()},
        link_format=link_format,
        graph=graph,
    )
    _validate_field_definitions(schema)

    logger.debug(
        "Resolved schema",
        types=len(types) - 1,
        enums=len(schema.enums),
        version=raw.version,
    )
    return schema


def load_schema(vault: Path) -> ResolvedSchema:
    """Load, validate, and resolve a vault's schema."""
    return resolve_schema(load_raw_schema(vault))
