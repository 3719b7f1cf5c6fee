"""Type graph builder.

Validates raw type declarations and materializes the inheritance forest once
per resolution pass: parent pointers, ordered ancestor lists (nearest first,
ending at the implicit root) and child lists. Relation self-references are a
separate concern and never appear here; this graph must stay acyclic.
"""

from dataclasses import dataclass, field
from typing import Optional

from vaultkeeper.schema.errors import SchemaStructureError
from vaultkeeper.schema.models import IMPLICIT_ROOT, RawSchema
from vaultkeeper.schema.parser import validate_type_name
from vaultkeeper.schema.sources import find_close_matches


@dataclass
class TypeGraph:
    """The inheritance forest, rooted at the implicit root type."""

    names: list[str]  # implicit root first, then declaration order
    parents: dict[str, Optional[str]]
    ancestors: dict[str, list[str]]  # nearest first
    children: dict[str, list[str]] = field(default_factory=dict)
    # Parent as written (None when omitted, self-extension, or the implicit root)
    declared_parents: dict[str, Optional[str]] = field(default_factory=dict)

    def descendants(self, name: str) -> list[str]:
        """All types below ``name``, depth-first in declaration order."""
        result: list[str] = []
        stack = list(reversed(self.children.get(name, [])))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.children.get(current, [])))
        return result


def _validate_declarations(raw: RawSchema) -> None:
    for name, raw_type in raw.types.items():
        if name == IMPLICIT_ROOT:
            if raw_type.extends is not None:
                raise SchemaStructureError(
                    f'"{IMPLICIT_ROOT}" is the implicit root type and cannot extend another type'
                )
            continue

        error = validate_type_name(name)
        if error:
            raise SchemaStructureError(error)

        if raw_type.extends == name and not raw_type.recursive:
            raise SchemaStructureError(
                f'Type "{name}" extends itself. Set "recursive": true to allow '
                f"{name} notes to nest under other {name} notes."
            )


def _parent_of(name: str, raw: RawSchema) -> Optional[str]:
    if name == IMPLICIT_ROOT:
        return None
    raw_type = raw.types[name]
    # A recursive self-extension means "nests in itself", not inheritance.
    if raw_type.extends is None or raw_type.extends == name:
        return IMPLICIT_ROOT
    return raw_type.extends


def _detect_cycles(parents: dict[str, Optional[str]]) -> None:
    for name in parents:
        visited: list[str] = []
        current: Optional[str] = name
        while current is not None:
            if current in visited:
                cycle = " -> ".join(visited[visited.index(current):] + [current])
                raise SchemaStructureError(f"Circular inheritance detected: {cycle}")
            visited.append(current)
            current = parents.get(current)


def build_type_graph(raw: RawSchema) -> TypeGraph:
    """Validate declarations and build the inheritance forest.

    Raises:
        SchemaStructureError: For malformed or reserved names, unknown parents,
            self-extension without ``recursive``, and inheritance cycles.
    """
    _validate_declarations(raw)

    names = [IMPLICIT_ROOT] + [name for name in raw.types if name != IMPLICIT_ROOT]
    parents = {name: _parent_of(name, raw) for name in names}

    for name, parent in parents.items():
        if parent is not None and parent not in parents:
            known = [n for n in names if n != name]
            suggestions = find_close_matches(parent, known)
            hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
            raise SchemaStructureError(
                f'Type "{name}" extends unknown type "{parent}".{hint} '
                f"Available types: {', '.join(known)}",
                suggestions=suggestions,
            )

    _detect_cycles(parents)

    ancestors: dict[str, list[str]] = {}
    for name in names:
        chain: list[str] = []
        current = parents[name]
        while current is not None:
            chain.append(current)
            current = parents[current]
        ancestors[name] = chain

    children: dict[str, list[str]] = {name: [] for name in names}
    for name in names:
        parent = parents[name]
        if parent is not None:
            children[parent].append(name)

    declared_parents: dict[str, Optional[str]] = {}
    for name in names:
        parent = parents[name]
        declared_parents[name] = None if parent in (None, IMPLICIT_ROOT) else parent

    return TypeGraph(
        names=names,
        parents=parents,
        ancestors=ancestors,
        children=children,
        declared_parents=declared_parents,
    )
