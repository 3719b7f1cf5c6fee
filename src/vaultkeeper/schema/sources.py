"""Relation source resolution.

A relation field's ``source`` names the type(s) of note it may link to. When a
source does not name a type, the error should say *why*: the most common
mistake is naming an enum value (``source: "raw"`` where ``raw`` is a status),
which must not be reported as a generic unknown type.

Resolution order:
  1. Exact type name        -> resolved
  2. Value of some enum      -> error naming that enum and value
  3. Path-like ("a/task")    -> error suggesting the bare type name
  4. Close spelling match    -> error suggesting the closest type names
  5. Otherwise               -> error listing every available type
"""

from typing import Iterable, Mapping, Optional, Sequence

from vaultkeeper.schema.errors import FieldDefinitionError

MAX_SUGGESTION_DISTANCE = 3


# --- Similarity ---


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insertions, deletions, substitutions)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def find_close_matches(
    target: str,
    candidates: Iterable[str],
    max_distance: int = MAX_SUGGESTION_DISTANCE,
) -> list[str]:
    """Candidates within ``max_distance`` edits of target, closest first.

    Comparison is case-insensitive; exact matches are excluded. Ties keep
    candidate order.
    """
    lowered = target.lower()
    scored = []
    for index, candidate in enumerate(candidates):
        distance = levenshtein_distance(lowered, candidate.lower())
        if 0 < distance <= max_distance:
            scored.append((distance, index, candidate))
    scored.sort()
    return [candidate for _, _, candidate in scored]


def find_enum_containing_value(enums: Mapping[str, Sequence[str]], value: str) -> Optional[str]:
    """Name of the first enum (in declaration order) that lists ``value``."""
    for enum_name, values in enums.items():
        if value in values:
            return enum_name
    return None


# --- Resolution ---


def resolve_source_type(
    source: str,
    type_names: Sequence[str],
    enums: Mapping[str, Sequence[str]],
    type_name: Optional[str] = None,
    field_name: Optional[str] = None,
) -> str:
    """Resolve a relation source to a type name.

    Args:
        source: The declared source string.
        type_names: Types a relation may target (the implicit root excluded).
        enums: Enum name -> values, used to detect enum-value confusion.
        type_name: Declaring type, for error context.
        field_name: Declaring field, for error context.

    Returns:
        The resolved type name.

    Raises:
        FieldDefinitionError: With a targeted message and suggestions.
    """
    if source in type_names:
        return source

    where = f' (field "{field_name}" on type "{type_name}")' if type_name and field_name else ""
    available = ", ".join(type_names) or "(none)"

    def fail(message: str, suggestions: Optional[list[str]] = None) -> FieldDefinitionError:
        return FieldDefinitionError(
            message, suggestions=suggestions, type_name=type_name, field_name=field_name
        )

    # --- Enum value confusion ---
    enum_name = find_enum_containing_value(enums, source)
    if enum_name is not None:
        raise fail(
            f'Relation source "{source}"{where} is a value of the "{enum_name}" enum, '
            f"not a type name. Relation sources must reference types.\n"
            f"Available types: {available}\n"
            f'Hint: to restrict links by {enum_name}, point the source at the type that '
            f'carries the "{enum_name}" field instead.'
        )

    # --- Path format ---
    if "/" in source:
        last_segment = source.rstrip("/").rsplit("/", 1)[-1]
        if last_segment in type_names:
            raise fail(
                f'Relation source "{source}"{where} uses a path; use the bare type name: '
                f'"{last_segment}"',
                suggestions=[last_segment],
            )
        raise fail(
            f'Relation source "{source}"{where} uses a path, which is not supported.\n'
            f"Available types: {available}"
        )

    # --- Typos ---
    close_matches = find_close_matches(source, type_names)
    if close_matches:
        raise fail(
            f'Relation source type "{source}"{where} does not exist. '
            f"Did you mean: {', '.join(close_matches)}?",
            suggestions=close_matches,
        )

    raise fail(
        f'Relation source type "{source}"{where} does not exist.\nAvailable types: {available}'
    )
