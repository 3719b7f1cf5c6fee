"""Plural names and default storage directories.

A type's notes live in a folder named by the plurals of its ancestor chain,
top-most first, with the implicit root left out::

    objective                    -> objectives
    task (extends objective)     -> objectives/tasks
    story (plural: "stories-x")  -> stories-x

An explicit ``output_dir`` on a type (or the nearest ancestor that has one)
replaces the part of the chain at and above it.
"""

from typing import Mapping, Optional

from vaultkeeper.schema.models import IMPLICIT_ROOT, RawType

VOWELS = frozenset("aeiou")


def pluralize(singular: str) -> str:
    """Simple English pluralization for folder names.

    - ends in s, x, z, ch, sh -> add "es" (bus -> buses)
    - consonant + y           -> "ies"   (story -> stories)
    - otherwise               -> add "s" (task -> tasks)

    Irregular words (research, software) should set ``plural`` explicitly.
    """
    if not singular:
        return singular

    lower = singular.lower()
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return singular + "es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in VOWELS:
        return singular[:-1] + "ies"
    return singular + "s"


def plural_for(name: str, raw_type: Optional[RawType]) -> str:
    """Explicit plural if declared, else the auto-pluralized name."""
    if name == IMPLICIT_ROOT:
        return IMPLICIT_ROOT
    if raw_type is not None and raw_type.plural:
        return raw_type.plural
    return pluralize(name)


def _normalize_dir(path: str) -> str:
    return path.strip().strip("/")


def default_output_dir(name: str, ancestors: list[str], plurals: Mapping[str, str]) -> str:
    """Lower-cased plurals of the chain, top-most non-root ancestor down to the type."""
    chain = [t for t in reversed(ancestors) if t != IMPLICIT_ROOT] + [name]
    return "/".join(plurals[t].lower() for t in chain)


def resolve_output_dir(
    name: str,
    ancestors: list[str],
    raw_types: Mapping[str, RawType],
    plurals: Mapping[str, str],
) -> str:
    """Output directory for a type.

    Walks from the type up its ancestor chain. The first explicit ``output_dir``
    found anchors the path; the plurals of the types below it are appended.
    Without any explicit directory the default plural chain is used.
    """
    if name == IMPLICIT_ROOT:
        return ""

    below: list[str] = []
    for current in [name] + ancestors:
        raw_type = raw_types.get(current)
        if raw_type is not None and raw_type.output_dir:
            anchor = _normalize_dir(raw_type.output_dir)
            suffix = [plurals[t].lower() for t in reversed(below)]
            return "/".join([anchor] + suffix) if anchor else "/".join(suffix)
        below.append(current)

    return default_output_dir(name, ancestors, plurals)
