"""Schema system for vaultkeeper.

Loads the vault's schema document, validates it, and resolves type inheritance
into concrete per-type field sets, storage locations, and relation semantics.
"""

from vaultkeeper.schema.errors import (
    FieldDefinitionError,
    SchemaError,
    SchemaStructureError,
    VersionFormatError,
)
from vaultkeeper.schema.models import (
    IMPLICIT_ROOT,
    BodySection,
    PromptedField,
    RawField,
    RawSchema,
    RawType,
    StaticField,
    VaultSettings,
)
from vaultkeeper.schema.parser import (
    load_raw_schema,
    load_schema_document,
    parse_raw_schema,
    parse_schema_json,
)
from vaultkeeper.schema.resolver import (
    PARENT_FIELD,
    ResolvedSchema,
    ResolvedType,
    load_schema,
    resolve_schema,
)
from vaultkeeper.schema.sources import find_close_matches, resolve_source_type
from vaultkeeper.schema.naming import pluralize
from vaultkeeper.schema.version import Version, compare_versions, is_valid_version, parse_version
from vaultkeeper.schema.enums import (
    add_enum,
    add_enum_value,
    remove_enum,
    remove_enum_value,
    rename_enum_value,
)
from vaultkeeper.schema.writer import (
    add_field,
    add_type,
    remove_field,
    remove_type,
    set_version,
    update_field,
    write_schema_document,
)

__all__ = [
    # Errors
    "SchemaError",
    "SchemaStructureError",
    "FieldDefinitionError",
    "VersionFormatError",
    # Models
    "IMPLICIT_ROOT",
    "BodySection",
    "PromptedField",
    "RawField",
    "RawSchema",
    "RawType",
    "StaticField",
    "VaultSettings",
    # Parser
    "load_raw_schema",
    "load_schema_document",
    "parse_raw_schema",
    "parse_schema_json",
    # Resolver
    "PARENT_FIELD",
    "ResolvedSchema",
    "ResolvedType",
    "load_schema",
    "resolve_schema",
    "find_close_matches",
    "resolve_source_type",
    "pluralize",
    # Versions
    "Version",
    "compare_versions",
    "is_valid_version",
    "parse_version",
    # Edits
    "add_enum",
    "add_enum_value",
    "remove_enum",
    "remove_enum_value",
    "rename_enum_value",
    "add_field",
    "add_type",
    "remove_field",
    "remove_type",
    "set_version",
    "update_field",
    "write_schema_document",
]
