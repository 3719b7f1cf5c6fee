"""Models for schema migrations.

Operations are a union discriminated by ``op`` so plans, snapshots and history
entries round-trip through JSON unchanged.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from vaultkeeper.schema.models import FieldValue


# --- Operations ---


class AddTypeOperation(BaseModel):
    """A type present only in the new schema. Affects future notes only."""

    op: Literal["add-type"] = "add-type"
    type_name: str = Field(..., description="Name of the new type")


class RemoveTypeOperation(BaseModel):
    """A type present only in the old schema. Existing notes of it are orphaned."""

    op: Literal["remove-type"] = "remove-type"
    type_name: str = Field(..., description="Name of the removed type")


class AddFieldOperation(BaseModel):
    op: Literal["add-field"] = "add-field"
    type_name: str = Field(..., description="Type declaring the new field")
    field: str = Field(..., description="Name of the new field")
    default: FieldValue | None = Field(
        None, description="Declared default (or static value) to backfill into existing notes"
    )


class RemoveFieldOperation(BaseModel):
    op: Literal["remove-field"] = "remove-field"
    type_name: str = Field(..., description="Type that declared the field")
    field: str = Field(..., description="Name of the removed field")


class AddEnumValueOperation(BaseModel):
    op: Literal["add-enum-value"] = "add-enum-value"
    enum: str = Field(..., description="Enum name")
    value: str = Field(..., description="Added value")


class RemoveEnumValueOperation(BaseModel):
    op: Literal["remove-enum-value"] = "remove-enum-value"
    enum: str = Field(..., description="Enum name")
    value: str = Field(..., description="Removed value")


class ReparentTypeOperation(BaseModel):
    """A type whose declared ``extends`` changed. Inherited fields may differ."""

    model_config = ConfigDict(populate_by_name=True)

    op: Literal["reparent-type"] = "reparent-type"
    type_name: str = Field(..., description="Reparented type")
    from_parent: str | None = Field(None, alias="from", description="Old parent, None for root")
    to_parent: str | None = Field(None, alias="to", description="New parent, None for root")


class ChangeFieldOperation(BaseModel):
    """A field present in both versions whose shape changed (e.g. text -> select)."""

    op: Literal["change-field"] = "change-field"
    type_name: str = Field(..., description="Type declaring the field")
    field: str = Field(..., description="Changed field")
    changes: list[str] = Field(default_factory=list, description="Changed properties")


MigrationOperation = Annotated[
    Union[
        AddTypeOperation,
        RemoveTypeOperation,
        AddFieldOperation,
        RemoveFieldOperation,
        AddEnumValueOperation,
        RemoveEnumValueOperation,
        ReparentTypeOperation,
        ChangeFieldOperation,
    ],
    Field(discriminator="op"),
]

DETERMINISTIC_OPS = frozenset({"add-type", "add-field", "add-enum-value"})


def dump_operation(operation: BaseModel) -> dict[str, Any]:
    return operation.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Plan ---


class MigrationPlan(BaseModel):
    """Classified difference between the last-applied schema and the current one.

    Deterministic operations are pure additions and may be auto-applied.
    Non-deterministic operations can orphan data and always need a human decision.
    """

    from_version: str
    to_version: str
    deterministic: list[MigrationOperation] = Field(default_factory=list)
    non_deterministic: list[MigrationOperation] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return len(self.deterministic) + len(self.non_deterministic) > 0

    @property
    def operations(self) -> list[MigrationOperation]:
        return [*self.deterministic, *self.non_deterministic]


# --- Execution results ---


class AppliedChange(BaseModel):
    """A single front matter key set on one note."""

    field: str
    value: Any = None
    op: str = "add-field"


class FileMigrationResult(BaseModel):
    path: str
    relative_path: str
    changes: list[AppliedChange] = Field(default_factory=list)
    applied: bool = False
    error: str | None = None


class MigrationResult(BaseModel):
    """Outcome of one executor run (dry run or execute)."""

    dry_run: bool
    from_version: str
    to_version: str
    total_files: int = 0
    affected_files: int = 0
    file_results: list[FileMigrationResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    backup_path: str | None = None


# --- Persistence records ---


class SchemaSnapshot(BaseModel):
    """The schema as of the last successfully applied migration."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: str
    snapshot_at: datetime
    document: dict[str, Any] = Field(..., alias="schema")


class AppliedMigration(BaseModel):
    """One immutable entry of the migration ledger."""

    from_version: str | None = None
    version: str
    applied_at: datetime
    operations: list[MigrationOperation] = Field(default_factory=list)
    notes_affected: int = 0
    backup_path: str | None = None


class MigrationHistory(BaseModel):
    """Append-only ledger of applied migrations, oldest first."""

    applied: list[AppliedMigration] = Field(default_factory=list)
