"""Raw schema models.

These mirror the schema document (``.vaultkeeper/schema.json``) exactly as the
user writes it, before inheritance is resolved. A field is a tagged union: a
*static* field carries a fixed ``value``; a *prompted* field carries a ``prompt``
kind describing how the value is collected.

Example document::

    {
      "version": "1.2.0",
      "types": {
        "objective": {"fields": {"status": {"prompt": "select", "enum": "status"}}},
        "task": {"extends": "objective", "recursive": true}
      },
      "enums": {"status": ["raw", "backlog", "done"]}
    }
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

PromptKind = Literal["text", "select", "date", "list", "relation", "boolean", "number"]
LinkFormat = Literal["wikilink", "markdown"]
FieldValue = Union[str, bool, int, float, list[str]]

IMPLICIT_ROOT = "meta"


# --- Fields ---


class StaticField(BaseModel):
    """A field whose value is fixed by the schema (e.g. ``type: task``)."""

    model_config = ConfigDict(extra="forbid")

    value: FieldValue
    label: Optional[str] = None

    @property
    def kind(self) -> str:
        return "static"

    @property
    def default_value(self) -> Any:
        return self.value


class PromptedField(BaseModel):
    """A field collected from the user, described by its prompt kind."""

    model_config = ConfigDict(extra="forbid")

    prompt: PromptKind
    options: Optional[list[str]] = None  # select: inline choices
    enum: Optional[str] = None  # select: named enum instead of inline options
    source: Optional[Union[str, list[str]]] = None  # relation: target type name(s)
    format: Optional[LinkFormat] = None  # relation: link rendering
    required: bool = False
    default: Optional[FieldValue] = None
    label: Optional[str] = None
    multiple: bool = False
    list_format: Optional[Literal["yaml-array", "comma-separated"]] = None

    @property
    def kind(self) -> str:
        return "prompted"

    @property
    def default_value(self) -> Any:
        return self.default

    @property
    def sources(self) -> list[str]:
        """Relation source type names, always as a list."""
        if self.source is None:
            return []
        if isinstance(self.source, str):
            return [self.source]
        return list(self.source)


def _field_kind(value: Any) -> str:
    """Discriminate on the presence of a static value."""
    if isinstance(value, dict):
        return "static" if "value" in value else "prompted"
    return "static" if isinstance(value, StaticField) else "prompted"


RawField = Annotated[
    Union[
        Annotated[StaticField, Tag("static")],
        Annotated[PromptedField, Tag("prompted")],
    ],
    Discriminator(_field_kind),
]


# --- Types ---


class BodySection(BaseModel):
    """A heading in the generated note body, possibly with nested sections."""

    model_config = ConfigDict(extra="forbid")

    title: str
    level: int = 2
    content_type: Optional[Literal["none", "paragraphs", "bullets", "checkboxes"]] = None
    prompt: Optional[Literal["none", "list"]] = None
    prompt_label: Optional[str] = None
    children: list["BodySection"] = Field(default_factory=list)


class RawType(BaseModel):
    """A type declaration as written, before inheritance is applied."""

    model_config = ConfigDict(extra="forbid")

    extends: Optional[str] = None
    fields: dict[str, RawField] = Field(default_factory=dict)
    field_order: Optional[list[str]] = None
    recursive: bool = False
    plural: Optional[str] = None
    output_dir: Optional[str] = None
    filename: Optional[str] = None
    body_sections: list[BodySection] = Field(default_factory=list)


# --- Document ---


class VaultSettings(BaseModel):
    """Vault-wide settings stored in the schema document's ``config`` block."""

    model_config = ConfigDict(extra="allow")

    link_format: LinkFormat = "wikilink"


class RawSchema(BaseModel):
    """The whole schema document. Unknown top-level keys are tolerated."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: str = "1.0.0"
    types: dict[str, RawType] = Field(default_factory=dict)
    enums: dict[str, list[str]] = Field(default_factory=dict)
    settings: VaultSettings = Field(default_factory=VaultSettings, alias="config")
    ignored_directories: list[str] = Field(default_factory=list)
