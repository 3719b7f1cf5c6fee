"""Tests for vaultkeeper.schema.writer -- document edits and atomic writes."""

import copy
import json

import pytest

from vaultkeeper.config import schema_path
from vaultkeeper.schema.errors import (
    FieldDefinitionError,
    SchemaError,
    SchemaStructureError,
    VersionFormatError,
)
from vaultkeeper.schema.writer import (
    add_field,
    add_type,
    remove_field,
    remove_type,
    serialize_schema_document,
    set_version,
    update_field,
    write_schema_document,
)

from conftest import write_schema


class TestSerialization:
    def test_stable_output(self, ideas_schema):
        text = serialize_schema_document(ideas_schema)
        assert text.endswith("}\n")
        assert text.startswith('{\n  "version": "1.0.0"')
        assert json.loads(text) == ideas_schema

    def test_non_ascii_preserved(self):
        assert "café" in serialize_schema_document({"types": {"cafe": {"plural": "café"}}})

    def test_write_round_trip(self, vault, ideas_schema):
        resolved = write_schema_document(vault, ideas_schema)
        assert "task" in resolved.types
        assert json.loads(schema_path(vault).read_text()) == ideas_schema

    def test_invalid_document_never_written(self, vault, ideas_schema):
        write_schema(vault, ideas_schema)
        before = schema_path(vault).read_text()
        broken = copy.deepcopy(ideas_schema)
        broken["types"]["task"]["extends"] = "nope"
        with pytest.raises(SchemaStructureError):
            write_schema_document(vault, broken)
        assert schema_path(vault).read_text() == before


# --- Type edits ---


class TestTypeEdits:
    def test_add_type(self, ideas_schema):
        updated = add_type(ideas_schema, "milestone", extends="objective", recursive=True)
        assert updated["types"]["milestone"] == {
            "extends": "objective",
            "recursive": True,
            "fields": {},
        }
        assert "milestone" not in ideas_schema["types"]

    def test_add_type_under_root(self, ideas_schema):
        updated = add_type(ideas_schema, "note", extends="meta")
        assert updated["types"]["note"]["extends"] == "meta"

    @pytest.mark.parametrize("name", ["Task", "meta", "", "1st"])
    def test_add_type_rejects_bad_names(self, ideas_schema, name):
        with pytest.raises(SchemaStructureError):
            add_type(ideas_schema, name)

    def test_add_existing_type(self, ideas_schema):
        with pytest.raises(SchemaStructureError, match="already exists"):
            add_type(ideas_schema, "task")

    def test_add_type_unknown_parent(self, ideas_schema):
        with pytest.raises(SchemaStructureError, match="unknown type"):
            add_type(ideas_schema, "chore", extends="nope")

    def test_remove_leaf_type(self, ideas_schema):
        updated = remove_type(ideas_schema, "task")
        assert "task" not in updated["types"]

    def test_remove_extended_type_fails(self, ideas_schema):
        with pytest.raises(SchemaStructureError, match="extended by task"):
            remove_type(ideas_schema, "objective")

    def test_remove_missing_type(self, ideas_schema):
        with pytest.raises(SchemaError, match="does not exist"):
            remove_type(ideas_schema, "nope")


# --- Field edits ---


class TestFieldEdits:
    def test_add_field(self, ideas_schema):
        updated = add_field(ideas_schema, "idea", "priority", {"prompt": "text", "default": "low"})
        assert updated["types"]["idea"]["fields"]["priority"]["default"] == "low"
        assert "priority" not in ideas_schema["types"]["idea"]["fields"]

    def test_add_field_can_override_inherited(self, ideas_schema):
        updated = add_field(ideas_schema, "task", "status", {"prompt": "text"})
        assert "status" in updated["types"]["task"]["fields"]

    def test_add_duplicate_field(self, ideas_schema):
        with pytest.raises(FieldDefinitionError, match="already exists"):
            add_field(ideas_schema, "idea", "title", {"prompt": "text"})

    def test_add_field_bad_name(self, ideas_schema):
        with pytest.raises(FieldDefinitionError, match="Invalid field name"):
            add_field(ideas_schema, "idea", "Bad Name", {"prompt": "text"})

    def test_update_field(self, ideas_schema):
        updated = update_field(ideas_schema, "objective", "status", {"default": "backlog"})
        assert updated["types"]["objective"]["fields"]["status"]["default"] == "backlog"

    def test_update_field_none_removes_key(self, ideas_schema):
        updated = update_field(ideas_schema, "objective", "status", {"default": None})
        assert "default" not in updated["types"]["objective"]["fields"]["status"]

    def test_update_inherited_field_names_owner(self, ideas_schema):
        with pytest.raises(FieldDefinitionError) as exc_info:
            update_field(ideas_schema, "task", "status", {"default": "done"})
        assert 'inherited from "objective"' in exc_info.value.message
        assert exc_info.value.suggestions == ["objective"]

    def test_update_missing_field(self, ideas_schema):
        with pytest.raises(FieldDefinitionError, match="does not exist"):
            update_field(ideas_schema, "idea", "nope", {"default": "x"})

    def test_remove_field_drops_field_order_entry(self, ideas_schema):
        ideas_schema["types"]["task"]["field_order"] = ["due", "status"]
        updated = remove_field(ideas_schema, "task", "due")
        assert "due" not in updated["types"]["task"]["fields"]
        assert updated["types"]["task"]["field_order"] == ["status"]

    def test_remove_inherited_field_fails(self, ideas_schema):
        with pytest.raises(FieldDefinitionError, match='inherited from "objective"'):
            remove_field(ideas_schema, "task", "status")


# --- Version ---


class TestSetVersion:
    def test_set_version(self, ideas_schema):
        assert set_version(ideas_schema, "1.1.0")["version"] == "1.1.0"
        assert ideas_schema["version"] == "1.0.0"

    @pytest.mark.parametrize("version", ["1.0", "v1.0.0", "01.0.0", "1.0.0-beta"])
    def test_rejects_invalid_versions(self, ideas_schema, version):
        with pytest.raises(VersionFormatError):
            set_version(ideas_schema, version)
