"""Tests for vaultkeeper.migration.diff -- classification and display."""

import copy

import pytest

from vaultkeeper.migration.diff import (
    changed_field_properties,
    describe_operation,
    diff_schemas,
    format_plan,
    plan_to_dict,
)
from vaultkeeper.migration.models import (
    AddEnumValueOperation,
    AddFieldOperation,
    AddTypeOperation,
    ChangeFieldOperation,
    RemoveEnumValueOperation,
    RemoveFieldOperation,
    RemoveTypeOperation,
    ReparentTypeOperation,
)
from vaultkeeper.migration.version import suggest_version_bump
from vaultkeeper.schema.models import PromptedField, StaticField
from vaultkeeper.schema.parser import parse_raw_schema


def _diff(old: dict, new: dict):
    return diff_schemas(parse_raw_schema(old), parse_raw_schema(new), "1.0.0", "1.1.0")


def _ideas(**extra_fields) -> dict:
    return {"types": {"idea": {"fields": {"title": {"prompt": "text"}, **extra_fields}}}}


# --- Scenarios ---


class TestScenarios:
    def test_added_field_is_deterministic_minor(self):
        plan = _diff(_ideas(), _ideas(priority={"prompt": "text"}))
        assert plan.deterministic == [
            AddFieldOperation(type_name="idea", field="priority", default=None)
        ]
        assert plan.non_deterministic == []
        assert suggest_version_bump(plan, "1.0.0") == "1.1.0"

    def test_removed_type_is_non_deterministic_major(self):
        old = {"types": {"idea": {}, "draft": {}}}
        new = {"types": {"idea": {}}}
        plan = _diff(old, new)
        assert plan.deterministic == []
        assert plan.non_deterministic == [RemoveTypeOperation(type_name="draft")]
        assert suggest_version_bump(plan, "1.4.2") == "2.0.0"


# --- Classification ---


class TestDiffSchemas:
    def test_identical_schemas_have_no_changes(self, ideas_schema):
        plan = _diff(ideas_schema, copy.deepcopy(ideas_schema))
        assert not plan.has_changes
        assert plan.operations == []

    def test_no_previous_schema_means_no_changes(self, ideas_schema):
        plan = diff_schemas(None, parse_raw_schema(ideas_schema), "0.0.0", "1.0.0")
        assert not plan.has_changes

    def test_field_default_carried_into_operation(self):
        plan = _diff(_ideas(), _ideas(priority={"prompt": "text", "default": "low"}))
        assert plan.deterministic[0].default == "low"

    def test_static_field_value_is_its_default(self):
        plan = _diff(_ideas(), _ideas(kind={"value": "idea"}))
        assert plan.deterministic[0].default == "idea"

    def test_added_type(self):
        plan = _diff({"types": {"idea": {}}}, {"types": {"idea": {}, "task": {}}})
        assert plan.deterministic == [AddTypeOperation(type_name="task")]

    def test_removed_field(self):
        plan = _diff(_ideas(priority={"prompt": "text"}), _ideas())
        assert plan.non_deterministic == [RemoveFieldOperation(type_name="idea", field="priority")]

    def test_enum_values(self):
        old = {"enums": {"status": ["raw", "done"]}}
        new = {"enums": {"status": ["raw", "backlog"], "size": ["s"]}}
        plan = _diff(old, new)
        assert plan.deterministic == [
            AddEnumValueOperation(enum="status", value="backlog"),
            AddEnumValueOperation(enum="size", value="s"),
        ]
        assert plan.non_deterministic == [RemoveEnumValueOperation(enum="status", value="done")]

    def test_reparent(self):
        old = {"types": {"objective": {}, "task": {}}}
        new = {"types": {"objective": {}, "task": {"extends": "objective"}}}
        plan = _diff(old, new)
        assert plan.non_deterministic == [
            ReparentTypeOperation(type_name="task", from_parent=None, to_parent="objective")
        ]

    def test_retype_is_a_change_not_add_and_remove(self):
        old = _ideas(size={"prompt": "text"})
        new = _ideas(size={"prompt": "select", "options": ["s", "m"]})
        plan = _diff(old, new)
        assert plan.deterministic == []
        assert plan.non_deterministic == [
            ChangeFieldOperation(type_name="idea", field="size", changes=["prompt", "options"])
        ]

    def test_label_and_default_changes_are_ignored(self):
        old = _ideas(size={"prompt": "text", "default": "m"})
        new = _ideas(size={"prompt": "text", "default": "l", "label": "Size"})
        assert not _diff(old, new).has_changes

    def test_inherited_fields_reported_once_on_owner(self, ideas_schema):
        new = copy.deepcopy(ideas_schema)
        new["types"]["objective"]["fields"]["owner"] = {"prompt": "text"}
        plan = _diff(ideas_schema, new)
        assert plan.deterministic == [
            AddFieldOperation(type_name="objective", field="owner", default=None)
        ]

    def test_operation_order(self):
        old = {"enums": {"e": ["a"]}, "types": {"gone": {}, "idea": {"fields": {"x": {"prompt": "text"}}}}}
        new = {"enums": {"e": ["b"]}, "types": {"idea": {"fields": {"y": {"prompt": "text"}}}, "new": {}}}
        plan = _diff(old, new)
        assert [op.op for op in plan.deterministic] == ["add-type", "add-field", "add-enum-value"]
        assert [op.op for op in plan.non_deterministic] == [
            "remove-type",
            "remove-field",
            "remove-enum-value",
        ]


class TestChangedFieldProperties:
    def test_static_to_prompted(self):
        changes = changed_field_properties(StaticField(value="x"), PromptedField(prompt="text"))
        assert changes[:2] == ["kind", "prompt"]

    def test_relation_source_change(self):
        old = PromptedField(prompt="relation", source="task")
        new = PromptedField(prompt="relation", source=["task", "idea"])
        assert changed_field_properties(old, new) == ["source"]


# --- Display ---


class TestDisplay:
    @pytest.mark.parametrize(
        "operation, expected",
        [
            (AddTypeOperation(type_name="task"), '+ Add type "task"'),
            (RemoveTypeOperation(type_name="draft"), '- Remove type "draft"'),
            (
                AddFieldOperation(type_name="idea", field="priority", default="low"),
                '+ Add field "priority" to type "idea" (default: "low")',
            ),
            (
                AddFieldOperation(type_name="idea", field="priority"),
                '+ Add field "priority" to type "idea" (no default)',
            ),
            (
                RemoveEnumValueOperation(enum="status", value="done"),
                '- Remove value "done" from enum "status"',
            ),
            (
                ReparentTypeOperation(type_name="task", from_parent="objective", to_parent=None),
                '~ Change parent of type "task" from "objective" to "meta"',
            ),
        ],
    )
    def test_describe_operation(self, operation, expected):
        assert describe_operation(operation) == expected

    def test_format_plan_sections(self):
        plan = _diff({"types": {"idea": {}, "draft": {}}}, {"types": {"idea": {}, "task": {}}})
        text = format_plan(plan)
        assert text.index("Deterministic changes") < text.index("Non-deterministic changes")
        assert '  + Add type "task"' in text
        assert '  - Remove type "draft"' in text

    def test_format_empty_plan(self, ideas_schema):
        assert format_plan(_diff(ideas_schema, ideas_schema)) == "No changes detected."

    def test_plan_to_dict(self):
        old = {"types": {"task": {}, "objective": {}}}
        new = {"types": {"task": {"extends": "objective"}, "objective": {}}}
        data = plan_to_dict(_diff(old, new))
        assert data["has_changes"] is True
        assert data["from_version"] == "1.0.0"
        assert data["non_deterministic"] == [
            {"op": "reparent-type", "type_name": "task", "to": "objective"}
        ]
        assert data["summary"] == {"deterministic_count": 0, "non_deterministic_count": 1}
