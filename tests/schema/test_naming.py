"""Tests for vaultkeeper.schema.naming -- plurals and output directories."""

import pytest

from vaultkeeper.schema.parser import parse_raw_schema
from vaultkeeper.schema.resolver import resolve_schema
from vaultkeeper.schema.naming import pluralize


@pytest.mark.parametrize(
    "singular, plural",
    [
        ("task", "tasks"),
        ("story", "stories"),
        ("day", "days"),
        ("key", "keys"),
        ("bus", "buses"),
        ("box", "boxes"),
        ("match", "matches"),
        ("wish", "wishes"),
        ("quiz", "quizes"),
        ("", ""),
    ],
)
def test_pluralize(singular, plural):
    assert pluralize(singular) == plural


def _output_dirs(types: dict) -> dict[str, str]:
    schema = resolve_schema(parse_raw_schema({"types": types}))
    return {name: schema.output_dir(name) for name in schema.concrete_type_names()}


class TestOutputDir:
    def test_root_types_use_plural(self):
        assert _output_dirs({"idea": {}}) == {"idea": "ideas"}

    def test_chain_of_plurals_excludes_meta(self):
        dirs = _output_dirs(
            {
                "objective": {},
                "milestone": {"extends": "objective"},
                "task": {"extends": "milestone"},
            }
        )
        assert dirs["task"] == "objectives/milestones/tasks"

    def test_plural_override_lowercased_in_path(self):
        dirs = _output_dirs({"research": {"plural": "Research"}})
        assert dirs["research"] == "research"

    def test_explicit_output_dir(self):
        dirs = _output_dirs({"idea": {"output_dir": "/Inbox/"}})
        assert dirs["idea"] == "Inbox"

    def test_ancestor_output_dir_anchors_descendants(self):
        dirs = _output_dirs(
            {
                "objective": {"output_dir": "work"},
                "task": {"extends": "objective"},
            }
        )
        assert dirs == {"objective": "work", "task": "work/tasks"}

    def test_implicit_root_has_no_directory(self):
        schema = resolve_schema(parse_raw_schema({"types": {"idea": {}}}))
        assert schema.types["meta"].output_dir == ""
