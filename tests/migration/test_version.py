"""Tests for schema version parsing and the version advisor."""

import pytest

from vaultkeeper.migration.models import (
    AddFieldOperation,
    MigrationPlan,
    RemoveTypeOperation,
)
from vaultkeeper.migration.version import bump_version, classify_bump, suggest_version_bump
from vaultkeeper.schema.errors import VersionFormatError
from vaultkeeper.schema.version import Version, compare_versions, is_valid_version, parse_version


class TestParseVersion:
    def test_parse(self):
        assert parse_version("1.12.3") == Version(1, 12, 3)
        assert str(parse_version("0.0.0")) == "0.0.0"

    @pytest.mark.parametrize("version", ["1.0", "1.0.0.0", "v1.0.0", "1.0.0-rc1", "01.2.3", "", "a.b.c"])
    def test_invalid(self, version):
        with pytest.raises(VersionFormatError, match="expected MAJOR.MINOR.PATCH"):
            parse_version(version)
        assert not is_valid_version(version)

    def test_compare(self):
        assert compare_versions("1.10.0", "1.9.9") == 1
        assert compare_versions("2.0.0", "2.0.0") == 0
        assert compare_versions("0.1.0", "1.0.0") == -1


class TestBumps:
    @pytest.mark.parametrize(
        "kind, expected",
        [("major", "2.0.0"), ("minor", "1.3.0"), ("patch", "1.2.4")],
    )
    def test_bump_version(self, kind, expected):
        assert bump_version("1.2.3", kind) == expected

    def test_classify(self):
        assert classify_bump(True, True) == "major"
        assert classify_bump(False, True) == "minor"
        assert classify_bump(False, False) == "patch"

    def test_suggest_for_plans(self):
        additions = MigrationPlan(
            from_version="1.0.0",
            to_version="1.0.0",
            deterministic=[AddFieldOperation(type_name="idea", field="priority")],
        )
        removals = MigrationPlan(
            from_version="1.0.0",
            to_version="1.0.0",
            deterministic=[AddFieldOperation(type_name="idea", field="priority")],
            non_deterministic=[RemoveTypeOperation(type_name="draft")],
        )
        empty = MigrationPlan(from_version="1.0.0", to_version="1.0.0")

        assert suggest_version_bump(additions, "1.0.0") == "1.1.0"
        assert suggest_version_bump(removals, "1.0.0") == "2.0.0"
        assert suggest_version_bump(empty, "1.0.0") == "1.0.1"
