"""Tests for vaultkeeper.migration.executor -- dry runs, execution, failures."""

import copy
import stat

import pytest

from vaultkeeper.config import backups_path
from vaultkeeper.discovery import ManagedFile
from vaultkeeper.file_utils import FileWriteError
from vaultkeeper.migration import executor
from vaultkeeper.migration.executor import (
    changes_for_file,
    execute_migration,
    file_type,
    plan_migration,
)
from vaultkeeper.migration.models import AddFieldOperation, MigrationPlan
from vaultkeeper.migration.snapshot import save_snapshot
from vaultkeeper.schema.parser import parse_raw_schema
from vaultkeeper.schema.resolver import resolve_schema

from conftest import read_metadata, write_note, write_schema


# --- Helpers ---


def _evolve(vault, old: dict, new: dict):
    """Snapshot ``old`` as applied, make ``new`` current, and plan the difference."""
    save_snapshot(vault, old, old["version"])
    write_schema(vault, new)
    return plan_migration(vault)


def _with_priority(schema: dict, default="low") -> dict:
    updated = copy.deepcopy(schema)
    updated["types"]["idea"]["fields"]["priority"] = {"prompt": "text", "default": default}
    return updated


def _snapshot_files(vault) -> dict[str, bytes]:
    return {p.relative_to(vault).as_posix(): p.read_bytes() for p in vault.rglob("*.md")}


# --- Dry run ---


class TestDryRun:
    def test_counts_scanned_and_affected_without_writing(self, populated_vault, ideas_schema):
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))
        before = _snapshot_files(populated_vault)

        result = execute_migration(populated_vault, context.schema, context.plan)

        assert result.dry_run is True
        assert result.total_files == 15
        assert result.affected_files == 10
        assert result.errors == []
        assert _snapshot_files(populated_vault) == before
        assert not backups_path(populated_vault).exists()

    def test_file_results_in_lexical_order(self, populated_vault, ideas_schema):
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))
        result = execute_migration(populated_vault, context.schema, context.plan)

        paths = [r.relative_path for r in result.file_results]
        assert paths == sorted(paths)
        assert paths[0] == "ideas/idea-00.md"
        assert all(not r.applied for r in result.file_results)
        assert result.file_results[0].changes[0].field == "priority"
        assert result.file_results[0].changes[0].value == "low"

    def test_field_without_default_affects_nothing(self, populated_vault, ideas_schema):
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema, default=None))
        result = execute_migration(populated_vault, context.schema, context.plan)
        assert result.total_files == 15
        assert result.affected_files == 0

    def test_empty_plan_scans_nothing(self, populated_vault, ideas_schema):
        schema = resolve_schema(parse_raw_schema(ideas_schema))
        plan = MigrationPlan(from_version="1.0.0", to_version="1.0.0")
        result = execute_migration(populated_vault, schema, plan)
        assert result.total_files == 0
        assert result.affected_files == 0


# --- Execute ---


class TestExecute:
    def test_writes_defaults_and_preserves_body(self, populated_vault, ideas_schema):
        write_note(
            populated_vault,
            "ideas/idea-00.md",
            {"type": "idea", "title": "Idea 0"},
            body="# Heading\n\nSome *body* text.\n",
        )
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))

        result = execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert result.dry_run is False
        assert result.affected_files == 10
        assert all(r.applied for r in result.file_results)
        path = populated_vault / "ideas" / "idea-00.md"
        assert read_metadata(path) == {"type": "idea", "title": "Idea 0", "priority": "low"}
        assert path.read_text().endswith("---\n# Heading\n\nSome *body* text.\n")
        objective = populated_vault / "objectives" / "objective-0.md"
        assert "priority" not in read_metadata(objective)

    def test_existing_values_never_overwritten(self, populated_vault, ideas_schema):
        write_note(
            populated_vault,
            "ideas/idea-03.md",
            {"type": "idea", "title": "Idea 3", "priority": "high"},
        )
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))
        result = execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert result.affected_files == 9
        assert read_metadata(populated_vault / "ideas" / "idea-03.md")["priority"] == "high"

    def test_second_run_is_a_no_op(self, populated_vault, ideas_schema):
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))
        execute_migration(populated_vault, context.schema, context.plan, execute=True)
        after_first = _snapshot_files(populated_vault)

        result = execute_migration(
            populated_vault, context.schema, context.plan, execute=True, backup=False
        )
        assert result.affected_files == 0
        assert _snapshot_files(populated_vault) == after_first

    def test_backup_holds_original_content(self, populated_vault, ideas_schema):
        original = (populated_vault / "ideas" / "idea-01.md").read_bytes()
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))

        result = execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert result.backup_path is not None
        backed_up = populated_vault / ".vaultkeeper" / "backups"
        copies = list(backed_up.glob("*/files/ideas/idea-01.md"))
        assert len(copies) == 1
        assert copies[0].read_bytes() == original
        assert not list(backed_up.glob("*/files/objectives/*"))

    def test_rewritten_notes_keep_permissions(self, populated_vault, ideas_schema):
        note = populated_vault / "ideas" / "idea-00.md"
        note.chmod(0o644)
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))

        execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert read_metadata(note)["priority"] == "low"
        assert stat.S_IMODE(note.stat().st_mode) == 0o644

    def test_no_backup(self, populated_vault, ideas_schema):
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))
        result = execute_migration(
            populated_vault, context.schema, context.plan, execute=True, backup=False
        )
        assert result.backup_path is None
        assert not backups_path(populated_vault).exists()

    def test_descendants_receive_inherited_field(self, populated_vault, ideas_schema):
        new = copy.deepcopy(ideas_schema)
        new["types"]["objective"]["fields"]["owner"] = {"prompt": "text", "default": "me"}
        context = _evolve(populated_vault, ideas_schema, new)

        result = execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert result.affected_files == 5
        task = populated_vault / "objectives" / "tasks" / "task-0.md"
        assert read_metadata(task)["owner"] == "me"


# --- Failures ---


class TestFailures:
    def test_malformed_file_is_recorded_and_run_continues(self, populated_vault, ideas_schema):
        broken = populated_vault / "ideas" / "broken.md"
        broken.write_text("---\ntitle: [unclosed\n---\nBody\n", encoding="utf-8")
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))

        result = execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert result.total_files == 16
        assert result.affected_files == 10
        assert len(result.errors) == 1
        assert result.errors[0].startswith("ideas/broken.md: ")
        assert broken.read_text() == "---\ntitle: [unclosed\n---\nBody\n"

    def test_write_failure_is_recorded_and_run_continues(
        self, populated_vault, ideas_schema, monkeypatch
    ):
        real_write_note = executor.write_note
        failing = populated_vault / "ideas" / "idea-04.md"

        def write_note_or_fail(path, post):
            if path.name == failing.name:
                raise FileWriteError(f"Failed to write file {path}: Permission denied")
            real_write_note(path, post)

        monkeypatch.setattr(executor, "write_note", write_note_or_fail)
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))

        result = execute_migration(populated_vault, context.schema, context.plan, execute=True)

        assert len(result.errors) == 1
        assert result.errors[0].startswith("ideas/idea-04.md: ")
        failed = [r for r in result.file_results if not r.applied]
        assert [r.relative_path for r in failed] == ["ideas/idea-04.md"]
        assert "Permission denied" in failed[0].error
        assert "priority" not in read_metadata(failing)
        migrated = [p for p in sorted((populated_vault / "ideas").glob("*.md")) if p != failing]
        assert len(migrated) == 9
        assert all(read_metadata(p)["priority"] == "low" for p in migrated)

    def test_unclosed_front_matter_is_an_error(self, populated_vault, ideas_schema):
        (populated_vault / "ideas" / "open.md").write_text("---\ntitle: x\n", encoding="utf-8")
        context = _evolve(populated_vault, ideas_schema, _with_priority(ideas_schema))

        result = execute_migration(populated_vault, context.schema, context.plan)

        assert any(e.startswith("ideas/open.md") for e in result.errors)
        assert result.affected_files == 10


# --- Per-file planning ---


class TestPerFilePlanning:
    @pytest.fixture
    def schema(self, ideas_schema):
        return resolve_schema(parse_raw_schema(ideas_schema))

    def test_front_matter_type_wins_over_directory(self, schema, tmp_path):
        managed = ManagedFile(path=tmp_path / "x.md", relative_path="ideas/x.md", expected_type="idea")
        assert file_type(schema, {"type": "task"}, managed) == "task"
        assert file_type(schema, {"type": "bogus"}, managed) == "idea"
        assert file_type(schema, {}, managed) == "idea"

    def test_changes_for_file(self, schema):
        ops = [
            AddFieldOperation(type_name="objective", field="owner", default="me"),
            AddFieldOperation(type_name="idea", field="priority", default="low"),
        ]
        changes = changes_for_file(schema, "task", {"status": "raw"}, ops)
        assert [(c.field, c.value) for c in changes] == [("owner", "me")]
        assert changes_for_file(schema, None, {}, ops) == []
