"""Schema management CLI commands for vaultkeeper.

Registered as a subcommand group: `vaultkeeper schema show`, `schema diff`,
`schema migrate`, `schema history`, `schema backups`, `schema restore`.

Commands are thin: they load fresh state from the vault, call the core, and
render the result. Library errors are printed in red and exit with status 1.
"""

import json
from typing import Annotated, Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from vaultkeeper.cli.app import app, get_config
from vaultkeeper.file_utils import FileError
from vaultkeeper.migration.backup import BackupError, list_backups, restore_backup
from vaultkeeper.migration.diff import describe_operation, format_plan, plan_to_dict
from vaultkeeper.migration.executor import (
    apply_migration,
    execute_migration,
    plan_migration,
    target_version,
)
from vaultkeeper.migration.history import recent_migrations
from vaultkeeper.migration.models import MigrationResult, dump_operation
from vaultkeeper.migration.snapshot import SnapshotError
from vaultkeeper.schema.errors import SchemaError
from vaultkeeper.schema.models import PromptedField
from vaultkeeper.schema.resolver import load_schema

console = Console(soft_wrap=True)

schema_app = typer.Typer(help="Schema management commands")
app.add_typer(schema_app, name="schema")

HANDLED_ERRORS = (SchemaError, SnapshotError, BackupError, FileError)


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _fail(command: str, error: Exception) -> None:
    # Messages can contain brackets, so print them without rich markup
    console.print(f"Error: {error}", style="red", markup=False)
    logger.debug(f"schema {command} failed: {type(error).__name__}")
    raise typer.Exit(1)


def _result_to_dict(result: MigrationResult) -> dict[str, Any]:
    return result.model_dump(mode="json", exclude_none=True)


# --- Show ---


def _field_description(definition) -> str:
    if isinstance(definition, PromptedField):
        parts = [definition.prompt]
        if definition.enum:
            parts.append(f"enum={definition.enum}")
        elif definition.options:
            parts.append(f"options={','.join(definition.options)}")
        if definition.sources:
            parts.append(f"source={','.join(definition.sources)}")
        if definition.required:
            parts.append("required")
        return " ".join(parts)
    return f"static={json.dumps(definition.value)}"


@schema_app.command()
def show(
    ctx: typer.Context,
    type_name: Annotated[
        Optional[str],
        typer.Argument(help="Type to show in detail"),
    ] = None,
):
    """Show the resolved schema, or one type's effective fields."""
    config = get_config(ctx)
    try:
        schema = load_schema(config.vault)

        if type_name is None:
            table = Table(title=f"Schema {schema.version}")
            table.add_column("Type", style="cyan")
            table.add_column("Extends")
            table.add_column("Output dir")
            table.add_column("Fields", justify="right")
            for name in schema.concrete_type_names():
                resolved = schema.types[name]
                table.add_row(name, resolved.parent or "", resolved.output_dir, str(len(resolved.fields)))
            console.print(table)
            return

        resolved = schema.require_type(type_name)
        console.print(f"\n[bold]{resolved.name}[/bold] ({' -> '.join([resolved.name] + resolved.ancestors)})")
        console.print(f"Output dir: {resolved.output_dir}")

        table = Table(title="Fields")
        table.add_column("Field", style="cyan")
        table.add_column("Definition")
        table.add_column("Default")
        table.add_column("From")
        for field_name in resolved.field_order:
            definition = resolved.fields[field_name]
            default = definition.default_value
            table.add_row(
                field_name,
                _field_description(definition),
                "" if default is None else json.dumps(default),
                resolved.owner_of(field_name) or "",
            )
        console.print(table)
    except HANDLED_ERRORS as e:
        _fail("show", e)


# --- Diff ---


@schema_app.command()
def diff(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show pending schema changes since the last migration."""
    config = get_config(ctx)
    try:
        context = plan_migration(config.vault)

        if context.is_initial:
            if as_json:
                _print_json({"has_snapshot": False, "has_changes": False})
            else:
                console.print("[yellow]No previous schema snapshot found.[/yellow]")
                console.print("Run `vaultkeeper schema migrate --execute` to record the baseline.")
            return

        plan = context.plan
        if as_json:
            _print_json({"has_snapshot": True, **plan_to_dict(plan)})
            return

        if not plan.has_changes:
            console.print("[green]No schema changes since last migration.[/green]")
            return

        console.print("\n[bold]Pending Schema Changes[/bold]\n")
        console.print(format_plan(plan), markup=False)
        console.print(f"\nSuggested version: {target_version(context)}")
    except HANDLED_ERRORS as e:
        _fail("diff", e)


# --- Migrate ---


@schema_app.command()
def migrate(
    ctx: typer.Context,
    execute: bool = typer.Option(False, "--execute", "-x", help="Apply the migration (default is a dry run)"),
    backup: Optional[bool] = typer.Option(
        None, "--backup/--no-backup", help="Back up affected notes first (default from config)"
    ),
    version: Optional[str] = typer.Option(
        None, "--version", help="Version to record (default: suggested bump)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Apply schema changes to existing notes.

    Only deterministic changes (additions) are applied. Removals, reparenting
    and field shape changes are listed for review and never applied.
    """
    config = get_config(ctx)
    use_backup = config.backup if backup is None else backup
    try:
        context = plan_migration(config.vault)
        plan = context.plan

        if not execute:
            if context.is_initial:
                if as_json:
                    _print_json({"dry_run": True, "initial_snapshot": True, "version": context.current_version})
                else:
                    console.print("\n[bold]Initial Schema Snapshot[/bold]\n")
                    console.print(
                        f"Running with --execute records version {context.current_version} "
                        "as the baseline for future migrations."
                    )
                return

            if not plan.has_changes:
                if as_json:
                    _print_json({"dry_run": True, "has_changes": False})
                else:
                    console.print("[green]No schema changes to migrate.[/green]")
                return

            result = execute_migration(config.vault, context.schema, plan, execute=False)
            if as_json:
                _print_json({**_result_to_dict(result), "plan": plan_to_dict(plan)})
                return

            console.print("\n[bold]Migration Preview (dry run)[/bold]\n")
            console.print(format_plan(plan), markup=False)
            console.print(f"\nFiles scanned: {result.total_files}")
            console.print(f"Files affected: {result.affected_files}")
            for error in result.errors:
                console.print(error, style="yellow", markup=False)
            console.print("\nRun with --execute to apply these changes.")
            return

        outcome = apply_migration(config.vault, new_version=version, backup=use_backup)

        if outcome.initial_snapshot:
            if as_json:
                _print_json({"dry_run": False, "initial_snapshot": True, "version": outcome.version})
            else:
                console.print(f"[green]Initial schema snapshot created (version {outcome.version})[/green]")
            return

        if outcome.result is None:
            if as_json:
                _print_json({"dry_run": False, "has_changes": False})
            else:
                console.print("[green]No schema changes to migrate.[/green]")
            return

        result = outcome.result
        if as_json:
            _print_json({**_result_to_dict(result), "version": outcome.version})
            return

        console.print(f"[green]Migrated schema {result.from_version} -> {outcome.version}[/green]")
        console.print(f"Files scanned: {result.total_files}")
        console.print(f"Files affected: {result.affected_files}")
        if result.backup_path:
            console.print(f"Backup: {result.backup_path}")
        if outcome.plan and outcome.plan.non_deterministic:
            console.print("\n[yellow]Not applied (review and edit notes explicitly):[/yellow]")
            for op in outcome.plan.non_deterministic:
                console.print(f"  {describe_operation(op)}", markup=False)
        for error in result.errors:
            console.print(error, style="red", markup=False)
        if result.errors:
            raise typer.Exit(1)
    except HANDLED_ERRORS as e:
        _fail("migrate", e)


# --- History ---


@schema_app.command()
def history(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most N entries"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show applied migrations, newest first."""
    config = get_config(ctx)
    try:
        entries = recent_migrations(config.vault, limit)

        if as_json:
            _print_json(
                [
                    {
                        **entry.model_dump(mode="json", exclude_none=True, exclude={"operations"}),
                        "operations": [dump_operation(op) for op in entry.operations],
                    }
                    for entry in entries
                ]
            )
            return

        if not entries:
            console.print("[yellow]No migrations have been applied.[/yellow]")
            return

        table = Table(title="Migration History")
        table.add_column("Version", style="cyan")
        table.add_column("From")
        table.add_column("Applied")
        table.add_column("Notes", justify="right")
        table.add_column("Operations", justify="right")
        for entry in entries:
            table.add_row(
                entry.version,
                entry.from_version or "",
                entry.applied_at.strftime("%Y-%m-%d %H:%M"),
                str(entry.notes_affected),
                str(len(entry.operations)),
            )
        console.print(table)
    except HANDLED_ERRORS as e:
        _fail("history", e)


# --- Backups ---


@schema_app.command()
def backups(ctx: typer.Context):
    """List backups taken before migrations, newest first."""
    config = get_config(ctx)
    found = list_backups(config.vault)
    if not found:
        console.print("[yellow]No backups found.[/yellow]")
        return

    table = Table(title="Backups")
    table.add_column("ID", style="cyan")
    table.add_column("Operation")
    table.add_column("Files", justify="right")
    for info in found:
        table.add_row(info.id, info.operation, str(info.file_count))
    console.print(table)


@schema_app.command()
def restore(
    ctx: typer.Context,
    backup_id: Annotated[str, typer.Argument(help="Backup ID from `schema backups`")],
):
    """Restore notes from a backup."""
    config = get_config(ctx)
    try:
        restored = restore_backup(config.vault, backup_id)
    except HANDLED_ERRORS as e:
        _fail("restore", e)
        return
    console.print(f"[green]Restored {len(restored)} file(s) from {backup_id}[/green]")
