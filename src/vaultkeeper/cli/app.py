from pathlib import Path
from typing import Optional

import typer

from vaultkeeper.config import VaultkeeperConfig
from vaultkeeper.utils import setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        import vaultkeeper

        typer.echo(f"vaultkeeper version: {vaultkeeper.__version__}")
        raise typer.Exit()


app = typer.Typer(name="vaultkeeper", no_args_is_help=True)


@app.callback()
def app_callback(
    ctx: typer.Context,
    vault: Optional[Path] = typer.Option(
        None,
        "--vault",
        "-V",
        help="Vault root directory (defaults to VAULTKEEPER_VAULT or the current directory)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level: TRACE, DEBUG, INFO, WARNING or ERROR",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """vaultkeeper - schema-governed markdown vaults."""
    overrides = {}
    if vault is not None:
        overrides["vault"] = vault
    if log_level is not None:
        overrides["log_level"] = log_level.upper()

    config = VaultkeeperConfig(**overrides)
    setup_logging(config.log_level, config.log_file)
    ctx.obj = config


def get_config(ctx: typer.Context) -> VaultkeeperConfig:
    """Config stored by the app callback (fresh from the environment if absent)."""
    root = ctx.find_root()
    if isinstance(root.obj, VaultkeeperConfig):
        return root.obj
    return VaultkeeperConfig()
