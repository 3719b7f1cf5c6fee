"""Main CLI entry point for vaultkeeper."""  # pragma: no cover

from vaultkeeper.cli.app import app  # pragma: no cover

# Register commands
from vaultkeeper.cli.commands import schema  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
