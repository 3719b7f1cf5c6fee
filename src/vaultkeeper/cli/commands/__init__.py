"""CLI commands for vaultkeeper."""

from . import schema

__all__ = ["schema"]
