"""vaultkeeper - schema-driven management for a vault of markdown notes."""

__version__ = "0.4.0"
