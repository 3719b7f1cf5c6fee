"""Command line interface for vaultkeeper."""
