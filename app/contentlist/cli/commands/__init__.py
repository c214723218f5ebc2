"""CLI commands for contentlist.

This package contains all subcommand implementations.
"""

from contentlist.cli.commands import browse, catalog, config

__all__ = ["browse", "catalog", "config"]
