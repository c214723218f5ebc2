"""CLI package for contentlist.

This package contains the Typer application and all subcommands.
"""

from contentlist.cli.main import app

__all__ = ["app"]
