"""Configuration commands.

Provides commands to show the effective configuration and to write a
default config file.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from contentlist.core.config import (
    ConfigError,
    ContentListConfig,
    load_config_or_default,
    save_config,
)
from contentlist.core.paths import ensure_config_dir, get_config_path
from contentlist.utils.formatting import console, print_error, print_success, print_warning

app = typer.Typer(
    help="Show and initialize configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to read."),
    ] = None,
) -> None:
    """Show the effective configuration."""
    path = config_path or get_config_path()
    try:
        config = load_config_or_default(path)
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e

    source = str(path) if path.exists() else f"{path} (not found, using defaults)"
    table = Table(title="Configuration", border_style="border", header_style="bold_header")
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", style="info")
    for name, value in config.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)
    console.print(f"[muted]Source: {source}[/]")


@app.command()
def init(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to write."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with default settings."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_warning(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        if config_path is None:
            ensure_config_dir()
        saved = save_config(ContentListConfig(), path)
    except (ConfigError, RuntimeError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
