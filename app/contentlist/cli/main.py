"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from contentlist import __version__
from contentlist.cli.commands import browse, catalog, config
from contentlist.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="contentlist",
    help="Catalog directory trees into portable manifests.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"contentlist version {__version__}")
        raise typer.Exit()


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=True)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """contentlist - Catalog directory trees into portable manifests.

    Create a manifest of a directory tree, check a tree against it later,
    and browse a manifest without the original files.
    """
    # Warnings reach the user through the console listener
    if verbose:
        _configure_logging()

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(catalog.app, name="catalog")
app.add_typer(browse.app, name="browse")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
