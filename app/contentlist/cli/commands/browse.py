"""Manifest browsing commands.

Provides commands to list, search and inspect a manifest without
touching the files it describes.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from contentlist.codec.errors import ManifestParseError
from contentlist.codec.fields import encode_hex
from contentlist.core.manifest import ManifestError, load_filesystem
from contentlist.filesystem.virtual import VirtualFileSystem
from contentlist.models.path import ContentPath
from contentlist.utils.formatting import (
    console,
    create_entry_table,
    format_entry_row,
    format_size,
    format_timestamp,
    print_error,
    print_info,
)

app = typer.Typer(
    help="Browse the contents of a manifest.",
    invoke_without_command=True,
    no_args_is_help=True,
)


def _load(manifest: Path) -> VirtualFileSystem:
    """Load a manifest with rebuilt directory totals, or exit with an error."""
    try:
        vfs = load_filesystem(manifest)
    except ManifestParseError as e:
        print_error(f"Malformed manifest: {e}")
        raise typer.Exit(code=1) from e
    except ManifestError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    vfs.recompute()
    return vfs


def _parse(path: str) -> ContentPath:
    """Parse a virtual path given on the command line (relative means from /)."""
    try:
        parsed = ContentPath.parse(path)
    except ValueError as e:
        print_error(f"Invalid path {path!r}: {e}")
        raise typer.Exit(code=1) from e
    return parsed.to_absolute()


def _rows(vfs: VirtualFileSystem, paths: list[ContentPath], title: str) -> Table:
    table = create_entry_table(title)
    for p in paths:
        table.add_row(*format_entry_row(str(p), vfs.get_entry(p), vfs.is_directory(p)))
    return table


@app.command("ls")
def list_files(
    manifest: Annotated[
        Path,
        typer.Argument(help="Manifest file."),
    ],
    path: Annotated[
        str,
        typer.Argument(help="Directory inside the manifest."),
    ] = "/",
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include the . and .. links."),
    ] = False,
) -> None:
    """List a directory of a manifest."""
    vfs = _load(manifest)
    directory = _parse(path)

    children = vfs.list_files(directory, include_special_links=show_all)
    if children is None:
        print_error(f"Not a directory: {directory}")
        raise typer.Exit(code=1)

    if not children:
        print_info(f"{directory} is empty.")
        return

    console.print(_rows(vfs, children, str(directory)))


@app.command()
def search(
    manifest: Annotated[
        Path,
        typer.Argument(help="Manifest file."),
    ],
    text: Annotated[
        str,
        typer.Argument(help="Text to look for in names."),
    ],
    path: Annotated[
        str,
        typer.Option("--path", "-p", help="Directory to search in."),
    ] = "/",
    case_sensitive: Annotated[
        bool,
        typer.Option("--case-sensitive", "-s", help="Match case."),
    ] = False,
    exact: Annotated[
        bool,
        typer.Option("--exact", "-e", help="Match whole names only."),
    ] = False,
    sort: Annotated[
        bool,
        typer.Option("--sort", help="Directories first, sorted by name."),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", help="Limit number of results."),
    ] = None,
) -> None:
    """Search a manifest for names."""
    vfs = _load(manifest)
    directory = _parse(path)

    matches = vfs.search(
        directory,
        text,
        case_sensitive=case_sensitive,
        exact_match=exact,
        sort=sort,
    )
    if matches is None:
        print_error(f"Not a directory: {directory}")
        raise typer.Exit(code=1)

    if not matches:
        print_info(f"No matches for {text!r}.")
        return

    shown = matches[:limit] if limit else matches
    console.print(_rows(vfs, shown, f"Matches for {text!r}"))
    console.print(f"\n[muted]Found {len(matches)} match(es)[/]")
    if limit and len(shown) < len(matches):
        console.print(f"[muted](showing {len(shown)} of {len(matches)}, limited to {limit})[/]")


@app.command()
def info(
    manifest: Annotated[
        Path,
        typer.Argument(help="Manifest file."),
    ],
    path: Annotated[
        str,
        typer.Argument(help="Path inside the manifest."),
    ],
) -> None:
    """Show everything recorded for one path."""
    vfs = _load(manifest)
    target = _parse(path)

    entry = vfs.get_entry(target)
    if entry is None:
        print_error(f"Not found: {target}")
        raise typer.Exit(code=1)

    table = Table(title=str(entry.path), show_header=False, border_style="border")
    table.add_column("Field", style="bold_header")
    table.add_column("Value")

    table.add_row("type", entry.type.value)
    table.add_row("created", format_timestamp(entry.created))
    table.add_row("modified", format_timestamp(entry.modified))
    table.add_row("size", f"{format_size(entry.size)} ({entry.size} bytes)")
    if entry.is_directory:
        table.add_row("files", str(entry.files))
        table.add_row("directories", str(entry.directories))
    table.add_row("sha256", encode_hex(entry.sha256) or "-")
    table.add_row("sample", encode_hex(entry.sample) or "-")
    for key, value in entry.metadata.items():
        table.add_row(key, value)

    console.print(table)
