"""Manifest creation and validation commands.

Provides commands to catalog files and directories into a manifest and
to check a directory tree against an existing manifest.
"""

from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.markup import escape

from contentlist.cli.display import ConsoleListener, cancel_on_interrupt
from contentlist.codec.errors import ManifestParseError
from contentlist.core.cancel import CancelToken, OperationCancelled
from contentlist.core.config import ConfigError, ContentListConfig, load_config_or_default
from contentlist.core.manifest import ManifestError, create_manifest, validate_manifest
from contentlist.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Create and validate manifests.",
    invoke_without_command=True,
    no_args_is_help=True,
)

EXIT_CANCELLED = 130


def _is_quiet(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("quiet"))


def _load_config(config_path: Path | None, overrides: dict[str, Any]) -> ContentListConfig:
    """Load the config file and apply command line overrides."""
    try:
        config = load_config_or_default(config_path)
        return ContentListConfig.model_validate({**config.model_dump(), **overrides})
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e
    except ValidationError as e:
        print_error(f"Invalid option: {escape(str(e))}")
        raise typer.Exit(code=1) from e


@app.command()
def create(
    ctx: typer.Context,
    output: Annotated[
        Path,
        typer.Argument(help="Manifest file to write."),
    ],
    inputs: Annotated[
        list[Path],
        typer.Argument(help="Files and directories to catalog."),
    ],
    contents: Annotated[
        bool,
        typer.Option("--contents", help="Catalog the contents of a single directory."),
    ] = False,
    sample_size: Annotated[
        int | None,
        typer.Option("--sample-size", help="Bytes sampled from the start of each file."),
    ] = None,
    no_hash: Annotated[
        bool,
        typer.Option("--no-hash", help="Do not compute SHA-256 digests."),
    ] = False,
    no_counts: Annotated[
        bool,
        typer.Option("--no-counts", help="Omit the files/directories columns."),
    ] = False,
    no_sha256: Annotated[
        bool,
        typer.Option("--no-sha256", help="Omit the sha256 column."),
    ] = False,
    no_sample: Annotated[
        bool,
        typer.Option("--no-sample", help="Omit the sample column."),
    ] = False,
    no_metadata: Annotated[
        bool,
        typer.Option("--no-metadata", help="Omit the meta column."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to use."),
    ] = None,
) -> None:
    """Catalog files and directories into a manifest."""
    overrides: dict[str, Any] = {}
    if sample_size is not None:
        overrides["sample_size"] = sample_size
    if no_hash:
        overrides["hash_enabled"] = False
    if no_counts:
        overrides["write_counts"] = False
    if no_sha256:
        overrides["write_sha256"] = False
    if no_sample:
        overrides["write_sample"] = False
    if no_metadata:
        overrides["write_metadata"] = False
    config = _load_config(config_path, overrides)

    listener = ConsoleListener(max_warnings=config.max_warnings, quiet=_is_quiet(ctx))
    token = CancelToken()

    try:
        with cancel_on_interrupt(token):
            root = create_manifest(
                output,
                inputs,
                config=config,
                listener=listener,
                cancel=token,
                contents=contents,
            )
    except OperationCancelled:
        print_warning(f"Cancelled; {output} holds the entries written so far.")
        raise typer.Exit(code=EXIT_CANCELLED) from None
    except ManifestError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    listener.print_suppressed()
    if listener.rejected:
        print_warning(f"{listener.rejected} path(s) skipped.")
    print_success(
        f"Cataloged {root.files} file(s) and {root.directories} directory(ies) "
        f"({format_size(root.size)}) into {output}"
    )


@app.command()
def validate(
    ctx: typer.Context,
    manifest: Annotated[
        Path,
        typer.Argument(help="Manifest file to check against."),
    ],
    base_directory: Annotated[
        Path,
        typer.Argument(help="Directory the manifest paths are resolved under."),
    ] = Path("."),
    path: Annotated[
        str,
        typer.Option("--path", "-p", help="Only validate this manifest subtree."),
    ] = "/",
    max_warnings: Annotated[
        int | None,
        typer.Option("--max-warnings", help="Mismatches shown before suppression."),
    ] = None,
) -> None:
    """Check a directory tree against a manifest."""
    if max_warnings is None:
        max_warnings = _load_config(None, {}).max_warnings
    listener = ConsoleListener(max_warnings=max_warnings, quiet=_is_quiet(ctx))
    token = CancelToken()

    try:
        with cancel_on_interrupt(token):
            summary = validate_manifest(
                manifest,
                base_directory,
                listener=listener,
                cancel=token,
                start=path,
            )
    except OperationCancelled:
        print_warning("Validation cancelled.")
        raise typer.Exit(code=EXIT_CANCELLED) from None
    except ManifestParseError as e:
        print_error(f"Malformed manifest: {e}")
        raise typer.Exit(code=1) from e
    except (ManifestError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    listener.print_suppressed()
    console.print(f"\n[muted]Checked {summary.checked} node(s)[/]")
    if summary.ok:
        print_success("All entries match.")
        return

    print_info(f"{summary.failed} of {summary.checked} node(s) did not match.")
    raise typer.Exit(code=1)
