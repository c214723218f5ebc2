"""Manifest file operations.

This module ties the codec and the filesystem walkers together:
creating a manifest file from real paths, reading it back, loading it
into a VirtualFileSystem and validating it against a directory.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from contentlist.codec.reader import ManifestReader
from contentlist.codec.writer import ManifestWriter
from contentlist.core.cancel import CancelToken
from contentlist.core.config import ContentListConfig
from contentlist.filesystem.creator import EntryCreator, TreeCreator
from contentlist.filesystem.listener import ProgressListener
from contentlist.filesystem.validator import EntryValidator, TreeValidator
from contentlist.filesystem.virtual import VirtualFileSystem
from contentlist.models.entry import Entry
from contentlist.models.path import ContentPath

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class ManifestError(Exception):
    """Base exception for manifest file errors."""


class ManifestNotFoundError(ManifestError):
    """Raised when a manifest file is not found."""


@dataclass(frozen=True, slots=True)
class ValidationSummary:
    """Totals of a tree validation.

    Attributes:
        checked: Number of nodes checked.
        failed: Number of nodes that did not match.
    """

    checked: int
    failed: int

    @property
    def ok(self) -> bool:
        """True if every checked node matched."""
        return self.failed == 0


def create_manifest(
    output: Path,
    inputs: Iterable[Path],
    config: ContentListConfig | None = None,
    listener: ProgressListener | None = None,
    cancel: CancelToken | None = None,
    contents: bool = False,
) -> Entry:
    """Catalog paths into a manifest file.

    Entries are streamed to the file as they are finished, so a cancelled
    run leaves a manifest holding every entry completed so far.

    Args:
        output: Manifest file to write (overwritten). It is left out of the
            catalog when it lies inside an input.
        inputs: Paths to catalog. With ``contents`` exactly one directory.
        config: Creation settings. Defaults to ContentListConfig().
        listener: Progress notifications.
        cancel: Optional cancellation token.
        contents: Catalog the children of the single input directory.

    Returns:
        The root Entry with the grand totals.

    Raises:
        ManifestError: If the output cannot be written or ``contents`` is
            used with anything but one directory.
        OperationCancelled: If the token was cancelled.
    """
    config = config or ContentListConfig()
    inputs = [Path(p) for p in inputs]

    if contents and (len(inputs) != 1 or not inputs[0].is_dir()):
        raise ManifestError("Cataloging contents requires exactly one directory")

    entry_creator = EntryCreator(
        sample_size=config.sample_size,
        hash_enabled=config.hash_enabled,
        chunk_size=config.chunk_size,
    )

    try:
        stream = open(output, "w", encoding=ENCODING, newline="")
    except OSError as e:
        raise ManifestError(f"Failed to open manifest for writing: {e}") from e

    with ManifestWriter(stream, config.writer_flags) as writer:
        writer.write_header()
        creator = TreeCreator(
            sink=writer.write_entry,
            listener=listener,
            cancel=cancel,
            entry_creator=entry_creator,
            exclude=[output],
        )
        try:
            if contents:
                root = creator.create_contents(inputs[0])
            else:
                root = creator.create(inputs)
        except OSError as e:
            raise ManifestError(f"Failed to write manifest: {e}") from e

    logger.debug("Wrote %s: %d files, %d directories", output, root.files, root.directories)
    return root


def open_manifest(path: Path) -> ManifestReader:
    """Open a manifest file for reading.

    Raises:
        ManifestNotFoundError: If the file doesn't exist.
        ManifestError: If the file cannot be opened.
    """
    if not path.exists():
        raise ManifestNotFoundError(f"Manifest not found: {path}")
    try:
        stream = open(path, encoding=ENCODING, newline="")
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e
    return ManifestReader(stream)


def read_manifest(path: Path) -> Iterator[Entry]:
    """Iterate over the entries of a manifest file.

    Raises:
        ManifestNotFoundError: If the file doesn't exist.
        ManifestParseError: If a record is malformed (from the codec).
    """
    reader = open_manifest(path)
    return _iterate(reader)


def _iterate(reader: ManifestReader) -> Iterator[Entry]:
    with reader:
        yield from reader


def load_filesystem(
    path: Path,
    listener: ProgressListener | None = None,
    cancel: CancelToken | None = None,
) -> VirtualFileSystem:
    """Load a manifest file into a VirtualFileSystem.

    Args:
        path: Manifest file.
        listener: Receives on_entry for every entry read.
        cancel: Optional cancellation token.

    Returns:
        The reconstructed filesystem.

    Raises:
        ManifestNotFoundError: If the file doesn't exist.
        ManifestParseError: If a record is malformed.
    """
    entries = read_manifest(path)
    if listener is not None:
        entries = _notify(entries, listener)
    vfs = VirtualFileSystem.from_entries(entries, cancel=cancel)
    logger.debug("Loaded %d nodes from %s", len(vfs), path)
    return vfs


def _notify(entries: Iterator[Entry], listener: ProgressListener) -> Iterator[Entry]:
    for entry in entries:
        listener.on_entry(entry)
        yield entry


def validate_manifest(
    path: Path,
    base_directory: Path,
    listener: ProgressListener | None = None,
    cancel: CancelToken | None = None,
    start: ContentPath | str = "/",
) -> ValidationSummary:
    """Validate a manifest against a directory.

    Args:
        path: Manifest file.
        base_directory: Directory the manifest paths are resolved under.
        listener: Receives per-check and per-node notifications.
        cancel: Optional cancellation token.
        start: Virtual path of the subtree to validate.

    Returns:
        ValidationSummary with the number of checked and failed nodes.

    Raises:
        ManifestNotFoundError: If the manifest doesn't exist.
        ManifestError: If the base directory is not a directory.
        ManifestParseError: If a record is malformed.
        ValueError: If ``start`` is relative or not in the manifest.
        OperationCancelled: If the token was cancelled.
    """
    if not base_directory.is_dir():
        raise ManifestError(f"Not a directory: {base_directory}")

    vfs = load_filesystem(path, cancel=cancel)
    checker = EntryValidator(base_directory, listener=listener, cancel=cancel)
    validator = TreeValidator(vfs, checker.validate, listener=listener, cancel=cancel)
    validator.validate(start)
    return ValidationSummary(checked=validator.checked, failed=validator.failed)
