"""Manifest creation from a real directory tree.

EntryCreator measures a single node (type, timestamps, size, sample and
SHA-256). TreeCreator walks a set of input paths depth-first, emits one
Entry per node in post-order and finally a synthetic root Entry that
carries the grand totals.
"""

import hashlib
import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Protocol

from contentlist.core.cancel import CancelToken, check_cancelled
from contentlist.filesystem.listener import NULL_LISTENER, ProgressListener
from contentlist.filesystem.probe import (
    is_filesystem_root,
    is_readable,
    probe_type,
    read_timestamps,
)
from contentlist.models.entry import Entry, EntryType
from contentlist.models.path import ContentPath

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 24
DEFAULT_CHUNK_SIZE = 1024 * 1024

EntrySink = Callable[[Entry], None]


class EntryFactory(Protocol):
    """Anything that can turn a host path into an Entry."""

    def create(
        self,
        file: Path,
        path: ContentPath,
        listener: ProgressListener = ...,
        cancel: CancelToken | None = ...,
    ) -> Entry: ...


class EntryCreator:
    """Measure one filesystem node.

    Args:
        sample_size: Number of leading bytes to record (0 disables sampling).
        hash_enabled: Compute the SHA-256 digest of file content.
        chunk_size: Read size used after the sample has been taken.
    """

    def __init__(
        self,
        *,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        hash_enabled: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if sample_size < 0:
            msg = f"sample_size must not be negative: {sample_size}"
            raise ValueError(msg)
        if chunk_size <= 0:
            msg = f"chunk_size must be positive: {chunk_size}"
            raise ValueError(msg)
        self.sample_size = sample_size
        self.hash_enabled = hash_enabled
        self.chunk_size = chunk_size

    def create(
        self,
        file: Path,
        path: ContentPath,
        listener: ProgressListener = NULL_LISTENER,
        cancel: CancelToken | None = None,
    ) -> Entry:
        """Create an Entry describing ``file``.

        Args:
            file: Host path to measure.
            path: Manifest path the entry is recorded under.
            listener: Receives on_progress while file content is read.
            cancel: Optional cancellation token, polled inside read loops.

        Returns:
            The measured Entry. Directory aggregates are left at zero.

        Raises:
            OSError: If the node cannot be stat'ed or read.
            OperationCancelled: If the token was cancelled.
        """
        entry_type = probe_type(file)
        entry = Entry(path=path, type=entry_type)

        if entry_type in (EntryType.FILE, EntryType.DIRECTORY):
            stat = file.stat()
        else:
            stat = file.lstat()
        entry.created, entry.modified = read_timestamps(stat)

        if entry_type == EntryType.FILE:
            entry.size = stat.st_size
            if self.sample_size > 0 or self.hash_enabled:
                self._read_content(file, entry, stat.st_size, listener, cancel)

        return entry

    def _read_content(
        self,
        file: Path,
        entry: Entry,
        total: int,
        listener: ProgressListener,
        cancel: CancelToken | None,
    ) -> None:
        """Take the sample and, if enabled, hash the whole file."""
        digest = hashlib.sha256()
        sample = bytearray()
        current = 0
        listener.on_progress(current, total)

        with open(file, "rb") as f:
            while len(sample) < self.sample_size:
                check_cancelled(cancel)
                b = f.read(1)
                if not b:
                    break
                sample += b
                digest.update(b)
                current += 1
            listener.on_progress(current, total)

            if self.hash_enabled:
                while True:
                    check_cancelled(cancel)
                    chunk = f.read(self.chunk_size)
                    if not chunk:
                        break
                    digest.update(chunk)
                    current += len(chunk)
                    listener.on_progress(current, total)
                entry.size = current
                entry.sha256 = digest.digest()

        entry.sample = bytes(sample) if sample else None


def _now_millis() -> int:
    return int(time.time() * 1000)


def _sort_key(path: Path) -> tuple[int, str, str]:
    """Directories first, then names case-insensitively."""
    return (0 if path.is_dir() else 1, path.name.casefold(), path.name)


class TreeCreator:
    """Walk host paths and emit an Entry for every node.

    Entries are emitted in post-order: a directory follows all of its
    descendants. The synthetic root (``/``) comes last. Nodes that fail
    with an OSError are reported through ``listener.on_rejected`` and do
    not contribute to their parent's aggregates.

    Args:
        sink: Receives each finished Entry (e.g. ManifestWriter.write_entry).
        listener: Progress notifications.
        cancel: Optional cancellation token.
        entry_creator: Strategy that measures a single node.
        exclude: Host paths that are skipped silently (e.g. the manifest
            being written).
    """

    def __init__(
        self,
        sink: EntrySink | None = None,
        listener: ProgressListener | None = None,
        cancel: CancelToken | None = None,
        entry_creator: EntryFactory | None = None,
        exclude: Iterable[Path] = (),
    ) -> None:
        self._sink = sink
        self._listener = listener or NULL_LISTENER
        self._cancel = cancel
        self._entry_creator = entry_creator or EntryCreator()
        self._exclude = frozenset(Path(p).resolve() for p in exclude)

    def create(self, inputs: Iterable[Path]) -> Entry:
        """Catalog the given paths under a synthetic root.

        Args:
            inputs: Host paths; each becomes a top-level manifest entry.

        Returns:
            The root Entry with the grand totals.

        Raises:
            OperationCancelled: If the token was cancelled.
        """
        self._listener.on_start()
        root = Entry(path=ContentPath.root(), type=EntryType.DIRECTORY, created=_now_millis())

        for file in self._prepare(inputs):
            self._walk(file, ContentPath.of((file.name,)), root, frozenset())

        root.modified = _now_millis()
        self._emit(root)
        self._listener.on_finish()
        return root

    def create_contents(self, directory: Path) -> Entry:
        """Catalog the children of ``directory``.

        Manifest paths become relative to the directory itself, which
        does not get an entry of its own.

        Raises:
            OSError: If the directory cannot be listed.
        """
        return self.create(list(Path(directory).iterdir()))

    def _prepare(self, inputs: Iterable[Path]) -> list[Path]:
        """Resolve inputs, reject roots and duplicate names, then sort."""
        accepted: list[Path] = []
        names: set[str] = set()
        for raw in inputs:
            try:
                file = Path(raw).resolve(strict=True)
            except (OSError, RuntimeError) as e:
                self._reject(Path(raw), str(e))
                continue

            if file in self._exclude:
                logger.debug("Skipping excluded %s", file)
                continue

            if is_filesystem_root(file):
                self._reject(file, "file is root")
                continue
            if file.name in names:
                self._reject(file, "file is duplicated")
                continue

            names.add(file.name)
            accepted.append(file)
        return sorted(accepted, key=_sort_key)

    def _walk(
        self,
        file: Path,
        path: ContentPath,
        parent: Entry,
        ancestors: frozenset[tuple[int, int]],
    ) -> None:
        check_cancelled(self._cancel)
        self._listener.on_node_start(path)

        if not is_readable(file):
            self._reject(file, "file is not readable")
            return

        children: list[Path] = []
        try:
            entry = self._entry_creator.create(file, path, self._listener, self._cancel)
            if entry.is_directory:
                stat = file.stat()
                identity = (stat.st_dev, stat.st_ino)
                if identity in ancestors:
                    self._reject(file, "symbolic link loop")
                    return
                ancestors = ancestors | {identity}
                children = sorted(file.iterdir(), key=_sort_key)
        except OSError as e:
            self._reject(file, e.strerror or str(e))
            return

        for child in children:
            if child in self._exclude:
                logger.debug("Skipping excluded %s", child)
                continue
            try:
                child_path = ContentPath.of((*path.segments, child.name))
            except ValueError as e:
                self._reject(child, str(e))
                continue
            self._walk(child, child_path, entry, ancestors)

        self._emit(entry)

        parent.size += entry.size
        if entry.is_directory:
            parent.directories += 1 + entry.directories
            parent.files += entry.files
        else:
            parent.files += 1

    def _emit(self, entry: Entry) -> None:
        if self._sink is not None:
            self._sink(entry)
        self._listener.on_entry(entry)

    def _reject(self, file: Path, reason: str) -> None:
        logger.warning("Rejected %s: %s", file, reason)
        self._listener.on_rejected(file, reason)
