"""Validation of manifest entries against a real directory tree.

EntryValidator re-measures one node and reports the first mismatch.
TreeValidator applies a per-entry check to every node of a
VirtualFileSystem, depth-first.
"""

import hashlib
import logging
import os
from collections.abc import Callable
from pathlib import Path

from contentlist.core.cancel import CancelToken, check_cancelled
from contentlist.filesystem.listener import NULL_LISTENER, ProgressListener
from contentlist.filesystem.probe import probe_type
from contentlist.filesystem.virtual import VirtualFileSystem
from contentlist.models.entry import Entry, EntryType
from contentlist.models.outcome import CheckKind, ValidationResult
from contentlist.models.path import ContentPath

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024

EntryCheck = Callable[[Entry], ValidationResult]


class EntryValidator:
    """Compare entries with the files they describe.

    Checks run in a fixed order and stop at the first failure:
    existence, type, then for regular files size, sample (if recorded)
    and hash (if recorded).

    Args:
        root_directory: Host directory that manifest paths are resolved under.
        listener: Receives on_check_passed and on_progress.
        cancel: Optional cancellation token.
        chunk_size: Read size used while hashing.
    """

    def __init__(
        self,
        root_directory: Path,
        listener: ProgressListener | None = None,
        cancel: CancelToken | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            msg = f"chunk_size must be positive: {chunk_size}"
            raise ValueError(msg)
        self.root_directory = Path(root_directory)
        self._listener = listener or NULL_LISTENER
        self._cancel = cancel
        self._chunk_size = chunk_size

    def validate(self, entry: Entry) -> ValidationResult:
        """Validate one entry.

        Args:
            entry: Entry to check.

        Returns:
            SUCCESS, or the first failing check with expected/found values.

        Raises:
            OSError: If the file exists but cannot be read.
            OperationCancelled: If the token was cancelled.
        """
        native = entry.path.resolve_to_native(self.root_directory)

        def fail(kind: CheckKind, expected: object, found: object) -> ValidationResult:
            return ValidationResult(entry, native, kind, expected, found)

        check_cancelled(self._cancel)
        if not os.path.lexists(native):
            return fail(CheckKind.EXISTENCE, True, False)
        self._listener.on_check_passed(CheckKind.EXISTENCE)

        check_cancelled(self._cancel)
        found_type = probe_type(native)
        if found_type != entry.type:
            return fail(CheckKind.TYPE, entry.type, found_type)
        self._listener.on_check_passed(CheckKind.TYPE)

        if entry.type != EntryType.FILE:
            return ValidationResult(entry, native, CheckKind.SUCCESS)

        check_cancelled(self._cancel)
        size = native.stat().st_size
        if size != entry.size:
            return fail(CheckKind.SIZE, entry.size, size)
        self._listener.on_check_passed(CheckKind.SIZE)

        if entry.sample is None and entry.sha256 is None:
            return ValidationResult(entry, native, CheckKind.SUCCESS)

        digest = hashlib.sha256()
        current = 0
        self._listener.on_progress(current, size)

        with open(native, "rb") as f:
            if entry.sample is not None:
                check_cancelled(self._cancel)
                sample = bytearray()
                while len(sample) < len(entry.sample):
                    check_cancelled(self._cancel)
                    b = f.read(1)
                    if not b:
                        break
                    sample += b
                current += len(sample)
                digest.update(sample)
                self._listener.on_progress(current, size)
                if bytes(sample) != entry.sample:
                    return fail(CheckKind.SAMPLE, entry.sample, bytes(sample))
                self._listener.on_check_passed(CheckKind.SAMPLE)

            if entry.sha256 is not None:
                check_cancelled(self._cancel)
                while True:
                    check_cancelled(self._cancel)
                    chunk = f.read(self._chunk_size)
                    if not chunk:
                        break
                    digest.update(chunk)
                    current += len(chunk)
                    self._listener.on_progress(current, size)
                found_hash = digest.digest()
                if found_hash != entry.sha256:
                    return fail(CheckKind.HASH, entry.sha256, found_hash)
                self._listener.on_check_passed(CheckKind.HASH)

        return ValidationResult(entry, native, CheckKind.SUCCESS)


class TreeValidator:
    """Validate every node of a virtual filesystem subtree.

    Args:
        filesystem: Tree reconstructed from a manifest.
        check: Per-entry strategy, typically ``EntryValidator(...).validate``.
        listener: Receives on_node_start, on_result and on_rejected.
        cancel: Optional cancellation token.
    """

    def __init__(
        self,
        filesystem: VirtualFileSystem,
        check: EntryCheck,
        listener: ProgressListener | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        self._filesystem = filesystem
        self._check = check
        self._listener = listener or NULL_LISTENER
        self._cancel = cancel
        self.checked = 0
        self.failed = 0

    def validate(self, path: ContentPath | str = "/") -> int:
        """Validate the subtree rooted at ``path``.

        Children are visited depth-first in insertion order. A directory
        that fails the existence check is not descended into. Nodes that
        have no Entry (directories implied by deeper paths) are checked
        as bare directories.

        Args:
            path: Absolute virtual path of the subtree root.

        Returns:
            Number of failed nodes in this call.

        Raises:
            ValueError: If the path is relative or not in the filesystem.
            OperationCancelled: If the token was cancelled.
        """
        if isinstance(path, str):
            path = ContentPath.parse(path)
        if not self._filesystem.exists(path):
            msg = f"Path not found: {path}"
            raise ValueError(msg)

        before = self.failed
        self._listener.on_start()
        self._visit(self._filesystem.to_real_path(path))
        self._listener.on_finish()
        return self.failed - before

    def _visit(self, path: ContentPath) -> None:
        check_cancelled(self._cancel)
        self._listener.on_node_start(path)

        entry = self._filesystem.get_entry(path)
        if entry is None:
            entry = Entry(path=path, type=EntryType.DIRECTORY)

        descend = entry.is_directory
        try:
            result = self._check(entry)
        except OSError as e:
            logger.warning("Cannot validate %s: %s", path, e)
            self.checked += 1
            self.failed += 1
            self._listener.on_rejected(Path(str(path)), e.strerror or str(e))
            return

        self.checked += 1
        if result.failed:
            self.failed += 1
            if result.kind == CheckKind.EXISTENCE:
                descend = False
        self._listener.on_result(result)

        if descend:
            for child in self._filesystem.list_files(path):
                self._visit(child)
