"""Progress notification interface shared by creator and validator."""

from pathlib import Path

from contentlist.models.entry import Entry
from contentlist.models.outcome import CheckKind, ValidationResult
from contentlist.models.path import ContentPath


class ProgressListener:
    """Receives progress notifications from long-running walks.

    Every method is a no-op, so subclasses override only what they need.
    Callbacks run on the walking thread and may raise OperationCancelled
    to stop the walk.
    """

    def on_start(self) -> None:
        """The walk is about to start."""

    def on_node_start(self, path: ContentPath) -> None:
        """Processing of a node begins."""

    def on_progress(self, current: int, total: int) -> None:
        """Bytes processed so far for the current node."""

    def on_check_passed(self, kind: CheckKind) -> None:
        """A validation check passed for the current node."""

    def on_entry(self, entry: Entry) -> None:
        """The creator finished an entry."""

    def on_result(self, result: ValidationResult) -> None:
        """The validator produced a result."""

    def on_rejected(self, path: Path, reason: str) -> None:
        """A node was skipped because of an I/O problem."""

    def on_finish(self) -> None:
        """The walk completed (not called on cancellation or error)."""


# Shared instance used when no listener is given
NULL_LISTENER = ProgressListener()
