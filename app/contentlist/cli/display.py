"""Console progress reporting for CLI commands.

Provides a ProgressListener that prints rejected nodes and failed
validation checks as warnings, plus helpers shared by the commands.
"""

from __future__ import annotations

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import FrameType

from rich.markup import escape

from contentlist.core.cancel import CancelToken
from contentlist.filesystem.listener import ProgressListener
from contentlist.models.entry import Entry
from contentlist.models.outcome import CheckKind, ValidationResult
from contentlist.utils.formatting import console, print_warning


def describe_result(result: ValidationResult) -> str:
    """Human readable description of a failed validation result."""
    path = result.entry.path
    match result.kind:
        case CheckKind.EXISTENCE:
            return f"{path}: missing"
        case CheckKind.TYPE:
            return f"{path}: expected {result.expected.value}, found {result.found.value}"
        case CheckKind.SIZE:
            return f"{path}: expected {result.expected} bytes, found {result.found}"
        case CheckKind.SAMPLE:
            return f"{path}: sample mismatch"
        case CheckKind.HASH:
            return f"{path}: sha256 mismatch"
    return f"{path}: ok"


class ConsoleListener(ProgressListener):
    """Report problems on the console, capped at ``max_warnings``.

    Args:
        max_warnings: Warnings printed before further ones are suppressed.
        quiet: Suppress warnings entirely (counters still run).
    """

    def __init__(self, max_warnings: int = 1000, quiet: bool = False) -> None:
        self.max_warnings = max_warnings
        self.quiet = quiet
        self.warnings = 0
        self.rejected = 0
        self.entries = 0
        self.results = 0
        self.failures = 0
        self._suppressed_notice = False

    def _warn(self, message: str) -> None:
        self.warnings += 1
        if self.quiet:
            return
        if self.warnings <= self.max_warnings:
            print_warning(escape(message))
        elif not self._suppressed_notice:
            self._suppressed_notice = True
            print_warning("Too many warnings, further ones are suppressed.")

    def on_entry(self, entry: Entry) -> None:
        self.entries += 1

    def on_rejected(self, path: Path, reason: str) -> None:
        self.rejected += 1
        self._warn(f"Skipped {path}: {reason}")

    def on_result(self, result: ValidationResult) -> None:
        self.results += 1
        if result.failed:
            self.failures += 1
            self._warn(describe_result(result))

    def print_suppressed(self) -> None:
        """Print how many warnings were not shown."""
        hidden = self.warnings - self.max_warnings
        if hidden > 0 and not self.quiet:
            console.print(f"[muted]({hidden} more warnings not shown)[/]")


@contextmanager
def cancel_on_interrupt(token: CancelToken) -> Iterator[CancelToken]:
    """Turn Ctrl+C into a cancellation request for the duration of the block."""

    def handler(signum: int, frame: FrameType | None) -> None:
        token.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
