"""Cooperative cancellation for long-running walks.

A CancelToken is created by the caller and passed down the call chain.
Workers poll it between nodes and inside read loops; once set it stays
set.
"""

import threading


class OperationCancelled(Exception):
    """Raised when a walk stops because its token was cancelled.

    Not a subclass of OSError: per-node I/O handling must never catch it.
    """


class CancelToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call from any thread."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelled("Operation cancelled")


def check_cancelled(cancel: CancelToken | None) -> None:
    """Poll an optional token."""
    if cancel is not None:
        cancel.raise_if_cancelled()
