"""Host filesystem probing helpers."""

import os
from pathlib import Path

from contentlist.models.entry import EntryType


def probe_type(path: Path) -> EntryType:
    """Classify a host path.

    Regular files and directories are detected following symbolic links,
    so a link to a file is a FILE. A link whose target is neither (or
    which dangles) is a SYMBOLIC_LINK. Anything else, including a path
    that does not exist, is UNKNOWN.

    Args:
        path: Host path to classify.

    Returns:
        EntryType of the path.
    """
    if path.is_file():
        return EntryType.FILE
    if path.is_dir():
        return EntryType.DIRECTORY
    if path.is_symlink():
        return EntryType.SYMBOLIC_LINK
    return EntryType.UNKNOWN


def _to_millis(seconds: float) -> int:
    return int(seconds * 1000)


def read_timestamps(stat: os.stat_result) -> tuple[int, int]:
    """Extract (created, modified) in epoch milliseconds.

    Uses the birth time where the platform records one, else st_ctime.
    """
    birth = getattr(stat, "st_birthtime", None)
    created = birth if birth is not None else stat.st_ctime
    return _to_millis(created), _to_millis(stat.st_mtime)


def is_readable(path: Path) -> bool:
    """Check read access (and traversal for directories)."""
    if path.is_dir():
        return os.access(path, os.R_OK | os.X_OK)
    return os.access(path, os.R_OK)


def is_filesystem_root(path: Path) -> bool:
    """True if the resolved path is a filesystem root (``/``, ``C:\\``)."""
    return path.parent == path
