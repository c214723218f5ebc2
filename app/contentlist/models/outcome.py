"""Validation outcome model.

Validating an entry against the real filesystem yields exactly one
ValidationResult. A mismatch is an ordinary result value rather than an
exception: bulk validation expects partial failures.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from contentlist.models.entry import Entry


class CheckKind(str, Enum):
    """Validation checks, in the order they are performed.

    Attributes:
        SUCCESS: Every applicable check passed.
        EXISTENCE: The path does not exist (expected True, found False).
        TYPE: The probed type differs (EntryType values).
        SIZE: The file size differs (byte counts).
        SAMPLE: The leading bytes differ (byte strings).
        HASH: The SHA-256 digest differs (byte strings).
    """

    SUCCESS = "success"
    EXISTENCE = "existence"
    TYPE = "type"
    SIZE = "size"
    SAMPLE = "sample"
    HASH = "hash"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of validating one entry.

    Attributes:
        entry: The entry that was validated.
        native_path: Host path the entry was resolved to.
        kind: SUCCESS, or the first check that failed.
        expected: Value recorded in the entry (None on success).
        found: Value found on disk (None on success).
    """

    entry: Entry
    native_path: Path
    kind: CheckKind
    expected: Any = None
    found: Any = None

    @property
    def success(self) -> bool:
        """True if the entry matched the filesystem."""
        return self.kind == CheckKind.SUCCESS

    @property
    def failed(self) -> bool:
        """True if any check failed."""
        return self.kind != CheckKind.SUCCESS
