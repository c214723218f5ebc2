"""Entry model for catalogued filesystem objects.

An Entry records what was measured about one file or directory: its
identity (path and type) plus timestamps, size, recursive child counts,
a content sample, a SHA-256 hash and free-form metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contentlist.models.path import ContentPath

SHA256_LENGTH = 32

METADATA_NAME = "default.name"
METADATA_AUTHOR = "default.author"
METADATA_DESCRIPTION = "default.description"

# Names written by older manifest versions
_LEGACY_TYPE_NAMES = {
    "FILE": "File",
    "DIRECTORY": "Directory",
    "SYMBOLIC_LINK": "SymbolicLink",
    "UNKNOWN": "Unknown",
}


class EntryType(str, Enum):
    """Type of a catalogued filesystem object.

    Attributes:
        FILE: Regular file (or a link resolving to one).
        DIRECTORY: Directory (or a link resolving to one).
        SYMBOLIC_LINK: Symbolic link whose target is neither.
        UNKNOWN: Anything else (sockets, devices, ...).
    """

    FILE = "File"
    DIRECTORY = "Directory"
    SYMBOLIC_LINK = "SymbolicLink"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, text: str) -> EntryType:
        """Parse a type name, accepting legacy upper-case names.

        Args:
            text: Type name as written in a manifest.

        Returns:
            Matching EntryType.

        Raises:
            ValueError: If the name is not a known type.
        """
        value = _LEGACY_TYPE_NAMES.get(text, text)
        try:
            return cls(value)
        except ValueError:
            msg = f"Unknown entry type: {text!r}"
            raise ValueError(msg) from None


def _require_non_negative(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise TypeError(msg)
    if value < 0:
        msg = f"{name} is negative: {value}"
        raise ValueError(msg)


def _check_path(path: ContentPath) -> None:
    if not isinstance(path, ContentPath):
        msg = f"path must be a ContentPath, got {type(path).__name__}"
        raise TypeError(msg)
    if path.is_relative:
        msg = f"Entry path must be absolute: {path}"
        raise ValueError(msg)
    if path.has_special_links:
        msg = f"Entry path must not contain special links: {path}"
        raise ValueError(msg)


def _check_sha256(value: bytes | None) -> None:
    if value is not None and len(value) != SHA256_LENGTH:
        msg = f"Invalid sha256 length: {len(value)} found, but {SHA256_LENGTH} is required"
        raise ValueError(msg)


def _is_assigned(instance: object, name: str) -> bool:
    try:
        object.__getattribute__(instance, name)
    except AttributeError:
        return False
    return True


_VALIDATORS: dict[str, Any] = {
    "size": lambda v: _require_non_negative("size", v),
    "files": lambda v: _require_non_negative("files", v),
    "directories": lambda v: _require_non_negative("directories", v),
    "sha256": _check_sha256,
}


@dataclass(slots=True)
class Entry:
    """Recorded metadata of one filesystem object.

    Identity fields are fixed at construction. Measurements stay mutable
    so the component owning the current phase (the creator while
    measuring, the virtual filesystem while recomputing aggregates) can
    fill them in. Every assignment is validated.

    Attributes:
        path: Absolute path without special links.
        type: Entry type.
        created: Creation time in epoch milliseconds (0 if unavailable).
        modified: Modification time in epoch milliseconds (0 if unavailable).
        size: Size in bytes (recursive total for directories).
        files: Recursive number of files below a directory.
        directories: Recursive number of directories below a directory.
        sha256: SHA-256 digest (exactly 32 bytes) or None.
        sample: First bytes of the file content, None when empty.
        metadata: Ordered string to string mapping.
    """

    path: ContentPath
    type: EntryType
    created: int = 0
    modified: int = 0
    size: int = 0
    files: int = 0
    directories: int = 0
    sha256: bytes | None = None
    sample: bytes | None = None
    metadata: dict[str, str] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate identity fields after initialization."""
        _check_path(self.path)
        if not isinstance(self.type, EntryType):
            msg = f"type must be an EntryType, got {self.type!r}"
            raise TypeError(msg)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ("path", "type") and _is_assigned(self, name):
            msg = f"Entry {name} cannot be changed after construction"
            raise AttributeError(msg)
        validator = _VALIDATORS.get(name)
        if validator is not None:
            validator(value)
        if name in ("sha256", "sample") and value is not None:
            value = bytes(value)
        if name == "sample" and not value:
            # Empty and absent samples share one encoding
            value = None
        object.__setattr__(self, name, value)

    @property
    def is_directory(self) -> bool:
        """True if this entry describes a directory."""
        return self.type == EntryType.DIRECTORY

    @property
    def is_file(self) -> bool:
        """True if this entry describes a regular file."""
        return self.type == EntryType.FILE

    @property
    def display_name(self) -> str | None:
        """Value of the ``default.name`` metadata key."""
        return self.metadata.get(METADATA_NAME)

    @display_name.setter
    def display_name(self, value: str) -> None:
        self.metadata[METADATA_NAME] = value

    @property
    def author(self) -> str | None:
        """Value of the ``default.author`` metadata key."""
        return self.metadata.get(METADATA_AUTHOR)

    @author.setter
    def author(self, value: str) -> None:
        self.metadata[METADATA_AUTHOR] = value

    @property
    def description(self) -> str | None:
        """Value of the ``default.description`` metadata key."""
        return self.metadata.get(METADATA_DESCRIPTION)

    @description.setter
    def description(self, value: str) -> None:
        self.metadata[METADATA_DESCRIPTION] = value
