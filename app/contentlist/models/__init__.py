"""Data models for contentlist.

This module exports the core data structures used throughout the application.
"""

from contentlist.models.entry import (
    METADATA_AUTHOR,
    METADATA_DESCRIPTION,
    METADATA_NAME,
    SHA256_LENGTH,
    Entry,
    EntryType,
)
from contentlist.models.outcome import CheckKind, ValidationResult
from contentlist.models.path import ContentPath

__all__ = [
    "METADATA_AUTHOR",
    "METADATA_DESCRIPTION",
    "METADATA_NAME",
    "SHA256_LENGTH",
    "CheckKind",
    "ContentPath",
    "Entry",
    "EntryType",
    "ValidationResult",
]
