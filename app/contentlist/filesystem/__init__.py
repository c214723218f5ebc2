"""Filesystem walking, validation and the virtual filesystem.

This module provides the tree creator that turns real directories into
manifest entries, the validator that checks entries against disk, and
the in-memory filesystem rebuilt from a manifest.
"""

from contentlist.filesystem.creator import EntryCreator, TreeCreator
from contentlist.filesystem.listener import ProgressListener
from contentlist.filesystem.probe import probe_type
from contentlist.filesystem.validator import EntryValidator, TreeValidator
from contentlist.filesystem.virtual import VirtualFileSystem

__all__ = [
    "EntryCreator",
    "EntryValidator",
    "ProgressListener",
    "TreeCreator",
    "TreeValidator",
    "VirtualFileSystem",
    "probe_type",
]
