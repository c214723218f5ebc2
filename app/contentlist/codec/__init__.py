"""Manifest codec: streaming reader and writer for the manifest text format."""

from contentlist.codec.errors import ManifestParseError
from contentlist.codec.fields import COLUMNS, escape_field, format_metadata, parse_metadata
from contentlist.codec.reader import ManifestReader
from contentlist.codec.writer import ManifestWriter, WriterFlags

__all__ = [
    "COLUMNS",
    "ManifestParseError",
    "ManifestReader",
    "ManifestWriter",
    "WriterFlags",
    "escape_field",
    "format_metadata",
    "parse_metadata",
]
