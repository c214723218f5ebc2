"""Streaming manifest writer."""

from __future__ import annotations

from enum import Flag, auto
from types import TracebackType
from typing import TextIO

from contentlist.codec.fields import (
    COLUMN_CREATED,
    COLUMN_DIRECTORIES,
    COLUMN_FILES,
    COLUMN_META,
    COLUMN_MODIFIED,
    COLUMN_PATH,
    COLUMN_SAMPLE,
    COLUMN_SHA256,
    COLUMN_SIZE,
    COLUMN_TYPE,
    encode_hex,
    format_metadata,
    format_record,
)
from contentlist.models.entry import Entry


class WriterFlags(Flag):
    """Columns to leave out of the manifest.

    Attributes:
        NONE: Write every column.
        NO_FILES_AND_DIRECTORIES: Omit the ``files`` and ``directories`` columns.
        NO_SHA256: Omit the ``sha256`` column.
        NO_SAMPLE: Omit the ``sample`` column.
        NO_METADATA: Omit the ``meta`` column.
    """

    NONE = 0
    NO_FILES_AND_DIRECTORIES = auto()
    NO_SHA256 = auto()
    NO_SAMPLE = auto()
    NO_METADATA = auto()


class ManifestWriter:
    """Write entries as manifest records to a text stream.

    The header is written lazily before the first record. Each record is
    assembled in memory and handed to the stream in a single ``write`` so
    an interrupted walk never leaves half a record behind.

    The stream should be opened with ``newline=""``; records always end
    with ``'\\n'``.
    """

    def __init__(self, stream: TextIO, flags: WriterFlags = WriterFlags.NONE) -> None:
        self._stream = stream
        self._flags = flags
        self._header_written = False
        self._columns = self._select_columns(flags)

    @staticmethod
    def _select_columns(flags: WriterFlags) -> tuple[str, ...]:
        columns = [COLUMN_PATH, COLUMN_TYPE, COLUMN_CREATED, COLUMN_MODIFIED, COLUMN_SIZE]
        if WriterFlags.NO_FILES_AND_DIRECTORIES not in flags:
            columns += [COLUMN_FILES, COLUMN_DIRECTORIES]
        if WriterFlags.NO_SHA256 not in flags:
            columns.append(COLUMN_SHA256)
        if WriterFlags.NO_SAMPLE not in flags:
            columns.append(COLUMN_SAMPLE)
        if WriterFlags.NO_METADATA not in flags:
            columns.append(COLUMN_META)
        return tuple(columns)

    @property
    def flags(self) -> WriterFlags:
        """Flags this writer was created with."""
        return self._flags

    @property
    def columns(self) -> tuple[str, ...]:
        """Header columns, in the order they are written."""
        return self._columns

    def write_header(self) -> None:
        """Write the header record. Later calls do nothing."""
        if self._header_written:
            return
        self._stream.write(format_record(list(self._columns)) + "\n")
        self._header_written = True

    def _field(self, entry: Entry, column: str) -> str:
        match column:
            case "path":
                return str(entry.path)
            case "type":
                return entry.type.value
            case "created":
                return str(entry.created)
            case "modified":
                return str(entry.modified)
            case "size":
                return str(entry.size)
            case "files":
                return str(entry.files)
            case "directories":
                return str(entry.directories)
            case "sha256":
                return encode_hex(entry.sha256)
            case "sample":
                return encode_hex(entry.sample)
            case "meta":
                return format_metadata(entry.metadata)
        msg = f"Unknown column: {column}"
        raise ValueError(msg)

    def write_entry(self, entry: Entry) -> None:
        """Write one entry as a complete record.

        Args:
            entry: Entry to serialize.
        """
        self.write_header()
        record = format_record([self._field(entry, c) for c in self._columns])
        self._stream.write(record + "\n")

    def flush(self) -> None:
        """Flush the underlying stream."""
        self._stream.flush()

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()

    def __enter__(self) -> ManifestWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
