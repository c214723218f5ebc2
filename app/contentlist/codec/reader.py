"""Streaming manifest reader."""

from __future__ import annotations

from collections.abc import Iterator
from types import TracebackType
from typing import TextIO

from contentlist.codec.errors import ManifestParseError
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
    REQUIRED_COLUMNS,
    decode_hex,
    parse_int,
    parse_metadata,
    read_record,
)
from contentlist.models.entry import Entry, EntryType
from contentlist.models.path import ContentPath


def _decode(values: dict[str, str]) -> Entry:
    """Build an Entry from a record keyed by column name; absent columns are empty."""
    path_text = values.get(COLUMN_PATH, "")
    if not path_text:
        msg = "Empty path"
        raise ValueError(msg)
    type_text = values.get(COLUMN_TYPE, "")
    if not type_text:
        msg = "Empty type"
        raise ValueError(msg)

    entry = Entry(
        path=ContentPath.parse(path_text),
        type=EntryType.parse(type_text),
        created=parse_int(values.get(COLUMN_CREATED, "")),
        modified=parse_int(values.get(COLUMN_MODIFIED, "")),
        size=parse_int(values.get(COLUMN_SIZE, "")),
        files=parse_int(values.get(COLUMN_FILES, "")),
        directories=parse_int(values.get(COLUMN_DIRECTORIES, "")),
        sha256=decode_hex(values.get(COLUMN_SHA256, "")),
        sample=decode_hex(values.get(COLUMN_SAMPLE, "")),
    )
    meta = values.get(COLUMN_META, "")
    if meta:
        entry.metadata.update(parse_metadata(meta))
    return entry


class ManifestReader:
    """Read entries from a manifest text stream.

    The first call to :meth:`read_entry` consumes the header and indexes
    its columns by name, so columns may appear in any order. Unknown
    columns are ignored. Every decoding problem is reported as a
    :class:`ManifestParseError` carrying the 1-based record ordinal.

    Example:
        >>> with ManifestReader(open(path, encoding="utf-8", newline="")) as reader:
        ...     for entry in reader:
        ...         print(entry.path)
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._columns: dict[str, int] | None = None
        self._record = 0

    @property
    def columns(self) -> tuple[str, ...]:
        """Header columns in file order (empty before the header is read)."""
        if self._columns is None:
            return ()
        return tuple(sorted(self._columns, key=self._columns.__getitem__))

    @property
    def record(self) -> int:
        """Ordinal of the last record read (0 before the header)."""
        return self._record

    def _next_record(self) -> list[str] | None:
        """Read the next non-blank record."""
        while True:
            try:
                fields = read_record(self._stream)
            except ValueError as e:
                raise ManifestParseError(self._record + 1, str(e)) from e
            if fields is None:
                return None
            self._record += 1
            if fields == [""]:
                continue
            return fields

    def _read_header(self) -> dict[str, int] | None:
        fields = self._next_record()
        if fields is None:
            return None
        columns: dict[str, int] = {}
        for index, name in enumerate(fields):
            if name in columns:
                raise ManifestParseError(self._record, f"Duplicate column: {name!r}")
            columns[name] = index
        for name in REQUIRED_COLUMNS:
            if name not in columns:
                raise ManifestParseError(self._record, f"Missing required column: {name!r}")
        return columns

    def read_entry(self) -> Entry | None:
        """Read the next entry.

        Returns:
            The decoded Entry, or None at end of stream.

        Raises:
            ManifestParseError: If the header or a record is malformed.
        """
        if self._columns is None:
            self._columns = self._read_header()
            if self._columns is None:
                return None

        fields = self._next_record()
        if fields is None:
            return None

        if len(fields) != len(self._columns):
            raise ManifestParseError(
                self._record,
                f"Expected {len(self._columns)} fields, found {len(fields)}",
            )

        try:
            return _decode(dict(zip(self._columns, fields, strict=True)))
        except (TypeError, ValueError) as e:
            raise ManifestParseError(self._record, str(e)) from e

    def __iter__(self) -> Iterator[Entry]:
        while True:
            entry = self.read_entry()
            if entry is None:
                return
            yield entry

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()

    def __enter__(self) -> ManifestReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
