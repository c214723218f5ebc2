"""Unit tests for ManifestReader."""

import io

import pytest
from contentlist.codec.errors import ManifestParseError
from contentlist.codec.reader import ManifestReader
from contentlist.codec.writer import ManifestWriter, WriterFlags
from contentlist.models.entry import Entry, EntryType
from contentlist.models.path import ContentPath


def _reader(text: str) -> ManifestReader:
    """Create a reader over text."""
    return ManifestReader(io.StringIO(text, newline=""))


def _read_all(text: str) -> list[Entry]:
    """Read every entry from text."""
    return list(_reader(text))


class TestReadEntry:
    """Tests for decoding records."""

    def test_full_record(self) -> None:
        """Every column is decoded."""
        digest = bytes(range(32))
        text = (
            "path,type,created,modified,size,files,directories,sha256,sample,meta\n"
            f"/a.txt,File,10,20,4,0,0,{digest.hex()},61626364,'default.name'='A'\n"
        )

        (entry,) = _read_all(text)

        assert entry.path == ContentPath.parse("/a.txt")
        assert entry.type == EntryType.FILE
        assert entry.created == 10
        assert entry.modified == 20
        assert entry.size == 4
        assert entry.sha256 == digest
        assert entry.sample == b"abcd"
        assert entry.display_name == "A"

    def test_columns_resolved_by_name(self) -> None:
        """Column order in the header does not matter."""
        entries = _read_all("size,type,path\n7,File,/x\n")

        assert entries[0].size == 7
        assert entries[0].path == ContentPath.parse("/x")

    def test_missing_optional_columns(self) -> None:
        """Absent columns leave defaults."""
        (entry,) = _read_all("path,type\n/d,Directory\n")

        assert entry.is_directory
        assert entry.size == 0
        assert entry.sha256 is None
        assert entry.metadata == {}

    def test_empty_optional_fields(self) -> None:
        """Empty optional fields mean absent or zero."""
        (entry,) = _read_all("path,type,size,sha256,sample,meta\n/f,File,,,,\n")

        assert entry.size == 0
        assert entry.sha256 is None
        assert entry.sample is None

    def test_unknown_columns_ignored(self) -> None:
        """Columns the reader does not know are skipped."""
        (entry,) = _read_all("path,extra,type\n/f,whatever,File\n")

        assert entry.is_file

    def test_legacy_type_names(self) -> None:
        """Upper-case type names from older manifests are accepted."""
        (entry,) = _read_all("path,type\n/f,SYMBOLIC_LINK\n")

        assert entry.type == EntryType.SYMBOLIC_LINK

    def test_quoted_fields(self) -> None:
        """Quoted paths with commas and line breaks decode."""
        (entry,) = _read_all('path,type\n"/a,b\nc",File\n')

        assert entry.path.segments == ("a,b\nc",)

    def test_blank_lines_skipped(self) -> None:
        """Completely blank lines are ignored."""
        entries = _read_all("path,type\n\n/a,File\n\r\n/b,File\n")

        assert [str(e.path) for e in entries] == ["/a", "/b"]

    def test_crlf_records(self) -> None:
        """Windows line endings are accepted."""
        entries = _read_all("path,type\r\n/a,File\r\n")

        assert len(entries) == 1

    def test_empty_stream(self) -> None:
        """An empty stream yields nothing."""
        assert _reader("").read_entry() is None

    def test_header_only(self) -> None:
        """A header without records yields nothing."""
        reader = _reader("path,type\n")

        assert reader.read_entry() is None
        assert reader.columns == ("path", "type")

    def test_read_entry_returns_none_at_end(self) -> None:
        """read_entry returns None repeatedly once exhausted."""
        reader = _reader("path,type\n/a,File\n")

        assert reader.read_entry() is not None
        assert reader.read_entry() is None
        assert reader.read_entry() is None


class TestParseErrors:
    """Tests for error reporting with record ordinals."""

    @pytest.mark.parametrize("header", ["type,size", "path,size"])
    def test_missing_required_column(self, header: str) -> None:
        """path and type columns are mandatory."""
        with pytest.raises(ManifestParseError, match="Missing required column") as exc_info:
            _read_all(f"{header}\n")

        assert exc_info.value.record == 1

    def test_wrong_field_count(self) -> None:
        """A row with too few fields reports its ordinal."""
        with pytest.raises(ManifestParseError) as exc_info:
            _read_all("path,type,size\n/a,File,1\n/b,File\n")

        assert exc_info.value.record == 3
        assert "Expected 3 fields" in str(exc_info.value)

    def test_ordinal_counts_blank_lines(self) -> None:
        """Blank lines still count as records for error ordinals."""
        with pytest.raises(ManifestParseError) as exc_info:
            _read_all("path,type\n\n/a\n")

        assert exc_info.value.record == 3

    @pytest.mark.parametrize(
        ("row", "fragment"),
        [
            (",File,0,", "Empty path"),
            ("/a,,0,", "Empty type"),
            ("a,File,0,", "absolute"),
            ("/a//b,File,0,", "empty segment"),
            ("/a,Socket,0,", "Unknown entry type"),
            ("/a,File,x,", "Invalid integer"),
            ("/a,File,-1,", "negative"),
            ("/a,File,0,abc", "Invalid hex"),
            ("/a,File,0,00ff", "sha256"),
        ],
    )
    def test_malformed_values(self, row: str, fragment: str) -> None:
        """Bad values surface as ManifestParseError for the record."""
        with pytest.raises(ManifestParseError, match=fragment) as exc_info:
            _read_all(f"path,type,size,sha256\n{row}\n")

        assert exc_info.value.record == 2

    def test_malformed_metadata(self) -> None:
        """A meta field outside the grammar is a parse error."""
        with pytest.raises(ManifestParseError) as exc_info:
            _read_all("path,type,meta\n/a,File,k=v\n")

        assert exc_info.value.record == 2

    def test_unterminated_quote(self) -> None:
        """Strict quoting: an unterminated quote is a parse error."""
        with pytest.raises(ManifestParseError, match="Unterminated"):
            _read_all('path,type\n"/a,File\n')

    def test_duplicate_column(self) -> None:
        """A header naming a column twice is rejected."""
        with pytest.raises(ManifestParseError, match="Duplicate column"):
            _read_all("path,type,path\n")


class TestRoundTrip:
    """Writer output read back by the reader."""

    def test_entries_survive_round_trip(self) -> None:
        """Entries with tricky values read back equal."""
        weird = Entry(
            path=ContentPath.of(['quote"d', "comma,name", "new\nline"]),
            type=EntryType.FILE,
            created=1,
            modified=2,
            size=3,
            sha256=b"\xff" * 32,
            sample=b"\x00\x01\x02",
            metadata={"default.author": "O'Brien", "note": 'a "b"; c'},
        )
        root = Entry(path=ContentPath.root(), type=EntryType.DIRECTORY, files=1, size=3)
        stream = io.StringIO(newline="")
        writer = ManifestWriter(stream)
        writer.write_entry(weird)
        writer.write_entry(root)

        entries = list(ManifestReader(io.StringIO(stream.getvalue(), newline="")))

        assert entries == [weird, root]

    def test_empty_sample_round_trip(self) -> None:
        """An entry built with an empty sample reads back equal."""
        entry = Entry(path=ContentPath.parse("/a"), type=EntryType.FILE, sample=b"")
        stream = io.StringIO(newline="")
        ManifestWriter(stream).write_entry(entry)

        (read_back,) = ManifestReader(io.StringIO(stream.getvalue(), newline=""))

        assert read_back == entry

    def test_flags_round_trip(self) -> None:
        """Omitted columns read back as absent."""
        entry = Entry(
            path=ContentPath.parse("/d"),
            type=EntryType.DIRECTORY,
            files=3,
            directories=1,
            metadata={"k": "v"},
        )
        stream = io.StringIO(newline="")
        flags = WriterFlags.NO_FILES_AND_DIRECTORIES | WriterFlags.NO_METADATA
        ManifestWriter(stream, flags).write_entry(entry)

        (read_back,) = ManifestReader(io.StringIO(stream.getvalue(), newline=""))

        assert read_back.files == 0
        assert read_back.directories == 0
        assert read_back.metadata == {}

    def test_context_manager_closes_stream(self) -> None:
        """Leaving the with-block closes the stream."""
        stream = io.StringIO("path,type\n")

        with ManifestReader(stream) as reader:
            list(reader)

        assert stream.closed
