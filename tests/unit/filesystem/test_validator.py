"""Unit tests for EntryValidator and TreeValidator."""

import hashlib
from pathlib import Path

import pytest
from contentlist.core.cancel import CancelToken, OperationCancelled
from contentlist.filesystem.creator import TreeCreator
from contentlist.filesystem.listener import ProgressListener
from contentlist.filesystem.validator import EntryValidator, TreeValidator
from contentlist.filesystem.virtual import VirtualFileSystem
from contentlist.models.entry import Entry, EntryType
from contentlist.models.outcome import CheckKind, ValidationResult
from contentlist.models.path import ContentPath


def _file_entry(path: str, data: bytes, sample_size: int = 24, with_hash: bool = True) -> Entry:
    """Build the entry a creator would record for ``data``."""
    return Entry(
        path=ContentPath.parse(path),
        type=EntryType.FILE,
        size=len(data),
        sample=data[:sample_size] or None,
        sha256=hashlib.sha256(data).digest() if with_hash else None,
    )


def _catalog(directory: Path) -> VirtualFileSystem:
    """Catalog a directory into a virtual filesystem."""
    entries: list[Entry] = []
    TreeCreator(sink=entries.append).create_contents(directory)
    return VirtualFileSystem.from_entries(entries)


class RecordingListener(ProgressListener):
    """Listener that records checks, results and rejections."""

    def __init__(self) -> None:
        self.passed: list[CheckKind] = []
        self.results: list[ValidationResult] = []
        self.rejected: list[tuple[Path, str]] = []
        self.visited: list[str] = []

    def on_node_start(self, path: ContentPath) -> None:
        self.visited.append(str(path))

    def on_check_passed(self, kind: CheckKind) -> None:
        self.passed.append(kind)

    def on_result(self, result: ValidationResult) -> None:
        self.results.append(result)

    def on_rejected(self, path: Path, reason: str) -> None:
        self.rejected.append((path, reason))


class TestEntryValidator:
    """Tests for single-entry validation."""

    def test_matching_file(self, tmp_path: Path) -> None:
        """An untouched file passes every check in order."""
        (tmp_path / "a.txt").write_bytes(b"abcd")
        listener = RecordingListener()

        result = EntryValidator(tmp_path, listener).validate(_file_entry("/a.txt", b"abcd"))

        assert result.success
        assert result.native_path == tmp_path / "a.txt"
        assert listener.passed == [
            CheckKind.EXISTENCE,
            CheckKind.TYPE,
            CheckKind.SIZE,
            CheckKind.SAMPLE,
            CheckKind.HASH,
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        """A deleted file fails the existence check."""
        result = EntryValidator(tmp_path).validate(_file_entry("/a.txt", b"abcd"))

        assert result.kind == CheckKind.EXISTENCE
        assert (result.expected, result.found) == (True, False)

    def test_type_mismatch(self, tmp_path: Path) -> None:
        """A directory where a file was recorded fails the type check."""
        (tmp_path / "a.txt").mkdir()

        result = EntryValidator(tmp_path).validate(_file_entry("/a.txt", b"abcd"))

        assert result.kind == CheckKind.TYPE
        assert (result.expected, result.found) == (EntryType.FILE, EntryType.DIRECTORY)

    def test_size_mismatch(self, tmp_path: Path) -> None:
        """A grown file fails the size check."""
        (tmp_path / "a.txt").write_bytes(b"abcde")

        result = EntryValidator(tmp_path).validate(_file_entry("/a.txt", b"abcd"))

        assert result.kind == CheckKind.SIZE
        assert (result.expected, result.found) == (4, 5)

    def test_sample_mismatch(self, tmp_path: Path) -> None:
        """Changing a leading byte fails the sample check."""
        (tmp_path / "a.txt").write_bytes(b"Xbcd")

        result = EntryValidator(tmp_path).validate(_file_entry("/a.txt", b"abcd"))

        assert result.kind == CheckKind.SAMPLE
        assert (result.expected, result.found) == (b"abcd", b"Xbcd")

    def test_hash_mismatch(self, tmp_path: Path) -> None:
        """Changing a byte past the sample fails only the hash check."""
        original = bytes(range(100))
        tampered = original[:50] + b"\xff" + original[51:]
        (tmp_path / "b.bin").write_bytes(tampered)
        listener = RecordingListener()

        result = EntryValidator(tmp_path, listener, chunk_size=16).validate(
            _file_entry("/b.bin", original)
        )

        assert result.kind == CheckKind.HASH
        assert result.found == hashlib.sha256(tampered).digest()
        assert CheckKind.SAMPLE in listener.passed

    def test_no_sample_no_hash(self, tmp_path: Path) -> None:
        """Without content fields only existence, type and size are checked."""
        (tmp_path / "a.txt").write_bytes(b"zzzz")
        entry = _file_entry("/a.txt", b"abcd", sample_size=0, with_hash=False)
        listener = RecordingListener()

        result = EntryValidator(tmp_path, listener).validate(entry)

        assert result.success
        assert listener.passed == [CheckKind.EXISTENCE, CheckKind.TYPE, CheckKind.SIZE]

    def test_hash_without_sample(self, tmp_path: Path) -> None:
        """The hash covers the whole file when no sample was recorded."""
        (tmp_path / "a.txt").write_bytes(b"abcd")
        entry = _file_entry("/a.txt", b"abcd", sample_size=0)

        assert EntryValidator(tmp_path).validate(entry).success

    def test_directory_skips_content_checks(self, tmp_path: Path) -> None:
        """Directories only check existence and type."""
        (tmp_path / "d").mkdir()
        entry = Entry(path=ContentPath.parse("/d"), type=EntryType.DIRECTORY, size=999)
        listener = RecordingListener()

        result = EntryValidator(tmp_path, listener).validate(entry)

        assert result.success
        assert listener.passed == [CheckKind.EXISTENCE, CheckKind.TYPE]

    def test_root_maps_to_base_directory(self, tmp_path: Path) -> None:
        """The root entry resolves to the base directory itself."""
        entry = Entry(path=ContentPath.root(), type=EntryType.DIRECTORY)

        result = EntryValidator(tmp_path).validate(entry)

        assert result.success
        assert result.native_path == tmp_path

    def test_cancelled(self, tmp_path: Path) -> None:
        """A cancelled token stops validation."""
        (tmp_path / "a.txt").write_bytes(b"abcd")
        token = CancelToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            EntryValidator(tmp_path, cancel=token).validate(_file_entry("/a.txt", b"abcd"))

    def test_invalid_chunk_size(self, tmp_path: Path) -> None:
        """chunk_size must be positive."""
        with pytest.raises(ValueError):
            EntryValidator(tmp_path, chunk_size=0)


class TestTreeValidator:
    """Tests for subtree validation."""

    def test_untouched_tree_passes(self, sample_tree: Path) -> None:
        """A freshly cataloged tree validates without failures."""
        vfs = _catalog(sample_tree)
        listener = RecordingListener()
        validator = TreeValidator(vfs, EntryValidator(sample_tree).validate, listener)

        failed = validator.validate()

        assert failed == 0
        assert validator.checked == 6
        assert all(r.success for r in listener.results)

    def test_visits_depth_first(self, sample_tree: Path) -> None:
        """Nodes are visited parent first, children in insertion order."""
        vfs = _catalog(sample_tree)
        listener = RecordingListener()

        TreeValidator(vfs, EntryValidator(sample_tree).validate, listener).validate()

        assert listener.visited == [
            "/",
            "/sub",
            "/sub/deep",
            "/sub/deep/c.txt",
            "/sub/b.bin",
            "/a.txt",
        ]

    def test_missing_directory_not_descended(self, sample_tree: Path) -> None:
        """Children of a missing directory are not reported."""
        vfs = _catalog(sample_tree)
        (sample_tree / "sub" / "deep" / "c.txt").unlink()
        (sample_tree / "sub" / "deep").rmdir()
        listener = RecordingListener()
        validator = TreeValidator(vfs, EntryValidator(sample_tree).validate, listener)

        failed = validator.validate()

        assert failed == 1
        assert "/sub/deep/c.txt" not in listener.visited
        failures = [r for r in listener.results if r.failed]
        assert [str(r.entry.path) for r in failures] == ["/sub/deep"]
        assert failures[0].kind == CheckKind.EXISTENCE

    def test_subtree_start(self, sample_tree: Path) -> None:
        """Validation can start below the root."""
        vfs = _catalog(sample_tree)
        validator = TreeValidator(vfs, EntryValidator(sample_tree).validate)

        assert validator.validate("/sub") == 0
        assert validator.checked == 4

    def test_counters_accumulate(self, sample_tree: Path) -> None:
        """Counters span calls while the return value covers one call."""
        vfs = _catalog(sample_tree)
        (sample_tree / "a.txt").write_bytes(b"changed!")
        validator = TreeValidator(vfs, EntryValidator(sample_tree).validate)

        assert validator.validate("/a.txt") == 1
        assert validator.validate("/sub") == 0
        assert (validator.checked, validator.failed) == (5, 1)

    def test_placeholder_checked_as_directory(self, tmp_path: Path) -> None:
        """Implied directories are validated as bare directories."""
        (tmp_path / "x").mkdir()
        (tmp_path / "x" / "f").write_bytes(b"abcd")
        vfs = VirtualFileSystem.from_entries([_file_entry("/x/f", b"abcd")])
        listener = RecordingListener()

        failed = TreeValidator(vfs, EntryValidator(tmp_path).validate, listener).validate()

        assert failed == 0
        assert [str(r.entry.path) for r in listener.results] == ["/", "/x", "/x/f"]
        assert listener.results[1].entry.type == EntryType.DIRECTORY

    def test_os_error_is_rejection(self, sample_tree: Path) -> None:
        """An I/O error during a check counts as a failure and is reported."""
        vfs = _catalog(sample_tree)
        real = EntryValidator(sample_tree).validate

        def check(entry: Entry) -> ValidationResult:
            if entry.path.name == "b.bin":
                raise PermissionError(13, "Permission denied")
            return real(entry)

        listener = RecordingListener()
        validator = TreeValidator(vfs, check, listener)

        assert validator.validate() == 1
        assert listener.rejected == [(Path("/sub/b.bin"), "Permission denied")]
        assert validator.checked == 6

    def test_special_links_resolved(self, sample_tree: Path) -> None:
        """The start path may use special links."""
        vfs = _catalog(sample_tree)
        listener = RecordingListener()

        TreeValidator(vfs, EntryValidator(sample_tree).validate, listener).validate(
            "/sub/deep/.."
        )

        assert listener.visited[0] == "/sub"

    def test_missing_start_path(self, sample_tree: Path) -> None:
        """Starting at an unknown path is an error."""
        validator = TreeValidator(_catalog(sample_tree), EntryValidator(sample_tree).validate)

        with pytest.raises(ValueError, match="Path not found"):
            validator.validate("/nope")

    def test_relative_start_path(self, sample_tree: Path) -> None:
        """Relative start paths are rejected."""
        validator = TreeValidator(_catalog(sample_tree), EntryValidator(sample_tree).validate)

        with pytest.raises(ValueError):
            validator.validate("sub")

    def test_cancelled(self, sample_tree: Path) -> None:
        """A cancelled token stops the walk."""
        token = CancelToken()
        token.cancel()
        validator = TreeValidator(
            _catalog(sample_tree), EntryValidator(sample_tree).validate, cancel=token
        )

        with pytest.raises(OperationCancelled):
            validator.validate()
