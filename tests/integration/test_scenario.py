"""Integration tests for the catalog and validate workflow.

These tests create a manifest from a real directory, read it back and
validate the directory against it after a series of modifications.
"""

import hashlib
from pathlib import Path

import pytest
from contentlist.cli.main import app
from contentlist.core.manifest import create_manifest, load_filesystem, read_manifest
from contentlist.filesystem.listener import ProgressListener
from contentlist.filesystem.validator import EntryValidator, TreeValidator
from contentlist.models.entry import EntryType
from contentlist.models.outcome import CheckKind, ValidationResult
from typer.testing import CliRunner

runner = CliRunner()


class ResultCollector(ProgressListener):
    """Collect validation results."""

    def __init__(self) -> None:
        self.results: list[ValidationResult] = []

    def on_result(self, result: ValidationResult) -> None:
        self.results.append(result)

    def failures(self) -> dict[str, CheckKind]:
        return {str(r.entry.path): r.kind for r in self.results if r.failed}


def _validate(manifest: Path, base: Path) -> ResultCollector:
    """Validate ``base`` against ``manifest`` and collect every result."""
    collector = ResultCollector()
    vfs = load_filesystem(manifest)
    checker = EntryValidator(base, listener=collector)
    TreeValidator(vfs, checker.validate, listener=collector).validate()
    return collector


@pytest.fixture
def cataloged(scenario_tree: Path, tmp_path: Path) -> Path:
    """Manifest of the scenario directory's contents."""
    manifest = tmp_path / "scenario.csv"
    create_manifest(manifest, [scenario_tree], contents=True)
    return manifest


class TestScenario:
    """Create, read back and validate a small tree."""

    def test_manifest_contents(self, cataloged: Path) -> None:
        """The manifest holds the file, the empty directory and the root."""
        entries = {str(e.path): e for e in read_manifest(cataloged)}

        assert set(entries) == {"/", "/a.txt", "/sub"}
        root = entries["/"]
        assert (root.files, root.directories, root.size) == (1, 1, 4)
        a = entries["/a.txt"]
        assert a.type == EntryType.FILE
        assert a.size == 4
        assert a.sha256 == hashlib.sha256(b"abcd").digest()
        assert a.sample == b"abcd"
        assert entries["/sub"].type == EntryType.DIRECTORY

    def test_untouched_tree_validates(self, cataloged: Path, scenario_tree: Path) -> None:
        """Every node matches right after creation."""
        collector = _validate(cataloged, scenario_tree)

        assert len(collector.results) == 3
        assert collector.failures() == {}

    def test_deleted_file(self, cataloged: Path, scenario_tree: Path) -> None:
        """A deleted file fails the existence check."""
        (scenario_tree / "a.txt").unlink()

        assert _validate(cataloged, scenario_tree).failures() == {"/a.txt": CheckKind.EXISTENCE}

    def test_replaced_by_directory(self, cataloged: Path, scenario_tree: Path) -> None:
        """A directory in place of the file fails the type check."""
        (scenario_tree / "a.txt").unlink()
        (scenario_tree / "a.txt").mkdir()

        assert _validate(cataloged, scenario_tree).failures() == {"/a.txt": CheckKind.TYPE}

    def test_resized_file(self, cataloged: Path, scenario_tree: Path) -> None:
        """A file with a different length fails the size check."""
        (scenario_tree / "a.txt").write_bytes(b"abcde")

        assert _validate(cataloged, scenario_tree).failures() == {"/a.txt": CheckKind.SIZE}

    def test_changed_first_byte(self, cataloged: Path, scenario_tree: Path) -> None:
        """Same size with a different first byte fails the sample check."""
        (scenario_tree / "a.txt").write_bytes(b"Xbcd")

        assert _validate(cataloged, scenario_tree).failures() == {"/a.txt": CheckKind.SAMPLE}

    def test_changed_byte_past_sample(self, tmp_path: Path) -> None:
        """A change past the sample is only caught by the hash."""
        base = tmp_path / "tree"
        base.mkdir()
        data = bytes(range(64))
        (base / "data.bin").write_bytes(data)
        manifest = tmp_path / "m.csv"
        create_manifest(manifest, [base], contents=True)
        (base / "data.bin").write_bytes(data[:40] + b"\x00" + data[41:])

        assert _validate(manifest, base).failures() == {"/data.bin": CheckKind.HASH}

    def test_removed_directory(self, cataloged: Path, scenario_tree: Path) -> None:
        """A removed directory fails once, without reports for its children."""
        (scenario_tree / "sub").rmdir()

        assert _validate(cataloged, scenario_tree).failures() == {"/sub": CheckKind.EXISTENCE}


class TestCreatorValidatorConsistency:
    """Whatever the creator records, the validator accepts."""

    def test_nested_tree(self, sample_tree: Path, tmp_path: Path) -> None:
        """A nested tree validates cleanly after creation."""
        manifest = tmp_path / "m.csv"
        create_manifest(manifest, [sample_tree], contents=True)

        collector = _validate(manifest, sample_tree)

        assert len(collector.results) == 6
        assert collector.failures() == {}

    def test_catalog_and_validate_through_cli(
        self, sample_tree: Path, tmp_path: Path, isolated_config_home: Path
    ) -> None:
        """The CLI round trip succeeds and then detects a change."""
        manifest = tmp_path / "m.csv"

        created = runner.invoke(
            app, ["catalog", "create", str(manifest), str(sample_tree), "--contents"]
        )
        assert created.exit_code == 0

        validated = runner.invoke(
            app,
            ["catalog", "validate", str(manifest), str(sample_tree), "--max-warnings", "10"],
        )
        assert validated.exit_code == 0

        (sample_tree / "sub" / "deep" / "c.txt").write_bytes(b"HELLO WORLD")
        changed = runner.invoke(
            app,
            ["catalog", "validate", str(manifest), str(sample_tree), "--max-warnings", "10"],
        )
        assert changed.exit_code == 1
        assert "/sub/deep/c.txt: sample mismatch" in changed.output
