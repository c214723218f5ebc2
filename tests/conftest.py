"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Small directory tree used by creator and validator tests.

    Layout::

        root/
            a.txt        "abcd"
            sub/
                b.bin    bytes 0..99
                deep/
                    c.txt "hello world"
    """
    root = tmp_path / "root"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"abcd")
    (root / "sub" / "b.bin").write_bytes(bytes(range(100)))
    (root / "sub" / "deep" / "c.txt").write_bytes(b"hello world")
    return root.resolve()


@pytest.fixture
def scenario_tree(tmp_path: Path) -> Path:
    """Directory with a.txt ("abcd") and an empty sub/ directory."""
    root = tmp_path / "scenario"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"abcd")
    return root.resolve()


@pytest.fixture
def isolated_config_home(tmp_path: Path):
    """Point XDG_CONFIG_HOME at a temporary directory."""
    config_home = tmp_path / "xdg-config"
    with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(config_home)}):
        yield config_home
