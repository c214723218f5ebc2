"""Catalog configuration and settings.

This module provides the configuration model and I/O functions that
control how manifests are created: sampling, hashing, read chunk size
and which optional columns the writer emits.

Configuration is stored in ~/.config/contentlist/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from contentlist.codec.writer import WriterFlags
from contentlist.core.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 24
DEFAULT_CHUNK_SIZE = 1024 * 1024
DEFAULT_MAX_WARNINGS = 1000


class ContentListConfig(BaseModel):
    """Configuration for manifest creation.

    Attributes:
        sample_size: Number of leading bytes recorded per file (0 disables).
        hash_enabled: Compute a SHA-256 digest of every file.
        chunk_size: Read size used while hashing.
        write_counts: Write the ``files`` and ``directories`` columns.
        write_sha256: Write the ``sha256`` column.
        write_sample: Write the ``sample`` column.
        write_metadata: Write the ``meta`` column.
        max_warnings: Warnings shown by the CLI before further ones are suppressed.
    """

    model_config = ConfigDict(extra="forbid")

    sample_size: Annotated[
        int,
        Field(ge=0, le=1024 * 1024, description="Sample size in bytes (0-1048576)"),
    ] = DEFAULT_SAMPLE_SIZE
    hash_enabled: Annotated[
        bool,
        Field(description="Compute SHA-256 digests"),
    ] = True
    chunk_size: Annotated[
        int,
        Field(ge=4096, le=64 * 1024 * 1024, description="Hash read size in bytes"),
    ] = DEFAULT_CHUNK_SIZE
    write_counts: Annotated[
        bool,
        Field(description="Write files/directories columns"),
    ] = True
    write_sha256: Annotated[
        bool,
        Field(description="Write the sha256 column"),
    ] = True
    write_sample: Annotated[
        bool,
        Field(description="Write the sample column"),
    ] = True
    write_metadata: Annotated[
        bool,
        Field(description="Write the meta column"),
    ] = True
    max_warnings: Annotated[
        int,
        Field(ge=0, description="Warnings shown before suppression"),
    ] = DEFAULT_MAX_WARNINGS

    @property
    def writer_flags(self) -> WriterFlags:
        """Map the column switches onto writer flags.

        Returns:
            WriterFlags with a NO_* member set for every disabled column.
        """
        flags = WriterFlags.NONE
        if not self.write_counts:
            flags |= WriterFlags.NO_FILES_AND_DIRECTORIES
        if not self.write_sha256:
            flags |= WriterFlags.NO_SHA256
        if not self.write_sample:
            flags |= WriterFlags.NO_SAMPLE
        if not self.write_metadata:
            flags |= WriterFlags.NO_METADATA
        return flags


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> ContentListConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated ContentListConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ContentListConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> ContentListConfig:
    """Load configuration, falling back to defaults if the file is missing.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Loaded or default ContentListConfig.

    Raises:
        ConfigParseError: If the file exists but is not valid TOML.
        ConfigError: If the file exists but doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using defaults")
        return ContentListConfig()


def save_config(config: ContentListConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ContentListConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump()

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
