"""
CLI Configuration

Configuration management for the merkle-ledger CLI.
Supports environment variables and configuration files.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.config import HashingConfig, LoggingConfig, RuntimeConfig
from core.crypto.hashing import DEFAULT_ALGORITHM


# Environment variable prefix
ENV_PREFIX = "MERKLE_"

_FILE_FIELDS = ("hash_algorithm", "input_format", "log_level", "log_file", "default_output_format")
_NULLABLE_FIELDS = ("log_file",)

DEFAULT_CONFIG_PATHS = (
    Path("merkle-ledger.json"),
    Path(".merkle-ledger.json"),
    Path.home() / ".config" / "merkle-ledger" / "config.json",
)


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    # Hashing
    hash_algorithm: str = DEFAULT_ALGORITHM

    # Input
    input_format: str = "lines"  # "lines" or "json"

    # Logging
    log_level: str = "WARNING"
    log_file: str | None = None

    # Output
    default_output_format: str = "human"  # "human" or "json"

    def to_runtime_config(self) -> RuntimeConfig:
        """Convert to the core RuntimeConfig."""
        return RuntimeConfig(
            hashing=HashingConfig(algorithm=self.hash_algorithm),
            logging=LoggingConfig(level=self.log_level, file=self.log_file),
        )


def load_config_from_env() -> CLIConfig:
    """Load configuration from environment variables."""
    config = CLIConfig()

    config.hash_algorithm = os.getenv(f"{ENV_PREFIX}HASH_ALGORITHM", config.hash_algorithm)
    config.input_format = os.getenv(f"{ENV_PREFIX}INPUT_FORMAT", config.input_format)
    config.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", config.log_level)
    config.log_file = os.getenv(f"{ENV_PREFIX}LOG_FILE")
    config.default_output_format = os.getenv(
        f"{ENV_PREFIX}OUTPUT_FORMAT", config.default_output_format
    )

    return config


def _check_file_values(path: Path, data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a JSON object")
    for key, value in data.items():
        if key not in _FILE_FIELDS:
            continue
        if value is None and key in _NULLABLE_FIELDS:
            continue
        if not isinstance(value, str):
            raise ValueError(
                f"Config value {key!r} in {path} must be a string, got {type(value).__name__}"
            )


def load_config_from_file(path: Path) -> CLIConfig:
    """
    Load configuration from a JSON file.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is not a JSON object of string values
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    _check_file_values(path, data)

    config = CLIConfig()
    config.hash_algorithm = data.get("hash_algorithm", config.hash_algorithm)
    config.input_format = data.get("input_format", config.input_format)
    config.log_level = data.get("log_level", config.log_level)
    config.log_file = data.get("log_file", config.log_file)
    config.default_output_format = data.get("default_output_format", config.default_output_format)

    return config


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings. When no path is given,
    the first existing file in DEFAULT_CONFIG_PATHS is used.

    Raises:
        FileNotFoundError: If config_path is given but does not exist
    """
    config = CLIConfig()

    if config_path is not None:
        config = load_config_from_file(config_path)
    else:
        for default_path in DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    env_config = load_config_from_env()
    if os.getenv(f"{ENV_PREFIX}HASH_ALGORITHM"):
        config.hash_algorithm = env_config.hash_algorithm
    if os.getenv(f"{ENV_PREFIX}INPUT_FORMAT"):
        config.input_format = env_config.input_format
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = env_config.log_level
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = env_config.log_file
    if os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT"):
        config.default_output_format = env_config.default_output_format

    return config


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "hash_algorithm": "sha256",
  "input_format": "lines",
  "log_level": "WARNING",
  "log_file": null,
  "default_output_format": "human"
}
"""
