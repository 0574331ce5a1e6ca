"""
Runtime Configuration

Central configuration for hashing and logging.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.crypto.hashing import DEFAULT_ALGORITHM, Hasher

load_dotenv()


@dataclass
class HashingConfig:
    """Configuration for the Merkle hash function."""
    algorithm: str = DEFAULT_ALGORITHM


@dataclass
class LoggingConfig:
    """Configuration for log output."""
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for merkle-ledger.

    Can be loaded from:
    - Environment variables (and a .env file via python-dotenv)
    - YAML file
    - Programmatic construction
    """
    hashing: HashingConfig = field(default_factory=HashingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - MERKLE_HASH_ALGORITHM: hash algorithm name (sha256, blake2b, ...)
        - MERKLE_LOG_LEVEL: log level
        - MERKLE_LOG_FILE: optional log file path
        """
        overrides: dict[str, Any] = {}

        if os.getenv("MERKLE_HASH_ALGORITHM"):
            overrides.setdefault("hashing", {})["algorithm"] = os.getenv("MERKLE_HASH_ALGORITHM")

        if os.getenv("MERKLE_LOG_LEVEL"):
            overrides.setdefault("logging", {})["level"] = os.getenv("MERKLE_LOG_LEVEL")
        if os.getenv("MERKLE_LOG_FILE"):
            overrides.setdefault("logging", {})["file"] = os.getenv("MERKLE_LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Load configuration purely from environment variables, defaults elsewhere."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        hashing_data = data.get("hashing", {})
        logging_data = data.get("logging", {})

        hashing = HashingConfig(**hashing_data) if hashing_data else HashingConfig()
        log_config = LoggingConfig(**logging_data) if logging_data else LoggingConfig()

        return cls(
            hashing=hashing,
            logging=log_config,
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for key, value in overrides.get("hashing", {}).items():
            setattr(new_config.hashing, key, value)
        for key, value in overrides.get("logging", {}).items():
            setattr(new_config.logging, key, value)

        return new_config

    def make_hasher(self) -> Hasher:
        """
        Build the Hasher this configuration selects.

        Raises:
            UnsupportedHashAlgorithmError: If the configured algorithm is unknown
        """
        return Hasher(self.hashing.algorithm)
