"""
Runtime Configuration Module

Provides configuration loading and management for merkle-ledger.
"""

from .runtime import RuntimeConfig, HashingConfig, LoggingConfig

__all__ = [
    "RuntimeConfig",
    "HashingConfig",
    "LoggingConfig",
]
