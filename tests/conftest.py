"""
Pytest configuration and shared fixtures for merkle-ledger tests.

This conftest.py:
1. Adds project root and tests root to sys.path for imports
2. Provides commonly-used record and tree fixtures
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

import importlib

_records = importlib.import_module("fixtures.records")

TRANSFER_RECORDS = _records.TRANSFER_RECORDS
make_records = _records.make_records

from core.merkle import build_tree_from_records  # noqa: E402


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def transfer_records():
    """The four transfer records used in the worked example."""
    return list(TRANSFER_RECORDS)


@pytest.fixture
def transfer_tree(transfer_records):
    """Tree built over the four transfer records."""
    return build_tree_from_records(transfer_records)


@pytest.fixture
def odd_tree():
    """Tree built over three records (odd leaf count)."""
    return build_tree_from_records(make_records(3))


@pytest.fixture(autouse=True)
def _clean_merkle_env(monkeypatch):
    """Keep MERKLE_* variables from the developer's shell out of tests."""
    for key in (
        "MERKLE_HASH_ALGORITHM",
        "MERKLE_INPUT_FORMAT",
        "MERKLE_OUTPUT_FORMAT",
        "MERKLE_LOG_LEVEL",
        "MERKLE_LOG_FILE",
    ):
        monkeypatch.delenv(key, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
