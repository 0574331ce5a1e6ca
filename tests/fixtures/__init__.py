"""
Test fixtures package for merkle-ledger tests.

This package provides factory functions for creating test objects.

Usage:
    from fixtures import make_records, TRANSFER_RECORDS

    def test_something():
        tree = build_tree_from_records(make_records(5))
"""

from .records import (
    TRANSFER_RECORDS,
    make_records,
    write_records_file,
)

__all__ = [
    "TRANSFER_RECORDS",
    "make_records",
    "write_records_file",
]
