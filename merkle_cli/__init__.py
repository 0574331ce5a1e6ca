"""
merkle-ledger CLI

Command-line harness around the core Merkle tree library.

Usage:
    python -m merkle_cli build records.txt
    python -m merkle_cli prove records.txt --index 2 --out proof.bin
    python -m merkle_cli verify proof.bin --root 0x...
    python -m merkle_cli demo
"""

__version__ = "0.1.0"
