"""
Record and proof file loading for CLI commands.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.merkle import MerkleProof
from core.schemas.records import records_from_items


INPUT_FORMATS = ("lines", "json")
PROOF_FORMATS = ("binary", "json")


class InputError(Exception):
    """Raised when a CLI input file cannot be read or parsed."""


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    p = Path(path)
    if not p.exists():
        raise InputError(f"File not found: {p}")
    # No newline translation: record boundaries are exactly "\n"
    try:
        return p.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise InputError(f"{p} is not valid UTF-8: {e}") from e


def load_records(path: str, input_format: str = "lines") -> list[bytes]:
    """
    Load records from a file ("-" for stdin).

    Formats:
        lines: one UTF-8 record per "\n"-terminated line ("\r\n" accepted);
               a trailing newline does not add an empty record. Other
               Unicode line separators are part of the record.
        json:  a JSON array of strings and/or {"from", "to", "amount"}
               transaction objects
    """
    if input_format not in INPUT_FORMATS:
        raise InputError(f"Unknown input format: {input_format}")

    text = _read_text(path)

    if input_format == "lines":
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return [line.removesuffix("\r").encode("utf-8") for line in lines]

    try:
        items: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(items, list):
        raise InputError(f"Expected a JSON array of records in {path}")
    try:
        return records_from_items(items)
    except (TypeError, ValidationError) as e:
        raise InputError(f"Invalid record in {path}: {e}") from e


def load_proof(path: str, proof_format: str = "binary") -> MerkleProof:
    """
    Load a proof written by the prove command.

    Raises:
        InputError: If the file is missing or not valid JSON
        ProofDecodeError: If the proof itself is malformed
    """
    if proof_format not in PROOF_FORMATS:
        raise InputError(f"Unknown proof format: {proof_format}")

    if proof_format == "json":
        try:
            return MerkleProof.from_dict(json.loads(_read_text(path)))
        except json.JSONDecodeError as e:
            raise InputError(f"Invalid JSON in {path}: {e}") from e

    if path == "-":
        return MerkleProof.from_bytes(sys.stdin.buffer.read())
    p = Path(path)
    if not p.exists():
        raise InputError(f"File not found: {p}")
    return MerkleProof.from_bytes(p.read_bytes())
