"""
CLI Verify Command

Verify an inclusion proof offline against a trusted root.

Usage:
    merkle-ledger verify proof.bin --root 0x... [--format binary|json] [--json]

Exit codes: 0 verified, 2 not verified, 1 runtime error.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass
from typing import Any

from core.crypto.hashing import from_hex, to_hex
from core.merkle import compute_root_from_proof, verify_proof
from core.schemas.errors import ErrorCodes, MerkleLedgerError, MerkleLedgerException
from merkle_cli.inputs import InputError, load_proof


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of proof verification for CLI output."""
    proof_path: str = ""
    algorithm: str = ""
    index: int | None = None
    steps: int = 0
    claimed_root: str = ""
    computed_root: str | None = None
    ok: bool = False
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["error"] is None:
            del d["error"]
        return d


def parse_root(value: str) -> bytes:
    """Parse a root digest given as hex, with or without 0x prefix."""
    value = value.strip()
    if not value.startswith("0x"):
        value = "0x" + value
    return from_hex(value)


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"proof: {summary.proof_path}")
    print(f"algorithm: {summary.algorithm}")
    if summary.index is not None:
        print(f"index: {summary.index}")
    print(f"steps: {summary.steps}")
    print(f"claimed_root: {summary.claimed_root}")
    if summary.computed_root is not None:
        print(f"computed_root: {summary.computed_root}")
    print(f"verified: {str(summary.ok).lower()}")
    if summary.error:
        print(f"  ✗ {summary.error['code']}: {summary.error['message']}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        Exit code
    """
    config = args.cli_config
    output_json = args.json or config.default_output_format == "json"

    try:
        claimed_root = parse_root(args.root)
    except ValueError as e:
        print(f"Error: invalid --root: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        proof = load_proof(args.proof, args.format)
    except (InputError, MerkleLedgerException) as e:
        if args.debug:
            raise
        print(f"Error loading proof: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    ok = verify_proof(proof, claimed_root)

    summary = VerifySummary(
        proof_path=args.proof,
        algorithm=proof.algorithm,
        index=proof.index,
        steps=len(proof),
        claimed_root=to_hex(claimed_root),
        ok=ok,
    )
    try:
        summary.computed_root = to_hex(compute_root_from_proof(proof))
    except (TypeError, ValueError):
        summary.computed_root = None

    if not ok:
        mismatch_with_embedded = proof.root is not None and proof.root != claimed_root
        summary.error = MerkleLedgerError(
            code=ErrorCodes.ROOT_MISMATCH if mismatch_with_embedded else ErrorCodes.MERKLE_PROOF_INVALID,
            message=(
                "Proof was generated for a different root"
                if mismatch_with_embedded
                else "Recomputed root does not match claimed root"
            ),
        ).model_dump()

    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if ok:
        logger.info("Verification passed")
        return EXIT_SUCCESS
    logger.warning("Verification failed")
    return EXIT_VERIFICATION_FAILED
