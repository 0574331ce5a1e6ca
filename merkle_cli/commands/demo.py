"""
CLI Demo Command

Build the four-transaction example tree, print every layer, then prove
and verify one transaction.

Usage:
    merkle-ledger demo [--index 2] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from typing import Any

from core.crypto.hashing import to_hex
from core.merkle import build_tree_from_records, generate_proof, verify_proof
from core.schemas.records import EXAMPLE_TRANSACTIONS


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def run_demo(index: int, hasher) -> dict[str, Any]:
    """Build the example tree and return a report of it and one proof."""
    records = [tx.to_record() for tx in EXAMPLE_TRANSACTIONS]
    tree = build_tree_from_records(records, hasher)
    proof = generate_proof(tree, index)
    ok = verify_proof(proof, tree.root)

    return {
        "transactions": [
            {"label": tx.label(), "record": record.decode("utf-8"), "leaf": to_hex(tree.leaf_digest(i))}
            for i, (tx, record) in enumerate(zip(EXAMPLE_TRANSACTIONS, records))
        ],
        "tree": tree.to_dict(include_layers=True),
        "proof": proof.to_dict(),
        "verified": ok,
    }


def demo_cmd(args: Namespace) -> int:
    """
    Execute the demo command.

    Returns:
        Exit code
    """
    hasher = args.cli_config.to_runtime_config().make_hasher()
    if not 0 <= args.index < len(EXAMPLE_TRANSACTIONS):
        print(f"Error: --index must be in [0, {len(EXAMPLE_TRANSACTIONS)})", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    report = run_demo(args.index, hasher)

    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        print("transactions:")
        for i, tx in enumerate(report["transactions"]):
            print(f"  [{i}] {tx['label']}  {tx['leaf']}")

        tree = report["tree"]
        print(f"\nheight: {tree['height']}")
        for n, layer in enumerate(tree["layers"]):
            print(f"layer {n}: " + ", ".join(d[:18] + "…" for d in layer))
        print(f"root: {tree['root']}")

        proof = report["proof"]
        print(f"\nproof for [{args.index}] ({len(proof['steps'])} steps):")
        for step in proof["steps"]:
            print(f"  {step['side']:>5}  {step['sibling']}")
        print(f"verified: {str(report['verified']).lower()}")

    logger.debug(f"Demo finished, verified={report['verified']}")
    return EXIT_SUCCESS if report["verified"] else EXIT_VERIFICATION_FAILED
