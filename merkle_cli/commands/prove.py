"""
CLI Prove Command

Generate an inclusion proof for one record.

Usage:
    merkle-ledger prove records.txt --index 2 [--out proof.bin] [--format binary|json]

Without --out the proof is printed to stdout as JSON.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from core.merkle import build_tree_from_records, generate_proof
from core.schemas.errors import MerkleLedgerException
from merkle_cli.inputs import InputError, load_records


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def prove_cmd(args: Namespace) -> int:
    """
    Execute the prove command.

    Returns:
        Exit code
    """
    config = args.cli_config
    input_format = args.input_format or config.input_format

    try:
        records = load_records(args.records, input_format)
        hasher = config.to_runtime_config().make_hasher()
        tree = build_tree_from_records(records, hasher)
        proof = generate_proof(tree, args.index)
    except (InputError, MerkleLedgerException) as e:
        if args.debug:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.out is None:
        print(json.dumps(proof.to_dict(), indent=2))
        return EXIT_SUCCESS

    out_path = Path(args.out)
    if args.format == "json":
        out_path.write_text(json.dumps(proof.to_dict(), indent=2) + "\n", encoding="utf-8")
    else:
        out_path.write_bytes(proof.to_bytes())

    logger.info(f"Wrote {args.format} proof for leaf {args.index} to {out_path}")
    print(f"proof: {out_path}")
    print(f"index: {args.index}")
    print(f"steps: {len(proof)}")
    print(f"root: {tree.to_dict()['root']}")
    return EXIT_SUCCESS
