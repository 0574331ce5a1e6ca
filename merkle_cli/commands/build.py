"""
CLI Build Command

Build a Merkle tree from a records file and print its root.

Usage:
    merkle-ledger build records.txt [--input-format lines|json] [--layers] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from core.merkle import MerkleTree, build_tree_from_records
from core.schemas.errors import MerkleLedgerException
from merkle_cli.inputs import InputError, load_records


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


@dataclass
class BuildSummary:
    """Summary of a tree build for CLI output."""
    records_path: str = ""
    algorithm: str = ""
    root: str = ""
    height: int = 0
    leaf_count: int = 0
    layers: list[list[str]] = field(default_factory=list)

    @classmethod
    def from_tree(cls, records_path: str, tree: MerkleTree, include_layers: bool = False) -> "BuildSummary":
        data = tree.to_dict(include_layers=include_layers)
        return cls(
            records_path=records_path,
            algorithm=data["algorithm"],
            root=data["root"],
            height=data["height"],
            leaf_count=data["leaf_count"],
            layers=data.get("layers", []),
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["layers"]:
            del d["layers"]
        return d


def print_summary_human(summary: BuildSummary) -> None:
    """Print summary in human-readable format."""
    print(f"records: {summary.records_path}")
    print(f"algorithm: {summary.algorithm}")
    print(f"leaf_count: {summary.leaf_count}")
    print(f"height: {summary.height}")
    print(f"root: {summary.root}")

    if summary.layers:
        for n, layer in enumerate(summary.layers):
            print(f"\nlayer {n} ({len(layer)} nodes):")
            for i, digest in enumerate(layer):
                print(f"  [{i}] {digest}")


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Returns:
        Exit code
    """
    config = args.cli_config
    input_format = args.input_format or config.input_format
    output_json = args.json or config.default_output_format == "json"

    try:
        records = load_records(args.records, input_format)
        hasher = config.to_runtime_config().make_hasher()
        tree = build_tree_from_records(records, hasher)
    except (InputError, MerkleLedgerException) as e:
        if args.debug:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(f"Built tree over {tree.leaf_count} records")

    summary = BuildSummary.from_tree(args.records, tree, include_layers=args.layers)
    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    return EXIT_SUCCESS
