"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    merkle-ledger build RECORDS [--input-format lines|json] [--layers] [--json]
    merkle-ledger prove RECORDS --index N [--out PATH] [--format binary|json]
    merkle-ledger verify PROOF --root HEX [--format binary|json] [--json]
    merkle-ledger demo [--index N] [--json]
    merkle-ledger config --init | --show

Environment Variables:
    MERKLE_HASH_ALGORITHM   Hash algorithm (default: sha256)
    MERKLE_INPUT_FORMAT     Record input format: lines, json
    MERKLE_OUTPUT_FORMAT    Output format: human, json
    MERKLE_LOG_LEVEL        Log level (default: WARNING)
    MERKLE_LOG_FILE         Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from core.crypto.hashing import ALGORITHM_CODES
from merkle_cli import __version__
from merkle_cli.commands import build, demo, prove, verify
from merkle_cli.config import get_default_config_template, load_config
from merkle_cli.inputs import INPUT_FORMATS, PROOF_FORMATS


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="merkle-ledger",
        description="Build Merkle trees over records, generate and verify inclusion proofs.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./merkle-ledger.json or ~/.config/merkle-ledger/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--algorithm",
        type=str,
        default=None,
        choices=sorted(ALGORITHM_CODES),
        help="Hash algorithm (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build a tree and print its root",
        description="Hash every record into a leaf and fold the leaves into a Merkle tree.",
    )
    build_parser.add_argument("records", type=str, help="Records file ('-' for stdin)")
    build_parser.add_argument(
        "--input-format",
        type=str,
        choices=INPUT_FORMATS,
        default=None,
        help="Record file format (default: from config or lines)",
    )
    build_parser.add_argument(
        "--layers",
        action="store_true",
        default=False,
        help="Print every layer of the tree",
    )
    build_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    build_parser.add_argument("--debug", action="store_true", default=False, help="Debug mode")
    build_parser.set_defaults(func=build.build_cmd)

    # --- prove command ---
    prove_parser = subparsers.add_parser(
        "prove",
        help="Generate an inclusion proof for one record",
        description="Build the tree over RECORDS and write the proof for the record at --index.",
    )
    prove_parser.add_argument("records", type=str, help="Records file ('-' for stdin)")
    prove_parser.add_argument("--index", "-i", type=int, required=True, help="0-based record index")
    prove_parser.add_argument(
        "--input-format",
        type=str,
        choices=INPUT_FORMATS,
        default=None,
        help="Record file format (default: from config or lines)",
    )
    prove_parser.add_argument("--out", "-o", type=str, default=None, help="Output path for the proof")
    prove_parser.add_argument(
        "--format",
        type=str,
        choices=PROOF_FORMATS,
        default="binary",
        help="Proof file format (default: binary)",
    )
    prove_parser.add_argument("--debug", action="store_true", default=False, help="Debug mode")
    prove_parser.set_defaults(func=prove.prove_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify an inclusion proof against a root",
        description="Recompute the root from a proof and compare it with --root.",
    )
    verify_parser.add_argument("proof", type=str, help="Proof file ('-' for stdin)")
    verify_parser.add_argument("--root", "-r", type=str, required=True, help="Trusted root digest (hex)")
    verify_parser.add_argument(
        "--format",
        type=str,
        choices=PROOF_FORMATS,
        default="binary",
        help="Proof file format (default: binary)",
    )
    verify_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_parser.add_argument("--debug", action="store_true", default=False, help="Debug mode")
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- demo command ---
    demo_parser = subparsers.add_parser(
        "demo",
        help="Run the four-transaction example",
        description="Build the example transaction tree, print its layers, prove and verify one leaf.",
    )
    demo_parser.add_argument("--index", "-i", type=int, default=2, help="Transaction to prove (default: 2)")
    demo_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    demo_parser.set_defaults(func=demo.demo_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage CLI configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="merkle-ledger.json",
        help="Path for config file (default: merkle-ledger.json)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("You can also use environment variables (MERKLE_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(asdict(args.cli_config), indent=2))
        return EXIT_SUCCESS

    print("Usage: merkle-ledger config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.algorithm:
        config.hash_algorithm = args.algorithm

    runtime = config.to_runtime_config()
    try:
        setup_logging(
            level=args.log_level or runtime.logging.level,
            log_file=runtime.logging.file,
        )
    except OSError as e:
        print(f"Error opening log file: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
