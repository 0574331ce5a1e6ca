"""
CLI command modules.
"""

from merkle_cli.commands import build, demo, prove, verify

__all__ = ["build", "demo", "prove", "verify"]
