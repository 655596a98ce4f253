"""CLI commands for riskledger.

This package provides the command-line interface for riskledger,
including account, movement, plan, trade and audit commands.
"""

from riskledger.cli.main import cli, main

__all__ = ["cli", "main"]
