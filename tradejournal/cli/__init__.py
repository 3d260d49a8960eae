"""CLI commands for tradejournal.

This package provides the command-line interface for recording
positions, reviewing portfolio analytics and valuing stocks.
"""

from tradejournal.cli.main import cli, main

__all__ = ["cli", "main"]
