"""Courtside Interfaces - CLI."""

from courtside.interfaces.cli_app import cli, main

__all__ = [
    "cli",
    "main",
]
