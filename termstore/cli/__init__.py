"""Command line interface."""

from termstore.cli.main import cli

__all__ = ["cli"]
