"""Command line interface for procspawn."""

from procspawn.cli.app import entrypoint, main

__all__ = ["entrypoint", "main"]
