"""Command line interface package."""

from qacbatch.ui.cli.cli import CommandProcessor, main

__all__ = ["CommandProcessor", "main"]
