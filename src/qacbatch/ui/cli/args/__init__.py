"""Command line argument handling package."""

from qacbatch.ui.cli.args.parser import ArgumentParser
from qacbatch.ui.cli.args.options import BackupsArgs, CleanArgs, CLIArgs, RestoreArgs

__all__ = ["ArgumentParser", "BackupsArgs", "CLIArgs", "CleanArgs", "RestoreArgs"]
