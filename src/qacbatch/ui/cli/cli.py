"""Command line interface for QACBatch."""

import sys
from typing import final

from qacbatch.features.cleaning.domain.models import CleaningSessionResult
from qacbatch.platform.logging import logger
from qacbatch.ui.cli.args import ArgumentParser
from qacbatch.ui.cli.args.options import BackupsArgs, CleanArgs, CLIArgs, RestoreArgs
from qacbatch.ui.cli.commands import BackupsCommand, CleanCommand, PreviewCommand, RestoreCommand

EXIT_FAILURE = 1
EXIT_CANCELLED = 130


@final
class CommandProcessor:
    """Command line interface processor."""

    @staticmethod
    def process_command(args_list: list[str] | None = None) -> None:
        """Process command line arguments.

        Args:
            args_list: List of command line arguments (for testing).
        """
        try:
            args: CLIArgs = ArgumentParser.process_args(args_list)

            if isinstance(args, CleanArgs):
                if args.command == "preview":
                    _ = PreviewCommand(args).execute()
                    return
                result = CleanCommand(args).execute()
                exit_code = CommandProcessor.exit_code_for(result)
                if exit_code:
                    sys.exit(exit_code)
                return

            if isinstance(args, BackupsArgs):
                _ = BackupsCommand(args).execute()
                return

            assert isinstance(args, RestoreArgs)
            if RestoreCommand(args).execute() is None:
                sys.exit(EXIT_FAILURE)
            return

        except KeyboardInterrupt:
            logger.info("\nOperation cancelled by user")
            sys.exit(EXIT_CANCELLED)
        except Exception as e:
            logger.error("An unexpected error occurred: %s", str(e))
            sys.exit(EXIT_FAILURE)

    @staticmethod
    def exit_code_for(result: CleaningSessionResult) -> int:
        """0 on success, 130 when cancelled, 1 when aborted or any plugin failed."""

        if result.cancelled:
            return EXIT_CANCELLED
        if result.aborted or result.failed_count:
            return EXIT_FAILURE
        return 0


def main() -> int:
    """Main entry point.

    Returns:
        int: Process exit code (0 on success). Failures leave through
        ``sys.exit(...)`` inside command processing.
    """
    CommandProcessor.process_command()
    return 0
