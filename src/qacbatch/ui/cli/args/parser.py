"""Command line argument parser."""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import final

from qacbatch.config.config import Config
from qacbatch.features.cleaning.domain.games import GameType
from qacbatch.platform.logging import DEFAULT_LOG_FILE, logger, setup_logger
from qacbatch.ui.cli.args.options import BackupsArgs, CleanArgs, CLIArgs, RestoreArgs


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


@final
class ArgumentParser:
    """Command line argument parser."""

    @staticmethod
    def create_parser() -> argparse.ArgumentParser:
        """Create argument parser.

        Returns:
            argparse.ArgumentParser: Configured argument parser.
        """
        parser = argparse.ArgumentParser(
            description="QACBatch - run xEdit Quick Auto Clean over a whole load order.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        subparsers = parser.add_subparsers(dest="command", required=True)

        clean_parser = subparsers.add_parser(
            "clean",
            help="Clean every selected plugin in the load order, one at a time",
        )
        ArgumentParser._configure_session_parser(clean_parser)

        preview_parser = subparsers.add_parser(
            "preview",
            help="Show which plugins would be cleaned or skipped without running xEdit",
        )
        ArgumentParser._configure_session_parser(preview_parser)

        restore_parser = subparsers.add_parser(
            "restore",
            help="Restore plugins from a backup session",
        )
        _ = restore_parser.add_argument(
            "session",
            nargs="?",
            help="Backup session directory name (defaults to the newest session)",
            metavar="SESSION",
        )
        ArgumentParser._add_data_folder(restore_parser)
        ArgumentParser._add_verbosity(restore_parser)

        backups_parser = subparsers.add_parser(
            "backups",
            help="List backup sessions, newest first",
        )
        ArgumentParser._add_data_folder(backups_parser)
        ArgumentParser._add_verbosity(backups_parser)

        return parser

    @staticmethod
    def process_args(args_list: Sequence[str] | None = None) -> CLIArgs:
        """Process command line arguments.

        Args:
            args_list: List of command line arguments (for testing).

        Returns:
            Args: Processed command line arguments.

        Raises:
            SystemExit: If required paths don't exist or other validation fails.
        """
        parser = ArgumentParser.create_parser()
        parsed_args = parser.parse_args(args_list)

        # Set log level based on verbosity flags
        is_quiet = bool(getattr(parsed_args, "quiet", False))
        is_verbose = bool(getattr(parsed_args, "verbose", False))

        if is_quiet:
            log_level = logging.ERROR
        elif is_verbose:
            log_level = logging.DEBUG
        else:
            log_level = logging.INFO

        configuration = Config.load()
        log_file_path = configuration.log_file or DEFAULT_LOG_FILE
        _ = setup_logger(log_file=log_file_path, console_level=log_level)

        command: str = parsed_args.command

        if command in {"clean", "preview"}:
            return ArgumentParser._process_session(parsed_args)

        if command == "restore":
            return RestoreArgs(
                command="restore",
                session=parsed_args.session,
                data_folder=_optional_path(parsed_args.data_folder),
                verbose=parsed_args.verbose,
                quiet=parsed_args.quiet,
            )

        if command == "backups":
            return BackupsArgs(
                command="backups",
                data_folder=_optional_path(parsed_args.data_folder),
                verbose=parsed_args.verbose,
                quiet=parsed_args.quiet,
            )

        logger.error("Unsupported command: %s", command)
        sys.exit(2)

    @staticmethod
    def _add_data_folder(parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "--data-folder",
            type=str,
            help="Game Data folder (overrides data_folder in the configuration)",
            metavar="DATA_FOLDER",
        )

    @staticmethod
    def _add_verbosity(parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show detailed processing information",
        )
        _ = parser.add_argument(
            "--quiet",
            action="store_true",
            help="Suppress all output except errors",
        )

    @staticmethod
    def _configure_session_parser(parser: argparse.ArgumentParser) -> None:
        """Apply shared configuration for clean-style subparsers."""

        _ = parser.add_argument(
            "--load-order",
            type=str,
            help="plugins.txt or loadorder.txt to read (overrides load_order_file)",
            metavar="LOAD_ORDER_FILE",
        )
        _ = parser.add_argument(
            "--xedit",
            type=str,
            help="xEdit executable (overrides xedit_binary)",
            metavar="XEDIT",
        )
        _ = parser.add_argument(
            "--mo2-binary",
            type=str,
            help="ModOrganizer.exe used with --mo2 (overrides mo2_binary)",
            metavar="MO2",
        )
        ArgumentParser._add_data_folder(parser)
        _ = parser.add_argument(
            "--game",
            type=str,
            help="Game to clean for; detected from the xEdit name or load order when omitted",
            metavar="GAME",
        )
        _ = parser.add_argument(
            "--timeout",
            type=int,
            help="Per-plugin timeout in seconds (overrides cleaning_timeout)",
        )
        _ = parser.add_argument(
            "--partial-forms",
            action="store_true",
            help="Let xEdit create partial forms (experimental xEdit feature)",
        )
        _ = parser.add_argument(
            "--disable-skip-lists",
            action="store_true",
            help="Clean plugins even if they appear in a skip list",
        )
        _ = parser.add_argument(
            "--no-backup",
            action="store_true",
            help="Do not back up plugins before cleaning",
        )
        _ = parser.add_argument(
            "--mo2",
            action="store_true",
            help="Launch xEdit through Mod Organizer 2",
        )
        ArgumentParser._add_verbosity(parser)

    @staticmethod
    def _process_session(parsed_args: argparse.Namespace) -> CleanArgs:
        load_order_file = _optional_path(parsed_args.load_order)
        if load_order_file is not None and not load_order_file.is_file():
            logger.error("Load order file does not exist: %s", load_order_file)
            sys.exit(1)

        game: str | None = parsed_args.game
        if game is not None:
            try:
                _ = GameType.from_user_input(game)
            except ValueError as exc:
                logger.error("%s", exc)
                sys.exit(1)

        timeout: int | None = parsed_args.timeout
        if timeout is not None and timeout <= 0:
            logger.error("Timeout must be a positive integer; received %s", timeout)
            sys.exit(1)

        return CleanArgs(
            command=parsed_args.command,
            load_order_file=load_order_file,
            xedit_binary=_optional_path(parsed_args.xedit),
            mo2_binary=_optional_path(parsed_args.mo2_binary),
            data_folder=_optional_path(parsed_args.data_folder),
            game=game,
            timeout=timeout,
            partial_forms=parsed_args.partial_forms,
            disable_skip_lists=parsed_args.disable_skip_lists,
            no_backup=parsed_args.no_backup,
            mo2=parsed_args.mo2,
            verbose=parsed_args.verbose,
            quiet=parsed_args.quiet,
        )
