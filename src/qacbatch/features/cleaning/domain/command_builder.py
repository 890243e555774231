"""Where: src/qacbatch/features/cleaning/domain/command_builder.py
What: Build the xEdit Quick Auto Clean command line, optionally wrapped by Mod Organizer 2.
Why: Refuse to build a command for an unknown game instead of launching xEdit without its game flag.
"""

from __future__ import annotations

from pathlib import Path

from qacbatch.platform.process.models import ProcessCommand

from .games import GAME_FLAGS, GameType
from .models import PluginInfo

UNIVERSAL_XEDIT_PREFIX = "xedit"
PARTIAL_FORM_FLAGS: tuple[str, ...] = ("-iknowwhatimdoing", "-allowmakepartial")


def _quote(argument: str) -> str:
    if argument and " " not in argument and '"' not in argument:
        return argument
    return '"' + argument.replace('"', '\\"') + '"'


class XEditCommandBuilder:
    """Translate a plugin and game into a runnable :class:`ProcessCommand`."""

    def __init__(
        self,
        xedit_binary: Path | None,
        *,
        mo2_binary: Path | None = None,
        mo2_mode: bool = False,
        partial_forms: bool = False,
    ) -> None:
        self._xedit_binary = xedit_binary
        self._mo2_binary = mo2_binary
        self._mo2_mode = mo2_mode
        self._partial_forms = partial_forms

    def xedit_arguments(self, plugin: PluginInfo, game: GameType) -> list[str] | None:
        if self._xedit_binary is None or game is GameType.UNKNOWN:
            return None
        flag = GAME_FLAGS.get(game)
        if flag is None:
            return None

        arguments: list[str] = []
        # Game-specific binaries (SSEEdit, FO4Edit) imply their game.
        if self._xedit_binary.stem.lower().startswith(UNIVERSAL_XEDIT_PREFIX):
            arguments.append(flag)
        arguments.extend(["-QAC", "-autoexit", "-autoload", plugin.file_name])
        if self._partial_forms:
            arguments.extend(PARTIAL_FORM_FLAGS)
        return arguments

    def build(self, plugin: PluginInfo, game: GameType) -> ProcessCommand | None:
        """Return the command for ``plugin``, or ``None`` when it cannot be built safely."""

        if not plugin.file_name.strip():
            return None
        arguments = self.xedit_arguments(plugin, game)
        if arguments is None or self._xedit_binary is None:
            return None

        if not self._mo2_mode:
            return ProcessCommand(
                executable=self._xedit_binary,
                arguments=tuple(arguments),
                working_directory=self._xedit_binary.parent,
            )

        if self._mo2_binary is None:
            return None
        joined = " ".join(_quote(argument) for argument in arguments)
        return ProcessCommand(
            executable=self._mo2_binary,
            arguments=("run", str(self._xedit_binary), "-a", joined),
            working_directory=self._mo2_binary.parent,
        )


__all__ = ["XEditCommandBuilder"]
