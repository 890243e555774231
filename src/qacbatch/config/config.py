"""Configuration management for qacbatch."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, ClassVar

from qacbatch.config.file_ops import write_text_file
from qacbatch.config.paths import default_config_path
from qacbatch.platform.logging import logger


def _path_field(default: Path | None = None) -> Any:
    """Create a field for Path objects with proper conversion.

    Args:
        default: Default value for the field.

    Returns:
        Field with proper metadata for path handling.
    """
    return field(default=default, metadata={"path": True})


@dataclass
class Config:
    """Application configuration."""

    # External binaries and inputs
    xedit_binary: Path | None = _path_field()
    mo2_binary: Path | None = _path_field()
    load_order_file: Path | None = _path_field()
    data_folder: Path | None = _path_field()

    # Log file path
    log_file: Path | None = _path_field()

    # Cleaning behaviour
    selected_game: str = "unknown"
    mo2_mode: bool = False
    partial_forms: bool = False
    disable_skip_lists: bool = False
    cleaning_timeout: int = 300
    max_concurrent_subprocesses: int = 1

    # Backups
    backup_enabled: bool = True
    backup_max_sessions: int = 10

    # User skip lists keyed by game key (e.g. "SSE", "FO4")
    skip_lists: dict[str, list[str]] = field(default_factory=dict)

    _instance: ClassVar["Config | None"] = None
    _loaded_from: ClassVar[Path | None] = None

    def __post_init__(self) -> None:
        """Convert string paths to ``Path`` objects using field metadata."""

        for f in fields(self):
            if not f.metadata.get("path", False):
                continue
            value = getattr(self, f.name)
            if isinstance(value, str):
                setattr(self, f.name, Path(value) if value.strip() else None)

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        config_dict = asdict(self)

        for key, value in config_dict.items():
            if isinstance(value, Path):
                config_dict[key] = str(value)

        try:
            target = path or default_config_path()
            content = self._render_toml(config_dict)
            write_text_file(target, content)
            logger.info("Configuration saved to %s", target)
        except Exception as e:
            logger.error("Failed to save configuration: %s", e)
            raise

    def _render_toml(self, config: dict[str, Any]) -> str:
        """Render configuration as TOML with inline guidance."""

        lines: list[str] = []

        lines.append("# qacbatch Configuration File")
        lines.append("")

        lines.append("# xEdit executable (SSEEdit.exe, FO4Edit.exe, xEdit.exe, ...)")
        lines.append('# Example: xedit_binary = "C:/Modding/SSEEdit/SSEEdit.exe"')
        if config["xedit_binary"] is not None:
            lines.append(f"xedit_binary = {self._format_toml_value(config['xedit_binary'])}")
        lines.append("")

        lines.append("# Load order file listing the plugins to clean (plugins.txt / loadorder.txt)")
        if config["load_order_file"] is not None:
            lines.append(f"load_order_file = {self._format_toml_value(config['load_order_file'])}")
        lines.append("")

        lines.append("# Game Data folder used to resolve plugin paths (optional)")
        if config["data_folder"] is not None:
            lines.append(f"data_folder = {self._format_toml_value(config['data_folder'])}")
        lines.append("")

        lines.append("# Mod Organizer 2 (optional)")
        lines.append("# When mo2_mode is true xEdit is launched through ModOrganizer.exe")
        if config["mo2_binary"] is not None:
            lines.append(f"mo2_binary = {self._format_toml_value(config['mo2_binary'])}")
        lines.append(f"mo2_mode = {self._format_toml_value(config['mo2_mode'])}")
        lines.append("")

        lines.append("# Log file path (optional)")
        if config["log_file"] is not None:
            lines.append(f"log_file = {self._format_toml_value(config['log_file'])}")
        lines.append("")

        lines.append("# Cleaning behaviour")
        lines.append("# selected_game: unknown (auto-detect), oblivion, skyrim_le, skyrim_se, skyrim_vr,")
        lines.append("#                fallout3, fallout_nv, fallout4, fallout4_vr")
        lines.append(f"selected_game = {self._format_toml_value(config['selected_game'])}")
        lines.append(f"partial_forms = {self._format_toml_value(config['partial_forms'])}")
        lines.append(f"disable_skip_lists = {self._format_toml_value(config['disable_skip_lists'])}")
        lines.append("# Per-plugin timeout in seconds")
        lines.append(f"cleaning_timeout = {self._format_toml_value(config['cleaning_timeout'])}")
        lines.append("# xEdit locks its working files; keep this at 1")
        lines.append(
            "max_concurrent_subprocesses = "
            f"{self._format_toml_value(config['max_concurrent_subprocesses'])}"
        )
        lines.append("")

        lines.append("# Backups taken before each plugin is cleaned")
        lines.append(f"backup_enabled = {self._format_toml_value(config['backup_enabled'])}")
        lines.append(f"backup_max_sessions = {self._format_toml_value(config['backup_max_sessions'])}")
        lines.append("")

        lines.append("# User skip lists, merged with the bundled lists")
        lines.append("[skip_lists]")
        for key in sorted(config["skip_lists"]):
            lines.append(f"{key} = {self._format_toml_value(config['skip_lists'][key])}")
        lines.append("")

        return "\n".join(lines)

    def _format_toml_value(self, value: Any) -> str:
        """Format a value for TOML serialization.

        Args:
            value: Value to format

        Returns:
            str: Formatted value
        """
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self._format_toml_value(item) for item in value) + "]"
        if isinstance(value, (str, Path)):
            escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return str(value)

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load configuration from file.

        A missing file is created with defaults. Repeated calls for the same
        file return the cached instance.
        """
        config_file = path or default_config_path()

        if cls._instance is not None and cls._loaded_from == config_file:
            return cls._instance

        try:
            if config_file.exists():
                with open(config_file, "rb") as f:
                    config_dict = tomllib.load(f)

                known = {f.name for f in fields(cls)}
                unknown = sorted(set(config_dict) - known)
                if unknown:
                    logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))
                config_dict = {key: value for key, value in config_dict.items() if key in known}

                skip_lists = config_dict.get("skip_lists") or {}
                config_dict["skip_lists"] = {
                    str(key): [str(name) for name in names]
                    for key, names in skip_lists.items()
                    if isinstance(names, list)
                }

                logger.info("Configuration loaded from %s", config_file)
                instance = cls(**config_dict)
            else:
                instance = cls()
                instance.save(config_file)
                logger.info("Created default configuration at %s", config_file)

            cls._instance = instance
            cls._loaded_from = config_file
            return instance

        except Exception as e:
            logger.error("Failed to load configuration: %s", e)
            raise

    @classmethod
    def reset(cls) -> None:
        """Forget the cached instance so the next ``load`` re-reads disk."""

        cls._instance = None
        cls._loaded_from = None


__all__ = ["Config"]
