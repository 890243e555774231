"""Utility helpers for configuration file persistence."""

from __future__ import annotations

import os
from pathlib import Path


def write_text_file(path: Path, content: str) -> None:
    """Persist textual content ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    _ = path.write_text(content, encoding="utf-8")


def replace_text_file(path: Path, content: str) -> None:
    """Write ``content`` to a sibling temp file and swap it into place."""

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f"{path.name}.tmp")
    _ = temp_path.write_text(content, encoding="utf-8")
    os.replace(temp_path, path)


__all__ = ["replace_text_file", "write_text_file"]
