"""Shared utility functions."""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgt]?i?b?)?\s*$", re.IGNORECASE)

_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
}


def home_dir() -> Path:
    """Return the user's home directory, honouring ``$HOME``."""
    return Path(os.environ.get("HOME") or Path.home())


def xdg_cache_home() -> Path:
    """Return XDG_CACHE_HOME, defaulting to ~/.cache."""
    return Path(os.environ.get("XDG_CACHE_HOME", home_dir() / ".cache"))


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", home_dir() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", home_dir() / ".local" / "share"))


def xdg_state_home() -> Path:
    """Return XDG_STATE_HOME, defaulting to ~/.local/state."""
    return Path(os.environ.get("XDG_STATE_HOME", home_dir() / ".local" / "state"))


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree.

    Raises ``OSError`` (``FileNotFoundError`` when the path is already gone).
    Symlinks are removed, never followed.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def parse_size(text: str | int) -> int:
    """Parse a size such as ``"100MB"``, ``"1.5 GiB"`` or ``4096`` into bytes.

    Units are binary (1 KB = 1024 bytes). Raises ``ValueError`` on bad input.
    """
    if isinstance(text, int):
        if text < 0:
            raise ValueError("Size cannot be negative")
        return text
    match = _SIZE_RE.match(str(text))
    if not match:
        raise ValueError(f"Invalid size: {text!r}")
    number, unit = match.groups()
    unit = (unit or "").lower().replace("i", "")
    multiplier = _SIZE_UNITS.get(unit.rstrip("b"))
    if multiplier is None:
        raise ValueError(f"Invalid size unit in {text!r}")
    return int(float(number) * multiplier)


def display_path(path: Path) -> str:
    """Shorten a path for display by replacing the home directory with ``~``."""
    try:
        return f"~/{path.relative_to(home_dir())}"
    except ValueError:
        return str(path)

