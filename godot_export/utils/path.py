"""
Utilities for handling file and directory paths.
"""

from pathlib import Path

from pathvalidate import sanitize_filename


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def sanitize_preset_name(name: str) -> str:
    """
    Turns a preset name into a single directory-name component that is valid on
    every platform the runner might use.
    """
    sanitized = sanitize_filename(name, platform="universal")
    return sanitized or "preset"


def count_entries(directory_path: Path) -> int:
    """Counts the immediate entries of a directory."""
    return sum(1 for _ in directory_path.iterdir())
