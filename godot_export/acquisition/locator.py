"""
Finds the Godot executable inside an extracted engine archive and identifies its
version.
"""

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from godot_export.exceptions import AcquisitionError, DiscoveryError

log = logging.getLogger(__name__)

LINUX_SUFFIXES = (".x86_64", ".64", ".arm64", ".x86_32", ".32")

# https://docs.godotengine.org/en/stable/tutorials/editor/command_line_tutorial.html
MACOS_BUNDLE_BINARY = Path("Contents/MacOS/Godot")


@dataclass(frozen=True)
class ExecutableConvention:
    """How the engine binary is recognised on one host platform."""

    file_suffixes: tuple[str, ...] = ()
    bundle_suffix: str | None = None
    bundle_binary: Path | None = None

    def match(self, entry: Path) -> Path | None:
        """Returns the runnable path for ``entry``, or None if it is not the engine."""
        if entry.is_file() and entry.suffix in self.file_suffixes:
            return entry
        if self.bundle_suffix and entry.is_dir() and entry.suffix == self.bundle_suffix:
            return entry / self.bundle_binary
        return None


CONVENTIONS = {
    "linux": ExecutableConvention(file_suffixes=LINUX_SUFFIXES),
    "darwin": ExecutableConvention(
        file_suffixes=LINUX_SUFFIXES,
        bundle_suffix=".app",
        bundle_binary=MACOS_BUNDLE_BINARY,
    ),
    "win32": ExecutableConvention(file_suffixes=(".exe",)),
}


def convention_for(platform: str) -> ExecutableConvention:
    for prefix, convention in CONVENTIONS.items():
        if platform.startswith(prefix):
            return convention
    return CONVENTIONS["linux"]


class ExecutableLocator:
    """
    Walks a staging directory looking for the engine binary of the host platform.

    Matches in a directory take precedence over anything nested below it.
    Subdirectories are searched depth-first in sorted order, so an archive with
    several top-level folders is still searched completely. Symlinked
    directories are not followed.
    """

    def __init__(self, platform: str | None = None):
        self.platform = platform or sys.platform
        self.convention = convention_for(self.platform)

    def locate(self, base_dir: Path) -> Path:
        """
        Returns the path of the engine executable below ``base_dir``.

        Raises:
            DiscoveryError: If no candidate exists anywhere in the tree.
        """
        stack = [base_dir]
        while stack:
            directory = stack.pop()
            try:
                entries = sorted(directory.iterdir())
            except OSError as e:
                log.debug(f"Cannot list '{directory}': {e}")
                continue

            subdirectories = []
            for entry in entries:
                hit = self.convention.match(entry)
                if hit is not None:
                    log.info(f"Found executable at {hit}")
                    return hit
                if entry.is_dir() and not entry.is_symlink():
                    subdirectories.append(entry)

            # Reversed so the first subdirectory is popped first
            stack.extend(reversed(subdirectories))

        raise DiscoveryError(f"Could not find Godot executable in '{base_dir}'")


def parse_godot_version(output: str) -> str:
    """
    Extracts the version from ``godot --version`` output.

    The last non-blank line is used, e.g. ``4.2.1.stable.official.b09f793f5``
    becomes ``4.2.1.stable``, which is also the name of the templates folder the
    engine looks for.

    Raises:
        AcquisitionError: If no version can be determined.
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        raise AcquisitionError("Godot version could not be determined.")
    version = lines[-1].replace(".official", "")
    version = re.sub(r"\.[a-z0-9]{9}$", "", version)
    if not version:
        raise AcquisitionError("Godot version could not be determined.")
    return version
