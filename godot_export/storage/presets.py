"""
Reads export presets from a Godot project's export_presets.cfg.
"""

import configparser
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from godot_export.exceptions import ConfigurationError
from godot_export.models.config import EXPORT_PRESETS_FILENAME
from godot_export.models.export import ExportPreset

log = logging.getLogger(__name__)

PRESET_SECTION = re.compile(r"^preset\.\d+$")
COMMENT_PREFIXES = (";", "#")


def fold_multiline_values(text: str) -> str:
    """
    Joins values that span several lines into one line each.

    Godot writes strings with real line breaks (the default remote deploy
    scripts of desktop presets) and may break arrays and dictionaries across
    lines. configparser expects one line per key, so the breaks inside an open
    string or bracket are replaced by a literal ``\\n``.
    """
    logical_lines: list[str] = []
    pending: list[str] = []
    in_string = False
    depth = 0

    for line in text.splitlines():
        if not pending and line.lstrip().startswith(COMMENT_PREFIXES):
            logical_lines.append(line)
            continue

        pending.append(line)
        escaped = False
        for char in line:
            if escaped:
                escaped = False
            elif in_string:
                if char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char in "([{":
                depth += 1
            elif char in ")]}":
                depth = max(depth - 1, 0)

        if not in_string and depth == 0:
            logical_lines.append("\\n".join(pending))
            pending = []

    if pending:
        # Unterminated value at the end of the file
        logical_lines.append("\\n".join(pending))
    return "\n".join(logical_lines) + "\n"


def unquote(value: str) -> str:
    """Strips Godot's string quoting from a config value."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return value


class PresetSource:
    """Supplies the export presets declared in a project, in declaration order."""

    def __init__(self, project_path: Path):
        self.project_path = project_path

    @property
    def presets_file(self) -> Path:
        return self.project_path / EXPORT_PRESETS_FILENAME

    def has_presets(self) -> bool:
        return self.presets_file.is_file()

    def load(self, allowlist: Iterable[str] | None = None) -> list[ExportPreset]:
        """
        Parses the presets file.

        Args:
            allowlist: If given, only presets with one of these names are returned.

        Raises:
            ConfigurationError: If the file is missing or cannot be parsed.
        """
        if not self.has_presets():
            raise ConfigurationError(
                f"Could not find {EXPORT_PRESETS_FILENAME} in {self.project_path}"
            )

        try:
            text = self.presets_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Could not read {EXPORT_PRESETS_FILENAME}: {e}"
            ) from e

        parser = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            parser.read_string(
                fold_multiline_values(text), source=str(self.presets_file)
            )
        except configparser.Error as e:
            raise ConfigurationError(
                f"Error parsing {EXPORT_PRESETS_FILENAME}: {e}"
            ) from e

        wanted = set(allowlist) if allowlist is not None else None
        presets: list[ExportPreset] = []
        sections = [s for s in parser.sections() if PRESET_SECTION.match(s)]

        if not sections:
            log.warning(
                f"[yellow]No presets found in {EXPORT_PRESETS_FILENAME} at "
                f"{self.project_path}[/yellow]"
            )
            return presets

        for section_name in sections:
            section = parser[section_name]
            try:
                preset = ExportPreset(
                    name=unquote(section.get("name", "")),
                    export_path=unquote(section.get("export_path", "")),
                )
            except ValidationError as e:
                raise ConfigurationError(
                    f"Invalid preset in section [{section_name}]: {e}"
                ) from e

            # If no presets are specified, export all of them
            if wanted is None or preset.name in wanted:
                presets.append(preset)
            else:
                log.info(f"🚫 Skipping export preset \"{preset.name}\"")

        return presets
