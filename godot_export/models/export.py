"""
Data models describing export presets, staged templates and build results.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, field_validator


class TemplateStatus(str, Enum):
    """State of the locally staged export templates relative to the required version."""

    MISSING = "missing"
    OUTDATED = "outdated"
    UP_TO_DATE = "up-to-date"
    UNKNOWN = "unknown"

    @property
    def needs_download(self) -> bool:
        return self is not TemplateStatus.UP_TO_DATE

    @property
    def needs_cleanup(self) -> bool:
        """Stale templates must be removed before extracting new ones."""
        return self in (TemplateStatus.OUTDATED, TemplateStatus.UNKNOWN)


class ExportPreset(BaseModel):
    """A single export target as declared in export_presets.cfg."""

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    name: str
    export_path: str | None = None

    @field_validator("export_path")
    @classmethod
    def empty_path_is_none(cls, v: str | None) -> str | None:
        """Godot writes an empty string for presets without an output path."""
        return v or None


class BuildResult(BaseModel):
    """The outcome of one successfully exported preset."""

    class Config:
        """Pydantic model configuration."""

        frozen = True

    preset: ExportPreset
    sanitized_name: str
    executable_path: Path
    directory_entry_count: int
    directory: Path


@dataclass(frozen=True)
class GodotInstallation:
    """The discovered engine binary and the version it reports."""

    executable_path: Path
    version: str


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
