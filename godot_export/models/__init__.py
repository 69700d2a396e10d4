"""
Data Models Layer.

This package contains the Pydantic models and value objects shared by the
acquisition, storage and export layers.
"""

from .config import ExportConfig
from .export import (
    BuildResult,
    ExportPreset,
    GodotInstallation,
    ProcessResult,
    TemplateStatus,
)

__all__ = [
    "BuildResult",
    "ExportConfig",
    "ExportPreset",
    "GodotInstallation",
    "ProcessResult",
    "TemplateStatus",
]
