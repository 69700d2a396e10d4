"""
Storage Layer.

This package handles all local state: the download cache, the staged template
version, the project's export presets, the editor settings file and the
environment configuration.
"""

from .cache import BlobCache
from .config_manager import ConfigManager
from .editor_settings import EditorSettings
from .presets import PresetSource
from .templates import TemplateVersionTracker

__all__ = [
    "BlobCache",
    "ConfigManager",
    "EditorSettings",
    "PresetSource",
    "TemplateVersionTracker",
]
