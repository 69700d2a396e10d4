"""
Acquisition Layer.

This package downloads the engine and its export templates (through the blob
cache when possible), extracts them and locates the engine binary.
"""

from .downloader import Downloader
from .fetcher import CachedFetcher
from .locator import ExecutableLocator, parse_godot_version
from .stager import ArchiveStager

__all__ = [
    "ArchiveStager",
    "CachedFetcher",
    "Downloader",
    "ExecutableLocator",
    "parse_godot_version",
]
