"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class GodotExportError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(GodotExportError):
    """Raised for missing export presets or an invalid environment configuration."""


class AcquisitionError(GodotExportError):
    """
    Raised when the engine or its templates cannot be downloaded, extracted or
    identified.
    """


class DiscoveryError(GodotExportError):
    """Raised when no runnable Godot executable exists in the extracted archive."""


class ExportFailure(GodotExportError):
    """Raised when the engine exits non-zero while exporting a preset."""

    def __init__(self, message: str, preset_name: str = "", exit_code: int = 1):
        super().__init__(message)
        self.preset_name = preset_name
        self.exit_code = exit_code
