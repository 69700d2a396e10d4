"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

PROJECT_FILENAME = "project.godot"
EXPORT_PRESETS_FILENAME = "export_presets.cfg"

# Maps each setting to the environment variable it is read from
ENV_VARS = {
    "godot_download_url": "GODOT_DOWNLOAD_URL",
    "godot_templates_download_url": "GODOT_TEMPLATES_DOWNLOAD_URL",
    "relative_project_path": "RELATIVE_PROJECT_PATH",
    "working_path": "GODOT_WORKING_PATH",
    "config_path": "GODOT_CONFIG_PATH",
    "build_path": "GODOT_BUILD_PATH",
    "export_templates_path": "GODOT_EXPORT_TEMPLATES_PATH",
    "cache_path": "GODOT_CACHE_PATH",
    "export_debug": "EXPORT_DEBUG",
    "export_pack_only": "EXPORT_PACK_ONLY",
    "godot_verbose": "GODOT_VERBOSE",
    "use_godot_3": "USE_GODOT_3",
    "cache_active": "CACHE_ACTIVE",
    "presets_to_export": "PRESETS_TO_EXPORT",
    "wine_path": "WINE_PATH",
    "rcedit_path": "RCEDIT_PATH",
    "android_sdk_path": "ANDROID_SDK_PATH",
}


class ExportConfig(BaseModel):
    """A validated configuration model for an export run."""

    # Downloads
    godot_download_url: str
    godot_templates_download_url: str

    # Paths
    relative_project_path: str = "./"
    working_path: Path = Path("~/.local/share/godot")
    config_path: Path = Path("~/.config/godot")
    build_path: Path | None = None
    export_templates_path: Path | None = None
    cache_path: Path = Path("~/.cache/godot-export")

    # Export toggles
    export_debug: bool = False
    export_pack_only: bool = False
    godot_verbose: bool = False
    use_godot_3: bool = False
    cache_active: bool = True
    presets_to_export: list[str] | None = None

    # Platform specific settings
    wine_path: str | None = None
    rcedit_path: str | None = None
    android_sdk_path: str | None = None

    # Internal fields not loaded from the environment
    base_dir: Path = Field(default_factory=Path.cwd, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        validate_default = True
        str_strip_whitespace = True

    @field_validator("godot_download_url", "godot_templates_download_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensures download URLs are absolute http(s) URLs."""
        if not v:
            raise ValueError("Download URL cannot be empty.")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Download URL must use http or https, got: {v}")
        return v

    @field_validator("working_path", "config_path", "cache_path")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("build_path", "export_templates_path")
    @classmethod
    def expand_optional_user(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("presets_to_export", mode="before")
    @classmethod
    def split_presets(cls, v):
        """Accepts a comma-separated string as well as a list of preset names."""
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        names = [name.strip() for name in v if name and name.strip()]
        return names or None

    @field_validator("wine_path", "rcedit_path", "android_sdk_path")
    @classmethod
    def blank_is_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def fill_derived_paths(self) -> "ExportConfig":
        """Derives the build and templates directories from the working path."""
        # Bypass validate_assignment to avoid re-entering this validator
        if self.build_path is None:
            self.__dict__["build_path"] = self.working_path / "builds"
        if self.export_templates_path is None:
            templates_dir = "templates" if self.use_godot_3 else "export_templates"
            self.__dict__["export_templates_path"] = self.working_path / templates_dir
        return self

    @property
    def project_path(self) -> Path:
        return (self.base_dir / self.relative_project_path).resolve()

    @property
    def project_file_path(self) -> Path:
        return self.project_path / PROJECT_FILENAME

    @property
    def export_presets_path(self) -> Path:
        return self.project_path / EXPORT_PRESETS_FILENAME

    @property
    def editor_settings_filename(self) -> str:
        return "editor_settings-3.tres" if self.use_godot_3 else "editor_settings-4.tres"

    @property
    def editor_settings_path(self) -> Path:
        return self.config_path / self.editor_settings_filename

    @classmethod
    def get_env_keys(cls) -> dict[str, str]:
        """Returns the mapping of model fields to environment variable names."""
        return dict(ENV_VARS)
