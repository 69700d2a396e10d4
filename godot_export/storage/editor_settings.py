"""
Writes the editor settings the engine reads during a headless export.
"""

import logging
import os
import shutil
import stat
from importlib import resources
from pathlib import Path

from godot_export.utils.path import create_dir

log = logging.getLogger(__name__)

GRADLEW_RELATIVE_PATH = Path("android/build/gradlew")


class EditorSettings:
    """Seeds and extends the engine's editor settings file."""

    def __init__(self, settings_path: Path):
        self.settings_path = settings_path

    def install_defaults(self) -> bool:
        """
        Copies the bundled settings for this engine version into place.

        An existing settings file is never overwritten.

        Returns:
            True if the file was written.
        """
        create_dir(self.settings_path.parent)
        if self.settings_path.exists():
            log.info(f"Editor settings already present at {self.settings_path}")
            return False

        bundled = resources.files("godot_export") / "data" / self.settings_path.name
        with resources.as_file(bundled) as source:
            shutil.copyfile(source, self.settings_path)
        log.info(f"Wrote editor settings to {self.settings_path}")
        return True

    def append(self, settings: dict[str, str]) -> None:
        """Appends ``key = "value"`` lines to the settings file."""
        lines = [f'{key} = "{value}"\n' for key, value in settings.items()]
        with open(self.settings_path, "a", encoding="utf-8") as f:
            f.writelines(lines)
        for line in lines:
            log.info(line.rstrip())
        log.info(f"Wrote settings to {self.settings_path}")

    def configure_windows(self, wine_path: str, rcedit_path: str | None = None) -> None:
        settings = {}
        if rcedit_path:
            settings["export/windows/rcedit"] = rcedit_path
        settings["export/windows/wine"] = wine_path
        self.append(settings)

    def configure_android(self, android_sdk_path: str, project_path: Path) -> None:
        """Points the engine at the Android SDK and makes gradlew executable."""
        self.append({"export/android/android_sdk_path": android_sdk_path})

        # Without the executable bit the Gradle build fails in cryptic ways
        if os.name == "nt":
            return
        gradlew = project_path / GRADLEW_RELATIVE_PATH
        if not gradlew.exists():
            return
        try:
            make_executable(gradlew)
            log.info("Made gradlew executable.")
        except OSError as e:
            log.warning(
                "[yellow]Could not make gradlew executable. If you are getting cryptic "
                f"build errors with your Android export, this may be the cause. {e}"
                "[/yellow]"
            )


def make_executable(path: Path) -> None:
    """Adds the executable bits to ``path`` for everyone who can read it."""
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
