"""
Extracts the downloaded engine and template archives into the working directory.
"""

import logging
import shutil
import zipfile
from pathlib import Path

from godot_export.exceptions import AcquisitionError
from godot_export.storage.templates import TemplateVersionTracker
from godot_export.utils.path import create_dir

log = logging.getLogger(__name__)

GODOT_ZIP = "godot.zip"
GODOT_TEMPLATES_FILENAME = "godot_templates.tpz"
GODOT_EXECUTABLE_DIR = "godot_executable"
TEMPLATES_SCRATCH_DIR = "tmp"
ARCHIVE_TEMPLATES_DIR = "templates"


def extract_archive(archive_path: Path, destination: Path) -> None:
    """
    Extracts a zip archive (export template .tpz files are zips) into ``destination``.

    Raises:
        AcquisitionError: If the archive is missing or corrupt.
    """
    try:
        with zipfile.ZipFile(archive_path) as archive:
            archive.extractall(destination)
    except (zipfile.BadZipFile, OSError) as e:
        raise AcquisitionError(f"Failed to extract '{archive_path.name}': {e}") from e


class ArchiveStager:
    """Lays out the working directory used by discovery and export."""

    def __init__(self, working_path: Path, tracker: TemplateVersionTracker):
        self.working_path = working_path
        self.tracker = tracker

    @property
    def executable_archive(self) -> Path:
        return self.working_path / GODOT_ZIP

    @property
    def templates_archive(self) -> Path:
        return self.working_path / GODOT_TEMPLATES_FILENAME

    @property
    def executable_root(self) -> Path:
        return self.working_path / GODOT_EXECUTABLE_DIR

    def stage_executable(self, archive_path: Path) -> Path:
        """
        Extracts the engine archive, replacing any previous extraction.

        Returns:
            The directory the archive was extracted into.
        """
        staging_root = self.executable_root
        if staging_root.exists():
            shutil.rmtree(staging_root)
        extract_archive(archive_path, staging_root)
        log.debug(f"Extracted '{archive_path.name}' to {staging_root}")
        return staging_root

    def stage_templates(
        self, archive_path: Path, engine_version: str, marker: str | None
    ) -> Path:
        """
        Moves the templates from the archive into ``<templates_dir>/<engine_version>``.

        The sentinel is written last, so a failure at any earlier point leaves the
        templates marked as missing or outdated for the next run. Without a
        ``marker`` no sentinel is written at all.

        Returns:
            The version directory the templates were moved into.
        """
        scratch = self.working_path / TEMPLATES_SCRATCH_DIR
        if scratch.exists():
            shutil.rmtree(scratch)

        extract_archive(archive_path, scratch)
        extracted = scratch / ARCHIVE_TEMPLATES_DIR
        if not extracted.is_dir():
            raise AcquisitionError(
                f"'{archive_path.name}' does not contain a "
                f"'{ARCHIVE_TEMPLATES_DIR}' directory."
            )

        version_dir = self.tracker.templates_dir / engine_version
        try:
            create_dir(self.tracker.templates_dir)
            if version_dir.exists():
                shutil.rmtree(version_dir)
            shutil.move(str(extracted), str(version_dir))
        except OSError as e:
            raise AcquisitionError(
                f"Failed to move templates into '{version_dir}': {e}"
            ) from e
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

        if marker is not None:
            self.tracker.write_marker(marker)
        log.info(f"Staged export templates for {engine_version} at {version_dir}")
        return version_dir
