"""
Tracks which export templates are staged locally via a sentinel file.
"""

import logging
import shutil
from pathlib import Path

from godot_export.models.export import TemplateStatus

log = logging.getLogger(__name__)

SENTINEL_FILENAME = "templates_version"


class TemplateVersionTracker:
    """
    Compares the staged templates against the version the current run requires.

    The sentinel file inside the templates directory stores the marker (the
    template download URL) of the templates that were last staged successfully.
    Only self-hosted runners keep templates between runs; on fresh runners the
    status is always MISSING.
    """

    def __init__(self, templates_dir: Path):
        self.templates_dir = templates_dir

    @property
    def sentinel_path(self) -> Path:
        return self.templates_dir / SENTINEL_FILENAME

    def check_status(self, required_marker: str) -> TemplateStatus:
        """Determines the status of the staged templates."""
        if self.sentinel_path.is_file():
            try:
                staged_marker = self.sentinel_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                log.warning(f"Could not read '{self.sentinel_path}': {e}")
                return TemplateStatus.UNKNOWN
            if staged_marker == required_marker:
                return TemplateStatus.UP_TO_DATE
            return TemplateStatus.OUTDATED

        if self.templates_dir.exists():
            # Templates folder exists but carries no version stamp
            return TemplateStatus.UNKNOWN

        return TemplateStatus.MISSING

    def remove_stale(self) -> bool:
        """
        Deletes the templates directory so that new templates can be extracted.

        Failures are logged and reported through the return value only; a broken
        extraction afterwards surfaces the underlying problem.
        """
        try:
            if self.templates_dir.is_dir():
                shutil.rmtree(self.templates_dir)
            elif self.templates_dir.exists():
                self.templates_dir.unlink()
            log.debug(f"Removed old templates at '{self.templates_dir}'.")
            return True
        except OSError as e:
            log.error(f"[red]Failed to remove old templates: {e}[/red]")
            return False

    def write_marker(self, marker: str) -> None:
        """Records ``marker`` as the version of the currently staged templates."""
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        self.sentinel_path.write_text(marker, encoding="utf-8")
