"""
The top-level export run: acquire the engine, prepare the editor, export presets.
"""

import asyncio
import logging
from pathlib import Path

from godot_export.acquisition.downloader import Downloader
from godot_export.acquisition.fetcher import CachedFetcher
from godot_export.acquisition.locator import ExecutableLocator, parse_godot_version
from godot_export.acquisition.stager import ArchiveStager
from godot_export.core.orchestrator import ExportOrchestrator
from godot_export.core.process import ProcessRunner
from godot_export.exceptions import AcquisitionError, ConfigurationError, DiscoveryError
from godot_export.models.config import EXPORT_PRESETS_FILENAME, ExportConfig
from godot_export.models.export import BuildResult, GodotInstallation, TemplateStatus
from godot_export.storage.cache import BlobCache
from godot_export.storage.editor_settings import EditorSettings, make_executable
from godot_export.storage.presets import PresetSource
from godot_export.storage.templates import TemplateVersionTracker
from godot_export.utils.groups import log_group
from godot_export.utils.path import create_dir

log = logging.getLogger(__name__)

EXECUTABLE_CACHE_PREFIX = "godot-executable-"
TEMPLATES_CACHE_PREFIX = "godot-templates-"


async def run_all_or_cancel(coros) -> list:
    """
    Awaits ``coros`` concurrently and returns their results in order.

    If one of them fails, the others are cancelled and awaited before the
    first error is raised.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class ExportPipeline:
    """
    Orchestrates a complete export run.

    Order is strict: presets check, downloads, extraction, discovery, template
    staging, editor settings, project import, exports. Only the two downloads run
    concurrently.
    """

    def __init__(
        self,
        config: ExportConfig,
        runner: ProcessRunner | None = None,
        fetcher: CachedFetcher | None = None,
        locator: ExecutableLocator | None = None,
    ):
        self.config = config
        self.runner = runner or ProcessRunner()
        self.fetcher = fetcher or CachedFetcher(
            Downloader(), BlobCache(config.cache_path), config.cache_active
        )
        self.locator = locator or ExecutableLocator()
        self.tracker = TemplateVersionTracker(config.export_templates_path)
        self.stager = ArchiveStager(config.working_path, self.tracker)
        self.presets = PresetSource(config.project_path)
        self.editor_settings = EditorSettings(config.editor_settings_path)

    async def run(self) -> list[BuildResult]:
        """Runs the whole pipeline and returns the results of every export."""
        if not self.presets.has_presets():
            raise ConfigurationError(
                f"No {EXPORT_PRESETS_FILENAME} found. Please ensure you have defined "
                "at least one export via the Godot editor."
            )
        presets = self.presets.load(self.config.presets_to_export)

        with log_group("🕹️ Downloading Godot"):
            installation = await self.acquire()

        with log_group("🔍 Adding Editor Settings"):
            self.editor_settings.install_defaults()

        if self.config.wine_path:
            with log_group("📝 Appending Wine editor settings"):
                self.editor_settings.configure_windows(
                    self.config.wine_path, self.config.rcedit_path
                )

        if self.config.android_sdk_path:
            with log_group("📝 Appending Android editor settings"):
                self.editor_settings.configure_android(
                    self.config.android_sdk_path, self.config.project_path
                )

        if not self.config.use_godot_3:
            with log_group("🎲 Import project"):
                await self.import_project(installation)

        orchestrator = ExportOrchestrator(
            installation,
            self.runner,
            project_file=self.config.project_file_path,
            build_path=self.config.build_path,
            debug=self.config.export_debug,
            pack_only=self.config.export_pack_only,
            use_godot_3=self.config.use_godot_3,
            verbose=self.config.godot_verbose,
        )
        return await orchestrator.export_all(presets)

    async def acquire(self) -> GodotInstallation:
        """
        Makes the engine and matching export templates available locally.

        Templates are only downloaded and re-staged when the sentinel shows they
        are not already up to date.
        """
        create_dir(self.config.working_path)
        log.info(f"Working path created {self.config.working_path}")

        marker = self.config.godot_templates_download_url
        status = self.tracker.check_status(marker)

        # Missing templates are downloaded at the same time as the executable
        downloads = [self.download_executable()]
        if status.needs_download:
            log.info(f"Godot templates status: {status.value}")
            downloads.append(self.download_templates())
        results = await run_all_or_cancel(downloads)

        installation = await self.prepare_executable()

        if status is TemplateStatus.UP_TO_DATE:
            log.info("Godot templates are up to date.")
            return installation

        # Templates restored from a cache entry for another URL are not stamped
        templates_marker = marker if results[1] else None

        if status.needs_cleanup:
            # Extraction fails if the templates folder already exists
            self.tracker.remove_stale()

        await asyncio.to_thread(
            self.stager.stage_templates,
            self.stager.templates_archive,
            installation.version,
            templates_marker,
        )
        return installation

    async def download_executable(self) -> None:
        url = self.config.godot_download_url
        await self.fetcher.fetch(
            self.stager.executable_archive,
            url,
            f"{EXECUTABLE_CACHE_PREFIX}{url}",
            EXECUTABLE_CACHE_PREFIX,
        )

    async def download_templates(self) -> bool:
        """
        Fetches the templates archive.

        Returns:
            False if the archive was restored from a cache entry saved for a
            different templates URL.
        """
        url = self.config.godot_templates_download_url
        cache_key = f"{TEMPLATES_CACHE_PREFIX}{url}"
        restored_key = await self.fetcher.fetch(
            self.stager.templates_archive, url, cache_key, TEMPLATES_CACHE_PREFIX
        )
        if restored_key is not None and restored_key != cache_key:
            log.warning(
                f"[yellow]Export templates were restored from '{restored_key}', "
                "which was cached for a different URL. They are staged without "
                "a version stamp and will be checked again on the next run.[/yellow]"
            )
            return False
        return True

    async def prepare_executable(self) -> GodotInstallation:
        """Extracts the engine, locates its binary and asks it for its version."""
        staging_root = await asyncio.to_thread(
            self.stager.stage_executable, self.stager.executable_archive
        )
        executable_path = self.locator.locate(staging_root)
        try:
            make_executable(executable_path)
        except OSError as e:
            raise DiscoveryError(
                f"Godot executable at '{executable_path}' is not usable: {e}"
            ) from e

        version = await self.resolve_version(executable_path)
        log.info(f"Godot version: {version}")
        return GodotInstallation(executable_path=executable_path, version=version)

    async def resolve_version(self, executable_path: Path) -> str:
        """Runs ``godot --version``; the exit code is ignored, only stdout matters."""
        try:
            result = await self.runner.run(
                executable_path, ["--version"], capture_output=True
            )
        except OSError as e:
            raise AcquisitionError(f"Could not run Godot to read its version: {e}") from e
        return parse_godot_version(result.stdout)

    async def import_project(self, installation: GodotInstallation) -> None:
        """
        Opens the editor headless once so that every asset is imported and the
        project's `.godot` directory exists before exporting.
        """
        args = [str(self.config.project_file_path), "--headless", "-e", "--quit"]
        try:
            result = await self.runner.run(installation.executable_path, args)
        except OSError as e:
            raise AcquisitionError(f"Could not start the project import: {e}") from e
        if result.exit_code != 0:
            raise AcquisitionError(
                f"Project import failed with exit code {result.exit_code}."
            )
