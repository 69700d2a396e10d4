# =============================================================================
# GODOT-EXPORT PIPELINE TESTS
# =============================================================================
# End-to-end tests of acquisition, template reconciliation and export with the
# network and the engine replaced by fakes.
# =============================================================================

import asyncio
import shutil
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import TEMPLATES_URL
from godot_export.core.pipeline import ExportPipeline
from godot_export.exceptions import (
    AcquisitionError,
    ConfigurationError,
    DiscoveryError,
    ExportFailure,
)
from godot_export.models.export import ProcessResult, TemplateStatus
from godot_export.storage.templates import SENTINEL_FILENAME


def make_fetcher(engine_archive, templates_archive):
    """A fetcher that 'downloads' by copying local fixture archives."""
    fetcher = MagicMock()
    sources = {"godot-executable-": engine_archive, "godot-templates-": templates_archive}

    async def fetch(target_path, source_url, cache_key, restore_key_prefix):
        target_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(sources[restore_key_prefix], target_path)

    fetcher.fetch = AsyncMock(side_effect=fetch)
    return fetcher


def template_fetches(fetcher):
    return [c for c in fetcher.fetch.await_args_list if c.args[3] == "godot-templates-"]


@pytest.fixture
def fetcher(engine_archive, templates_archive):
    return make_fetcher(engine_archive, templates_archive)


class TestAcquire:
    """Test ExportPipeline.acquire."""

    @pytest.mark.asyncio
    async def test_fresh_acquisition(self, config, fetcher, mock_runner):
        pipeline = ExportPipeline(config, runner=mock_runner, fetcher=fetcher)

        installation = await pipeline.acquire()

        assert installation.executable_path.name == "Godot_v4.2.1-stable_linux.x86_64"
        assert installation.version == "4.2.1.stable"
        templates = config.export_templates_path
        assert (templates / "4.2.1.stable" / "linux_release.x86_64").is_file()
        assert (templates / SENTINEL_FILENAME).read_text() == TEMPLATES_URL
        assert fetcher.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_second_run_skips_templates(self, config, fetcher, mock_runner):
        """With an unchanged URL the templates are downloaded only once."""
        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()
        pipeline = ExportPipeline(config, runner=mock_runner, fetcher=fetcher)
        assert pipeline.tracker.check_status(TEMPLATES_URL) is TemplateStatus.UP_TO_DATE

        await pipeline.acquire()

        assert len(template_fetches(fetcher)) == 1

    @pytest.mark.asyncio
    async def test_outdated_templates_are_replaced(self, config, fetcher, mock_runner):
        templates = config.export_templates_path
        (templates / "3.5.stable").mkdir(parents=True)
        (templates / SENTINEL_FILENAME).write_text("https://example.com/old.tpz")

        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()

        assert not (templates / "3.5.stable").exists()
        assert (templates / "4.2.1.stable").is_dir()
        assert (templates / SENTINEL_FILENAME).read_text() == TEMPLATES_URL

    @pytest.mark.asyncio
    async def test_unknown_templates_are_replaced(self, config, fetcher, mock_runner):
        templates = config.export_templates_path
        (templates / "4.2.1.stable").mkdir(parents=True)
        (templates / "4.2.1.stable" / "partial").write_text("")

        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()

        assert not (templates / "4.2.1.stable" / "partial").exists()
        assert (templates / SENTINEL_FILENAME).read_text() == TEMPLATES_URL

    @pytest.mark.asyncio
    async def test_archive_without_engine_raises(self, config, tmp_path, templates_archive, mock_runner):
        from conftest import make_zip

        empty = make_zip(tmp_path / "fixtures" / "empty.zip", {"README.md": "hi"})
        fetcher = make_fetcher(empty, templates_archive)

        with pytest.raises(DiscoveryError):
            await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()

    @pytest.mark.asyncio
    async def test_unresolvable_version_raises(self, config, fetcher):
        runner = AsyncMock()
        runner.run.return_value = ProcessResult(exit_code=0, stdout="")

        with pytest.raises(AcquisitionError):
            await ExportPipeline(config, runner=runner, fetcher=fetcher).acquire()
        assert not (config.export_templates_path / SENTINEL_FILENAME).exists()

    @pytest.mark.asyncio
    async def test_downloads_run_concurrently(self, config, fetcher, mock_runner):
        """Each download only completes once the other one has started."""
        copy_archive = fetcher.fetch.side_effect
        started = {
            "godot-executable-": asyncio.Event(),
            "godot-templates-": asyncio.Event(),
        }

        async def fetch(target_path, source_url, cache_key, restore_key_prefix):
            started[restore_key_prefix].set()
            other = next(prefix for prefix in started if prefix != restore_key_prefix)
            await asyncio.wait_for(started[other].wait(), timeout=2)
            await copy_archive(target_path, source_url, cache_key, restore_key_prefix)

        fetcher.fetch = AsyncMock(side_effect=fetch)

        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()

        assert fetcher.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_download_cancels_the_other(self, config, mock_runner):
        templates_cancelled = asyncio.Event()

        async def fetch(target_path, source_url, cache_key, restore_key_prefix):
            if restore_key_prefix == "godot-executable-":
                await asyncio.sleep(0)
                raise AcquisitionError("Download failed")
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                templates_cancelled.set()
                raise

        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=fetch)

        with pytest.raises(AcquisitionError, match="Download failed"):
            await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()
        assert templates_cancelled.is_set()

    @pytest.mark.asyncio
    async def test_templates_from_other_url_are_not_stamped(self, config, fetcher, mock_runner):
        """A prefix match in the cache stages the templates without a sentinel."""
        copy_archive = fetcher.fetch.side_effect

        async def fetch(target_path, source_url, cache_key, restore_key_prefix):
            await copy_archive(target_path, source_url, cache_key, restore_key_prefix)
            if restore_key_prefix == "godot-templates-":
                return "godot-templates-https://example.com/old.tpz"
            return None

        fetcher.fetch = AsyncMock(side_effect=fetch)
        pipeline = ExportPipeline(config, runner=mock_runner, fetcher=fetcher)

        await pipeline.acquire()

        templates = config.export_templates_path
        assert (templates / "4.2.1.stable" / "linux_release.x86_64").is_file()
        assert not (templates / SENTINEL_FILENAME).exists()
        assert pipeline.tracker.check_status(TEMPLATES_URL) is TemplateStatus.UNKNOWN

    @pytest.mark.asyncio
    async def test_templates_from_exact_cache_key_are_stamped(self, config, fetcher, mock_runner):
        copy_archive = fetcher.fetch.side_effect

        async def fetch(target_path, source_url, cache_key, restore_key_prefix):
            await copy_archive(target_path, source_url, cache_key, restore_key_prefix)
            return cache_key

        fetcher.fetch = AsyncMock(side_effect=fetch)

        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).acquire()

        assert (config.export_templates_path / SENTINEL_FILENAME).read_text() == TEMPLATES_URL


class TestRun:
    """Test ExportPipeline.run."""

    @pytest.mark.asyncio
    async def test_missing_presets_fails_before_download(self, config, fetcher, mock_runner):
        (config.project_path / "export_presets.cfg").unlink()

        with pytest.raises(ConfigurationError):
            await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).run()

        fetcher.fetch.assert_not_awaited()
        mock_runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_full_run(self, config, fetcher, mock_runner):
        results = await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).run()

        # The Web preset has no export path and is skipped
        assert [r.preset.name for r in results] == ["Linux", "Windows Desktop"]
        assert results[1].directory == config.build_path / "Windows Desktop"
        assert config.editor_settings_path.is_file()

        calls = [c.args[1] for c in mock_runner.run.await_args_list]
        assert calls[0] == ["--version"]
        assert calls[1] == [str(config.project_file_path), "--headless", "-e", "--quit"]
        assert calls[2][2] == "--export-release"
        assert len(calls) == 4

    @pytest.mark.asyncio
    async def test_godot3_run_skips_import(self, config, fetcher, mock_runner):
        config = config.model_copy(update={"use_godot_3": True})

        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).run()

        calls = [c.args[1] for c in mock_runner.run.await_args_list]
        assert all("-e" not in args for args in calls)
        assert calls[1][1] == "--export"

    @pytest.mark.asyncio
    async def test_allowlist_limits_exports(self, config, fetcher, mock_runner):
        config = config.model_copy(update={"presets_to_export": ["Windows Desktop"]})

        results = await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).run()

        assert [r.preset.name for r in results] == ["Windows Desktop"]

    @pytest.mark.asyncio
    async def test_failed_import_raises(self, config, fetcher):
        runner = AsyncMock()

        async def run(command, args=(), cwd=None, capture_output=False):
            if list(args) == ["--version"]:
                return ProcessResult(exit_code=0, stdout="4.2.1.stable.official.b09f793f5")
            return ProcessResult(exit_code=1)

        runner.run.side_effect = run

        with pytest.raises(AcquisitionError):
            await ExportPipeline(config, runner=runner, fetcher=fetcher).run()

    @pytest.mark.asyncio
    async def test_export_failure_propagates(self, config, fetcher):
        runner = AsyncMock()

        async def run(command, args=(), cwd=None, capture_output=False):
            if list(args) == ["--version"]:
                return ProcessResult(exit_code=0, stdout="4.2.1.stable.official.b09f793f5")
            if "--export-release" in args:
                return ProcessResult(exit_code=2)
            return ProcessResult(exit_code=0)

        runner.run.side_effect = run

        with pytest.raises(ExportFailure):
            await ExportPipeline(config, runner=runner, fetcher=fetcher).run()

    @pytest.mark.asyncio
    async def test_platform_settings_written(self, config, fetcher, mock_runner):
        config = config.model_copy(
            update={"wine_path": "/usr/bin/wine", "android_sdk_path": "/opt/sdk"}
        )

        await ExportPipeline(config, runner=mock_runner, fetcher=fetcher).run()

        text = config.editor_settings_path.read_text()
        assert 'export/windows/wine = "/usr/bin/wine"' in text
        assert 'export/android/android_sdk_path = "/opt/sdk"' in text
