"""
Exports every requested preset with the engine, one after another.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from godot_export.core.process import ProcessRunner
from godot_export.exceptions import ExportFailure
from godot_export.models.export import BuildResult, ExportPreset, GodotInstallation
from godot_export.utils.formatting import emoji_number
from godot_export.utils.groups import log_group
from godot_export.utils.path import count_entries, create_dir, sanitize_preset_name

log = logging.getLogger(__name__)

PACK_SUFFIX = ".pck"


def select_export_flag(debug: bool, pack_only: bool, use_godot_3: bool) -> str:
    """Picks the engine's export mode flag. Pack-only wins over debug/release."""
    if pack_only:
        return "--export-pack"
    if debug:
        return "--export-debug"
    # Godot 3 spells the release export without a suffix
    return "--export" if use_godot_3 else "--export-release"


class ExportOrchestrator:
    """
    Runs the engine once per preset and collects the results.

    Exports are strictly sequential: the engine cannot safely run several exports
    against the same project at once. The first failing export aborts the batch.
    """

    def __init__(
        self,
        installation: GodotInstallation,
        runner: ProcessRunner,
        project_file: Path,
        build_path: Path,
        debug: bool = False,
        pack_only: bool = False,
        use_godot_3: bool = False,
        verbose: bool = False,
    ):
        self.installation = installation
        self.runner = runner
        self.project_file = project_file
        self.build_path = build_path
        self.debug = debug
        self.pack_only = pack_only
        self.use_godot_3 = use_godot_3
        self.verbose = verbose

    @property
    def export_flag(self) -> str:
        return select_export_flag(self.debug, self.pack_only, self.use_godot_3)

    def build_args(self, preset: ExportPreset, output_path: Path) -> list[str]:
        args = [str(self.project_file)]
        if not self.use_godot_3:
            args.append("--headless")
        args += [self.export_flag, preset.name, str(output_path)]
        if self.verbose:
            args.append("--verbose")
        return args

    def output_path_for(self, preset: ExportPreset, build_dir: Path) -> Path | None:
        """Computes where the engine should write the preset's artifact."""
        if not preset.export_path:
            return None
        output_path = build_dir / Path(preset.export_path).name
        if self.pack_only:
            output_path = output_path.with_name(output_path.name + PACK_SUFFIX)
        return output_path

    async def export_all(self, presets: Sequence[ExportPreset]) -> list[BuildResult]:
        """
        Exports ``presets`` in order.

        Returns:
            One BuildResult per exported preset, in input order. Presets without an
            export path are skipped.

        Raises:
            ExportFailure: When an export exits non-zero. Remaining presets are not
            attempted and no results are returned.
        """
        build_results: list[BuildResult] = []
        log.info(f"🎯 Using project file at {self.project_file}")

        for index, preset in enumerate(presets, start=1):
            with log_group(f'{emoji_number(index)} Export binary for preset "{preset.name}"'):
                result = await self._export_preset(preset)
            if result is not None:
                build_results.append(result)

        return build_results

    async def _export_preset(self, preset: ExportPreset) -> BuildResult | None:
        sanitized_name = sanitize_preset_name(preset.name)
        build_dir = self.build_path / sanitized_name

        output_path = self.output_path_for(preset, build_dir)
        if output_path is None:
            log.warning(
                f'[yellow]No file path set for preset "{preset.name}". '
                "Skipping export![/yellow]"
            )
            return None

        create_dir(build_dir)
        try:
            result = await self.runner.run(
                self.installation.executable_path, self.build_args(preset, output_path)
            )
        except OSError as e:
            raise ExportFailure(
                f'Could not start the export of preset "{preset.name}": {e}',
                preset_name=preset.name,
            ) from e

        if result.exit_code != 0:
            raise ExportFailure(
                "1 or more exports failed",
                preset_name=preset.name,
                exit_code=result.exit_code,
            )

        return BuildResult(
            preset=preset,
            sanitized_name=sanitized_name,
            executable_path=output_path,
            directory_entry_count=count_entries(build_dir),
            directory=build_dir,
        )
