"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import json
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from godot_export import __version__
from godot_export.acquisition.downloader import close_connection_pool
from godot_export.core.pipeline import ExportPipeline
from godot_export.exceptions import GodotExportError
from godot_export.storage.cache import BlobCache
from godot_export.storage.config_manager import ConfigManager
from godot_export.storage.templates import TemplateVersionTracker

from .formatters import (
    print_results_table,
    print_template_status,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("godot_export")

app = typer.Typer(
    name="godot-export",
    help=(
        "Download Godot and its export templates, then export every preset of a"
        " project. Settings are read from the environment; options override them."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Godot CI export tool"""
    if version:
        console.print(f"[bold]godot-export[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 1:
        log_level = "DEBUG"
    logging.getLogger("godot_export").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="export")
def export_command(
    project: str | None = typer.Option(
        None,
        "-p",
        "--project",
        help="Path to the project folder (overrides RELATIVE_PROJECT_PATH).",
    ),
    presets: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--preset",
        help="Export only this preset. Repeat for several (overrides PRESETS_TO_EXPORT).",
    ),
    debug: bool | None = typer.Option(
        None, "--debug/--release", help="Export debug builds."
    ),
    pack_only: bool | None = typer.Option(
        None, "--pack-only/--full", help="Export only the .pck data pack."
    ),
    godot3: bool | None = typer.Option(
        None, "--godot3/--godot4", help="Use Godot 3 command-line conventions."
    ),
    cache: bool | None = typer.Option(
        None, "--cache/--no-cache", help="Restore and save downloads via the cache."
    ),
    godot_verbose: bool | None = typer.Option(
        None, "--godot-verbose", help="Pass --verbose to the engine."
    ),
    results_file: Path | None = typer.Option(  # noqa: B008
        None, "--results-file", help="Write the build results as JSON to this file."
    ),
):
    """Download Godot and export the project's presets."""
    cli_options = {
        "relative_project_path": project,
        "presets_to_export": presets or None,
        "export_debug": debug,
        "export_pack_only": pack_only,
        "use_godot_3": godot3,
        "cache_active": cache,
        "godot_verbose": godot_verbose,
    }
    config = ConfigManager().load_config(cli_options)

    async def _export_async():
        try:
            return await ExportPipeline(config).run()
        finally:
            await close_connection_pool()

    start_time = time.monotonic()
    results = asyncio.run(_export_async())
    duration = time.monotonic() - start_time

    print_results_table(results, duration)

    if results_file:
        payload = [result.model_dump(mode="json") for result in results]
        try:
            results_file.parent.mkdir(parents=True, exist_ok=True)
            results_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            raise GodotExportError(f"Could not write results file: {e}") from e
        console.print(f"[green]✓ Results written to '{results_file}'[/green]")


@app.command(name="check-templates")
def check_templates():
    """Show whether the staged export templates match the configured version."""
    config = ConfigManager().load_config()
    tracker = TemplateVersionTracker(config.export_templates_path)
    status = tracker.check_status(config.godot_templates_download_url)
    print_template_status(status, str(config.export_templates_path))


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager().load_config()
        print_validation_table(config)
    except GodotExportError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command(name="clear-cache")
def clear_cache():
    """Remove every cached engine and template archive."""
    config = ConfigManager().load_config()
    cache = BlobCache(config.cache_path)
    console.print("[cyan]Clearing download cache...[/cyan]")
    if cache.clear():
        console.print("[green]✓ Cache cleared successfully.[/green]")
    else:
        console.print("[red]✗ Failed to clear cache.[/red]")
        raise typer.Exit(code=1)
