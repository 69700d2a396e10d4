"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from godot_export.models.config import ExportConfig
from godot_export.models.export import BuildResult, TemplateStatus
from godot_export.utils.formatting import format_duration


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Create export presets in the Godot editor (Project > Export).",
            "• Check RELATIVE_PROJECT_PATH points at the folder with project.godot.",
            "• Set GODOT_DOWNLOAD_URL and GODOT_TEMPLATES_DOWNLOAD_URL.",
        ],
        "AcquisitionError": [
            "• Verify the download URLs are reachable from the runner.",
            "• Make sure the templates archive matches the engine version.",
            "• Clear the cache with `godot-export clear-cache` and retry.",
        ],
        "DiscoveryError": [
            "• GODOT_DOWNLOAD_URL may point at a build for another platform.",
            "• Linux archives must contain a `.x86_64` or `.64` binary.",
        ],
        "ExportFailure": [
            "• Run with GODOT_VERBOSE=true for the engine's full output.",
            "• Check the preset's export templates are installed for this version.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -v for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_validation_table(config: ExportConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    def enabled(flag: bool) -> str:
        return "✓ Enabled" if flag else "✗ Disabled"

    table.add_row("Godot:", f"[dim]{config.godot_download_url}[/dim]")
    table.add_row("Templates:", f"[dim]{config.godot_templates_download_url}[/dim]")
    table.add_row("Project File:", str(config.project_file_path))
    table.add_row("Build Path:", str(config.build_path))
    table.add_row("Templates Path:", str(config.export_templates_path))
    table.add_row("Engine:", "Godot 3" if config.use_godot_3 else "Godot 4+")
    table.add_row("Debug Export:", enabled(config.export_debug))
    table.add_row("Pack Only:", enabled(config.export_pack_only))
    table.add_row("Cache:", enabled(config.cache_active))
    table.add_row(
        "Presets:",
        ", ".join(config.presets_to_export) if config.presets_to_export else "all",
    )

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_template_status(status: TemplateStatus, templates_path: str):
    colors = {
        TemplateStatus.UP_TO_DATE: "green",
        TemplateStatus.OUTDATED: "yellow",
        TemplateStatus.UNKNOWN: "yellow",
        TemplateStatus.MISSING: "red",
    }
    color = colors[status]
    Console().print(
        f"Templates at [dim]{templates_path}[/dim]: [{color}]{status.value}[/{color}]"
    )


def print_results_table(results: list[BuildResult], duration_s: float):
    """Displays the exported presets and where their artifacts were written."""
    console = Console()
    table = Table(title=f"Exported {len(results)} preset(s) in {format_duration(duration_s)}")
    table.add_column("#", style="dim")
    table.add_column("Preset", style="cyan")
    table.add_column("Output", style="white")
    table.add_column("Files", justify="right", style="green")

    for i, result in enumerate(results, 1):
        table.add_row(
            str(i),
            result.preset.name,
            str(result.executable_path),
            str(result.directory_entry_count),
        )
    console.print(table)
