"""
Pytest configuration and fixtures for godot-export tests.
"""

import sys
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add the repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from godot_export.models.config import ExportConfig  # noqa: E402
from godot_export.models.export import ProcessResult  # noqa: E402

GODOT_URL = "https://example.com/Godot_v4.2.1-stable_linux.x86_64.zip"
TEMPLATES_URL = "https://example.com/Godot_v4.2.1-stable_export_templates.tpz"
VERSION_OUTPUT = "4.2.1.stable.official.b09f793f5\n"

PRESETS_CFG = """[preset.0]

name="Linux"
platform="Linux/X11"
runnable=true
export_path="build/game.x86_64"

[preset.0.options]

custom_template/debug=""

[preset.1]

name="Windows Desktop"
platform="Windows Desktop"
export_path="build/game.exe"

[preset.2]

name="Web"
platform="Web"
export_path=""
"""


def make_zip(path: Path, files: dict[str, str]) -> Path:
    """Writes a zip archive containing ``files`` (archive name -> text)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return path


@pytest.fixture
def project_dir(tmp_path):
    """A Godot project folder with three export presets."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "project.godot").write_text("config_version=5\n")
    (project / "export_presets.cfg").write_text(PRESETS_CFG)
    return project


@pytest.fixture
def config(tmp_path, project_dir):
    """A configuration whose paths all live under tmp_path."""
    return ExportConfig(
        godot_download_url=GODOT_URL,
        godot_templates_download_url=TEMPLATES_URL,
        relative_project_path=str(project_dir),
        working_path=tmp_path / "working",
        config_path=tmp_path / "config",
        cache_path=tmp_path / "cache",
        base_dir=tmp_path,
    )


@pytest.fixture
def engine_archive(tmp_path):
    return make_zip(
        tmp_path / "fixtures" / "godot.zip",
        {"Godot_v4.2.1-stable_linux.x86_64": "#!/bin/sh\n"},
    )


@pytest.fixture
def templates_archive(tmp_path):
    return make_zip(
        tmp_path / "fixtures" / "templates.tpz",
        {
            "templates/version.txt": "4.2.1.stable",
            "templates/linux_release.x86_64": "binary",
        },
    )


@pytest.fixture
def mock_runner():
    """A process runner that answers --version and succeeds for everything else."""
    runner = AsyncMock()

    async def run(command, args=(), cwd=None, capture_output=False):
        if list(args) == ["--version"]:
            return ProcessResult(exit_code=0, stdout=VERSION_OUTPUT)
        return ProcessResult(exit_code=0)

    runner.run.side_effect = run
    return runner
