# =============================================================================
# GODOT-EXPORT PROCESS RUNNER TESTS
# =============================================================================

import sys

import pytest

from godot_export.core.process import ProcessRunner


class TestProcessRunner:
    """Test ProcessRunner.run with real subprocesses."""

    @pytest.mark.asyncio
    async def test_captures_stdout(self):
        result = await ProcessRunner().run(
            sys.executable, ["-c", "print('4.2.1.stable')"], capture_output=True
        )

        assert result.ok
        assert result.stdout.strip() == "4.2.1.stable"

    @pytest.mark.asyncio
    async def test_reports_exit_code(self):
        result = await ProcessRunner().run(sys.executable, ["-c", "raise SystemExit(3)"])

        assert result.exit_code == 3
        assert not result.ok
        assert result.stdout == ""

    @pytest.mark.asyncio
    async def test_runs_in_working_directory(self, tmp_path):
        result = await ProcessRunner().run(
            sys.executable,
            ["-c", "import os; print(os.getcwd())"],
            cwd=tmp_path,
            capture_output=True,
        )

        assert result.stdout.strip() == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_missing_command_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            await ProcessRunner().run(tmp_path / "no-such-godot")
