"""
Runs external commands (the engine binary) as asynchronous subprocesses.
"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from godot_export.models.export import ProcessResult

log = logging.getLogger(__name__)


class ProcessRunner:
    """Runs a command to completion and reports its exit code."""

    async def run(
        self,
        command: str | Path,
        args: Sequence[str | Path] = (),
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> ProcessResult:
        """
        Runs ``command`` with ``args``.

        Output is streamed to the console unless ``capture_output`` is set, in
        which case stdout is collected and returned.

        Raises:
            OSError: If the command cannot be started.
        """
        argv = [str(command), *map(str, args)]
        log.debug(f"[dim]$ {' '.join(argv)}[/dim]")
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE if capture_output else None,
        )
        stdout, _ = await process.communicate()
        text = stdout.decode("utf-8", errors="replace") if stdout else ""
        return ProcessResult(exit_code=process.returncode, stdout=text)
