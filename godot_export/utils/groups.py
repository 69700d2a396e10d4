"""
Collapsible log sections for CI runners.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager

log = logging.getLogger(__name__)


def running_in_github_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS", "").lower() == "true"


@contextmanager
def log_group(title: str) -> Iterator[None]:
    """
    Wraps a pipeline step in a collapsible group.

    On GitHub Actions the workflow commands are written to stdout directly, since
    the runner only recognises them at the start of a raw output line.
    """
    if running_in_github_actions():
        sys.stdout.write(f"::group::{title}\n")
        sys.stdout.flush()
        try:
            yield
        finally:
            sys.stdout.write("::endgroup::\n")
            sys.stdout.flush()
    else:
        log.info(f"[bold cyan]{title}[/bold cyan]")
        yield
