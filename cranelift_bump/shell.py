"""Subprocess wrappers and output formatting helpers.

Every command runs with an explicit working directory; the process-wide
current directory is never changed.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import ProcessError


def capture(*args: str, cwd: Path) -> subprocess.CompletedProcess[bytes]:
    """Run a command and capture its output as raw bytes.

    The exit status is not checked; callers inspect ``returncode`` and the
    captured streams themselves. Output is not decoded: a diff may hold
    files in any encoding.

    Raises:
        ProcessError: If the executable cannot be started.
    """
    try:
        return subprocess.run(args, cwd=cwd, capture_output=True)
    except OSError as exc:
        raise ProcessError(f"couldn't run {args[0]}: {exc}") from exc


def run(*args: str, cwd: Path) -> subprocess.CompletedProcess[bytes]:
    """Run a command, streaming its output to the terminal.

    Unlike capture(), output goes straight through so users can follow
    long-running tools like the vendor step or make.

    Raises:
        ProcessError: If the executable cannot be started.
    """
    try:
        return subprocess.run(args, cwd=cwd)
    except OSError as exc:
        raise ProcessError(f"couldn't run {args[0]}: {exc}") from exc


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the stages of a bump in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")
