"""Runs the vendoring tool that copies crate sources into the tree."""

from __future__ import annotations

from pathlib import Path

from .config import BumpConfig
from .errors import ProcessError
from .shell import run


def vendor_args(root: Path, config: BumpConfig, allow_large: bool) -> list[str]:
    """Build the vendor command line; the executable is relative to ``root``."""
    exe, *rest = config.vendor_command
    args = [str(root / exe), *rest]
    if allow_large:
        args.append(config.large_imports_flag)
    return args


def run_vendor(root: Path, config: BumpConfig, *, allow_large: bool = False) -> None:
    """Run ``mach vendor rust`` in the repository root.

    Args:
        root: Repository root; the tool runs from there.
        config: Vendor command and large-imports flag.
        allow_large: Pass the flag accepting unusually large crate imports.

    Raises:
        ProcessError: If the tool cannot be started or exits non-zero.
    """
    result = run(*vendor_args(root, config, allow_large), cwd=root)
    if result.returncode != 0:
        raise ProcessError(
            f"Error when running {' '.join(config.vendor_command)} "
            f"(exit code {result.returncode})"
        )
