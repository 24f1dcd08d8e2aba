"""Build and test wrappers for a compiled tree.

Neither touches manifests or version control: `build` runs make in an
object directory, `test` runs the jit-test harness against the shell that
build produced.
"""

from __future__ import annotations

from pathlib import Path

from .config import BumpConfig
from .errors import ProcessError
from .shell import capture, run


def detect_jobs(default: int, cwd: Path) -> int:
    """Return the processor count reported by ``nproc``.

    Falls back to ``default`` when nproc is missing, fails, or prints
    something that is not a positive integer.
    """
    try:
        result = capture("nproc", cwd=cwd)
    except ProcessError:
        return default
    if result.returncode != 0:
        return default
    try:
        jobs = int(result.stdout.decode(errors="replace").strip())
    except ValueError:
        return default
    return jobs if jobs > 0 else default


def build(build_dir: Path, config: BumpConfig) -> None:
    """Run a silent parallel make in ``build_dir``.

    Raises:
        ProcessError: If make cannot be started or fails.
    """
    jobs = detect_jobs(config.default_jobs, build_dir)
    print(f"  make -sj{jobs} in {build_dir}")
    result = run("make", f"-sj{jobs}", cwd=build_dir)
    if result.returncode != 0:
        raise ProcessError(f"Error when running make (exit code {result.returncode})")


def harness_args(
    root: Path, build_dir: Path, config: BumpConfig, category: str | None = None
) -> list[str]:
    """Build the jit-test command line.

    The shell flags select the Cranelift wasm backend; ``category`` limits
    the run to one test directory (wasm by default).
    """
    return [
        str(root / config.test_harness),
        str(build_dir / config.test_shell),
        f"--args={config.shell_args}",
        category or config.default_test_category,
    ]


def run_tests(
    root: Path, build_dir: Path, config: BumpConfig, category: str | None = None
) -> None:
    """Run the jit-test harness against the shell in ``build_dir``.

    Raises:
        ProcessError: If the harness cannot be started or reports failures.
    """
    result = run(*harness_args(root, build_dir, config, category), cwd=root)
    if result.returncode != 0:
        raise ProcessError("Test failures!")
