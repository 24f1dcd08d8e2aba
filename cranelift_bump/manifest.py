"""Manifest rewriting for a dependency bump.

Two files change during a bump:

- the nested manifest declaring the backend crates, whose declarations are
  replaced line by line with either a version or a local path;
- the top-level manifest, whose ``[patch.crates-io.<crate>]`` sections pin
  an upstream commit.

Both rewrites work on the full text and leave every other line exactly as
it was. Files are written to a temporary sibling and moved into place, so
an interrupted write never leaves a truncated manifest.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from .config import BumpConfig
from .errors import ManifestIOError
from .models import FixedVersion, PatchState, VersionSpec
from .toml import get_dependency_version, load_toml, set_pin_by_key


def read_manifest(path: Path) -> str:
    """Read a manifest, keeping its line endings untouched."""
    try:
        with open(path, newline="") as fh:
            return fh.read()
    except OSError as exc:
        raise ManifestIOError(f"couldn't read manifest {path}: {exc}") from exc


def write_manifest(path: Path, content: str) -> None:
    """Atomically replace ``path`` with ``content``.

    A symlinked manifest keeps its link; the new content lands on the target.
    """
    target = path.resolve()
    try:
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "w", newline="") as fh:
                fh.write(content)
            os.chmod(tmp, target.stat().st_mode & 0o777)
            os.replace(tmp, target)
        except BaseException:
            os.unlink(tmp)
            raise
    except OSError as exc:
        raise ManifestIOError(f"couldn't write manifest {path}: {exc}") from exc


def _replace_line(old: str, new: str) -> str:
    # Keep a CRLF line ending on the replaced line
    return new + "\r" if old.endswith("\r") else new


def _declares(line: str, crate: str) -> bool:
    return re.match(rf"{re.escape(crate)}\s*=", line) is not None


def _requirement(spec: VersionSpec, subdir: str) -> str:
    if isinstance(spec, FixedVersion):
        return f'version = "{spec.version}"'
    return f'path = "{spec.path.as_posix().rstrip("/")}/{subdir}"'


def rewrite_dependency_line(line: str, spec: VersionSpec, config: BumpConfig) -> str:
    """Rewrite one line of the nested manifest.

    Examples (default config):
        'cranelift-codegen = { version = "0.60.0", default-features = false }'
        with FixedVersion("0.61.0")
        → 'cranelift-codegen = { version = "0.61.0", default-features = false }'

        'cranelift-wasm = "0.60.0"' with LocalPath("/src/wasmtime/cranelift")
        → 'cranelift-wasm = { path = "/src/wasmtime/cranelift/wasm" }'
    """
    if _declares(line, config.primary_crate):
        req = _requirement(spec, config.primary_subdir)
        new = f"{config.primary_crate} = {{ {req}, default-features = false }}"
    elif _declares(line, config.companion_crate):
        req = _requirement(spec, config.companion_subdir)
        new = f"{config.companion_crate} = {{ {req} }}"
    else:
        return line
    return _replace_line(line, new)


def rewrite_dependency_content(
    content: str, spec: VersionSpec, config: BumpConfig
) -> str:
    """Apply rewrite_dependency_line() to every line of ``content``."""
    lines = content.split("\n")
    return "\n".join(rewrite_dependency_line(line, spec, config) for line in lines)


def rewrite_pin_content(
    content: str,
    commit: str,
    header_prefix: str,
    *,
    key: str = "rev",
    offset: int = 2,
) -> tuple[str, int]:
    """Replace the pin line sitting ``offset`` lines below each patch header.

    The pin line is found by position, not by name: by manifest convention
    a patch section reads ``[header]``, ``git = "..."``, ``rev = "..."``.
    A header seen while still counting restarts the count.

    Returns:
        Tuple of (new content, number of lines replaced).
    """
    state = PatchState()
    replaced = 0
    out: list[str] = []

    for line in content.split("\n"):
        state = state.advance()
        if state.at_target:
            out.append(_replace_line(line, f'{key} = "{commit}"'))
            replaced += 1
        else:
            out.append(line)
        if line.startswith(header_prefix):
            state = PatchState(remaining=offset)

    return "\n".join(out), replaced


def patch_dependency_manifest(
    path: Path, spec: VersionSpec, config: BumpConfig
) -> None:
    """Point the nested manifest's crate declarations at ``spec``."""
    content = read_manifest(path)
    write_manifest(path, rewrite_dependency_content(content, spec, config))


def patch_pin_manifest(path: Path, commit: str, config: BumpConfig) -> int:
    """Pin the top-level manifest's patch sections to ``commit``.

    Returns:
        Number of pin fields updated.
    """
    content = read_manifest(path)
    if config.pin_strategy == "keyed":
        new_content, replaced = set_pin_by_key(
            content, config.patch_header_prefix, config.pin_key, commit
        )
    else:
        new_content, replaced = rewrite_pin_content(
            content,
            commit,
            config.patch_header_prefix,
            key=config.pin_key,
            offset=config.pin_offset,
        )
    write_manifest(path, new_content)
    return replaced


def read_current_version(path: Path, config: BumpConfig) -> str | None:
    """Return the version the nested manifest currently declares, if any."""
    return get_dependency_version(load_toml(path), config.primary_crate)
