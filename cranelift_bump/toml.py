"""TOML reading and writing utilities.

Uses tomlkit so a parsed manifest can be modified and written back with its
formatting and comments intact.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import ManifestIOError


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Raises:
        ManifestIOError: If the file is missing, unreadable or not TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except OSError as exc:
        raise ManifestIOError(f"couldn't read {path}: {exc}") from exc
    except TOMLKitError as exc:
        raise ManifestIOError(f"couldn't parse {path}: {exc}") from exc


def get_config_table(doc: tomlkit.TOMLDocument, name: str) -> dict[str, Any]:
    """Extract settings from either ``[tool.<name>]`` or the top level.

    Returns plain Python values so they can be validated by Pydantic.
    """
    tool = doc.get("tool", {}).get(name)
    if tool is not None:
        return dict(tool.unwrap())
    return dict(doc.unwrap())


def get_dependency_version(doc: tomlkit.TOMLDocument, crate: str) -> str | None:
    """Return the version a manifest declares for ``crate``.

    Handles both ``crate = "1.0"`` and ``crate = { version = "1.0", ... }``.
    Returns None if the crate is absent or declared by path.
    """
    dep = doc.get("dependencies", {}).get(crate)
    if isinstance(dep, str):
        return str(dep)
    if isinstance(dep, dict):
        version = dep.get("version")
        return str(version) if version is not None else None
    return None


def set_pin_by_key(
    content: str, header_prefix: str, key: str, value: str
) -> tuple[str, int]:
    """Set ``key`` in every table whose header starts with ``header_prefix``.

    ``header_prefix`` is written the way it appears in the file, e.g.
    ``[patch.crates-io.cranelift-``: all components but the last name
    parent tables, the last one is matched as a prefix of the table name.
    Only existing keys are changed; everything else keeps its exact bytes.

    Returns:
        Tuple of (new content, number of tables updated).

    Raises:
        ManifestIOError: If the content is not valid TOML.
    """
    try:
        doc = tomlkit.parse(content)
    except TOMLKitError as exc:
        raise ManifestIOError(f"couldn't parse manifest: {exc}") from exc

    *parents, name_prefix = header_prefix.strip("[]").split(".")
    table: Any = doc
    for part in parents:
        table = table.get(part)
        if not isinstance(table, dict):
            return content, 0

    updated = 0
    for name, section in table.items():
        if name.startswith(name_prefix) and isinstance(section, dict):
            if key in section:
                section[key] = value
                updated += 1

    return tomlkit.dumps(doc), updated
