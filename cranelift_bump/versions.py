"""Version parsing and comparison utilities.

Crate versions are semver, so the registry's answer is validated with the
semver library before it is written into a manifest.
"""

from __future__ import annotations

import semver


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros, the way Cargo reads
    requirements:
    - "1" → "1.0.0"
    - "0.61" → "0.61.0"
    - "0.61.0" → "0.61.0"

    Raises:
        ValueError: If the string is not a valid version.
    """
    core, sep, rest = version_str.strip().partition("-")
    parts = core.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts) + sep + rest)


def is_valid_version(version_str: str) -> bool:
    """Return True if ``version_str`` is a full semver version."""
    return semver.Version.is_valid(version_str)


def describe_change(old: str | None, new: str) -> str:
    """Describe a version move for progress output.

    Examples:
        ("0.60.0", "0.61.0") → "0.60.0 → 0.61.0"
        ("0.61.0", "0.61.0") → "0.61.0 (unchanged)"
        ("0.62.0", "0.61.0") → "0.62.0 → 0.61.0 (downgrade)"
        (None, "0.61.0") → "0.61.0"
    """
    if old is None:
        return new
    try:
        cmp = parse_version(old).compare(parse_version(new))
    except ValueError:
        return f"{old} → {new}"
    if cmp == 0:
        return f"{new} (unchanged)"
    if cmp > 0:
        return f"{old} → {new} (downgrade)"
    return f"{old} → {new}"
