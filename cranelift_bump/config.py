"""Settings for cranelift-bump.

All names, paths, URLs and flags the tool depends on live in BumpConfig so a
different checkout layout (or a different backend crate) only needs a TOML
file instead of a code change.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import UsageError
from .toml import get_config_table, load_toml

CONFIG_TABLE = "cranelift-bump"

# Placeholders available to the bump and vendor commit messages
MESSAGE_FIELDS = ("bug", "commit", "version")


class BumpConfig(BaseModel):
    """Everything the pipeline needs to know about the embedding repository.

    Attributes:
        primary_crate: Dependency key rewritten with default features off.
        companion_crate: Second dependency key rewritten alongside it.
        primary_subdir: Directory of the primary crate in a local checkout.
        companion_subdir: Directory of the companion crate in a local checkout.
        local_subdir: Directory under the upstream checkout holding the crates.
        dependency_manifest: Nested manifest declaring the dependency,
            relative to the repository root.
        pin_manifest: Top-level manifest holding the patch section.
        patch_header_prefix: Prefix of the patch section headers to pin.
        pin_key: Field holding the commit id inside a patch section.
        pin_offset: Lines between a patch header and its pin field.
        pin_strategy: "positional" counts lines after the header, "keyed"
            parses the manifest and sets the field by name.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    primary_crate: str = "cranelift-codegen"
    companion_crate: str = "cranelift-wasm"
    primary_subdir: str = "codegen"
    companion_subdir: str = "wasm"
    local_subdir: str = "cranelift"

    dependency_manifest: str = "js/src/wasm/cranelift/Cargo.toml"
    pin_manifest: str = "Cargo.toml"
    patch_header_prefix: str = "[patch.crates-io.cranelift-"
    pin_key: str = "rev"
    pin_offset: int = Field(default=2, ge=1)
    pin_strategy: Literal["positional", "keyed"] = "positional"

    registry_url: str = "https://crates.io/api/v1/crates/{crate}"
    commit_url: str = "https://api.github.com/repos/{project}/commits/HEAD"
    upstream_project: str = "bytecodealliance/wasmtime"
    user_agent: str = "Mozilla/5.0 (X11; Linux x86_64; rv:68.0) Gecko Firefox/68.0"
    http_timeout: float = Field(default=30.0, gt=0)

    vcs_precedence: tuple[str, ...] = ("hg", "git")

    vendor_command: tuple[str, ...] = ("mach", "vendor", "rust")
    large_imports_flag: str = "--build-peers-said-large-imports-were-ok"

    default_jobs: int = Field(default=8, ge=1)
    test_harness: str = "js/src/jit-test/jit_test.py"
    test_shell: str = "dist/bin/js"
    shell_args: str = "--no-wasm-simd --shared-memory=off --wasm-compiler=cranelift"
    default_test_category: str = "wasm"

    bump_message: str = "Bug {bug} - Bump Cranelift to {commit}; r?"
    vendor_message: str = "Bug {bug} - Output of mach vendor rust; r?"
    local_bump_message: str = "No bug - do not check in - use local Cranelift"
    local_vendor_message: str = (
        "No bug - do not check in - result of mach vendor rust"
    )

    @field_validator("bump_message", "vendor_message")
    @classmethod
    def _check_placeholders(cls, template: str) -> str:
        try:
            template.format(**dict.fromkeys(MESSAGE_FIELDS, ""))
        except (AttributeError, IndexError, KeyError, ValueError) as exc:
            raise ValueError(
                f"bad placeholder {exc} in {template!r}; "
                f"available: {', '.join(MESSAGE_FIELDS)}"
            ) from exc
        return template


def load_config(path: Path | None = None) -> BumpConfig:
    """Load settings from a TOML file, falling back to defaults.

    The file may hold the keys at the top level or under a
    ``[tool.cranelift-bump]`` table (so they can live in an existing
    pyproject.toml).

    Raises:
        ManifestIOError: If the file cannot be read or parsed.
        UsageError: If it contains unknown keys or invalid values.
    """
    if path is None:
        return BumpConfig()

    doc = load_toml(path)
    table = get_config_table(doc, CONFIG_TABLE)
    try:
        return BumpConfig.model_validate(table)
    except ValidationError as exc:
        raise UsageError(f"Invalid configuration in {path}:\n{exc}") from exc
