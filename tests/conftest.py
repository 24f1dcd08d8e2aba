"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from cranelift_bump.config import BumpConfig

DEPENDENCY_MANIFEST = """\
[package]
name = "cranelift"
version = "0.1.0"
authors = ["The Spidermonkey and Cranelift developers"]
edition = "2018"

[lib]
crate-type = ["rlib"]
name = "baldrdash"

[dependencies]
cranelift-codegen = { version = "0.60.0", default-features = false }
cranelift-wasm = "0.60.0"
log = { version = "0.4.6", default-features = false, features = ["release_max_level_info"] }
env_logger = "0.6"
smallvec = "1.0"
"""

PIN_MANIFEST = """\
[workspace]
members = ["js/src", "js/rust"]

[profile.release]
opt-level = 2

[patch.crates-io]
libudev-sys = { path = "dom/webauthn/libudev-sys" }

[patch.crates-io.packed_simd]
git = "https://github.com/hsivonen/packed_simd"
rev = "abcdef0"

[patch.crates-io.cranelift-codegen]
git = "https://github.com/bytecodealliance/wasmtime"
rev = "abcdef0"

[patch.crates-io.cranelift-wasm]
git = "https://github.com/bytecodealliance/wasmtime"
rev = "abcdef0"
"""


@pytest.fixture
def config() -> BumpConfig:
    """Default settings."""
    return BumpConfig()


@pytest.fixture
def gecko_repo(tmp_path: Path) -> Path:
    """Create a Mercurial-looking Gecko checkout with both manifests."""
    root = tmp_path / "gecko"
    (root / ".hg").mkdir(parents=True)
    nested = root / "js" / "src" / "wasm" / "cranelift"
    nested.mkdir(parents=True)
    (nested / "Cargo.toml").write_text(DEPENDENCY_MANIFEST)
    (root / "Cargo.toml").write_text(PIN_MANIFEST)
    return root


@pytest.fixture
def dependency_manifest() -> str:
    """Text of the nested manifest declaring the Cranelift crates."""
    return DEPENDENCY_MANIFEST


@pytest.fixture
def pin_manifest() -> str:
    """Text of the top-level manifest pinning the upstream commit."""
    return PIN_MANIFEST
