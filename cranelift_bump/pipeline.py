"""Bump pipeline: check → resolve → patch → commit → vendor → commit.

This module orchestrates a Cranelift bump in a Gecko checkout:
1. Detect the version control system and make sure the tree is clean
2. Resolve what to bump to: the latest crates.io release and upstream
   commit (`bump`), or a local wasmtime checkout (`local`)
3. Rewrite the nested Cranelift manifest and the top-level patch pin
4. Commit the manifest change
5. Run `mach vendor rust` to pull the new crate sources into the tree
6. Commit the vendored sources

There is no rollback. Completed stages are recorded in a BumpReport, and a
failing stage raises PipelineError listing them so the operator can resume
or revert by hand. `build` and `test` are separate one-step flows.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .config import BumpConfig
from .errors import BumpError, PipelineError, PreconditionError
from .manifest import (
    patch_dependency_manifest,
    patch_pin_manifest,
    read_current_version,
)
from .models import BumpReport, FixedVersion, LocalPath, ManifestTarget, VersionSpec
from .resolver import VersionResolver
from .runners import build, run_tests
from .shell import step
from .vcs import RepositoryBackend, detect_repository
from .vendor import run_vendor
from .versions import describe_change


@contextmanager
def stage(report: BumpReport, name: str) -> Iterator[None]:
    """Run one pipeline stage, recording it in ``report`` on success."""
    step(name)
    try:
        yield
    except PipelineError:
        raise
    except BumpError as exc:
        raise PipelineError(name, exc, report) from exc
    report.completed.append(name)


def check_repository(root: Path, config: BumpConfig) -> RepositoryBackend:
    """Detect the repository's VCS and require a clean working tree.

    Raises:
        PreconditionError: If the directory is not a repository or has
            uncommitted changes.
    """
    repo = detect_repository(root, config.vcs_precedence)
    print(f"  {repo.kind} repository at {root}")
    if repo.has_diff():
        raise PreconditionError(
            "Diff isn't empty! Aborting, please make sure the repository is "
            "clean before running this script."
        )
    return repo


def manifest_targets(root: Path, config: BumpConfig) -> list[ManifestTarget]:
    """Return the nested dependency manifest and the top-level pin manifest."""
    return [
        ManifestTarget(path=root / config.dependency_manifest, rule="dependency"),
        ManifestTarget(path=root / config.pin_manifest, rule="pin"),
    ]


def patch_manifests(
    targets: list[ManifestTarget],
    spec: VersionSpec,
    commit: str | None,
    config: BumpConfig,
) -> None:
    """Apply ``spec`` to the dependency manifest and ``commit`` to the pin.

    The pin target is skipped when ``commit`` is None (local checkouts
    have no upstream commit to pin).
    """
    for target in targets:
        if target.rule == "dependency":
            if isinstance(spec, FixedVersion):
                old = read_current_version(target.path, config)
                print(f"  {config.primary_crate}: {describe_change(old, spec.version)}")
            else:
                print(f"  {config.primary_crate}: {spec.path}")
            patch_dependency_manifest(target.path, spec, config)
        elif commit is not None:
            replaced = patch_pin_manifest(target.path, commit, config)
            print(f"  {config.pin_key} = {commit} ({replaced} sections)")


def vendor_and_commit(
    repo: RepositoryBackend,
    report: BumpReport,
    config: BumpConfig,
    *,
    bump_message: str,
    vendor_message: str,
    allow_large: bool,
) -> None:
    """Run the stages shared by bump and local once manifests are patched."""
    with stage(report, "Committing bump patch"):
        repo.commit(bump_message)

    with stage(report, "Running mach vendor rust"):
        run_vendor(repo.root, config, allow_large=allow_large)

    with stage(report, "Committing vendor patch"):
        repo.commit(vendor_message)


def run_bump(
    root: Path,
    *,
    allow_large: bool = False,
    bug: str = "XXX",
    config: BumpConfig | None = None,
    resolver: VersionResolver | None = None,
) -> BumpReport:
    """Bump the vendored Cranelift to the latest release.

    Args:
        root: Root of the Gecko checkout.
        allow_large: Let the vendor step accept unusually large imports.
        bug: Bug number used in the commit messages.
        config: Settings; defaults are used when omitted.
        resolver: Version lookups; built from ``config`` when omitted.

    Returns:
        Report of the completed stages and the resolved version and commit.

    Raises:
        PipelineError: If any stage fails.
    """
    config = config or BumpConfig()
    resolver = resolver or VersionResolver(config)
    report = BumpReport()

    with stage(report, "Checking repository"):
        repo = check_repository(root, config)

    with stage(report, "Resolving latest Cranelift"):
        version, commit = resolver.resolve()
        report.version = version
        report.commit = commit
        print(f"  found version {version}")
        print(f"  last commit {commit}")

    with stage(report, "Patching manifests"):
        spec = FixedVersion(version=version)
        patch_manifests(manifest_targets(root, config), spec, commit, config)

    fields = {"bug": bug, "commit": commit, "version": version}
    vendor_and_commit(
        repo,
        report,
        config,
        bump_message=config.bump_message.format(**fields),
        vendor_message=config.vendor_message.format(**fields),
        allow_large=allow_large,
    )

    print(f"\n{'=' * 60}\nDone, enjoy your day.\n{'=' * 60}")
    return report


def run_local(
    root: Path, checkout: Path, *, config: BumpConfig | None = None
) -> BumpReport:
    """Point the vendored Cranelift at a local wasmtime checkout.

    Only the nested manifest changes; no network request is made. The
    resulting commits are not meant to land.

    Raises:
        PipelineError: If any stage fails.
    """
    config = config or BumpConfig()
    report = BumpReport()

    with stage(report, "Checking repository"):
        repo = check_repository(root, config)

    spec = LocalPath(path=checkout / config.local_subdir)

    with stage(report, "Patching manifests"):
        patch_manifests(manifest_targets(root, config), spec, None, config)

    vendor_and_commit(
        repo,
        report,
        config,
        bump_message=config.local_bump_message,
        vendor_message=config.local_vendor_message,
        allow_large=False,
    )

    print(f"\n{'=' * 60}\nDone, enjoy your day.\n{'=' * 60}")
    return report


def run_build(build_dir: Path, *, config: BumpConfig | None = None) -> None:
    """Build the tree in ``build_dir`` with make."""
    config = config or BumpConfig()
    step("Running make")
    build(build_dir, config)


def run_test(
    root: Path,
    build_dir: Path,
    category: str | None = None,
    *,
    config: BumpConfig | None = None,
) -> None:
    """Run the Cranelift wasm jit-tests against the shell in ``build_dir``."""
    config = config or BumpConfig()
    step("Running tests")
    run_tests(root, build_dir, config, category)
