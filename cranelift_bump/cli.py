"""CLI entry point for cranelift-bump."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from cranelift_bump.config import BumpConfig, load_config
from cranelift_bump.errors import BumpError
from cranelift_bump.pipeline import run_build, run_bump, run_local, run_test

DIR = click.Path(exists=True, file_okay=False, resolve_path=True, path_type=Path)


@contextmanager
def _reporting_errors() -> Iterator[None]:
    """Turn pipeline errors into a click error message and exit status 1."""
    try:
        yield
    except BumpError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(invoke_without_command=True)
@click.version_option(package_name="cranelift-bump")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML file overriding crate names, paths and commands.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """Bump the vendored Cranelift in a Gecko tree, build it and test it."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(2)
    with _reporting_errors():
        ctx.obj = load_config(config_path)


@cli.command()
@click.argument("repo_dir", type=DIR)
@click.option(
    "-a",
    "--allow-large",
    is_flag=True,
    help="Allow the vendor step to import unusually large crates.",
)
@click.option(
    "--bug", default="XXX", show_default=True, help="Bug number for commit messages."
)
@click.pass_obj
def bump(config: BumpConfig, repo_dir: Path, allow_large: bool, bug: str) -> None:
    """Bump to the latest available version of Cranelift in tree."""
    with _reporting_errors():
        run_bump(repo_dir, allow_large=allow_large, bug=bug, config=config)


@cli.command()
@click.argument("repo_dir", type=DIR)
@click.argument("wasmtime_dir", type=DIR)
@click.pass_obj
def local(config: BumpConfig, repo_dir: Path, wasmtime_dir: Path) -> None:
    """Use the local version of Cranelift in this Gecko tree."""
    with _reporting_errors():
        run_local(repo_dir, wasmtime_dir, config=config)


@cli.command()
@click.argument("build_dir", type=DIR)
@click.pass_obj
def build(config: BumpConfig, build_dir: Path) -> None:
    """Run make in the build directory."""
    with _reporting_errors():
        run_build(build_dir, config=config)


@cli.command("test")
@click.argument("repo_dir", type=DIR)
@click.argument("build_dir", type=DIR)
@click.argument("category", required=False)
@click.pass_obj
def test_cmd(
    config: BumpConfig, repo_dir: Path, build_dir: Path, category: str | None
) -> None:
    """Run wasm tests with Cranelift (CATEGORY defaults to wasm)."""
    with _reporting_errors():
        run_test(repo_dir, build_dir, category, config=config)
