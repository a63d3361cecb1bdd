from __future__ import annotations

import sys
from pathlib import Path

import typer

from kbuild.cli.utils import (
    PASSTHROUGH,
    Kconfig,
    WorkspaceRoot,
    fail,
    print_awareness,
    print_warnings,
)
from kbuild.config import GLOBAL_OPTIONS
from kbuild.env import resolve_config_path
from kbuild.errors import KbuildError
from kbuild.generate import collect_declared_options, write_config_template
from kbuild.logging_utils import logger, setup_rich_logging
from kbuild.pipeline import PipelineMode, run_pipeline
from kbuild.version import __version__
from kbuild.workspace import load_workspace

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="cargo-kbuild: Kconfig-style global configuration for Cargo workspaces.",
)


@app.callback()
def main(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Show debug output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors."),
) -> None:
    GLOBAL_OPTIONS.verbose = verbose
    GLOBAL_OPTIONS.quiet = quiet
    setup_rich_logging(verbose, quiet=quiet)


@app.command()
def version() -> None:
    """Print version and exit."""
    typer.echo(f"cargo-kbuild {__version__}")


@app.command()
def init(workspace: Path | None = WorkspaceRoot) -> None:
    """Create a .config template listing every CONFIG_* feature in the workspace."""
    root = workspace or Path.cwd()
    try:
        ws = load_workspace(root)
        options = sorted(collect_declared_options(ws))
        if not options:
            logger.warning("No CONFIG_* features found in workspace.")
            logger.print("Add CONFIG_* features to your crate's Cargo.toml.")
            return

        logger.table("Declared CONFIG_* features", option=options)
        config_path = resolve_config_path(ws.root)
        if write_config_template(ws, config_path):
            logger.success(f"✅ Created {config_path}")
        else:
            logger.info(f"Option file already exists, skipping template: {config_path}")
    except KbuildError as exc:
        raise fail(exc) from exc

    logger.print("Next: edit the option file, then run 'cargo-kbuild build'.")


@app.command()
def check(
    kconfig: str | None = Kconfig,
    workspace: Path | None = WorkspaceRoot,
) -> None:
    """Validate feature dependencies and regenerate artifacts without building."""
    root = workspace or Path.cwd()
    try:
        result = run_pipeline(
            resolve_config_path(root, kconfig),
            workspace_root=root,
            mode=PipelineMode.CHECK,
        )
    except KbuildError as exc:
        raise fail(exc) from exc

    if not GLOBAL_OPTIONS.quiet:
        print_awareness(result)
    print_warnings(result)
    logger.success("✅ Configuration check complete!")


def _build(ctx: typer.Context, command: str, kconfig: str | None, workspace: Path | None) -> None:
    root = workspace or Path.cwd()
    try:
        result = run_pipeline(
            resolve_config_path(root, kconfig),
            workspace_root=root,
            mode=PipelineMode.BUILD,
            cargo_command=command,
            cargo_args=list(ctx.args),
        )
    except KbuildError as exc:
        raise fail(exc) from exc

    print_warnings(result)
    if not result.succeeded:
        logger.error(f"cargo {command} failed with exit status {result.exit_code}.")
        raise typer.Exit(code=result.exit_code)

    logger.success("✅ Command completed successfully!")


@app.command(context_settings=PASSTHROUGH)
def build(
    ctx: typer.Context,
    kconfig: str | None = Kconfig,
    workspace: Path | None = WorkspaceRoot,
) -> None:
    """Validate, regenerate artifacts and run cargo build. Extra args go to cargo."""
    _build(ctx, "build", kconfig, workspace)


@app.command(context_settings=PASSTHROUGH)
def test(
    ctx: typer.Context,
    kconfig: str | None = Kconfig,
    workspace: Path | None = WorkspaceRoot,
) -> None:
    """Same as build, but runs cargo test."""
    _build(ctx, "test", kconfig, workspace)


def run() -> None:
    # `cargo kbuild ...` invokes us as `cargo-kbuild kbuild ...`
    args = sys.argv[1:]
    if args and args[0] == "kbuild":
        args = args[1:]
    app(args=args, prog_name="cargo-kbuild")
