from __future__ import annotations

from collections import defaultdict
from typing import Any

import typer

from kbuild.errors import KbuildError
from kbuild.logging_utils import Colors, logger
from kbuild.pipeline import PipelineResult

# Reusable Typer option factories
Kconfig = typer.Option(
    None,
    "--kconfig",
    "-c",
    help="Option file to read. Defaults to $KBUILD_CONFIG or .config in the workspace root.",
)
WorkspaceRoot = typer.Option(
    None,
    "--workspace",
    "-w",
    help="Workspace root containing Cargo.toml. Defaults to the current directory.",
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
)

PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


def fail(exc: KbuildError) -> typer.Exit:
    logger.panel(f"❌ {exc.title}", exc.explain(), color=Colors.ERROR)
    return typer.Exit(code=1)


def print_awareness(result: PipelineResult) -> None:
    columns: dict[str, list[Any]] = defaultdict(list)
    for package in result.workspace:
        awareness = result.awareness[package.name]
        columns["crate"].append(package.name)
        columns["kbuild"].append("yes" if awareness.config_aware else "no")
        columns["reason"].append(awareness.value)
        columns["features"].append(len(package.features))

    if columns:
        logger.table("Workspace crates", **columns)


def print_warnings(result: PipelineResult) -> None:
    for warning in result.warnings:
        logger.warning(str(warning))
