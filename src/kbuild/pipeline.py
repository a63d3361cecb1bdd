"""The kbuild pipeline: load, classify, validate, parse, generate, build.

Every stage runs to completion before the next one starts. Any
:class:`~kbuild.errors.KbuildError` aborts the run before cargo is invoked.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from kbuild.classifier import Awareness, Classifier
from kbuild.generate import Diagnostic, GeneratedArtifacts, generate_artifacts
from kbuild.invoker import BuildInvoker, BuildPlan, CargoInvoker, plan_build
from kbuild.kconfig import KConfig, parse_config
from kbuild.logging import get_logger
from kbuild.validator import ValidationReport, validate_features
from kbuild.workspace import Workspace, load_workspace

__all__ = ["PipelineMode", "PipelineResult", "run_pipeline"]

logger = get_logger("pipeline")


class PipelineMode(Enum):
    CHECK = "check"
    BUILD = "build"


@dataclass(frozen=True)
class PipelineResult:
    workspace: Workspace
    awareness: dict[str, Awareness]
    report: ValidationReport
    config: KConfig
    artifacts: GeneratedArtifacts
    plan: BuildPlan
    exit_code: int | None = None

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return self.artifacts.warnings

    @property
    def succeeded(self) -> bool:
        return self.exit_code in (None, 0)


def run_pipeline(
    config_path: str | Path,
    *,
    workspace_root: str | Path,
    mode: PipelineMode = PipelineMode.BUILD,
    cargo_command: str = "build",
    cargo_args: Sequence[str] = (),
    invoker: BuildInvoker | None = None,
) -> PipelineResult:
    workspace = load_workspace(workspace_root)

    classifier = Classifier()
    awareness = {package.name: classifier(package) for package in workspace}
    logger.debug(
        "kbuild-enabled crates: %s",
        ", ".join(name for name, a in awareness.items() if a.config_aware) or "none",
    )

    report = validate_features(workspace, classifier)
    config = parse_config(config_path)
    artifacts = generate_artifacts(workspace, config)

    feature_names = {feature for package in workspace for feature in package.features}
    plan = plan_build(
        config,
        artifacts.declared,
        feature_names,
        command=cargo_command,
        args=cargo_args,
        base_rustflags=os.environ.get("RUSTFLAGS"),
    )

    exit_code: int | None = None
    if mode is PipelineMode.BUILD:
        invoker = invoker or CargoInvoker()
        exit_code = invoker.run(plan, cwd=workspace.root)

    return PipelineResult(
        workspace=workspace,
        awareness=awareness,
        report=report,
        config=config,
        artifacts=artifacts,
        plan=plan,
        exit_code=exit_code,
    )
