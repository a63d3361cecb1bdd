from __future__ import annotations

import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from kbuild import env
from kbuild.errors import BuildInvokeError
from kbuild.kconfig import KConfig
from kbuild.logging import get_logger

__all__ = ["BuildPlan", "BuildInvoker", "CargoInvoker", "plan_build"]

logger = get_logger("invoker")


@dataclass(frozen=True)
class BuildPlan:
    command: str
    args: tuple[str, ...]
    features: tuple[str, ...]
    rustflags: str
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def argv(self) -> list[str]:
        argv = [self.command, *self.args]
        if self.features:
            argv.extend(["--features", ",".join(self.features)])
        return argv

    def describe(self) -> str:
        return "cargo " + shlex.join(self.argv)


def plan_build(
    config: KConfig,
    declared: Sequence[str],
    feature_names: set[str],
    *,
    command: str = "build",
    args: Sequence[str] = (),
    base_rustflags: str | None = None,
) -> BuildPlan:
    """Translate the parsed options into cargo arguments and ``RUSTFLAGS``.

    Enabled options (``y`` or ``m``) become ``--cfg`` flags. Those that some
    crate also declares as a feature are passed with ``--features`` so cargo
    activates the optional dependencies they gate.
    """
    enabled = sorted(config.enabled())
    features = tuple(name for name in enabled if name in feature_names)

    flags: list[str] = []
    if base_rustflags:
        flags.append(base_rustflags.strip())
    flags.extend(f"--check-cfg=cfg({name})" for name in sorted(declared))
    flags.extend(f"--cfg {name}" for name in enabled)
    rustflags = " ".join(flags)

    return BuildPlan(
        command=command,
        args=tuple(args),
        features=features,
        rustflags=rustflags,
        env={"RUSTFLAGS": rustflags} if rustflags else {},
    )


class BuildInvoker(ABC):
    @abstractmethod
    def run(self, plan: BuildPlan, *, cwd: Path) -> int: ...


class CargoInvoker(BuildInvoker):
    """Runs cargo as a child process; its output goes straight to our stdout/stderr."""

    def __init__(self, cargo: str | None = None) -> None:
        self.cargo = cargo or env.CARGO

    def run(self, plan: BuildPlan, *, cwd: Path) -> int:
        argv = [self.cargo, *plan.argv]
        logger.info("Running: %s", plan.describe())
        try:
            result = subprocess.run(argv, cwd=cwd, env={**os.environ, **plan.env}, check=False)
        except OSError as exc:
            raise BuildInvokeError(command=shlex.join(argv), reason=str(exc)) from exc

        logger.debug("cargo exited with status %d.", result.returncode)
        return result.returncode
