"""Emission of the derived artifacts consumed by cargo and rustc.

``.cargo/config.toml`` declares every known option with ``--check-cfg`` so that
``#[cfg(CONFIG_X)]`` does not trigger the ``unexpected_cfgs`` lint, and
``config.rs`` exposes the integer and string options as typed constants.
Both files are disposable and are rendered in sorted key order so that the
same inputs always produce the same bytes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from kbuild.classifier import is_config_option
from kbuild.env import cargo_config_path, constants_path
from kbuild.errors import (
    ArtifactWriteError,
    ConfigParseError,
    ManifestLoadError,
    UndeclaredFeatureWarning,
    UnusedConfigWarning,
)
from kbuild.kconfig import ConfigEntry, KConfig
from kbuild.logging import get_logger
from kbuild.workspace import Workspace

__all__ = [
    "GeneratedArtifacts",
    "check_option_names",
    "collect_declared_options",
    "declared_options",
    "find_unused_options",
    "find_unconfigured_features",
    "rust_type",
    "render_cargo_config",
    "render_constants",
    "generate_artifacts",
    "render_config_template",
    "write_config_template",
]

logger = get_logger("generate")

_I32 = (-(2**31), 2**31 - 1)
_I64 = (-(2**63), 2**63 - 1)
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


Diagnostic = UnusedConfigWarning | UndeclaredFeatureWarning


@dataclass(frozen=True)
class GeneratedArtifacts:
    declared: tuple[str, ...]
    constants: tuple[ConfigEntry, ...]
    cargo_config_path: Path
    constants_path: Path
    cargo_config: str
    constants_source: str
    warnings: tuple[Diagnostic, ...] = field(default_factory=tuple)


def collect_declared_options(workspace: Workspace) -> set[str]:
    """Every ``CONFIG_*`` feature name declared by any crate."""
    return {
        feature
        for package in workspace
        for feature in package.features
        if is_config_option(feature)
    }


def declared_options(workspace: Workspace, config: KConfig) -> list[str]:
    return sorted(collect_declared_options(workspace) | set(config))


def find_unused_options(workspace: Workspace, config: KConfig) -> list[UnusedConfigWarning]:
    features = {feature for package in workspace for feature in package.features}
    return [UnusedConfigWarning(key=key) for key in sorted(config) if key not in features]


def find_unconfigured_features(
    workspace: Workspace, config: KConfig
) -> list[UndeclaredFeatureWarning]:
    return [
        UndeclaredFeatureWarning(name=name)
        for name in sorted(collect_declared_options(workspace))
        if name not in config
    ]


def rust_type(value: int | str) -> str:
    if isinstance(value, str):
        return "&str"
    if _I32[0] <= value <= _I32[1]:
        return "i32"
    if _I64[0] <= value <= _I64[1]:
        return "i64"
    return "u64"


def _rust_literal(value: int | str) -> str:
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)


def render_cargo_config(options: list[str]) -> str:
    lines = [
        "# Auto-generated by cargo-kbuild",
        "# This file declares all CONFIG_* conditional compilation flags",
        "# Run 'cargo-kbuild build' to regenerate this file",
        "# DO NOT commit this file to git",
        "",
        "[build]",
        "rustflags = [",
    ]
    lines.extend(f'    "--check-cfg=cfg({name})",' for name in sorted(options))
    lines.append("]")
    return "\n".join(lines) + "\n"


def render_constants(entries: list[ConfigEntry], *, source: str = ".config") -> str:
    lines = [
        f"// Auto-generated by cargo-kbuild from {source}",
        "// DO NOT EDIT MANUALLY",
        "",
    ]
    for entry in sorted(entries, key=lambda e: e.key):
        lines.append("#[allow(dead_code)]")
        lines.append(
            f"pub const {entry.key}: {rust_type(entry.value)} = {_rust_literal(entry.value)};"
        )
        lines.append("")
    return "\n".join(lines) + "\n"


def _write(path: Path, content: str) -> None:
    _write_all({path: content})


def _write_all(files: dict[Path, str]) -> None:
    """Stage every file next to its target, then move them all into place."""
    staged: dict[Path, Path] = {}
    try:
        for path, content in files.items():
            tmp = staged[path] = path.with_name(f".{path.name}.tmp")
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(content, encoding="utf-8")
            except OSError as exc:
                raise ArtifactWriteError(path=path, reason=exc.strerror or str(exc)) from exc

        for path, tmp in staged.items():
            try:
                tmp.replace(path)
            except OSError as exc:
                raise ArtifactWriteError(path=path, reason=exc.strerror or str(exc)) from exc
    finally:
        for tmp in staged.values():
            if tmp.exists():
                tmp.unlink()


def check_option_names(workspace: Workspace, config: KConfig) -> None:
    """Every option must be usable as a cfg name and a Rust const."""
    for entry in config.values():
        if not _IDENT_RE.fullmatch(entry.key):
            raise ConfigParseError(
                line=entry.line,
                text=entry.key,
                reason="option name is not a valid identifier",
                path=config.path,
            )

    for package in workspace:
        for feature in package.features:
            if is_config_option(feature) and not _IDENT_RE.fullmatch(feature):
                raise ManifestLoadError(
                    package=package.name,
                    reason=f"feature '{feature}' is not a valid cfg name",
                )


def generate_artifacts(workspace: Workspace, config: KConfig) -> GeneratedArtifacts:
    check_option_names(workspace, config)
    declared = declared_options(workspace, config)
    constants = sorted(config.constants(), key=lambda e: e.key)
    source = config.path.name if config.path is not None else ".config"

    artifacts = GeneratedArtifacts(
        declared=tuple(declared),
        constants=tuple(constants),
        cargo_config_path=cargo_config_path(workspace.root),
        constants_path=constants_path(workspace.root),
        cargo_config=render_cargo_config(declared),
        constants_source=render_constants(constants, source=source),
        warnings=(
            *find_unused_options(workspace, config),
            *find_unconfigured_features(workspace, config),
        ),
    )

    _write_all(
        {
            artifacts.cargo_config_path: artifacts.cargo_config,
            artifacts.constants_path: artifacts.constants_source,
        }
    )
    logger.info(
        "Generated %s with %d CONFIG_* declaration(s).",
        artifacts.cargo_config_path,
        len(declared),
    )
    logger.info(
        "Generated %s with %d constant(s).", artifacts.constants_path, len(constants)
    )

    for warning in artifacts.warnings:
        logger.warning("%s", warning)

    return artifacts


def render_config_template(options: list[str]) -> str:
    lines = [
        "# Kernel Configuration File",
        "# Generated by cargo-kbuild init",
        "# Edit this file to enable/disable features",
        "",
    ]
    lines.extend(f"# {name}=y" for name in sorted(options))
    return "\n".join(lines) + "\n"


def write_config_template(workspace: Workspace, path: Path) -> bool:
    """Write a commented-out ``.config`` template. Returns False if ``path`` exists."""
    if path.exists():
        return False

    _write(path, render_config_template(sorted(collect_declared_options(workspace))))
    return True
