"""Discovery of the crates in a Cargo workspace and their feature tables."""

from __future__ import annotations

import glob
import tomllib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from typing_extensions import Self

from kbuild.errors import ManifestLoadError
from kbuild.logging import get_logger

__all__ = [
    "BareReference",
    "CapabilityReference",
    "DependencySpec",
    "Package",
    "Workspace",
    "parse_dependency_spec",
    "load_package",
    "load_workspace",
]

logger = get_logger("workspace")

MANIFEST = "Cargo.toml"


@dataclass(frozen=True, slots=True)
class BareReference:
    """``"pkg"`` or ``"dep:pkg"``: enables a dependency without touching its features."""

    package: str
    raw: str

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class CapabilityReference:
    """``"pkg/feature"`` or the weak form ``"pkg?/feature"``."""

    package: str
    capability: str
    raw: str
    weak: bool = False

    def __str__(self) -> str:
        return self.raw


DependencySpec = BareReference | CapabilityReference


def parse_dependency_spec(raw: str) -> DependencySpec:
    name, sep, capability = raw.partition("/")
    if not sep:
        return BareReference(package=name.removeprefix("dep:"), raw=raw)

    weak = name.endswith("?")
    return CapabilityReference(
        package=name.removesuffix("?"),
        capability=capability,
        raw=raw,
        weak=weak,
    )


@dataclass(frozen=True)
class Package:
    name: str
    path: Path
    kbuild_enabled: bool = False
    features: Mapping[str, tuple[DependencySpec, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def manifest_path(self) -> Path:
        return self.path / MANIFEST

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any], path: Path) -> Self:
        label = path.name or str(path)
        package = manifest.get("package")
        if not isinstance(package, dict):
            raise ManifestLoadError(package=label, reason="missing [package] table")

        name = package.get("name")
        if not isinstance(name, str) or not name:
            raise ManifestLoadError(package=label, reason="package.name must be a non-empty string")

        metadata = package.get("metadata", {})
        kbuild = metadata.get("kbuild", {}) if isinstance(metadata, dict) else {}
        if not isinstance(kbuild, dict):
            raise ManifestLoadError(package=name, reason="package.metadata.kbuild must be a table")
        enabled = kbuild.get("enabled", False)
        if not isinstance(enabled, bool):
            raise ManifestLoadError(
                package=name, reason="package.metadata.kbuild.enabled must be a boolean"
            )

        raw_features = manifest.get("features", {})
        if not isinstance(raw_features, dict):
            raise ManifestLoadError(package=name, reason="[features] must be a table")

        features: dict[str, tuple[DependencySpec, ...]] = {}
        for feature, specs in raw_features.items():
            if not isinstance(specs, list) or not all(isinstance(s, str) for s in specs):
                raise ManifestLoadError(
                    package=name,
                    reason=f"feature '{feature}' must be a list of strings",
                )
            features[feature] = tuple(parse_dependency_spec(s) for s in specs)

        return cls(
            name=name,
            path=path,
            kbuild_enabled=enabled,
            features=MappingProxyType(features),
        )


class Workspace:
    """All crates of one workspace, in discovery order."""

    def __init__(self, root: Path, packages: list[Package] | tuple[Package, ...]) -> None:
        self.root = root
        self.packages = tuple(packages)
        self._by_name: dict[str, Package] = {}
        for package in self.packages:
            existing = self._by_name.get(package.name)
            if existing is not None:
                raise ManifestLoadError(
                    package=package.name,
                    reason=(
                        f"duplicate package name (defined in {existing.manifest_path}"
                        f" and {package.manifest_path})"
                    ),
                )
            self._by_name[package.name] = package

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def find(self, name: str) -> Package | None:
        return self._by_name.get(name)


def _read_manifest(manifest_path: Path) -> dict[str, Any]:
    label = manifest_path.parent.name or str(manifest_path.parent)
    try:
        with manifest_path.open("rb") as f:
            return tomllib.load(f)
    except OSError as exc:
        raise ManifestLoadError(
            package=label, reason=f"failed to read {manifest_path}: {exc}"
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ManifestLoadError(
            package=label, reason=f"failed to parse {manifest_path}: {exc}"
        ) from exc
    except UnicodeDecodeError as exc:
        raise ManifestLoadError(
            package=label, reason=f"{manifest_path} is not valid UTF-8: {exc.reason}"
        ) from exc


def load_package(path: str | Path) -> Package:
    path = Path(path)
    return Package.from_manifest(_read_manifest(path / MANIFEST), path)


def _member_dirs(root: Path, members: list[str], exclude: set[Path]) -> list[Path]:
    dirs: list[Path] = []
    for member in members:
        if glob.has_magic(member):
            matches = sorted(Path(p) for p in glob.glob(str(root / member)))
            candidates = [p for p in matches if (p / MANIFEST).is_file()]
        else:
            candidates = [root / member]

        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved in exclude or resolved in dirs:
                continue
            dirs.append(resolved)

    return dirs


def load_workspace(root: str | Path) -> Workspace:
    root = Path(root).resolve()
    manifest = _read_manifest(root / MANIFEST)

    packages: list[Package] = []
    if "package" in manifest:
        packages.append(Package.from_manifest(manifest, root))

    section = manifest.get("workspace")
    if section is None and not packages:
        raise ManifestLoadError(
            package=root.name, reason="root manifest has neither [package] nor [workspace]"
        )

    if section is not None:
        members = section.get("members", [])
        exclude = section.get("exclude", [])
        if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
            raise ManifestLoadError(
                package=root.name, reason="workspace.members must be a list of paths"
            )
        if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
            raise ManifestLoadError(
                package=root.name, reason="workspace.exclude must be a list of paths"
            )

        excluded = {(root / e).resolve() for e in exclude}
        excluded.add(root)
        for member_dir in _member_dirs(root, members, excluded):
            packages.append(load_package(member_dir))

    logger.debug("Discovered %d crate(s) under %s.", len(packages), root)
    return Workspace(root, packages)
