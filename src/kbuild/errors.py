from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kbuild.classifier import Awareness

__all__ = [
    "KbuildError",
    "ConfigNotFound",
    "ConfigParseError",
    "ConfigReadError",
    "ManifestLoadError",
    "FeatureValidationError",
    "ArtifactWriteError",
    "BuildInvokeError",
    "UnusedConfigWarning",
    "UndeclaredFeatureWarning",
]


class KbuildError(Exception):
    """Base class for every error that aborts the pipeline."""

    title = "kbuild error"

    def explain(self) -> str:
        return str(self)


class ConfigNotFound(KbuildError):
    title = "Option file not found"

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(f"Option file not found: {self.path}")

    def explain(self) -> str:
        return (
            f"{self}\n"
            "Run 'cargo-kbuild init' to create a template, or pass --kconfig <path>."
        )


class ConfigReadError(KbuildError):
    title = "Cannot read option file"

    def __init__(self, *, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to read option file {self.path}: {reason}")


class ConfigParseError(KbuildError):
    title = "Invalid option file"

    def __init__(
        self,
        *,
        line: int,
        text: str,
        reason: str,
        path: str | Path | None = None,
        first_line: int | None = None,
    ):
        self.line = line
        self.text = text
        self.reason = reason
        self.first_line = first_line
        self.path = Path(path) if path is not None else None
        where = f"{self.path}:{line}" if self.path is not None else f"line {line}"
        super().__init__(f"{where}: {reason}: {text!r}")

    def with_path(self, path: str | Path) -> ConfigParseError:
        return ConfigParseError(
            line=self.line,
            text=self.text,
            reason=self.reason,
            path=path,
            first_line=self.first_line,
        )


class ManifestLoadError(KbuildError):
    title = "Invalid package manifest"

    def __init__(self, *, package: str, reason: str):
        self.package = package
        self.reason = reason
        super().__init__(f"Failed to load manifest for '{package}': {reason}")


class FeatureValidationError(KbuildError):
    title = "Feature validation failed"

    def __init__(
        self,
        *,
        package: str,
        feature: str,
        spec: str,
        target_package: str,
        capability: str,
        awareness: Awareness,
    ):
        self.package = package
        self.feature = feature
        self.spec = spec
        self.target_package = target_package
        self.capability = capability
        self.awareness = awareness
        super().__init__(
            f"Error in crate '{package}': feature '{feature}' specifies sub-feature"
            f" '{spec}' of kbuild-enabled crate '{target_package}'"
        )

    @property
    def remediation(self) -> list[str]:
        return [
            f'Change to: {self.feature} = ["{self.target_package}"]',
            f"Enable {self.capability} in the option file (.config)",
        ]

    def explain(self) -> str:
        steps = "\n".join(f"{i}. {step}" for i, step in enumerate(self.remediation, start=1))
        return (
            f"Error in crate '{self.package}':\n"
            "\n"
            f"Feature '{self.feature}' specifies sub-feature: '{self.spec}'\n"
            "\n"
            f"Dependency '{self.target_package}' is kbuild-enabled ({self.awareness.value}):\n"
            "- It reads CONFIG_* from .config directly\n"
            "- Cannot be controlled by parent crate\n"
            "\n"
            "Solution:\n"
            f"{steps}\n"
            "\n"
            "Note: Third-party crates (e.g., log/std, tokio/rt) are allowed sub-features."
        )


class ArtifactWriteError(KbuildError):
    title = "Failed to write generated artifact"

    def __init__(self, *, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write {self.path}: {reason}")


class BuildInvokeError(KbuildError):
    title = "Failed to run cargo"

    def __init__(self, *, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to run '{command}': {reason}")


@dataclass(frozen=True, slots=True)
class UnusedConfigWarning:
    key: str

    def __str__(self) -> str:
        return f"{self.key} is set in the option file but not declared as a feature by any crate"


@dataclass(frozen=True, slots=True)
class UndeclaredFeatureWarning:
    name: str

    def __str__(self) -> str:
        return f"{self.name} is declared as a feature but not configured in the option file"
