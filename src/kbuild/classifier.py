from __future__ import annotations

from enum import Enum

from kbuild.workspace import Package

CONFIG_PREFIX = "CONFIG_"


class Awareness(Enum):
    """Why a crate is (or is not) kbuild-enabled."""

    EXPLICIT = "package.metadata.kbuild.enabled = true"
    IMPLICIT = "declares CONFIG_* features"
    NONE = "not kbuild-enabled"

    @property
    def config_aware(self) -> bool:
        return self is not Awareness.NONE


def is_config_option(name: str) -> bool:
    return name.startswith(CONFIG_PREFIX)


def classify(package: Package) -> Awareness:
    if package.kbuild_enabled:
        return Awareness.EXPLICIT
    if any(is_config_option(feature) for feature in package.features):
        return Awareness.IMPLICIT
    return Awareness.NONE


class Classifier:
    """Memoizes :func:`classify` by crate name for one pipeline run."""

    def __init__(self) -> None:
        self._cache: dict[str, Awareness] = {}

    def __call__(self, package: Package) -> Awareness:
        awareness = self._cache.get(package.name)
        if awareness is None:
            awareness = classify(package)
            self._cache[package.name] = awareness
        return awareness

    def is_config_aware(self, package: Package) -> bool:
        return self(package).config_aware
