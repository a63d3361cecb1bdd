"""Rejects feature wiring that lets a parent crate control a kbuild-enabled crate.

A kbuild-enabled crate reads its ``CONFIG_*`` options from the shared option
file. If a parent crate could turn on ``child/CONFIG_FOO`` through its own
feature table, the option file would no longer be the single source of truth,
so any ``pkg/capability`` spec that targets a kbuild-enabled workspace crate is
an error. Bare ``pkg`` references and capabilities of third-party or legacy
crates are allowed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from kbuild.classifier import Classifier
from kbuild.errors import FeatureValidationError
from kbuild.logging import get_logger
from kbuild.workspace import CapabilityReference, Workspace

__all__ = ["NoteKind", "ValidationNote", "ValidationReport", "validate_features"]

logger = get_logger("validator")


class NoteKind(Enum):
    THIRD_PARTY = "third-party"
    NOT_KBUILD = "not kbuild-enabled"


@dataclass(frozen=True, slots=True)
class ValidationNote:
    package: str
    feature: str
    spec: str
    target_package: str
    kind: NoteKind

    def __str__(self) -> str:
        return f"'{self.target_package}' is {self.kind.value}, sub-feature allowed: {self.spec}"


@dataclass
class ValidationReport:
    notes: list[ValidationNote] = field(default_factory=list)
    checked: int = 0


def validate_features(workspace: Workspace, classifier: Classifier | None = None) -> ValidationReport:
    """Scan every dependency spec and stop at the first disallowed one.

    Raises
    ------
    FeatureValidationError
        For the first ``pkg/capability`` spec, in crate, feature and list
        order, whose target is a kbuild-enabled workspace crate.
    """
    classifier = classifier or Classifier()
    report = ValidationReport()

    for package in workspace:
        for feature, specs in package.features.items():
            for spec in specs:
                report.checked += 1
                if not isinstance(spec, CapabilityReference):
                    continue

                target = workspace.find(spec.package)
                if target is None:
                    kind = NoteKind.THIRD_PARTY
                else:
                    awareness = classifier(target)
                    if awareness.config_aware:
                        raise FeatureValidationError(
                            package=package.name,
                            feature=feature,
                            spec=spec.raw,
                            target_package=target.name,
                            capability=spec.capability,
                            awareness=awareness,
                        )
                    kind = NoteKind.NOT_KBUILD

                note = ValidationNote(
                    package=package.name,
                    feature=feature,
                    spec=spec.raw,
                    target_package=spec.package,
                    kind=kind,
                )
                logger.info("%s", note)
                report.notes.append(note)

    logger.debug("Validated %d dependency spec(s).", report.checked)
    return report
