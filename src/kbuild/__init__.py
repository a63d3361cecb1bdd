from .classifier import Awareness, Classifier, classify
from .errors import (
    ArtifactWriteError,
    BuildInvokeError,
    ConfigNotFound,
    ConfigParseError,
    ConfigReadError,
    FeatureValidationError,
    KbuildError,
    ManifestLoadError,
    UndeclaredFeatureWarning,
    UnusedConfigWarning,
)
from .generate import GeneratedArtifacts, generate_artifacts
from .kconfig import ConfigEntry, KConfig, Tristate, parse_config
from .logging import configure_logger, get_logger
from .pipeline import PipelineMode, PipelineResult, run_pipeline
from .validator import ValidationReport, validate_features
from .version import __version__
from .workspace import Package, Workspace, load_workspace

__all__ = [
    "Awareness",
    "Classifier",
    "classify",
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
    "GeneratedArtifacts",
    "generate_artifacts",
    "ConfigEntry",
    "KConfig",
    "Tristate",
    "parse_config",
    "Package",
    "Workspace",
    "load_workspace",
    "ValidationReport",
    "validate_features",
    "PipelineMode",
    "PipelineResult",
    "run_pipeline",
    "configure_logger",
    "get_logger",
    "__version__",
]
