import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

KBUILD_CONFIG = os.environ.get("KBUILD_CONFIG", ".config")
KBUILD_OUT_DIR = os.environ.get("KBUILD_OUT_DIR", os.path.join("target", "kbuild"))
CARGO = os.environ.get("CARGO", "cargo")

CARGO_CONFIG_DIR = ".cargo"
CARGO_CONFIG_FILE = "config.toml"
CONSTANTS_FILE = "config.rs"


def cargo_config_path(workspace_root: str | Path) -> Path:
    return Path(workspace_root) / CARGO_CONFIG_DIR / CARGO_CONFIG_FILE


def constants_path(workspace_root: str | Path) -> Path:
    out_dir = Path(KBUILD_OUT_DIR)
    if not out_dir.is_absolute():
        out_dir = Path(workspace_root) / out_dir

    return out_dir / CONSTANTS_FILE


def resolve_config_path(workspace_root: str | Path, kconfig: str | Path | None = None) -> Path:
    path = Path(kconfig if kconfig is not None else KBUILD_CONFIG)
    if not path.is_absolute():
        path = Path(workspace_root) / path

    return path
