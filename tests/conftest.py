from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

# kernel_net and network_utils are kbuild-enabled, legacy_driver is not.
DEFAULT_CRATES: list[dict[str, Any]] = [
    {
        "name": "kernel_net",
        "kbuild": True,
        "features": {"CONFIG_NET": ["network_utils"]},
    },
    {
        "name": "network_utils",
        "kbuild": True,
        "features": {"CONFIG_ASYNC": []},
    },
    {
        "name": "legacy_driver",
        "features": {"default": [], "async": ["tokio/rt"]},
    },
]

DEFAULT_CONFIG = "CONFIG_NET=y\nCONFIG_LOG_LEVEL=3\n"


def write_crate(
    root: Path,
    name: str,
    *,
    kbuild: bool | None = None,
    features: Mapping[str, Sequence[str]] | None = None,
    directory: str | None = None,
) -> Path:
    crate_dir = root / (directory or f"crates/{name}")
    crate_dir.mkdir(parents=True, exist_ok=True)

    lines = ["[package]", f'name = "{name}"', 'version = "0.1.0"', 'edition = "2021"', ""]
    if kbuild is not None:
        lines += ["[package.metadata.kbuild]", f"enabled = {str(kbuild).lower()}", ""]
    if features:
        lines.append("[features]")
        lines += [f"{feature} = {json.dumps(list(specs))}" for feature, specs in features.items()]
        lines.append("")

    (crate_dir / "Cargo.toml").write_text("\n".join(lines), encoding="utf-8")
    return crate_dir


def write_workspace(root: Path, crates: Sequence[Mapping[str, Any]]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    members = []
    for crate in crates:
        crate_dir = write_crate(
            root,
            crate["name"],
            kbuild=crate.get("kbuild"),
            features=crate.get("features"),
            directory=crate.get("directory"),
        )
        members.append(crate_dir.relative_to(root).as_posix())

    (root / "Cargo.toml").write_text(
        "[workspace]\n" f"members = {json.dumps(members)}\n" 'resolver = "2"\n',
        encoding="utf-8",
    )
    return root


@pytest.fixture()
def workspace_root(request: pytest.FixtureRequest, tmp_path: Path) -> Path:
    params = getattr(request, "param", {}) or {}
    crates: list[dict[str, Any]] = params.get("crates", DEFAULT_CRATES)
    config: str | None = params.get("config", DEFAULT_CONFIG)

    root = write_workspace(tmp_path / "ws", crates)
    if config is not None:
        (root / ".config").write_text(config, encoding="utf-8")

    return root


def with_workspace(**kwargs: Any) -> Any:
    return pytest.mark.parametrize("workspace_root", [kwargs], indirect=True)
