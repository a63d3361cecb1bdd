from __future__ import annotations

from pathlib import Path

import pytest
from conftest import with_workspace

from kbuild.errors import (
    ArtifactWriteError,
    ConfigParseError,
    ManifestLoadError,
    UndeclaredFeatureWarning,
    UnusedConfigWarning,
)
from kbuild.generate import (
    collect_declared_options,
    declared_options,
    generate_artifacts,
    render_cargo_config,
    render_config_template,
    render_constants,
    rust_type,
    write_config_template,
)
from kbuild.kconfig import parse_config, parse_config_text
from kbuild.workspace import load_workspace


@with_workspace()
def test_declared_options_union(workspace_root: Path) -> None:
    ws = load_workspace(workspace_root)
    config = parse_config_text("CONFIG_NET=y\nCONFIG_LOG_LEVEL=3\nPLAIN_KEY=y\n")

    assert collect_declared_options(ws) == {"CONFIG_NET", "CONFIG_ASYNC"}
    assert declared_options(ws, config) == [
        "CONFIG_ASYNC",
        "CONFIG_LOG_LEVEL",
        "CONFIG_NET",
        "PLAIN_KEY",
    ]


def test_render_cargo_config_is_sorted() -> None:
    text = render_cargo_config(["CONFIG_B", "CONFIG_A"])
    assert text == (
        "# Auto-generated by cargo-kbuild\n"
        "# This file declares all CONFIG_* conditional compilation flags\n"
        "# Run 'cargo-kbuild build' to regenerate this file\n"
        "# DO NOT commit this file to git\n"
        "\n"
        "[build]\n"
        "rustflags = [\n"
        '    "--check-cfg=cfg(CONFIG_A)",\n'
        '    "--check-cfg=cfg(CONFIG_B)",\n'
        "]\n"
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (3, "i32"),
        (-(2**31), "i32"),
        (2**31, "i64"),
        (-(2**63), "i64"),
        (2**63, "u64"),
        ("cfs", "&str"),
    ],
)
def test_rust_type(value: int | str, expected: str) -> None:
    assert rust_type(value) == expected


def test_render_constants_skips_tristates_and_sorts() -> None:
    config = parse_config_text(
        'CONFIG_SMP=y\nCONFIG_MAX_CPUS=8\nCONFIG_DEFAULT_SCHEDULER="cfs"\nCONFIG_LOG_LEVEL=3\n'
    )
    text = render_constants(config.constants())
    assert text == (
        "// Auto-generated by cargo-kbuild from .config\n"
        "// DO NOT EDIT MANUALLY\n"
        "\n"
        "#[allow(dead_code)]\n"
        'pub const CONFIG_DEFAULT_SCHEDULER: &str = "cfs";\n'
        "\n"
        "#[allow(dead_code)]\n"
        "pub const CONFIG_LOG_LEVEL: i32 = 3;\n"
        "\n"
        "#[allow(dead_code)]\n"
        "pub const CONFIG_MAX_CPUS: i32 = 8;\n"
        "\n"
    )


def test_render_constants_escapes_rust_string() -> None:
    config = parse_config_text('CONFIG_S="a\\b"c"\n')
    assert 'pub const CONFIG_S: &str = "a\\\\b\\"c";' in render_constants(config.constants())


@with_workspace(config='CONFIG_NET=y\nCONFIG_LOG_LEVEL=3\nCONFIG_GHOST=y\n')
def test_generate_artifacts_writes_files_and_warnings(workspace_root: Path) -> None:
    ws = load_workspace(workspace_root)
    config = parse_config(workspace_root / ".config")

    artifacts = generate_artifacts(ws, config)

    assert artifacts.cargo_config_path == ws.root / ".cargo" / "config.toml"
    assert artifacts.constants_path == ws.root / "target" / "kbuild" / "config.rs"
    assert artifacts.cargo_config_path.read_text(encoding="utf-8") == artifacts.cargo_config
    assert artifacts.constants_path.read_text(encoding="utf-8") == artifacts.constants_source
    assert [e.key for e in artifacts.constants] == ["CONFIG_LOG_LEVEL"]
    assert artifacts.warnings == (
        UnusedConfigWarning(key="CONFIG_GHOST"),
        UnusedConfigWarning(key="CONFIG_LOG_LEVEL"),
        UndeclaredFeatureWarning(name="CONFIG_ASYNC"),
    )


@with_workspace()
def test_generation_is_independent_of_line_order(workspace_root: Path) -> None:
    ws = load_workspace(workspace_root)
    forward = parse_config_text('CONFIG_A=1\nCONFIG_B="x"\nCONFIG_NET=y\n')
    backward = parse_config_text('CONFIG_NET=y\nCONFIG_B="x"\nCONFIG_A=1\n')

    first = generate_artifacts(ws, forward)
    first_bytes = first.cargo_config_path.read_bytes(), first.constants_path.read_bytes()
    second = generate_artifacts(ws, backward)
    second_bytes = second.cargo_config_path.read_bytes(), second.constants_path.read_bytes()

    assert first_bytes == second_bytes


@with_workspace()
def test_write_failure_raises(workspace_root: Path) -> None:
    # A file where the .cargo directory should be.
    (workspace_root / ".cargo").write_text("", encoding="utf-8")
    ws = load_workspace(workspace_root)

    with pytest.raises(ArtifactWriteError) as exc_info:
        generate_artifacts(ws, parse_config_text("CONFIG_NET=y\n"))

    assert exc_info.value.path == ws.root / ".cargo" / "config.toml"


@with_workspace(config=None)
def test_write_config_template(workspace_root: Path) -> None:
    ws = load_workspace(workspace_root)
    path = workspace_root / ".config"

    assert write_config_template(ws, path)
    assert path.read_text(encoding="utf-8") == render_config_template(["CONFIG_NET", "CONFIG_ASYNC"])
    assert "# CONFIG_ASYNC=y\n# CONFIG_NET=y\n" in path.read_text(encoding="utf-8")
    assert not write_config_template(ws, path)
    # The template parses as an empty option file.
    assert len(parse_config(path)) == 0


@with_workspace()
def test_write_failure_leaves_no_partial_artifacts(workspace_root: Path) -> None:
    # A file where the target directory should be.
    (workspace_root / "target").write_text("", encoding="utf-8")
    ws = load_workspace(workspace_root)

    with pytest.raises(ArtifactWriteError) as exc_info:
        generate_artifacts(ws, parse_config_text("CONFIG_NET=y\n"))

    assert exc_info.value.path == ws.root / "target" / "kbuild" / "config.rs"
    assert not (ws.root / ".cargo" / "config.toml").exists()
    assert list((ws.root / ".cargo").iterdir()) == []


@pytest.mark.parametrize("key", ['CONFIG_A"B', "CONFIG_A)", "9CONFIG"])
@with_workspace()
def test_option_names_must_be_identifiers(workspace_root: Path, key: str) -> None:
    ws = load_workspace(workspace_root)
    config = parse_config_text(f"CONFIG_NET=y\n{key}=3\n")

    with pytest.raises(ConfigParseError) as exc_info:
        generate_artifacts(ws, config)

    assert exc_info.value.line == 2
    assert exc_info.value.reason == "option name is not a valid identifier"
    assert not (ws.root / ".cargo").exists()
    assert not (ws.root / "target").exists()


@with_workspace(
    crates=[{"name": "odd", "kbuild": True, "features": {"CONFIG_NET-V2": []}}],
    config="",
)
def test_feature_names_must_be_cfg_names(workspace_root: Path) -> None:
    ws = load_workspace(workspace_root)

    with pytest.raises(ManifestLoadError) as exc_info:
        generate_artifacts(ws, parse_config_text(""))

    assert exc_info.value.package == "odd"
    assert exc_info.value.reason == "feature 'CONFIG_NET-V2' is not a valid cfg name"
    assert not (ws.root / ".cargo").exists()
