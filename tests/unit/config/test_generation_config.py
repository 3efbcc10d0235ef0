from __future__ import annotations

from pathlib import Path

import pytest

from ssg_helper.core.config import (
    FixedDelay,
    GenerationConfig,
    IpcSignal,
    PortRange,
    StdoutSignal,
    parse_env_port,
    parse_port,
    parse_wait,
)
from ssg_helper.core.exceptions import ConfigurationError, PortResolutionError

pytestmark = pytest.mark.fast


def _raw(tmp_path: Path, **extra):
    raw = {
        "cwd": str(tmp_path),
        "dir": {"ssr": "dist/ssr", "static": "dist/ssr/www", "ssg": "dist/ssg"},
        "server": {"command": ["node", "{ssr_dir}"]},
    }
    raw.update(extra)
    return raw


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("stdout", StdoutSignal()),
        ("ipc", IpcSignal()),
        (50, FixedDelay(50)),
        (12.5, FixedDelay(12.5)),
    ],
)
def test_parse_wait_accepts_supported_forms(raw, expected) -> None:
    assert parse_wait(raw) == expected


@pytest.mark.parametrize("raw", ["stderr", "", "ready", "STDOUT", " ipc ", "Ipc"])
def test_parse_wait_rejects_unknown_strings(raw) -> None:
    with pytest.raises(ConfigurationError, match="Allowed String parameters"):
        parse_wait(raw)


@pytest.mark.parametrize("raw", [0, -5, float("inf"), float("nan")])
def test_parse_wait_rejects_non_positive_delays(raw) -> None:
    with pytest.raises(ConfigurationError, match="greater than zero"):
        parse_wait(raw)


@pytest.mark.parametrize("raw", [True, None, ["stdout"], {"wait": 1}])
def test_parse_wait_rejects_other_types(raw) -> None:
    with pytest.raises(ConfigurationError):
        parse_wait(raw)


def test_fixed_delay_exposes_seconds_and_description() -> None:
    delay = FixedDelay(250)
    assert delay.kind == "delay"
    assert delay.seconds == pytest.approx(0.25)
    assert delay.describe() == "250ms"


def test_parse_port_forms() -> None:
    assert parse_port(None) is None
    assert parse_port("") is None
    assert parse_port(8080) == 8080
    assert parse_port("8080") == 8080
    assert parse_port([5000, 5010]) == PortRange(5000, 5010)
    assert parse_port((5000, 5000)) == PortRange(5000, 5000)


@pytest.mark.parametrize("raw", [[1], [1, 2, 3], ["a", "b"], "http", 80.5])
def test_parse_port_rejects_malformed_values(raw) -> None:
    with pytest.raises(PortResolutionError):
        parse_port(raw)


@pytest.mark.parametrize("bounds", [(10, 5), (0, 10), (65000, 70000)])
def test_port_range_validates_bounds(bounds) -> None:
    with pytest.raises(PortResolutionError, match="Invalid port range"):
        PortRange(*bounds)


def test_port_range_is_inclusive() -> None:
    assert list(PortRange(5000, 5002)) == [5000, 5001, 5002]


@pytest.mark.parametrize(
    "raw, expected",
    [(None, None), ("", None), ("  ", None), ("0", None), ("abc", None), ("9000", 9000), ("70000", 70000)],
)
def test_parse_env_port(raw, expected) -> None:
    assert parse_env_port(raw) == expected


def test_parse_env_port_rejects_fractional_values() -> None:
    with pytest.raises(PortResolutionError):
        parse_env_port("80.5")


def test_from_raw_resolves_dirs_against_cwd(tmp_path: Path) -> None:
    cfg = GenerationConfig.from_raw(_raw(tmp_path), env={})

    assert cfg.cwd == tmp_path.resolve()
    assert cfg.ssr_dir == tmp_path.resolve() / "dist" / "ssr"
    assert cfg.static_dir == tmp_path.resolve() / "dist" / "ssr" / "www"
    assert cfg.output_dir == tmp_path.resolve() / "dist" / "ssg"
    assert cfg.index_path == cfg.output_dir / "index.html"
    assert cfg.wait == StdoutSignal()
    assert cfg.port is None
    assert cfg.env_port is None


def test_from_raw_keeps_absolute_dirs(tmp_path: Path) -> None:
    out = tmp_path / "elsewhere" / "out"
    raw = _raw(tmp_path)
    raw["dir"]["ssg"] = str(out)

    cfg = GenerationConfig.from_raw(raw, env={})

    assert cfg.output_dir == out


def test_from_raw_reads_env_port_from_configured_variable(tmp_path: Path) -> None:
    raw = _raw(tmp_path, server={"command": ["node", "{ssr_dir}"], "port_env": "APP_PORT"})

    cfg = GenerationConfig.from_raw(raw, env={"APP_PORT": "4321", "PORT": "1111"})

    assert cfg.env_port == 4321
    assert cfg.port_env == "APP_PORT"


def test_from_raw_rejects_empty_dir(tmp_path: Path) -> None:
    raw = _raw(tmp_path)
    raw["dir"]["ssr"] = "  "
    with pytest.raises(ConfigurationError, match="dir.ssr"):
        GenerationConfig.from_raw(raw, env={})


def test_from_raw_rejects_string_command(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="server.command"):
        GenerationConfig.from_raw(_raw(tmp_path, server={"command": "node dist/ssr"}), env={})


def test_from_raw_rejects_non_positive_ready_timeout(tmp_path: Path) -> None:
    raw = _raw(tmp_path, server={"command": ["node"], "ready_timeout_seconds": 0})
    with pytest.raises(ConfigurationError, match="ready_timeout_seconds"):
        GenerationConfig.from_raw(raw, env={})


def test_render_command_substitutes_placeholders(tmp_path: Path) -> None:
    raw = _raw(tmp_path, server={"command": ["node", "{ssr_dir}", "--port={port}", "--root={cwd}"]})
    cfg = GenerationConfig.from_raw(raw, env={})

    argv = cfg.render_command(8123)

    assert argv == ["node", str(cfg.ssr_dir), "--port=8123", f"--root={cfg.cwd}"]


def test_render_command_rejects_unknown_placeholder(tmp_path: Path) -> None:
    cfg = GenerationConfig.from_raw(_raw(tmp_path, server={"command": ["node", "{entry}"]}), env={})
    with pytest.raises(ConfigurationError, match="placeholder"):
        cfg.render_command(8000)
