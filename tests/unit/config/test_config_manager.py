from __future__ import annotations

from pathlib import Path

import pytest

from ssg_helper.core.config import ConfigManager, FixedDelay, IpcSignal, PortRange, StdoutSignal
from ssg_helper.core.exceptions import ConfigurationError

pytestmark = pytest.mark.fast


def test_defaults_match_conventional_layout(tmp_path: Path) -> None:
    cfg = ConfigManager(tmp_path, env={}).get_all()

    assert cfg["port"] is None
    assert cfg["wait"] == "stdout"
    assert cfg["dir"] == {"ssr": "dist/ssr", "static": "dist/ssr/www", "ssg": "dist/ssg"}
    assert cfg["server"]["command"] == ["node", "{ssr_dir}"]
    assert cfg["server"]["port_env"] == "PORT"
    assert cfg["server"]["ready_timeout_seconds"] is None


def test_build_uses_manager_cwd_when_config_has_none(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path, env={}).build()

    assert config.cwd == tmp_path.resolve()
    assert config.ssr_dir == tmp_path.resolve() / "dist" / "ssr"
    assert config.wait == StdoutSignal()


def test_ssr_dir_resolves_without_parsing_wait_or_port(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path, env={})
    overrides = {"wait": 0, "port": [0, 10], "dir": {"ssr": "build/server"}}

    assert manager.ssr_dir(overrides) == tmp_path.resolve() / "build" / "server"
    with pytest.raises(ConfigurationError):
        manager.build(overrides)


def test_project_file_overrides_defaults(tmp_path: Path) -> None:
    (tmp_path / "ssg.yaml").write_text(
        "wait: ipc\nport: [5000, 5010]\ndir:\n  ssg: public\n",
        encoding="utf-8",
    )

    config = ConfigManager(tmp_path, env={}).build()

    assert config.wait == IpcSignal()
    assert config.port == PortRange(5000, 5010)
    assert config.output_dir == tmp_path.resolve() / "public"
    # Sibling keys survive the nested merge.
    assert config.ssr_dir == tmp_path.resolve() / "dist" / "ssr"


def test_yml_extension_is_picked_up(tmp_path: Path) -> None:
    (tmp_path / "ssg.yml").write_text("wait: 75\n", encoding="utf-8")

    assert ConfigManager(tmp_path, env={}).build().wait == FixedDelay(75)


def test_explicit_config_file_wins_over_project_file(tmp_path: Path) -> None:
    (tmp_path / "ssg.yaml").write_text("wait: ipc\n", encoding="utf-8")
    (tmp_path / "ci.yaml").write_text("wait: 20\n", encoding="utf-8")

    manager = ConfigManager(tmp_path, config_file=Path("ci.yaml"), env={})

    assert manager.project_config_path() == tmp_path.resolve() / "ci.yaml"
    assert manager.build().wait == FixedDelay(20)


def test_missing_explicit_config_file_is_an_error(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path, config_file=tmp_path / "nope.yaml", env={})
    with pytest.raises(ConfigurationError, match="not found"):
        manager.get_all()


def test_invalid_yaml_fails_closed(tmp_path: Path) -> None:
    (tmp_path / "ssg.yaml").write_text("dir: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Could not parse"):
        ConfigManager(tmp_path, env={}).get_all()


def test_non_mapping_project_file_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "ssg.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="mapping"):
        ConfigManager(tmp_path, env={}).get_all()


def test_env_overrides_are_nested_and_typed(tmp_path: Path) -> None:
    env = {
        "SSG_WAIT": "250",
        "SSG_PORT": "[7000, 7005]",
        "SSG_DIR__SSG": "out",
        "SSG_SERVER__READY_TIMEOUT_SECONDS": "2.5",
        "SSG_UNRELATED": "ignored",
        "OTHER": "x",
    }
    cfg = ConfigManager(tmp_path, env=env).get_all()

    assert cfg["wait"] == 250
    assert cfg["port"] == [7000, 7005]
    assert cfg["dir"]["ssg"] == "out"
    assert cfg["dir"]["ssr"] == "dist/ssr"
    assert cfg["server"]["ready_timeout_seconds"] == 2.5
    assert "unrelated" not in cfg


def test_env_override_null_clears_value(tmp_path: Path) -> None:
    (tmp_path / "ssg.yaml").write_text("port: 9000\n", encoding="utf-8")

    cfg = ConfigManager(tmp_path, env={"SSG_PORT": "null"}).get_all()

    assert cfg["port"] is None


def test_env_overrides_do_not_mutate_loaded_layers(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path, env={"SSG_DIR__SSG": "out"})
    base = {"dir": {"ssg": "dist/ssg"}}

    merged = manager.apply_env_overrides(base)

    assert merged["dir"]["ssg"] == "out"
    assert base["dir"]["ssg"] == "dist/ssg"


def test_malformed_env_key_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="empty segment"):
        ConfigManager(tmp_path, env={"SSG_DIR____SSG": "x"}).get_all()


def test_caller_overrides_beat_every_layer(tmp_path: Path) -> None:
    (tmp_path / "ssg.yaml").write_text("wait: ipc\n", encoding="utf-8")
    manager = ConfigManager(tmp_path, env={"SSG_WAIT": "100"})

    config = manager.build({"wait": FixedDelay(40), "port": PortRange(6000, 6001), "dir": {"ssg": tmp_path / "o"}})

    assert config.wait == FixedDelay(40)
    assert config.port == PortRange(6000, 6001)
    assert config.output_dir == tmp_path / "o"


def test_schema_violations_are_reported(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path, env={})

    with pytest.raises(ConfigurationError) as excinfo:
        manager.get_all({"port": [1, 2, 3], "bogus": True})

    errors = excinfo.value.context["errors"]
    assert any(e.startswith("<root>") and "bogus" in e for e in errors)
    assert any(e.startswith("port") for e in errors)


def test_get_supports_dot_notation(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path, env={})

    assert manager.get("dir.static") == "dist/ssr/www"
    assert manager.get("server.port_env") == "PORT"
    assert manager.get("dir.missing", "fallback") == "fallback"


def test_deploy_port_is_not_a_config_layer(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path, env={"PORT": "9100"})

    assert manager.get_all()["port"] is None
    assert manager.build().env_port == 9100
