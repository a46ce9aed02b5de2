"""Tests for configuration loading and precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from arrqueue.config.env import EnvReader
from arrqueue.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    get_config,
    get_default_config_path,
    load_config_file,
)
from arrqueue.queue.models import Service

CONFIG_TOML = """
[logging]
level = "warning"
format = "text"

[[instances]]
id = "sonarr-main"
name = "Sonarr"
service = "Sonarr"
url = "http://localhost:8989/"
api_key = "abc"

[[instances]]
id = "radarr-main"
service = "radarr"
url = "http://localhost:7878"
api_key = "def"
enabled = false
timeout_seconds = 5
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(CONFIG_TOML)
    return path


class TestGetDefaultConfigPath:
    """Tests for get_default_config_path()."""

    def test_default_location(self) -> None:
        assert get_default_config_path(EnvReader(env={})) == DEFAULT_CONFIG_FILE

    def test_env_override(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.toml"
        reader = EnvReader(env={"ARRQUEUE_CONFIG_PATH": str(custom)})
        assert get_default_config_path(reader) == custom


class TestLoadConfigFile:
    """Tests for load_config_file()."""

    def test_missing_file_returns_empty(self, tmp_path: Path) -> None:
        assert load_config_file(tmp_path / "missing.toml") == {}

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[[instances]\nid = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config_file(path)


class TestGetConfig:
    """Tests for get_config()."""

    def test_parses_instances(self, config_file: Path) -> None:
        config = get_config(config_path=config_file, env=EnvReader(env={}))

        sonarr, radarr = config.instances
        assert sonarr.service is Service.SONARR
        assert sonarr.url == "http://localhost:8989"
        assert sonarr.name == "Sonarr"
        assert radarr.name == "radarr-main"
        assert radarr.enabled is False
        assert radarr.timeout_seconds == 5.0
        assert [i.id for i in config.enabled_instances] == ["sonarr-main"]
        assert config.get_instance("radarr-main") is radarr
        assert config.logging.level == "warning"

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = get_config(
            config_path=tmp_path / "missing.toml", env=EnvReader(env={})
        )
        assert config.instances == []
        assert config.logging.level == "info"
        assert config.logging.format == "text"
        assert config.logging.file is None

    def test_env_overrides_file(self, config_file: Path, tmp_path: Path) -> None:
        env = EnvReader(
            env={
                "ARRQUEUE_LOG_LEVEL": "debug",
                "ARRQUEUE_LOG_FORMAT": "json",
                "ARRQUEUE_LOG_FILE": str(tmp_path / "env.log"),
            }
        )
        config = get_config(config_path=config_file, env=env)

        assert config.logging.level == "debug"
        assert config.logging.format == "json"
        assert config.logging.file == tmp_path / "env.log"

    def test_cli_overrides_env(self, config_file: Path, tmp_path: Path) -> None:
        env = EnvReader(env={"ARRQUEUE_LOG_LEVEL": "debug"})
        config = get_config(
            config_path=config_file,
            env=env,
            log_level="error",
            log_file=tmp_path / "cli.log",
            log_json=True,
        )

        assert config.logging.level == "error"
        assert config.logging.file == tmp_path / "cli.log"
        assert config.logging.format == "json"

    def test_invalid_service(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            '[[instances]]\nid = "x"\nservice = "lidarr"\n'
            'url = "http://x"\napi_key = "k"\n'
        )
        with pytest.raises(ConfigError, match="service must be"):
            get_config(config_path=path, env=EnvReader(env={}))

    def test_invalid_url(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            '[[instances]]\nid = "x"\nservice = "sonarr"\n'
            'url = "localhost:8989"\napi_key = "k"\n'
        )
        with pytest.raises(ConfigError, match="url must start with"):
            get_config(config_path=path, env=EnvReader(env={}))

    def test_duplicate_ids(self, tmp_path: Path) -> None:
        instance = (
            '[[instances]]\nid = "x"\nservice = "sonarr"\n'
            'url = "http://x"\napi_key = "k"\n'
        )
        path = tmp_path / "config.toml"
        path.write_text(instance + instance)
        with pytest.raises(ConfigError, match="duplicate instance id"):
            get_config(config_path=path, env=EnvReader(env={}))

    def test_invalid_log_level(self, config_file: Path) -> None:
        env = EnvReader(env={"ARRQUEUE_LOG_LEVEL": "verbose"})
        with pytest.raises(ConfigError, match="level must be one of"):
            get_config(config_path=config_file, env=env)
