"""Tests for config.py: YAML loading and environment fallbacks."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from debugconsole.config import LoggingConfig, configure_logging, load_config
from debugconsole.errors import ConfigError

_ENV_VARS = (
    "DEBUGCONSOLE_CONFIG",
    "DEBUGCONSOLE_TITLE",
    "DEBUGCONSOLE_EMIT_SOUND",
    "DEBUGCONSOLE_HISTORY_LIMIT",
    "DEBUGCONSOLE_LOG_LEVEL",
    "DEBUGCONSOLE_LOG_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "absent.yaml")
        assert config.console.title == "Debug Console"
        assert config.console.emit_sound is True
        assert config.console.history_limit == 0
        assert config.logging.level == "WARNING"
        assert config.logging.file == ""

    def test_yaml_values(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "console:\n  title: Camera\n  emit_sound: false\n  history_limit: 50\n"
            "logging:\n  level: debug\n  file: /tmp/dc.log\n",
        )
        config = load_config(path)
        assert config.console.title == "Camera"
        assert config.console.emit_sound is False
        assert config.console.history_limit == 50
        assert config.logging.level == "DEBUG"
        assert config.logging.file == "/tmp/dc.log"

    def test_env_fallbacks(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEBUGCONSOLE_TITLE", "FromEnv")
        monkeypatch.setenv("DEBUGCONSOLE_EMIT_SOUND", "off")
        monkeypatch.setenv("DEBUGCONSOLE_HISTORY_LIMIT", "7")
        config = load_config(tmp_path / "absent.yaml")
        assert config.console.title == "FromEnv"
        assert config.console.emit_sound is False
        assert config.console.history_limit == 7

    def test_file_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEBUGCONSOLE_TITLE", "FromEnv")
        config = load_config(_write(tmp_path, "console:\n  title: FromFile\n"))
        assert config.console.title == "FromFile"

    def test_config_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(tmp_path, "console:\n  title: Pointed\n")
        monkeypatch.setenv("DEBUGCONSOLE_CONFIG", str(path))
        assert load_config().console.title == "Pointed"

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_config(_write(tmp_path, "")).console.title == "Debug Console"

    @pytest.mark.parametrize(
        "text",
        [
            "console: [1, 2",
            "- just\n- a list\n",
            "console: 3\n",
            "console:\n  emit_sound: maybe\n",
            "console:\n  history_limit: -1\n",
            "console:\n  history_limit: lots\n",
            "logging:\n  level: LOUD\n",
        ],
    )
    def test_invalid_values(self, tmp_path: Path, text: str) -> None:
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, text))


class TestConfigureLogging:
    def test_no_file_is_noop(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        configure_logging(LoggingConfig())
        assert calls == []

    def test_file_configures_basic_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        configure_logging(LoggingConfig(level="DEBUG", file=str(tmp_path / "logs" / "dc.log")))
        assert (tmp_path / "logs").is_dir()
        assert calls[0]["level"] == logging.DEBUG
        assert calls[0]["filename"].endswith("dc.log")
