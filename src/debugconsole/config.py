"""Configuration loader: YAML file with environment variable fallbacks."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

_TRUTHY = ("true", "1", "yes", "on")
_FALSY = ("false", "0", "no", "off")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ConsoleConfig:
    title: str = "Debug Console"
    emit_sound: bool = True
    history_limit: int = 0  # 0 = unbounded


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = ""  # empty = no logging; the terminal is owned by the console


@dataclass
class AppConfig:
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_data_dir() -> Path:
    return Path.home() / ".debugconsole"


def _get_config_path(data_dir: Path | None = None) -> Path:
    env_path = os.environ.get("DEBUGCONSOLE_CONFIG")
    if env_path and data_dir is None:
        return Path(env_path).expanduser()
    return (data_dir or _resolve_data_dir()) / "config.yaml"


def _parse_bool(raw: Any, key: str) -> bool:
    if isinstance(raw, bool):
        return raw
    lowered = str(raw).strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _parse_int(raw: Any, key: str, minimum: int = 0) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    return section


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML; a missing file yields defaults plus env overrides."""
    path = config_path or _get_config_path()
    raw: dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

    console_raw = _section(raw, "console")
    title = str(console_raw.get("title") or os.environ.get("DEBUGCONSOLE_TITLE", "Debug Console"))
    emit_sound = _parse_bool(
        console_raw.get("emit_sound", os.environ.get("DEBUGCONSOLE_EMIT_SOUND", "true")),
        "console.emit_sound",
    )
    history_limit = _parse_int(
        console_raw.get("history_limit", os.environ.get("DEBUGCONSOLE_HISTORY_LIMIT", 0)),
        "console.history_limit",
    )

    logging_raw = _section(raw, "logging")
    level = str(logging_raw.get("level") or os.environ.get("DEBUGCONSOLE_LOG_LEVEL", "WARNING")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {', '.join(_LOG_LEVELS)}, got {level!r}")
    log_file = str(logging_raw.get("file") or os.environ.get("DEBUGCONSOLE_LOG_FILE", ""))

    return AppConfig(
        console=ConsoleConfig(title=title, emit_sound=emit_sound, history_limit=history_limit),
        logging=LoggingConfig(level=level, file=log_file),
    )


def configure_logging(config: LoggingConfig) -> None:
    """Send log records to a file; without one, logging stays unconfigured."""
    if not config.file:
        return
    log_path = Path(config.file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path),
        level=getattr(logging, config.level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
