"""
topicstack configuration.

Loaded from ``$TOPICSTACK_HOME/config.toml`` (default ``~/.topicstack``)
and validated with pydantic.  Environment variables override file values:

  TOPICSTACK_LOG_LEVEL      logging.level
  TOPICSTACK_DB_PATH        store.path
  TOPICSTACK_TURN_TIMEOUT   engine.turn_timeout_seconds
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal

import tomli_w
from pydantic import BaseModel, Field, ValidationError, field_validator

from topicstack.core.exceptions import ConfigError, ConfigNotFoundError

CONFIG_FILENAME = "config.toml"
DB_FILENAME = "topicstack.db"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def config_dir() -> Path:
    """Return the topicstack home directory."""
    env = os.environ.get("TOPICSTACK_HOME", "")
    return Path(env).expanduser() if env else Path.home() / ".topicstack"


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: Literal["console", "json"] = "console"

    @field_validator("level")
    @classmethod
    def _check_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(_LOG_LEVELS)}")
        return level


class StoreConfig(BaseModel):
    backend: Literal["memory", "sqlite"] = "sqlite"
    path: str | None = None


class EngineConfig(BaseModel):
    turn_timeout_seconds: float | None = Field(default=None, gt=0, le=3600)
    app: str = "topicstack.demo:build_registry"
    channel: str = "web"


class TraceConfig(BaseModel):
    enabled: bool = False
    path: str | None = None
    max_bytes: int = Field(default=5 * 1024 * 1024, ge=1024)


class TopicStackConfig(BaseModel):
    config_version: int = 1
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    trace: TraceConfig = Field(default_factory=TraceConfig)

    @property
    def db_path(self) -> Path:
        if self.store.path:
            return Path(self.store.path).expanduser()
        return config_dir() / DB_FILENAME

    @property
    def trace_path(self) -> Path:
        from topicstack.core.trace import TRACE_FILENAME

        if self.trace.path:
            return Path(self.trace.path).expanduser()
        return config_dir() / TRACE_FILENAME


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    level = os.environ.get("TOPICSTACK_LOG_LEVEL")
    if level:
        data.setdefault("logging", {})["level"] = level
    db_path = os.environ.get("TOPICSTACK_DB_PATH")
    if db_path:
        data.setdefault("store", {})["path"] = db_path
    timeout = os.environ.get("TOPICSTACK_TURN_TIMEOUT")
    if timeout:
        data.setdefault("engine", {})["turn_timeout_seconds"] = timeout
    return data


def _validate(data: dict[str, Any], source: str) -> TopicStackConfig:
    try:
        return TopicStackConfig.model_validate(_apply_env_overrides(data))
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc


def load_config(path: Path | None = None) -> TopicStackConfig:
    """Load and validate the configuration file.

    Raises:
        ConfigNotFoundError: the file does not exist.
        ConfigError: the file is not valid TOML or fails validation.
    """
    path = path or config_dir() / CONFIG_FILENAME
    if not path.exists():
        raise ConfigNotFoundError(f"Config file not found: {path}")
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc
    return _validate(data, str(path))


def default_config() -> TopicStackConfig:
    """Configuration used when no file exists (env overrides still apply)."""
    return _validate({}, "defaults")


def save_config(data: dict[str, Any], path: Path | None = None) -> Path:
    """Validate *data* and write it as TOML with 0600 permissions."""
    path = path or config_dir() / CONFIG_FILENAME
    TopicStackConfig.model_validate(data)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    with path.open("wb") as fh:
        tomli_w.dump(data, fh)
    path.chmod(0o600)
    return path
