"""Configuration management for objectnet using Pydantic models."""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILE_NAME = ".objectnet.json"


class NestedRecordingPolicy(str, Enum):
    """How a nested validation record is recorded in its parent."""
    INVALID_ONLY = "invalid_only"  # record only if non-empty when observed
    ALWAYS = "always"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


_LOG_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def _check_max_depth(v: int | None) -> int | None:
    if v is not None and v < 1:
        raise ValueError("max_depth must be >= 1")
    return v


class BuilderConfig(BaseModel):
    """Builder engine configuration section."""
    max_depth: int | None = Field(alias="maxDepth", default=None)

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v):
        return _check_max_depth(v)

    model_config = ConfigDict(populate_by_name=True)


class ValidationConfig(BaseModel):
    """Validator engine configuration section."""
    nested_recording: NestedRecordingPolicy = Field(
        alias="nestedRecording", default=NestedRecordingPolicy.INVALID_ONLY
    )
    max_depth: int | None = Field(alias="maxDepth", default=None)

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v):
        return _check_max_depth(v)

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO


class ObjectNetConfig(BaseModel):
    """Complete objectnet configuration model."""
    builder: BuilderConfig = Field(default_factory=BuilderConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> ObjectNetConfig:
    """Read an ObjectNetConfig from a .objectnet.json file.

    With no path, the nearest .objectnet.json at or above the working
    directory is used; when there is none the defaults apply. Keys may use
    either the camelCase aliases or the field names.

    Raises:
        FileNotFoundError: config_path was given and is not a file
        ValueError: The file is not JSON or holds values the models reject
    """
    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            return create_default_config()
    else:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        config_data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {config_path}: {e}") from e

    try:
        return ObjectNetConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest .objectnet.json in start_dir (default: cwd) or one of its parents."""
    start = Path(start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def create_default_config() -> ObjectNetConfig:
    """Create default configuration (unbounded depth, invalid-only recording)."""
    return ObjectNetConfig()


def configure_logging(config: ObjectNetConfig) -> None:
    """Apply the configured level to the package logger.

    Handlers are left to the application.
    """
    logging.getLogger("objectnet").setLevel(_LOG_LEVELS[LogLevel(config.logging.level)])
