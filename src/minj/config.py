"""Interpreter configuration loaded from YAML."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

CONFIG_ENV = "MINJ_CONFIG"
LOG_LEVEL_ENV = "MINJ_LOG_LEVEL"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised for malformed configuration documents."""


@dataclass(frozen=True)
class InterpreterConfig:
    recursion_limit: int = 10000
    log_level: str = "WARNING"
    trace_calls: bool = False
    source_encoding: str = "utf-8"

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "InterpreterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")

        config = cls(**data)
        if (not isinstance(config.recursion_limit, int)
                or isinstance(config.recursion_limit, bool)
                or config.recursion_limit <= 0):
            raise ConfigError("recursion_limit must be a positive integer")
        if not isinstance(config.trace_calls, bool):
            raise ConfigError("trace_calls must be true or false")
        return config.with_log_level(str(config.log_level))

    def with_log_level(self, level: str) -> "InterpreterConfig":
        level = level.upper()
        if level not in _LEVELS:
            raise ConfigError(f"invalid log level '{level}' (expected one of {', '.join(_LEVELS)})")
        return replace(self, log_level=level)


def load_config(path: Optional[Union[str, Path]] = None) -> InterpreterConfig:
    """
    Load interpreter settings.

    The document is read from ``path``, else from ``$MINJ_CONFIG``; with
    neither, defaults apply. ``$MINJ_LOG_LEVEL`` overrides ``log_level``.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV) or None

    config = InterpreterConfig()
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"config not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")
        config = InterpreterConfig.from_mapping(data)

    override = os.environ.get(LOG_LEVEL_ENV)
    if override:
        config = config.with_log_level(override)
    return config
