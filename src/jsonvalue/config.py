"""
Configuration for jsonvalue.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/jsonvalue/config.toml) if exists
3. Environment variables (JSONVALUE_*) override file
4. Function arguments override everything
"""

from __future__ import annotations

import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("jsonvalue.config")

DUPLICATE_KEY_POLICIES = ("last", "error")


@dataclass
class ParseConfig:
    """Parser limits and policies."""
    max_depth: int = 512  # deepest container nesting accepted
    duplicate_keys: str = "last"  # "last" keeps the final occurrence, "error" rejects

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if self.duplicate_keys not in DUPLICATE_KEY_POLICIES:
            raise ValueError(
                f"duplicate_keys must be one of {DUPLICATE_KEY_POLICIES}, got {self.duplicate_keys!r}"
            )


@dataclass
class Config:
    """Root config with all settings."""
    parse: ParseConfig = field(default_factory=ParseConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "jsonvalue" / "config.toml"
    return Path.home() / ".config" / "jsonvalue" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            logger.warning("Ignoring config file %s: %s", path, e)
            config = Config()

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "parse" in data:
        p = data["parse"]
        max_depth = int(p.get("max_depth", config.parse.max_depth))
        duplicate_keys = str(p.get("duplicate_keys", config.parse.duplicate_keys))
        config.parse = ParseConfig(max_depth=max_depth, duplicate_keys=duplicate_keys)

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "JSONVALUE_MAX_DEPTH": ("parse", "max_depth", int),
        "JSONVALUE_DUPLICATE_KEYS": ("parse", "duplicate_keys", str),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is None:
            continue
        current = getattr(config, section)
        try:
            values = {**vars(current), attr: conv(val)}
            setattr(config, section, type(current)(**values))
        except ValueError as e:
            logger.warning("Ignoring %s=%r: %s", env_key, val, e)

    return config


# Module-level config instance, loaded on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
