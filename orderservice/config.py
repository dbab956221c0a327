"""Service configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class ConfigError(Exception):
    """Raised when the environment does not describe a valid configuration."""


@dataclass(frozen=True)
class AppConfig:
    """HTTP application settings."""

    port: str = "8080"
    is_debug_mode: bool = True
    environment: str = "dev"


@dataclass(frozen=True)
class DBConfig:
    """Database connection settings."""

    connection_string: str
    migration_path: str = "migrations"


@dataclass(frozen=True)
class Config:
    """Complete service configuration."""

    app: AppConfig
    db: DBConfig


def _parse_bool(key: str, raw: str) -> bool:
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(
        f"config.load_config: failed to parse App config: "
        f"assigning {key}: invalid boolean value {raw!r}"
    )


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from ``environ`` (the process environment by default)."""
    env = os.environ if environ is None else environ

    defaults = AppConfig()
    app = AppConfig(
        port=env.get("SERVER_PORT", defaults.port),
        is_debug_mode=(
            _parse_bool("DEBUG", env["DEBUG"]) if "DEBUG" in env else defaults.is_debug_mode
        ),
        environment=env.get("ENVIRONMENT", defaults.environment),
    )

    if "DSN" not in env:
        raise ConfigError(
            "config.load_config: failed to parse DB config: "
            "required key DSN missing value"
        )
    db = DBConfig(
        connection_string=env["DSN"],
        migration_path=env.get("MIGRATION_PATH", "migrations"),
    )
    return Config(app=app, db=db)