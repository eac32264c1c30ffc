"""Todosocial application configuration.

Loads settings from two YAML files:
  * todosocial.settings.yaml  - non-secret configuration
  * todosocial.secrets.yaml   - secrets (never committed)

Environment overrides:
  * TODOSOCIAL_DATABASE_PATH - DuckDB file path (``:memory:`` allowed)
  * TODOSOCIAL_JWT_SECRET    - bearer token signing key
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("todosocial.settings.yaml")
SECRETS_FILE  = Path("todosocial.secrets.yaml")

MEMORY_DATABASE = ":memory:"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Secrets models
# ---------------------------------------------------------------------------


class JWTSecrets(BaseModel):
    secret_key: str = "change-me-in-production"
    algorithm:  str = "HS256"


class Secrets(BaseModel):
    jwt: JWTSecrets = Field(default_factory=JWTSecrets)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str       = "0.0.0.0"
    port:            int       = 8000
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    level: str = "info"


class DatabaseSettings(BaseModel):
    path: str = "todosocial.duckdb"


class RealtimeSettings(BaseModel):
    """Connection registry and liveness supervision."""
    heartbeat_interval_seconds: float = 15.0
    require_join_token:         bool  = False

    @field_validator("heartbeat_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("heartbeat_interval_seconds must be positive")
        return value


class AppConfig(BaseModel):
    server:   ServerSettings   = Field(default_factory=ServerSettings)
    logging:  LoggingSettings  = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    secrets:  Secrets          = Field(default_factory=Secrets)


# ---------------------------------------------------------------------------
# Path and environment handling
# ---------------------------------------------------------------------------


def _resolve_database_path(config: AppConfig, settings_path: Path) -> None:
    """Resolve a relative database path against the settings file directory."""
    db_path = config.database.path
    if db_path == MEMORY_DATABASE or Path(db_path).is_absolute():
        return
    if settings_path.exists():
        config.database.path = str(settings_path.resolve().parent / db_path)


def _apply_env_overrides(config: AppConfig) -> None:
    db_path = os.environ.get("TODOSOCIAL_DATABASE_PATH")
    if db_path:
        config.database.path = db_path
        logger.info("Database path overridden from environment: %s", db_path)

    jwt_secret = os.environ.get("TODOSOCIAL_JWT_SECRET")
    if jwt_secret:
        config.secrets.jwt.secret_key = jwt_secret
        logger.info("JWT secret overridden from environment.")


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(
    settings_path: Optional[Path] = None,
    secrets_path: Optional[Path] = None,
) -> AppConfig:
    """Load and merge settings + secrets into a single *AppConfig* object."""
    settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
    secrets_path = Path(secrets_path) if secrets_path else SECRETS_FILE

    settings_data = _load_yaml(settings_path)
    secrets_data  = _load_yaml(secrets_path)

    # Merge: secrets live under the "secrets" key in AppConfig
    settings_data["secrets"] = secrets_data

    config = AppConfig(**settings_data)
    _resolve_database_path(config, settings_path)
    _apply_env_overrides(config)

    logger.info(
        "Config loaded (server=%s:%s, database=%s, heartbeat=%ss)",
        config.server.host,
        config.server.port,
        config.database.path,
        config.realtime.heartbeat_interval_seconds,
    )
    return config


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: AppConfig) -> None:
    global _config
    _config = config


def reset_config() -> None:
    global _config
    _config = None
