from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

FILTER_STRATEGIES = {"database", "application"}
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DATABASE_URL: SQLAlchemy database URL. Default 'sqlite:///./data/todos.db'
    - FILTER_STRATEGY: 'database' (default) pushes list filters into SQL,
      'application' evaluates them in memory over top-level todos
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SQL_ECHO: 'true' to log every SQL statement (default: false)
    - LOG_LEVEL: root log level name (default: INFO; unknown names fall back to INFO)
    """

    database_url: str
    filter_strategy: str
    cors_allow_origins: List[str]
    sql_echo: bool
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_origins(origins_value: str) -> List[str]:
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    strategy = _get_env("FILTER_STRATEGY", "database").strip().lower()
    if strategy not in FILTER_STRATEGIES:
        strategy = "database"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        database_url=_get_env("DATABASE_URL", "sqlite:///./data/todos.db").strip(),
        filter_strategy=strategy,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        sql_echo=_parse_bool(_get_env("SQL_ECHO", "false"), False),
        log_level=log_level,
    )
