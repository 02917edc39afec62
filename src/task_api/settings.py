from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_SECRET: HMAC secret used to sign bearer tokens
    - JWT_ALGORITHM: signing algorithm (default: HS256)
    - JWT_TTL_MINUTES: lifetime of an issued token in minutes (default: 60)
    - BCRYPT_ROUNDS: bcrypt cost factor (default: 12)
    - TASKS_PER_PAGE: default page size for task listings (default: 10)
    - LOG_LEVEL: root log level name (default: INFO)
    - LOG_FILE: optional path of a log file written in addition to stderr
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    jwt_secret: str
    jwt_algorithm: str
    jwt_ttl_minutes: int
    bcrypt_rounds: int
    tasks_per_page: int
    log_level: str
    log_file: Optional[str]


_DEV_JWT_SECRET = "dev-only-secret-change-me-0123456789abcdef"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int, minimum: int = 1) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/tasks.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    # bcrypt accepts cost factors 4..31
    rounds = min(_parse_int(_get_env("BCRYPT_ROUNDS", "12"), 12, minimum=4), 31)

    log_file = os.getenv("LOG_FILE") or None

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        jwt_secret=_get_env("JWT_SECRET", _DEV_JWT_SECRET),
        jwt_algorithm=_get_env("JWT_ALGORITHM", "HS256").strip().upper(),
        jwt_ttl_minutes=_parse_int(_get_env("JWT_TTL_MINUTES", "60"), 60),
        bcrypt_rounds=rounds,
        tasks_per_page=_parse_int(_get_env("TASKS_PER_PAGE", "10"), 10),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_file=log_file,
    )
