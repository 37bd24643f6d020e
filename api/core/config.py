"""
Environment-driven settings.

Every value is read at call time so tests can override it with
`monkeypatch.setenv`. Malformed numbers fall back to the default.
"""

from __future__ import annotations

import os


def env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def app_env() -> str:
    return env_str("APP_ENV", "development").lower()


def is_production() -> bool:
    return app_env() == "production"


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def pool_max_size() -> int:
    return max(1, env_int("DB_POOL_MAX", 20))


def acquire_timeout_s() -> float:
    return env_float("DB_ACQUIRE_TIMEOUT_S", 5.0)


def command_timeout_s() -> float:
    return env_float("DB_COMMAND_TIMEOUT_S", 30.0)


def idle_timeout_s() -> float:
    return env_float("DB_IDLE_TIMEOUT_S", 30.0)


def connect_retries() -> int:
    return max(1, env_int("DB_CONNECT_RETRIES", 5))


def connect_retry_delay_s() -> float:
    return env_float("DB_CONNECT_RETRY_DELAY_S", 3.0)


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
