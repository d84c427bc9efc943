from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_BACKEND_ENV = "STORE_BACKEND"
_REDIS_URL_ENV = "REDIS_URL"
_REDIS_TIMEOUT_ENV = "REDIS_SOCKET_TIMEOUT"
_UPLOAD_HOST_ENV = "UPLOAD_HOST"
_UPLOAD_PORT_ENV = "UPLOAD_PORT"
_UPLOAD_ENABLED_ENV = "UPLOAD_SERVER_ENABLED"
_UPLOAD_READ_SIZE_ENV = "UPLOAD_READ_SIZE"
_DEFAULT_CONTROLLER_ENV = "DEFAULT_CONTROLLER_ID"
_CONTROLLER_URL_ENV = "CONTROLLER_VIEW_URL"
_TICK_TIMEZONE_ENV = "TICK_TIMEZONE"
_OPLOG_SIZE_ENV = "OPERATIONAL_LOG_SIZE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_STORE_BACKENDS = {"redis", "memory"}


@dataclass(frozen=True)
class Settings:
    store_backend: str
    redis_url: str
    redis_socket_timeout: float
    upload_host: str
    upload_port: int
    upload_server_enabled: bool
    upload_read_size: int
    default_controller_id: str
    controller_view_url: str
    tick_timezone: Optional[str]
    operational_log_size: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_store_backend(default: str) -> str:
    candidate = _read_str_env(_STORE_BACKEND_ENV, default).lower()
    return candidate if candidate in _STORE_BACKENDS else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_backend=_read_store_backend("redis"),
        redis_url=_read_str_env(_REDIS_URL_ENV, "redis://127.0.0.1:6379/0"),
        redis_socket_timeout=_read_positive_float(_REDIS_TIMEOUT_ENV, 5.0),
        upload_host=_read_str_env(_UPLOAD_HOST_ENV, "0.0.0.0"),
        upload_port=_read_positive_int(_UPLOAD_PORT_ENV, 8090),
        upload_server_enabled=_read_bool(_UPLOAD_ENABLED_ENV, True),
        upload_read_size=_read_positive_int(_UPLOAD_READ_SIZE_ENV, 256),
        default_controller_id=_read_str_env(_DEFAULT_CONTROLLER_ENV, "1"),
        controller_view_url=_read_str_env(
            _CONTROLLER_URL_ENV,
            "http://ardusensor.com/index.html#/{controller_id}/{token}",
        ),
        tick_timezone=_read_optional_env(_TICK_TIMEZONE_ENV, None),
        operational_log_size=_read_positive_int(_OPLOG_SIZE_ENV, 1001),
        log_level=_read_log_level("INFO"),
    )
