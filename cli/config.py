from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_UPLOAD_HOST = "127.0.0.1"
DEFAULT_UPLOAD_PORT = 8090
DEFAULT_TIMEOUT = 30.0

_BASE_URL_ENV = "API_BASE_URL"
_UPLOAD_HOST_ENV = "UPLOAD_HOST"
_UPLOAD_PORT_ENV = "UPLOAD_PORT"
_TIMEOUT_ENV = "CLI_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    upload_host: str = DEFAULT_UPLOAD_HOST
    upload_port: int = DEFAULT_UPLOAD_PORT
    timeout: float = DEFAULT_TIMEOUT


def _read_float(value: Optional[str], default: float) -> float:
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


def _read_port(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def load_config(
    base_url: Optional[str] = None,
    upload_host: Optional[str] = None,
    upload_port: Optional[int] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    host = upload_host or (os.getenv(_UPLOAD_HOST_ENV) or "").strip() or DEFAULT_UPLOAD_HOST
    # The server binds 0.0.0.0 by default; connect to loopback instead.
    if host == "0.0.0.0":
        host = DEFAULT_UPLOAD_HOST
    if upload_port is None:
        upload_port = _read_port(os.getenv(_UPLOAD_PORT_ENV), DEFAULT_UPLOAD_PORT)
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    return CLIConfig(
        base_url=url.rstrip("/"),
        upload_host=host,
        upload_port=upload_port,
        timeout=timeout,
    )
