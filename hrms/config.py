"""Process configuration loaded from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Mapping


class ConfigError(RuntimeError):
    """Raised when the process environment cannot produce valid settings."""


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> timedelta:
    """Parse a Go-style duration string such as ``15m``, ``720h`` or ``1h30m``."""
    text = value.strip()
    if not text:
        raise ConfigError("empty duration")
    if text == "0":
        return timedelta(0)
    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ConfigError(f"invalid duration {value!r}")
    return timedelta(seconds=seconds)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    db_dsn: str
    jwt_access_secret: str
    jwt_refresh_secret: str
    app_name: str = "hrms-api"
    version: str = "0.1.0"
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    gateway_host: str = ""
    gateway_base_path: str = ""
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(hours=720)
    graceful_timeout: timedelta = timedelta(seconds=10)
    request_timeout: timedelta = timedelta(seconds=30)
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    log_level: str = "INFO"
    cookie_secure: bool = False
    rate_limit_requests: int = 10
    rate_limit_window_seconds: int = 60
    rate_limit_backend: str = "memory"
    redis_url: str = ""
    hook_workers: int = 4

    @property
    def advertised_server(self) -> str | None:
        """Base URL advertised in the OpenAPI document, when a gateway is configured."""
        if not self.gateway_host:
            return None
        base_path = self.gateway_base_path.rstrip("/")
        if base_path and not base_path.startswith("/"):
            base_path = f"/{base_path}"
        host = self.gateway_host
        if "://" not in host:
            host = f"//{host}"
        return f"{host}{base_path}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, failing on missing required keys."""
        env = os.environ if environ is None else environ

        missing = [
            key
            for key in ("DB_DSN", "JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET")
            if not env.get(key, "").strip()
        ]
        if missing:
            raise ConfigError(f"missing required configuration: {', '.join(missing)}")

        def duration(key: str, default: str) -> timedelta:
            try:
                return parse_duration(env.get(key, default))
            except ConfigError as exc:
                raise ConfigError(f"{key}: {exc}") from exc

        def integer(key: str, default: int) -> int:
            raw = env.get(key)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"{key}: expected an integer, got {raw!r}") from exc

        return cls(
            db_dsn=env["DB_DSN"],
            jwt_access_secret=env["JWT_ACCESS_SECRET"],
            jwt_refresh_secret=env["JWT_REFRESH_SECRET"],
            app_name=env.get("APP_NAME", "hrms-api"),
            http_host=env.get("HTTP_HOST", "0.0.0.0"),
            http_port=integer("HTTP_PORT", 8080),
            gateway_host=env.get("GATEWAY_HOST", ""),
            gateway_base_path=env.get("GATEWAY_BASE_PATH", ""),
            access_ttl=duration("JWT_ACCESS_TTL", "15m"),
            refresh_ttl=duration("JWT_REFRESH_TTL", "720h"),
            graceful_timeout=duration("GRACEFUL_TIMEOUT", "10s"),
            request_timeout=duration("REQUEST_TIMEOUT", "30s"),
            db_pool_min_size=integer("DB_POOL_MIN_SIZE", 1),
            db_pool_max_size=integer("DB_POOL_MAX_SIZE", 10),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            cookie_secure=_parse_bool(env.get("COOKIE_SECURE", "false")),
            rate_limit_requests=integer("RATE_LIMIT_REQUESTS", 10),
            rate_limit_window_seconds=integer("RATE_LIMIT_WINDOW_SECONDS", 60),
            rate_limit_backend=env.get("RATE_LIMIT_BACKEND", "memory").lower(),
            redis_url=env.get("REDIS_URL", ""),
            hook_workers=integer("HOOK_WORKERS", 4),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings.from_env()
