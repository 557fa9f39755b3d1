from __future__ import annotations

from datetime import timedelta

import pytest

from hrms.config import ConfigError, Settings, parse_duration

REQUIRED = {
    "DB_DSN": "postgresql://localhost/hrms",
    "JWT_ACCESS_SECRET": "a" * 32,
    "JWT_REFRESH_SECRET": "b" * 32,
}


def test_from_env_applies_defaults():
    settings = Settings.from_env(REQUIRED)

    assert settings.access_ttl == timedelta(minutes=15)
    assert settings.refresh_ttl == timedelta(hours=720)
    assert settings.graceful_timeout == timedelta(seconds=10)
    assert settings.http_port == 8080
    assert settings.rate_limit_backend == "memory"
    assert settings.advertised_server is None


def test_from_env_reads_overrides():
    env = dict(
        REQUIRED,
        JWT_ACCESS_TTL="1h30m",
        HTTP_PORT="9000",
        COOKIE_SECURE="true",
        LOG_LEVEL="debug",
        RATE_LIMIT_BACKEND="REDIS",
    )
    settings = Settings.from_env(env)

    assert settings.access_ttl == timedelta(hours=1, minutes=30)
    assert settings.http_port == 9000
    assert settings.cookie_secure is True
    assert settings.log_level == "DEBUG"
    assert settings.rate_limit_backend == "redis"


@pytest.mark.parametrize("key", sorted(REQUIRED))
def test_missing_required_key_fails(key):
    env = {k: v for k, v in REQUIRED.items() if k != key}
    with pytest.raises(ConfigError) as exc_info:
        Settings.from_env(env)
    assert key in str(exc_info.value)


def test_invalid_values_fail_with_the_key_name():
    with pytest.raises(ConfigError, match="JWT_REFRESH_TTL"):
        Settings.from_env(dict(REQUIRED, JWT_REFRESH_TTL="forever"))
    with pytest.raises(ConfigError, match="HTTP_PORT"):
        Settings.from_env(dict(REQUIRED, HTTP_PORT="eighty"))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("15m", timedelta(minutes=15)),
        ("720h", timedelta(hours=720)),
        ("500ms", timedelta(milliseconds=500)),
        ("0", timedelta(0)),
    ],
)
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize(
    ("host", "base_path", "expected"),
    [
        ("api.example.com", "", "//api.example.com"),
        ("https://api.example.com", "hr/", "https://api.example.com/hr"),
        ("gw:8443", "/v1", "//gw:8443/v1"),
    ],
)
def test_advertised_server(host, base_path, expected):
    settings = Settings.from_env(dict(REQUIRED, GATEWAY_HOST=host, GATEWAY_BASE_PATH=base_path))
    assert settings.advertised_server == expected
