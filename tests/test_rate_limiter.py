"""Tests for the in-memory and Redis-backed sliding window rate limiters."""

from __future__ import annotations

import time

import fakeredis
import pytest

from hrms.security import SlidingWindowRateLimiter
from hrms.security.redis_rate_limiter import RedisSlidingWindowRateLimiter


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


def test_memory_rate_limiter_blocks_excess_with_retry_after():
    limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)
    key = "login:127.0.0.1:alice"

    assert limiter.hit(key).allowed
    assert limiter.hit(key).allowed
    decision = limiter.hit(key)

    assert not decision.allowed
    assert 1 <= decision.retry_after <= 60


def test_memory_rate_limiter_keys_are_independent():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)

    assert limiter.hit("login:a").allowed
    assert limiter.hit("login:b").allowed
    assert not limiter.hit("login:a").allowed


def test_memory_rate_limiter_reset_clears_history():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
    assert limiter.hit("k").allowed
    assert not limiter.hit("k").allowed

    limiter.reset("k")

    assert limiter.hit("k").allowed


def test_memory_rate_limiter_expires_entries():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=1)
    assert limiter.hit("k").allowed
    assert not limiter.hit("k").allowed
    time.sleep(1.1)
    assert limiter.hit("k").allowed


def test_redis_rate_limiter_allows_within_threshold(redis_client):
    limiter = RedisSlidingWindowRateLimiter(redis_client, max_requests=3, window_seconds=1, key_prefix="test")
    key = "login:10.0.0.1:alice"
    assert limiter.hit(key).allowed
    assert limiter.hit(key).allowed
    assert limiter.hit(key).allowed


def test_redis_rate_limiter_blocks_excess(redis_client):
    limiter = RedisSlidingWindowRateLimiter(redis_client, max_requests=2, window_seconds=30, key_prefix="test")
    key = "login:10.0.0.1:alice"
    assert limiter.hit(key).allowed
    assert limiter.hit(key).allowed

    decision = limiter.hit(key)
    assert not decision.allowed
    assert 1 <= decision.retry_after <= 30


def test_redis_rate_limiter_expires_entries(redis_client):
    limiter = RedisSlidingWindowRateLimiter(redis_client, max_requests=1, window_seconds=1, key_prefix="test")
    key = "refresh:10.0.0.1:abc"
    assert limiter.hit(key).allowed
    assert not limiter.hit(key).allowed
    time.sleep(1.1)
    assert limiter.hit(key).allowed


def test_redis_rate_limiter_reset(redis_client):
    limiter = RedisSlidingWindowRateLimiter(redis_client, max_requests=1, window_seconds=30, key_prefix="test")
    assert limiter.hit("k").allowed
    assert not limiter.hit("k").allowed

    limiter.reset("k")

    assert limiter.hit("k").allowed
    assert redis_client.exists("test:k")
