"""Process-scoped collaborators shared by every module."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass

import redis
from psycopg_pool import ConnectionPool

from .config import Settings
from .db import NestedStrategy, Transactor
from .eventbus import EventBus
from .mediator import Mediator
from .security import (
    CredentialService,
    PasslibHasher,
    PasswordHasher,
    RateLimiter,
    RefreshTokenStore,
    SlidingWindowRateLimiter,
    TokenService,
)
from .security.redis_rate_limiter import RedisSlidingWindowRateLimiter
from .tenancy import TenantResolver

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything built once at startup and torn down on shutdown."""

    settings: Settings
    pool: ConnectionPool
    executor: Executor
    event_executor: Executor
    transactor: Transactor
    mediator: Mediator
    event_bus: EventBus
    tokens: TokenService
    credentials: CredentialService
    hasher: PasswordHasher
    rate_limiter: RateLimiter
    tenants: TenantResolver

    def close(self) -> None:
        """Drain post-commit hooks, then event delivery, then close the pool."""
        # hooks publish events, so the event workers must outlive them
        self.executor.shutdown(wait=True)
        self.event_executor.shutdown(wait=True)
        self.pool.close()


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Instantiate the configured throttle backend, preferring Redis when configured and reachable."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
        except redis.RedisError as exc:
            logger.warning("redis rate limiter unavailable, falling back to in-memory: %s", exc)
        else:
            logger.info("rate limiter configured for redis backend")
            return RedisSlidingWindowRateLimiter(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )

    logger.info("rate limiter using in-memory backend")
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def build_runtime(
    settings: Settings,
    *,
    pool: ConnectionPool | None = None,
    executor: Executor | None = None,
    event_executor: Executor | None = None,
    refresh_store: RefreshTokenStore | None = None,
    hasher: PasswordHasher | None = None,
    rate_limiter: RateLimiter | None = None,
) -> Runtime:
    """Wire the shared collaborators; the pool is created closed and opened by the app lifespan."""
    if pool is None:
        pool = ConnectionPool(
            settings.db_dsn,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            open=False,
        )
    if executor is None:
        executor = ThreadPoolExecutor(max_workers=settings.hook_workers, thread_name_prefix="hrms-hooks")
    if event_executor is None:
        event_executor = ThreadPoolExecutor(max_workers=settings.hook_workers, thread_name_prefix="hrms-events")
    transactor = Transactor(pool, executor, nested=NestedStrategy.savepoints)
    mediator = Mediator()
    tokens = TokenService(
        settings.jwt_access_secret,
        settings.jwt_refresh_secret,
        settings.access_ttl,
        settings.refresh_ttl,
    )
    if refresh_store is None:
        from .modules.auth.repository import AuthRepository

        refresh_store = AuthRepository(transactor.db_context)

    return Runtime(
        settings=settings,
        pool=pool,
        executor=executor,
        event_executor=event_executor,
        transactor=transactor,
        mediator=mediator,
        event_bus=EventBus(event_executor),
        tokens=tokens,
        credentials=CredentialService(tokens, refresh_store, transactor),
        hasher=hasher or PasslibHasher(),
        rate_limiter=rate_limiter or build_rate_limiter(settings),
        tenants=TenantResolver(mediator),
    )
