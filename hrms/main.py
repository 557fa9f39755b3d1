"""FastAPI application wiring and the process entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Callable, Iterable

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .api import problems
from .api.middleware import RequestLoggingMiddleware
from .config import ConfigError, Settings, get_settings
from .logs import configure_logging
from .modules import Module
from .modules.activitylog import ActivityLogModule, ActivityLogRepository
from .modules.auth import AuthModule, AuthRepository
from .modules.company import CompanyModule, CompanyRepository
from .modules.superadmin import SuperAdminModule
from .modules.tenant import TenantModule, TenantRepository
from .modules.user import UserModule, UserRepository
from .runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ModuleFactory = Callable[[Runtime], Iterable[Module]]


def default_modules(runtime: Runtime) -> list[Module]:
    """Every feature module backed by its Postgres repository."""
    db = runtime.transactor.db_context
    return [
        TenantModule(TenantRepository(db)),
        CompanyModule(CompanyRepository(db), runtime.transactor),
        UserModule(UserRepository(db), runtime.transactor, runtime.hasher),
        AuthModule(AuthRepository(db), runtime.credentials, runtime.hasher, runtime.transactor),
        SuperAdminModule(runtime.transactor),
        ActivityLogModule(ActivityLogRepository(db)),
    ]


def create_app(
    settings: Settings | None = None,
    *,
    runtime: Runtime | None = None,
    modules: ModuleFactory = default_modules,
) -> FastAPI:
    """Build the application, registering every module before the first request.

    A module that registers a handler for a request type already taken raises
    :class:`~hrms.mediator.DuplicateHandlerError` here, so a misconfigured
    process never starts serving.
    """
    settings = settings or (runtime.settings if runtime else get_settings())
    runtime = runtime or build_runtime(settings)

    routers = []
    for module in modules(runtime):
        module.init(runtime.mediator, runtime.event_bus)
        router = module.router()
        if router is not None:
            routers.append(router)
        logger.debug("module %s registered", module.name)
    runtime.mediator.freeze()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the pool for the app lifecycle; drain background work and close it on shutdown."""
        runtime.pool.open()
        logger.info("%s %s started", settings.app_name, settings.version)
        try:
            yield
        finally:
            runtime.close()
            logger.info("%s stopped", settings.app_name)

    servers = [{"url": settings.advertised_server}] if settings.advertised_server else None
    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan, servers=servers)
    app.state.runtime = runtime

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=600,
    )
    problems.install(app)

    @app.get("/", tags=["health"])
    def root() -> dict[str, str]:
        return {"app": settings.app_name}

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router in routers:
        app.include_router(router, prefix=API_PREFIX)

    return app


def run() -> None:
    """Console entry point: load configuration, then serve until SIGINT/SIGTERM."""
    try:
        settings = get_settings()
    except ConfigError as exc:
        configure_logging("hrms-api")
        logger.error("configuration error: %s", exc)
        sys.exit(2)

    configure_logging(settings.app_name, settings.log_level)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,
        timeout_graceful_shutdown=max(1, int(settings.graceful_timeout.total_seconds())),
    )


if __name__ == "__main__":
    run()
