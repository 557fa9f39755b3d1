"""Immutable per-request context propagated through handlers and repositories."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any
from uuid import UUID

from . import errors
from .logs import process_logger

ROLE_SUPERADMIN = "superadmin"
ROLE_ADMIN = "admin"
ROLE_HR = "hr"
ROLE_TIMEKEEPER = "timekeeper"


@dataclass(frozen=True, slots=True)
class UserInfo:
    """Authenticated principal as carried on the context."""

    id: UUID
    username: str
    role: str


@dataclass(frozen=True, slots=True)
class TenantScope:
    """Authoritative company/branch scope resolved for a request."""

    company_id: UUID
    branch_id: UUID | None = None
    is_admin: bool = False

    @property
    def has_branch(self) -> bool:
        return self.branch_id is not None

    def require_branch(self) -> UUID:
        if self.branch_id is None:
            raise errors.bad_request("X-Branch-ID header is required")
        return self.branch_id


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Request-scoped values; every ``with_*`` call returns a new instance.

    ``transaction`` is an opaque handle owned by the transactor and
    ``deadline`` is a ``time.monotonic()`` timestamp.
    """

    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    user: UserInfo | None = None
    tenant: TenantScope | None = None
    logger: logging.Logger | logging.LoggerAdapter | None = None
    transaction: Any = None
    deadline: float | None = None

    @classmethod
    def background(cls) -> "RequestContext":
        """Context for work that does not originate from a request (subscribers, jobs)."""
        return cls(request_id="background")

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()


def with_user(ctx: RequestContext, user: UserInfo) -> RequestContext:
    return replace(ctx, user=user)


def user_from_context(ctx: RequestContext | None) -> UserInfo | None:
    if ctx is None:
        return None
    return ctx.user


def with_tenant(ctx: RequestContext, tenant: TenantScope) -> RequestContext:
    return replace(ctx, tenant=tenant)


def tenant_from_context(ctx: RequestContext | None) -> TenantScope | None:
    if ctx is None:
        return None
    return ctx.tenant


def with_logger(ctx: RequestContext, logger: logging.Logger | logging.LoggerAdapter) -> RequestContext:
    return replace(ctx, logger=logger)


def logger_from_context(ctx: RequestContext | None) -> logging.Logger | logging.LoggerAdapter:
    """Return the request logger, falling back to the process-wide logger."""
    if ctx is None or ctx.logger is None:
        return process_logger()
    return ctx.logger


def with_deadline(ctx: RequestContext, seconds: float) -> RequestContext:
    return replace(ctx, deadline=time.monotonic() + seconds)


def require_user(ctx: RequestContext) -> UserInfo:
    user = user_from_context(ctx)
    if user is None:
        raise errors.unauthorized("missing user context")
    return user


def require_tenant(ctx: RequestContext) -> TenantScope:
    tenant = tenant_from_context(ctx)
    if tenant is None:
        raise errors.unauthorized("missing tenant context")
    return tenant
