"""FastAPI dependencies that build the per-request context."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Header, Request

from .. import errors
from ..context import (
    RequestContext,
    UserInfo,
    require_tenant,
    require_user,
    with_deadline,
    with_logger,
    with_tenant,
    with_user,
)
from ..logs import request_logger
from ..runtime import Runtime
from ..tenancy import parse_scope_id


def get_runtime(request: Request) -> Runtime:
    """Resolve the :class:`Runtime` stored on the FastAPI application state."""
    runtime: Runtime = request.app.state.runtime
    return runtime


def request_context(request: Request, runtime: Runtime = Depends(get_runtime)) -> RequestContext:
    request_id = getattr(request.state, "request_id", None) or uuid.uuid4().hex
    ctx = RequestContext(request_id=request_id, logger=request_logger(request_id))
    timeout = runtime.settings.request_timeout.total_seconds()
    if timeout > 0:
        ctx = with_deadline(ctx, timeout)
    return ctx


def bearer_token(authorization: str | None) -> str:
    """Extract the credential from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise errors.unauthorized("missing authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise errors.unauthorized("invalid authorization header")
    return token


def authenticated_context(
    ctx: RequestContext = Depends(request_context),
    authorization: str | None = Header(default=None),
    runtime: Runtime = Depends(get_runtime),
) -> RequestContext:
    claims = runtime.credentials.authenticate(ctx, bearer_token(authorization))
    user = UserInfo(id=claims.user_id, username=claims.username, role=claims.role)
    ctx = with_user(ctx, user)
    return with_logger(ctx, request_logger(ctx.request_id).bind(user_id=str(user.id)))


def tenant_context(
    ctx: RequestContext = Depends(authenticated_context),
    company_header: str | None = Header(default=None, alias="X-Company-ID"),
    branch_header: str | None = Header(default=None, alias="X-Branch-ID"),
    runtime: Runtime = Depends(get_runtime),
) -> RequestContext:
    """Attach the resolved tenant scope; without ``X-Company-ID`` the context stays unscoped."""
    company_id = parse_scope_id(company_header, "X-Company-ID")
    branch_id = parse_scope_id(branch_header, "X-Branch-ID")
    if company_id is None:
        if branch_id is not None:
            raise errors.bad_request("X-Company-ID header is required when X-Branch-ID is set")
        return ctx
    scope = runtime.tenants.resolve(ctx, company_id, branch_id)
    return with_tenant(ctx, scope)


def require_roles(*roles: str) -> Callable[..., RequestContext]:
    """Dependency factory admitting only principals whose global role is in ``roles``."""
    allowed = frozenset(roles)

    def dependency(ctx: RequestContext = Depends(authenticated_context)) -> RequestContext:
        user = require_user(ctx)
        if user.role not in allowed:
            raise errors.forbidden("insufficient role")
        return ctx

    return dependency


def company_admin_context(ctx: RequestContext = Depends(tenant_context)) -> RequestContext:
    """Tenant-scoped context for company administrators (``superadmin`` included)."""
    if not require_tenant(ctx).is_admin:
        raise errors.forbidden("company admin role required")
    return ctx
