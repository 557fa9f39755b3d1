"""HTTP adapters for the credential lifecycle."""

from __future__ import annotations

import hashlib
from uuid import UUID

from fastapi import APIRouter, Cookie, Depends, Request, Response, status

from ... import errors
from ...api.dependencies import authenticated_context, get_runtime, request_context
from ...api.models import APIModel
from ...context import RequestContext
from ...runtime import Runtime
from ...security import TokenPair
from .handlers import LoginCommand, LogoutCommand, RefreshCommand, SwitchTenantCommand

REFRESH_COOKIE = "refresh_token"


class LoginRequest(APIModel):
    username: str = ""
    password: str = ""


class RefreshRequest(APIModel):
    refresh_token: str = ""


class UserPayload(APIModel):
    id: UUID
    username: str
    role: str


class LoginResponse(APIModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserPayload


class RefreshResponse(APIModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class SwitchRequest(APIModel):
    company_id: UUID
    branch_ids: list[UUID] = []


class CompanyPayload(APIModel):
    id: UUID
    code: str
    name: str
    role: str


class BranchPayload(APIModel):
    id: UUID
    code: str
    name: str
    is_default: bool


class SwitchResponse(APIModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    company: CompanyPayload
    branches: list[BranchPayload]


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


def _throttle(runtime: Runtime, key: str) -> None:
    decision = runtime.rate_limiter.hit(key)
    if not decision.allowed:
        raise errors.too_many_requests("too many requests", decision.retry_after)


def _set_refresh_cookie(response: Response, runtime: Runtime, pair: TokenPair) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        pair.refresh_token,
        max_age=int(runtime.tokens.refresh_ttl.total_seconds()),
        httponly=True,
        secure=runtime.settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def _expires_in(runtime: Runtime) -> int:
    return int(runtime.tokens.access_ttl.total_seconds())


def _presented_refresh(payload: RefreshRequest | None, cookie: str | None) -> str:
    if payload is not None and payload.refresh_token.strip():
        return payload.refresh_token
    return cookie or ""


def build_router() -> APIRouter:
    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/login", response_model=LoginResponse)
    def login(
        request: Request,
        response: Response,
        payload: LoginRequest,
        ctx: RequestContext = Depends(request_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> LoginResponse:
        throttle_key = f"login:{_client_ip(request)}:{payload.username.strip().lower()}"
        _throttle(runtime, throttle_key)
        result = runtime.mediator.send(
            ctx,
            LoginCommand(
                username=payload.username,
                password=payload.password,
                ip=_client_ip(request),
                user_agent=request.headers.get("user-agent", ""),
            ),
        )
        runtime.rate_limiter.reset(throttle_key)
        _set_refresh_cookie(response, runtime, result.tokens)
        return LoginResponse(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=_expires_in(runtime),
            user=UserPayload(id=result.user.id, username=result.user.username, role=result.user.role),
        )

    @router.post("/refresh", response_model=RefreshResponse)
    def refresh(
        request: Request,
        response: Response,
        payload: RefreshRequest | None = None,
        refresh_cookie: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
        ctx: RequestContext = Depends(request_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> RefreshResponse:
        presented = _presented_refresh(payload, refresh_cookie)
        # replays of one credential share a budget
        token_key = hashlib.sha256(presented.encode("utf-8")).hexdigest()[:12]
        _throttle(runtime, f"refresh:{_client_ip(request)}:{token_key}")
        result = runtime.mediator.send(ctx, RefreshCommand(refresh_token=presented))
        _set_refresh_cookie(response, runtime, result.tokens)
        return RefreshResponse(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=_expires_in(runtime),
        )

    @router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
    def logout(
        payload: RefreshRequest | None = None,
        refresh_cookie: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
        ctx: RequestContext = Depends(request_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> Response:
        runtime.mediator.send(ctx, LogoutCommand(refresh_token=_presented_refresh(payload, refresh_cookie)))
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
        response.delete_cookie(
            REFRESH_COOKIE, path="/", secure=runtime.settings.cookie_secure, httponly=True, samesite="lax"
        )
        return response

    @router.post("/switch", response_model=SwitchResponse)
    def switch_tenant(
        response: Response,
        payload: SwitchRequest,
        ctx: RequestContext = Depends(authenticated_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> SwitchResponse:
        result = runtime.mediator.send(
            ctx, SwitchTenantCommand(company_id=payload.company_id, branch_ids=tuple(payload.branch_ids))
        )
        _set_refresh_cookie(response, runtime, result.tokens)
        return SwitchResponse(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=_expires_in(runtime),
            company=CompanyPayload(
                id=result.company.id, code=result.company.code, name=result.company.name, role=result.role
            ),
            branches=[
                BranchPayload(id=branch.id, code=branch.code, name=branch.name, is_default=branch.is_default)
                for branch in result.branches
            ],
        )

    return router
