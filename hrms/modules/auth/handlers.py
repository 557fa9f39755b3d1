"""Login, refresh, logout and tenant-switch commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

import psycopg

from ... import errors
from ...context import ROLE_ADMIN, ROLE_SUPERADMIN, RequestContext, UserInfo, logger_from_context, require_user
from ...contracts import (
    BranchDTO,
    CompanyDTO,
    CompanyRole,
    GetCompanyQuery,
    GetCompanyRoleQuery,
    ListUserBranchesQuery,
    UserBranches,
)
from ...db import Transactor
from ...mediator import Mediator
from ...security import Claims, CredentialService, PasswordHasher, TokenPair
from .repository import AuthRepository

ACCESS_SUCCESS = "success"
ACCESS_FAILED_PASSWORD = "failed_password"


@dataclass(frozen=True)
class LoginCommand:
    username: str
    password: str
    ip: str = ""
    user_agent: str = ""


@dataclass(frozen=True)
class LoginResult:
    tokens: TokenPair
    user: UserInfo


@dataclass(frozen=True)
class RefreshCommand:
    refresh_token: str


@dataclass(frozen=True)
class RefreshResult:
    tokens: TokenPair
    claims: Claims


@dataclass(frozen=True)
class LogoutCommand:
    refresh_token: str


@dataclass(frozen=True)
class SwitchTenantCommand:
    company_id: UUID
    branch_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class SwitchResult:
    tokens: TokenPair
    company: CompanyDTO
    role: str
    branches: list[BranchDTO] = field(default_factory=list)


class LoginHandler:
    def __init__(
        self,
        repository: AuthRepository,
        credentials: CredentialService,
        hasher: PasswordHasher,
        transactor: Transactor,
    ) -> None:
        self._repository = repository
        self._credentials = credentials
        self._hasher = hasher
        self._transactor = transactor

    def handle(self, ctx: RequestContext, command: LoginCommand) -> LoginResult:
        username = command.username.strip()
        if not username or not command.password:
            raise errors.bad_request("username and password are required")

        log = logger_from_context(ctx)
        principal = self._repository.find_user_by_username(ctx, username)
        if principal is None:
            log.warning("login rejected: unknown user")
            raise errors.unauthorized("invalid credentials")

        if not self._hasher.verify(command.password, principal.password_hash):
            log.warning("login rejected: wrong password for user %s", principal.id)
            try:
                self._repository.log_access(
                    ctx, principal.id, ACCESS_FAILED_PASSWORD, command.ip, command.user_agent
                )
            except psycopg.Error as exc:
                log.warning("failed to record access log: %s", exc)
            raise errors.unauthorized("invalid credentials")

        def open_session(tx_ctx: RequestContext, _register) -> TokenPair:
            pair = self._credentials.issue(tx_ctx, principal.id, principal.username, principal.role)
            self._repository.log_access(tx_ctx, principal.id, ACCESS_SUCCESS, command.ip, command.user_agent)
            return pair

        pair = self._transactor.within_transaction(ctx, open_session)
        log.info("user %s logged in", principal.id)
        return LoginResult(
            tokens=pair,
            user=UserInfo(id=principal.id, username=principal.username, role=principal.role),
        )


class RefreshHandler:
    def __init__(self, credentials: CredentialService) -> None:
        self._credentials = credentials

    def handle(self, ctx: RequestContext, command: RefreshCommand) -> RefreshResult:
        pair, claims = self._credentials.rotate(ctx, command.refresh_token)
        return RefreshResult(tokens=pair, claims=claims)


class LogoutHandler:
    def __init__(self, credentials: CredentialService) -> None:
        self._credentials = credentials

    def handle(self, ctx: RequestContext, command: LogoutCommand) -> Claims:
        claims = self._credentials.revoke(ctx, command.refresh_token)
        logger_from_context(ctx).info("user %s logged out", claims.user_id)
        return claims


class SwitchTenantHandler:
    """Re-issues credentials for a company the caller belongs to, with its visible branches."""

    def __init__(self, mediator: Mediator, credentials: CredentialService, transactor: Transactor) -> None:
        self._mediator = mediator
        self._credentials = credentials
        self._transactor = transactor

    def handle(self, ctx: RequestContext, command: SwitchTenantCommand) -> SwitchResult:
        user = require_user(ctx)

        if user.role == ROLE_SUPERADMIN:
            role = ROLE_SUPERADMIN
        else:
            membership: CompanyRole = self._mediator.send(
                ctx, GetCompanyRoleQuery(user_id=user.id, company_id=command.company_id)
            )
            if not membership.granted:
                raise errors.forbidden("access denied to this company")
            role = membership.role

        company: CompanyDTO | None = self._mediator.send(ctx, GetCompanyQuery(company_id=command.company_id))
        if company is None:
            raise errors.not_found("company not found")

        visible: UserBranches = self._mediator.send(
            ctx,
            ListUserBranchesQuery(
                user_id=user.id,
                company_id=command.company_id,
                all_branches=role in (ROLE_ADMIN, ROLE_SUPERADMIN),
            ),
        )
        branches = visible.branches
        if command.branch_ids:
            by_id = {branch.id: branch for branch in branches}
            wanted = dict.fromkeys(command.branch_ids)
            branches = [by_id[branch_id] for branch_id in wanted if branch_id in by_id]
            if not branches:
                raise errors.forbidden("no access to requested branches")

        pair = self._transactor.within_transaction(
            ctx, lambda tx_ctx, _register: self._credentials.issue(tx_ctx, user.id, user.username, user.role)
        )
        return SwitchResult(tokens=pair, company=company, role=role, branches=branches)
