"""User provisioning, profile and password handlers."""

from __future__ import annotations

from dataclasses import dataclass

from psycopg import errors as pg_errors

from ... import errors
from ...context import (
    ROLE_ADMIN,
    ROLE_HR,
    ROLE_TIMEKEEPER,
    RequestContext,
    logger_from_context,
    require_tenant,
    require_user,
)
from ...contracts import (
    AssignUserToBranchCommand,
    AssignUserToCompanyCommand,
    CreatedUser,
    CreateUserWithPasswordCommand,
    LogEvent,
)
from ...db import Transactor
from ...eventbus import EventBus
from ...mediator import NO_RESPONSE, Mediator, NoResponse
from ...security import PasswordHasher
from .repository import CompanyMembership, UserRepository, UserRecord

COMPANY_ROLES = frozenset({ROLE_ADMIN, ROLE_HR, ROLE_TIMEKEEPER})
MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class CreateCompanyUserCommand:
    """Create a user inside the caller's current company."""

    username: str
    password: str
    role: str


@dataclass(frozen=True)
class GetProfileQuery:
    pass


@dataclass(frozen=True)
class Profile:
    user: UserRecord
    companies: list[CompanyMembership]


@dataclass(frozen=True)
class ChangePasswordCommand:
    old_password: str
    new_password: str


class CreateUserWithPasswordHandler:
    def __init__(self, repository: UserRepository, transactor: Transactor, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._transactor = transactor
        self._hasher = hasher

    def handle(self, ctx: RequestContext, command: CreateUserWithPasswordCommand) -> CreatedUser:
        username = command.username.strip()
        if not username or not command.plain_password:
            raise errors.bad_request("username and password are required")
        password_hash = self._hasher.hash(command.plain_password)
        try:
            return self._transactor.within_transaction(
                ctx,
                lambda tx_ctx, _register: self._repository.create_user(
                    tx_ctx, username, password_hash, command.role, command.actor_id
                ),
            )
        except pg_errors.UniqueViolation as exc:
            logger_from_context(ctx).warning("username %s already exists", username)
            raise errors.conflict("username already exists") from exc


class AssignUserToCompanyHandler:
    def __init__(self, repository: UserRepository, transactor: Transactor) -> None:
        self._repository = repository
        self._transactor = transactor

    def handle(self, ctx: RequestContext, command: AssignUserToCompanyCommand) -> NoResponse:
        self._transactor.within_transaction(
            ctx,
            lambda tx_ctx, _register: self._repository.assign_to_company(
                tx_ctx, command.user_id, command.company_id, command.role, command.actor_id
            ),
        )
        return NO_RESPONSE


class AssignUserToBranchHandler:
    def __init__(self, repository: UserRepository, transactor: Transactor) -> None:
        self._repository = repository
        self._transactor = transactor

    def handle(self, ctx: RequestContext, command: AssignUserToBranchCommand) -> NoResponse:
        self._transactor.within_transaction(
            ctx,
            lambda tx_ctx, _register: self._repository.assign_to_branch(
                tx_ctx, command.user_id, command.branch_id, command.actor_id
            ),
        )
        return NO_RESPONSE


class CreateCompanyUserHandler:
    """Creates the user and its company grant together, then announces it once committed."""

    def __init__(self, mediator: Mediator, transactor: Transactor, event_bus: EventBus) -> None:
        self._mediator = mediator
        self._transactor = transactor
        self._event_bus = event_bus

    def handle(self, ctx: RequestContext, command: CreateCompanyUserCommand) -> CreatedUser:
        actor = require_user(ctx)
        tenant = require_tenant(ctx)
        role = command.role.strip().lower()
        if role not in COMPANY_ROLES:
            raise errors.bad_request("role must be one of admin, hr, timekeeper")

        def create(tx_ctx: RequestContext, register) -> CreatedUser:
            created: CreatedUser = self._mediator.send(
                tx_ctx,
                CreateUserWithPasswordCommand(
                    username=command.username,
                    plain_password=command.password,
                    role=role,
                    actor_id=actor.id,
                ),
            )
            self._mediator.send(
                tx_ctx,
                AssignUserToCompanyCommand(
                    user_id=created.id, company_id=tenant.company_id, role=role, actor_id=actor.id
                ),
            )
            event = LogEvent(
                actor_id=actor.id,
                company_id=tenant.company_id,
                branch_id=tenant.branch_id,
                action="CREATE",
                entity_name="USER",
                entity_id=str(created.id),
                details={"username": created.username, "role": created.role},
            )
            register(lambda _ctx: self._event_bus.publish(event))
            return created

        return self._transactor.within_transaction(ctx, create)


class GetProfileHandler:
    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: GetProfileQuery) -> Profile:
        principal = require_user(ctx)
        record = self._repository.get_user(ctx, principal.id)
        if record is None:
            raise errors.not_found("user not found")
        return Profile(user=record, companies=self._repository.list_memberships(ctx, principal.id))


class ChangePasswordHandler:
    def __init__(self, repository: UserRepository, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._hasher = hasher

    def handle(self, ctx: RequestContext, command: ChangePasswordCommand) -> NoResponse:
        principal = require_user(ctx)
        if not command.old_password or not command.new_password:
            raise errors.bad_request("oldPassword and newPassword are required")

        record = self._repository.get_user(ctx, principal.id)
        if record is None:
            raise errors.not_found("user not found")
        if not self._hasher.verify(command.old_password, record.password_hash):
            logger_from_context(ctx).warning("password change rejected: wrong current password")
            raise errors.unauthorized("current password is incorrect")
        if command.old_password == command.new_password:
            raise errors.unprocessable("newPassword must be different from oldPassword")
        if len(command.new_password) < MIN_PASSWORD_LENGTH:
            raise errors.bad_request(f"newPassword must be at least {MIN_PASSWORD_LENGTH} characters")

        self._repository.update_password(ctx, principal.id, self._hasher.hash(command.new_password))
        return NO_RESPONSE
