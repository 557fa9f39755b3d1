"""Company onboarding orchestrated across modules through the mediator."""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from uuid import UUID

from ... import errors
from ...context import ROLE_ADMIN, RequestContext, logger_from_context, require_user
from ...contracts import (
    AssignUserToBranchCommand,
    AssignUserToCompanyCommand,
    BranchDTO,
    CompanyDTO,
    CreateCompanyCommand,
    CreateDefaultBranchCommand,
    CreatedUser,
    CreateUserWithPasswordCommand,
    LogEvent,
)
from ...db import Transactor
from ...errors import AppError
from ...eventbus import EventBus
from ...mediator import Mediator

COMPANY_CODE_LENGTH = 5
_CODE_ALPHABET = string.ascii_uppercase + string.digits
MIN_ADMIN_PASSWORD_LENGTH = 8


def generate_company_code(length: int = COMPANY_CODE_LENGTH) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class OnboardCompanyCommand:
    company_name: str
    admin_username: str
    admin_password: str
    company_code: str = ""


@dataclass(frozen=True)
class OnboardedCompany:
    company: CompanyDTO
    branch: BranchDTO
    admin_user_id: UUID


class OnboardCompanyHandler:
    """Creates a company, its head-office branch and its first admin in a single transaction.

    Each step is a command owned by another module; all of them open nested
    transactions, so a failure at any step rolls the whole onboarding back.
    The activity log entry is published only after the commit.
    """

    def __init__(self, mediator: Mediator, transactor: Transactor, event_bus: EventBus) -> None:
        self._mediator = mediator
        self._transactor = transactor
        self._event_bus = event_bus

    def handle(self, ctx: RequestContext, command: OnboardCompanyCommand) -> OnboardedCompany:
        actor = require_user(ctx)
        name = command.company_name.strip()
        username = command.admin_username.strip()
        if not name or not username:
            raise errors.bad_request("companyName and adminUsername are required")
        if len(command.admin_password) < MIN_ADMIN_PASSWORD_LENGTH:
            raise errors.bad_request(
                f"adminPassword must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters"
            )
        code = command.company_code.strip() or generate_company_code()
        log = logger_from_context(ctx)

        def onboard(tx_ctx: RequestContext, register) -> OnboardedCompany:
            company: CompanyDTO = self._send(
                tx_ctx, CreateCompanyCommand(code=code, name=name, actor_id=actor.id), "failed to create company"
            )
            branch: BranchDTO = self._send(
                tx_ctx,
                CreateDefaultBranchCommand(company_id=company.id, actor_id=actor.id),
                "failed to create default branch",
            )
            admin: CreatedUser = self._send(
                tx_ctx,
                CreateUserWithPasswordCommand(
                    username=username,
                    plain_password=command.admin_password,
                    role=ROLE_ADMIN,
                    actor_id=actor.id,
                ),
                "failed to create admin user",
            )
            self._send(
                tx_ctx,
                AssignUserToCompanyCommand(
                    user_id=admin.id, company_id=company.id, role=ROLE_ADMIN, actor_id=actor.id
                ),
                "failed to assign user to company",
            )
            self._send(
                tx_ctx,
                AssignUserToBranchCommand(user_id=admin.id, branch_id=branch.id, actor_id=actor.id),
                "failed to assign user to branch",
            )

            event = LogEvent(
                actor_id=actor.id,
                action="CREATE",
                entity_name="COMPANY",
                entity_id=str(company.id),
                details={
                    "code": company.code,
                    "name": company.name,
                    "status": company.status,
                    "defaultBranch": branch.code,
                    "branchName": branch.name,
                    "adminUserId": str(admin.id),
                },
            )
            register(lambda _ctx: self._event_bus.publish(event))
            return OnboardedCompany(company=company, branch=branch, admin_user_id=admin.id)

        result = self._transactor.within_transaction(ctx, onboard)
        log.info("company %s onboarded with admin %s", result.company.code, result.admin_user_id)
        return result

    def _send(self, ctx: RequestContext, request, failure: str):
        try:
            return self._mediator.send(ctx, request)
        except AppError as exc:
            if exc.code in (errors.ErrorCode.conflict, errors.ErrorCode.bad_request):
                raise
            logger_from_context(ctx).error("%s: %s", failure, exc.message)
            raise errors.internal(failure) from exc
