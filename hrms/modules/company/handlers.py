"""Company and branch handlers invoked over the mediator."""

from __future__ import annotations

from psycopg import errors as pg_errors

from ... import errors
from ...context import RequestContext, logger_from_context
from ...contracts import (
    BranchDTO,
    CompanyDTO,
    CreateCompanyCommand,
    CreateDefaultBranchCommand,
    GetCompanyQuery,
    ListCompaniesQuery,
)
from ...db import Transactor
from .repository import CompanyRepository


class CreateCompanyHandler:
    def __init__(self, repository: CompanyRepository, transactor: Transactor) -> None:
        self._repository = repository
        self._transactor = transactor

    def handle(self, ctx: RequestContext, command: CreateCompanyCommand) -> CompanyDTO:
        code = command.code.strip().upper()
        name = command.name.strip()
        if not code or not name:
            raise errors.bad_request("company code and name are required")
        try:
            return self._transactor.within_transaction(
                ctx, lambda tx_ctx, _register: self._repository.create_company(tx_ctx, code, name, command.actor_id)
            )
        except pg_errors.UniqueViolation as exc:
            logger_from_context(ctx).warning("company code %s already exists", code)
            raise errors.conflict("company code already exists") from exc


class CreateDefaultBranchHandler:
    def __init__(self, repository: CompanyRepository, transactor: Transactor) -> None:
        self._repository = repository
        self._transactor = transactor

    def handle(self, ctx: RequestContext, command: CreateDefaultBranchCommand) -> BranchDTO:
        return self._transactor.within_transaction(
            ctx,
            lambda tx_ctx, _register: self._repository.create_default_branch(
                tx_ctx, command.company_id, command.actor_id
            ),
        )


class GetCompanyHandler:
    def __init__(self, repository: CompanyRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: GetCompanyQuery) -> CompanyDTO | None:
        return self._repository.get_company(ctx, query.company_id)


class ListCompaniesHandler:
    def __init__(self, repository: CompanyRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: ListCompaniesQuery) -> list[CompanyDTO]:
        return self._repository.list_companies(ctx)
