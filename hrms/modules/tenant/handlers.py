"""Mediator handlers answering tenant queries for other modules."""

from __future__ import annotations

from ...context import RequestContext
from ...contracts import (
    BranchAccess,
    CompanyRole,
    GetBranchAccessQuery,
    GetCompanyRoleQuery,
    ListUserBranchesQuery,
    UserBranches,
)
from .repository import TenantRepository


class GetCompanyRoleHandler:
    def __init__(self, repository: TenantRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: GetCompanyRoleQuery) -> CompanyRole:
        return CompanyRole(role=self._repository.get_company_role(ctx, query.user_id, query.company_id))


class GetBranchAccessHandler:
    def __init__(self, repository: TenantRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: GetBranchAccessQuery) -> BranchAccess:
        granted, company_id = self._repository.get_branch_access(ctx, query.user_id, query.branch_id)
        return BranchAccess(granted=granted, branch_company_id=company_id)


class ListUserBranchesHandler:
    def __init__(self, repository: TenantRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: ListUserBranchesQuery) -> UserBranches:
        branches = self._repository.list_branches(
            ctx, query.user_id, query.company_id, all_branches=query.all_branches
        )
        return UserBranches(branches=branches)
