"""Tenant module: answers role and branch-access queries over the mediator."""

from __future__ import annotations

from fastapi import APIRouter

from ...contracts import (
    BranchAccess,
    CompanyRole,
    GetBranchAccessQuery,
    GetCompanyRoleQuery,
    ListUserBranchesQuery,
    UserBranches,
)
from ...eventbus import EventBus
from ...mediator import Mediator
from .handlers import GetBranchAccessHandler, GetCompanyRoleHandler, ListUserBranchesHandler
from .repository import TenantRepository


class TenantModule:
    name = "tenant"

    def __init__(self, repository: TenantRepository) -> None:
        self._repository = repository

    def init(self, mediator: Mediator, event_bus: EventBus) -> None:
        mediator.register(GetCompanyRoleQuery, GetCompanyRoleHandler(self._repository), response_type=CompanyRole)
        mediator.register(GetBranchAccessQuery, GetBranchAccessHandler(self._repository), response_type=BranchAccess)
        mediator.register(
            ListUserBranchesQuery, ListUserBranchesHandler(self._repository), response_type=UserBranches
        )

    def router(self) -> APIRouter | None:
        return None


__all__ = ["TenantModule", "TenantRepository"]
