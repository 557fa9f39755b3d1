"""Queries answered by the tenant module."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .company import BranchDTO


class GetCompanyRoleQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    company_id: UUID


class CompanyRole(BaseModel):
    """``role`` is ``None`` when the user holds no role in the company."""

    role: str | None = None

    @property
    def granted(self) -> bool:
        return self.role is not None


class GetBranchAccessQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    branch_id: UUID


class BranchAccess(BaseModel):
    granted: bool
    branch_company_id: UUID | None = None


class ListUserBranchesQuery(BaseModel):
    """Branches visible to the user in a company; ``all_branches`` skips the access table."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    company_id: UUID
    all_branches: bool = False


class UserBranches(BaseModel):
    branches: list[BranchDTO]
