"""Commands and queries for companies, branches and user provisioning."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CompanyDTO(BaseModel):
    id: UUID
    code: str
    name: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BranchDTO(BaseModel):
    id: UUID
    company_id: UUID
    code: str
    name: str
    status: str = "active"
    is_default: bool = False


class CreateCompanyCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    actor_id: UUID


class CreateDefaultBranchCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    company_id: UUID
    actor_id: UUID


class GetCompanyQuery(BaseModel):
    """Answered with a ``CompanyDTO`` or ``None``."""

    model_config = ConfigDict(frozen=True)

    company_id: UUID


class ListCompaniesQuery(BaseModel):
    model_config = ConfigDict(frozen=True)


class CreateUserWithPasswordCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    plain_password: str
    role: str
    actor_id: UUID


class CreatedUser(BaseModel):
    id: UUID
    username: str
    role: str
    created_at: datetime | None = None


class AssignUserToCompanyCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    company_id: UUID
    role: str
    actor_id: UUID


class AssignUserToBranchCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    branch_id: UUID
    actor_id: UUID
