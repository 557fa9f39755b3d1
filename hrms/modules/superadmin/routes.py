"""Super-admin HTTP adapters."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import Field

from ... import errors
from ...api.dependencies import get_runtime, require_roles
from ...api.models import APIModel
from ...context import ROLE_SUPERADMIN, RequestContext
from ...contracts import BranchDTO, CompanyDTO, GetCompanyQuery, ListCompaniesQuery
from ...runtime import Runtime
from .handlers import OnboardCompanyCommand

superadmin_only = require_roles(ROLE_SUPERADMIN)


class CreateCompanyRequest(APIModel):
    company_code: str = ""
    company_name: str = Field(..., min_length=1)
    admin_username: str = Field(..., min_length=1)
    admin_password: str = Field(..., min_length=8)


class CompanyResponse(APIModel):
    id: UUID
    code: str
    name: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dto(cls, company: CompanyDTO) -> "CompanyResponse":
        return cls.model_validate(company.model_dump())


class BranchResponse(APIModel):
    id: UUID
    company_id: UUID
    code: str
    name: str
    status: str
    is_default: bool

    @classmethod
    def from_dto(cls, branch: BranchDTO) -> "BranchResponse":
        return cls.model_validate(branch.model_dump())


class CreateCompanyResponse(APIModel):
    company: CompanyResponse
    branch: BranchResponse
    admin_user_id: UUID


def build_router() -> APIRouter:
    router = APIRouter(prefix="/super-admin", tags=["super-admin"])

    @router.post("/companies", response_model=CreateCompanyResponse, status_code=status.HTTP_201_CREATED)
    def create_company(
        payload: CreateCompanyRequest,
        ctx: RequestContext = Depends(superadmin_only),
        runtime: Runtime = Depends(get_runtime),
    ) -> CreateCompanyResponse:
        result = runtime.mediator.send(
            ctx,
            OnboardCompanyCommand(
                company_name=payload.company_name,
                admin_username=payload.admin_username,
                admin_password=payload.admin_password,
                company_code=payload.company_code,
            ),
        )
        return CreateCompanyResponse(
            company=CompanyResponse.from_dto(result.company),
            branch=BranchResponse.from_dto(result.branch),
            admin_user_id=result.admin_user_id,
        )

    @router.get("/companies", response_model=list[CompanyResponse])
    def list_companies(
        ctx: RequestContext = Depends(superadmin_only),
        runtime: Runtime = Depends(get_runtime),
    ) -> list[CompanyResponse]:
        return [CompanyResponse.from_dto(item) for item in runtime.mediator.send(ctx, ListCompaniesQuery())]

    @router.get("/companies/{company_id}", response_model=CompanyResponse)
    def get_company(
        company_id: UUID,
        ctx: RequestContext = Depends(superadmin_only),
        runtime: Runtime = Depends(get_runtime),
    ) -> CompanyResponse:
        company = runtime.mediator.send(ctx, GetCompanyQuery(company_id=company_id))
        if company is None:
            raise errors.not_found("company not found")
        return CompanyResponse.from_dto(company)

    return router
