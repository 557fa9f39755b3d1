"""HTTP adapters for user management and the caller's own profile."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import Field

from ...api.dependencies import authenticated_context, company_admin_context, get_runtime
from ...api.models import APIModel
from ...context import RequestContext
from ...runtime import Runtime
from .handlers import ChangePasswordCommand, CreateCompanyUserCommand, GetProfileQuery, Profile


class CreateUserRequest(APIModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: str


class UserResponse(APIModel):
    id: UUID
    username: str
    role: str
    created_at: datetime | None = None


class MembershipResponse(APIModel):
    company_id: UUID
    company_code: str
    company_name: str
    role: str


class ProfileResponse(APIModel):
    id: UUID
    username: str
    role: str
    companies: list[MembershipResponse]

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.user.id,
            username=profile.user.username,
            role=profile.user.role,
            companies=[
                MembershipResponse(
                    company_id=item.company_id,
                    company_code=item.company_code,
                    company_name=item.company_name,
                    role=item.role,
                )
                for item in profile.companies
            ],
        )


class ChangePasswordRequest(APIModel):
    old_password: str
    new_password: str


class MessageResponse(APIModel):
    message: str


def build_router() -> APIRouter:
    router = APIRouter(tags=["users"])

    @router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    def create_user(
        payload: CreateUserRequest,
        ctx: RequestContext = Depends(company_admin_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> UserResponse:
        created = runtime.mediator.send(
            ctx, CreateCompanyUserCommand(username=payload.username, password=payload.password, role=payload.role)
        )
        return UserResponse.model_validate(created.model_dump())

    @router.get("/me", response_model=ProfileResponse)
    def get_me(
        ctx: RequestContext = Depends(authenticated_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> ProfileResponse:
        return ProfileResponse.from_profile(runtime.mediator.send(ctx, GetProfileQuery()))

    @router.put("/me/password", response_model=MessageResponse)
    def change_password(
        payload: ChangePasswordRequest,
        ctx: RequestContext = Depends(authenticated_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> MessageResponse:
        runtime.mediator.send(
            ctx, ChangePasswordCommand(old_password=payload.old_password, new_password=payload.new_password)
        )
        return MessageResponse(message="password changed")

    return router
