"""User module: provisioning commands for other modules plus the user-facing routes."""

from __future__ import annotations

from fastapi import APIRouter

from ...contracts import (
    AssignUserToBranchCommand,
    AssignUserToCompanyCommand,
    CreatedUser,
    CreateUserWithPasswordCommand,
)
from ...db import Transactor
from ...eventbus import EventBus
from ...mediator import Mediator, NoResponse
from ...security import PasswordHasher
from .handlers import (
    AssignUserToBranchHandler,
    AssignUserToCompanyHandler,
    ChangePasswordCommand,
    ChangePasswordHandler,
    CreateCompanyUserCommand,
    CreateCompanyUserHandler,
    CreateUserWithPasswordHandler,
    GetProfileHandler,
    GetProfileQuery,
    Profile,
)
from .repository import UserRepository
from .routes import build_router


class UserModule:
    name = "user"

    def __init__(self, repository: UserRepository, transactor: Transactor, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._transactor = transactor
        self._hasher = hasher

    def init(self, mediator: Mediator, event_bus: EventBus) -> None:
        mediator.register(
            CreateUserWithPasswordCommand,
            CreateUserWithPasswordHandler(self._repository, self._transactor, self._hasher),
            response_type=CreatedUser,
        )
        mediator.register(
            AssignUserToCompanyCommand,
            AssignUserToCompanyHandler(self._repository, self._transactor),
            response_type=NoResponse,
        )
        mediator.register(
            AssignUserToBranchCommand,
            AssignUserToBranchHandler(self._repository, self._transactor),
            response_type=NoResponse,
        )
        mediator.register(
            CreateCompanyUserCommand,
            CreateCompanyUserHandler(mediator, self._transactor, event_bus),
            response_type=CreatedUser,
        )
        mediator.register(GetProfileQuery, GetProfileHandler(self._repository), response_type=Profile)
        mediator.register(
            ChangePasswordCommand, ChangePasswordHandler(self._repository, self._hasher), response_type=NoResponse
        )

    def router(self) -> APIRouter | None:
        return build_router()


__all__ = ["UserModule", "UserRepository"]
