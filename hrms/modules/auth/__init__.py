"""Auth module: login, refresh rotation, logout and tenant switching."""

from __future__ import annotations

from fastapi import APIRouter

from ...db import Transactor
from ...eventbus import EventBus
from ...mediator import Mediator
from ...security import Claims, CredentialService, PasswordHasher
from .handlers import (
    LoginCommand,
    LoginHandler,
    LoginResult,
    LogoutCommand,
    LogoutHandler,
    RefreshCommand,
    RefreshHandler,
    RefreshResult,
    SwitchResult,
    SwitchTenantCommand,
    SwitchTenantHandler,
)
from .repository import AuthRepository
from .routes import build_router


class AuthModule:
    name = "auth"

    def __init__(
        self,
        repository: AuthRepository,
        credentials: CredentialService,
        hasher: PasswordHasher,
        transactor: Transactor,
    ) -> None:
        self._repository = repository
        self._credentials = credentials
        self._hasher = hasher
        self._transactor = transactor

    def init(self, mediator: Mediator, event_bus: EventBus) -> None:
        mediator.register(
            LoginCommand,
            LoginHandler(self._repository, self._credentials, self._hasher, self._transactor),
            response_type=LoginResult,
        )
        mediator.register(RefreshCommand, RefreshHandler(self._credentials), response_type=RefreshResult)
        mediator.register(LogoutCommand, LogoutHandler(self._credentials), response_type=Claims)
        mediator.register(
            SwitchTenantCommand,
            SwitchTenantHandler(mediator, self._credentials, self._transactor),
            response_type=SwitchResult,
        )

    def router(self) -> APIRouter | None:
        return build_router()


__all__ = ["AuthModule", "AuthRepository"]
