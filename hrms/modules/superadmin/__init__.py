"""Super-admin module: cross-tenant company onboarding and listing."""

from __future__ import annotations

from fastapi import APIRouter

from ...db import Transactor
from ...eventbus import EventBus
from ...mediator import Mediator
from .handlers import OnboardCompanyCommand, OnboardCompanyHandler, OnboardedCompany
from .routes import build_router


class SuperAdminModule:
    name = "superadmin"

    def __init__(self, transactor: Transactor) -> None:
        self._transactor = transactor

    def init(self, mediator: Mediator, event_bus: EventBus) -> None:
        mediator.register(
            OnboardCompanyCommand,
            OnboardCompanyHandler(mediator, self._transactor, event_bus),
            response_type=OnboardedCompany,
        )

    def router(self) -> APIRouter | None:
        return build_router()


__all__ = ["SuperAdminModule"]
