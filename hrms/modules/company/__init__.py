"""Company module: company and default-branch lifecycle, reachable only through the mediator."""

from __future__ import annotations

from fastapi import APIRouter

from ...contracts import (
    BranchDTO,
    CompanyDTO,
    CreateCompanyCommand,
    CreateDefaultBranchCommand,
    GetCompanyQuery,
    ListCompaniesQuery,
)
from ...db import Transactor
from ...eventbus import EventBus
from ...mediator import Mediator
from .handlers import CreateCompanyHandler, CreateDefaultBranchHandler, GetCompanyHandler, ListCompaniesHandler
from .repository import CompanyRepository


class CompanyModule:
    name = "company"

    def __init__(self, repository: CompanyRepository, transactor: Transactor) -> None:
        self._repository = repository
        self._transactor = transactor

    def init(self, mediator: Mediator, event_bus: EventBus) -> None:
        mediator.register(
            CreateCompanyCommand,
            CreateCompanyHandler(self._repository, self._transactor),
            response_type=CompanyDTO,
        )
        mediator.register(
            CreateDefaultBranchCommand,
            CreateDefaultBranchHandler(self._repository, self._transactor),
            response_type=BranchDTO,
        )
        mediator.register(GetCompanyQuery, GetCompanyHandler(self._repository))
        mediator.register(ListCompaniesQuery, ListCompaniesHandler(self._repository), response_type=list)

    def router(self) -> APIRouter | None:
        return None


__all__ = ["CompanyModule", "CompanyRepository"]
