"""Activity log module: persists ``LogEvent``s and serves them back to admins."""

from __future__ import annotations

from fastapi import APIRouter

from ...contracts import LogEvent
from ...eventbus import EventBus
from ...mediator import Mediator
from .handlers import (
    ActivityLogPage,
    FilterOptions,
    FilterOptionsHandler,
    FilterOptionsQuery,
    ListActivityLogsHandler,
    ListActivityLogsQuery,
)
from .repository import ActivityLogRepository
from .routes import build_router
from .subscriber import LogSubscriber


class ActivityLogModule:
    name = "activitylog"

    def __init__(self, repository: ActivityLogRepository) -> None:
        self._repository = repository

    def init(self, mediator: Mediator, event_bus: EventBus) -> None:
        mediator.register(
            ListActivityLogsQuery, ListActivityLogsHandler(self._repository), response_type=ActivityLogPage
        )
        mediator.register(FilterOptionsQuery, FilterOptionsHandler(self._repository), response_type=FilterOptions)
        event_bus.subscribe(LogEvent.event_name(), LogSubscriber(self._repository))

    def router(self) -> APIRouter | None:
        return build_router()


__all__ = ["ActivityLogModule", "ActivityLogRepository", "LogSubscriber"]
