"""Persists every ``LogEvent`` published on the bus."""

from __future__ import annotations

import logging

from ...context import RequestContext
from ...contracts import LogEvent
from ...eventbus import DomainEvent
from .repository import ActivityLogRepository

logger = logging.getLogger(__name__)


class LogSubscriber:
    """Writes through its own connection, never the publisher's transaction."""

    def __init__(self, repository: ActivityLogRepository) -> None:
        self._repository = repository

    def __call__(self, event: DomainEvent) -> None:
        if not isinstance(event, LogEvent):
            logger.warning("ignoring unexpected event %s", type(event).__name__)
            return
        self._repository.create_log(
            RequestContext.background(),
            user_id=event.actor_id,
            company_id=event.company_id,
            branch_id=event.branch_id,
            action=event.action,
            entity=event.entity_name,
            entity_id=event.entity_id,
            details=event.details,
            created_at=event.occurred_at,
        )
