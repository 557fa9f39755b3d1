"""Domain events published on the in-process bus."""

from __future__ import annotations

from typing import Any, ClassVar
from uuid import UUID

from pydantic import Field

from ..eventbus import DomainEvent


class LogEvent(DomainEvent):
    """An auditable action; the activity log persists every one it receives."""

    topic: ClassVar[str | None] = "LogEvent"

    actor_id: UUID
    company_id: UUID | None = None
    branch_id: UUID | None = None
    action: str
    entity_name: str
    entity_id: str
    details: dict[str, Any] = Field(default_factory=dict)
