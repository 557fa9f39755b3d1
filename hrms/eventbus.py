"""In-process, best-effort publish/subscribe keyed by event name."""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from typing import Callable, ClassVar

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class DomainEvent(BaseModel):
    """Base class for events; the topic is the concrete class name unless overridden."""

    model_config = ConfigDict(frozen=True)

    topic: ClassVar[str | None] = None

    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def event_name(cls) -> str:
        return cls.topic or cls.__name__


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """Fans each published event out to its subscribers on an executor.

    Subscriptions are made during startup. Delivery is at-most-once with no
    retry; a failing subscriber is logged and never affects the publisher or
    the other subscribers.
    """

    def __init__(self, executor: Executor) -> None:
        self._executor = executor
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, name: str, handler: EventHandler) -> None:
        self._subscribers[name].append(handler)

    def subscribers(self, name: str) -> tuple[EventHandler, ...]:
        return tuple(self._subscribers.get(name, ()))

    def publish(self, event: DomainEvent) -> list[Future[None]]:
        """Schedule delivery to every subscriber of the event's name and return immediately."""
        name = event.event_name()
        handlers = self._subscribers.get(name)
        if not handlers:
            logger.debug("no subscribers for event %s", name)
            return []
        futures: list[Future[None]] = []
        for handler in list(handlers):
            try:
                futures.append(self._executor.submit(_deliver, name, handler, event))
            except RuntimeError:
                # executor already shut down
                logger.warning("dropping event %s: bus is closed", name)
                break
        return futures


def _deliver(name: str, handler: EventHandler, event: DomainEvent) -> None:
    try:
        handler(event)
    except Exception:
        logger.exception("event subscriber %s failed for %s", getattr(handler, "__qualname__", handler), name)
