"""Feature modules.

A module registers its handlers with the mediator and its subscribers with
the event bus in ``init``, and exposes its HTTP adapters through ``router``.
Modules talk to each other only through :mod:`hrms.contracts`.
"""

from __future__ import annotations

from typing import Protocol

from fastapi import APIRouter

from ..eventbus import EventBus
from ..mediator import Mediator


class Module(Protocol):
    name: str

    def init(self, mediator: Mediator, event_bus: EventBus) -> None: ...

    def router(self) -> APIRouter | None: ...
