"""Type-indexed in-process dispatcher: one handler per request type."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from prometheus_client import Counter

from .context import RequestContext

logger = logging.getLogger(__name__)

DISPATCH_TOTAL = Counter(
    "hrms_mediator_dispatch_total",
    "Requests dispatched through the mediator",
    ["request", "outcome"],
)

TRequest = TypeVar("TRequest", contravariant=True)
TResponse = TypeVar("TResponse", covariant=True)


@dataclass(frozen=True, slots=True)
class NoResponse:
    """Unit response for commands that return nothing."""


NO_RESPONSE = NoResponse()


class RequestHandler(Protocol[TRequest, TResponse]):
    def handle(self, ctx: RequestContext, request: TRequest) -> TResponse: ...


class MediatorError(Exception):
    """Infrastructure failure of the dispatcher itself (never a handler error)."""


class DuplicateHandlerError(MediatorError):
    def __init__(self, request_type: type) -> None:
        super().__init__(f"handler already registered for {request_type.__qualname__}")
        self.request_type = request_type


class NoHandlerError(MediatorError):
    def __init__(self, request_type: type) -> None:
        super().__init__(f"no handler for request {request_type.__qualname__}")
        self.request_type = request_type


class ResponseTypeError(MediatorError):
    def __init__(self, request_type: type, expected: type, actual: type) -> None:
        super().__init__(
            f"handler for {request_type.__qualname__} returned {actual.__qualname__}, "
            f"expected {expected.__qualname__}"
        )
        self.request_type = request_type


class RegistryFrozenError(MediatorError):
    def __init__(self, request_type: type) -> None:
        super().__init__(f"cannot register {request_type.__qualname__}: registry is frozen")
        self.request_type = request_type


@dataclass(frozen=True, slots=True)
class _Registration:
    handler: Any
    response_type: type | None


class Mediator:
    """Maps a request's concrete type to exactly one handler.

    Registration happens single-threaded during startup; ``freeze`` ends that
    phase. After it the mapping is only read, so ``send`` takes no lock.
    """

    def __init__(self) -> None:
        self._registrations: dict[type, _Registration] = {}
        self._frozen = False

    def register(
        self,
        request_type: type,
        handler: RequestHandler[Any, Any],
        *,
        response_type: type | None = None,
    ) -> None:
        """Bind ``handler`` to ``request_type``; a second binding is a programming error."""
        if self._frozen:
            raise RegistryFrozenError(request_type)
        if request_type in self._registrations:
            raise DuplicateHandlerError(request_type)
        self._registrations[request_type] = _Registration(handler, response_type)
        logger.debug("registered handler %s for %s", type(handler).__qualname__, request_type.__qualname__)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def is_registered(self, request_type: type) -> bool:
        return request_type in self._registrations

    def send(self, ctx: RequestContext, request: Any) -> Any:
        """Dispatch ``request`` to its handler and return the handler's result unaltered."""
        request_type = type(request)
        registration = self._registrations.get(request_type)
        name = request_type.__name__
        if registration is None:
            DISPATCH_TOTAL.labels(name, "no_handler").inc()
            raise NoHandlerError(request_type)

        try:
            result = registration.handler.handle(ctx, request)
        except Exception:
            DISPATCH_TOTAL.labels(name, "error").inc()
            raise

        expected = registration.response_type
        if expected is not None and not isinstance(result, expected):
            DISPATCH_TOTAL.labels(name, "bad_response").inc()
            raise ResponseTypeError(request_type, expected, type(result))
        DISPATCH_TOTAL.labels(name, "ok").inc()
        return result
