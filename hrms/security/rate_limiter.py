"""In-memory sliding window throttle for credential endpoints."""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, DefaultDict, Protocol


@dataclass(frozen=True, slots=True)
class RateDecision:
    allowed: bool
    retry_after: int = 0


class RateLimiter(Protocol):
    def hit(self, key: str) -> RateDecision: ...

    def reset(self, key: str) -> None: ...


class SlidingWindowRateLimiter:
    """Thread-safe sliding window limiter; ``retry_after`` is whole seconds until a slot frees."""

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._events: DefaultDict[str, Deque[float]] = DefaultDict(deque)
        self._lock = Lock()

    def hit(self, key: str) -> RateDecision:
        now = time.monotonic()
        with self._lock:
            queue = self._events[key]
            while queue and now - queue[0] >= self._window:
                queue.popleft()
            if len(queue) >= self._max_requests:
                wait = self._window - (now - queue[0])
                return RateDecision(allowed=False, retry_after=max(1, math.ceil(wait)))
            queue.append(now)
            return RateDecision(allowed=True)

    def reset(self, key: str) -> None:
        """Forget a key's history, e.g. after a successful login."""
        with self._lock:
            self._events.pop(key, None)
