from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from hrms.context import RequestContext
from hrms.eventbus import DomainEvent
from hrms.runtime import build_runtime
from hrms.security import SlidingWindowRateLimiter

from .fakes import FakeDatabase, FakePool


class MemberAdded(DomainEvent):
    username: str


def test_close_delivers_events_published_by_running_hooks(settings):
    runtime = build_runtime(
        settings,
        pool=FakePool(),
        executor=ThreadPoolExecutor(max_workers=1),
        event_executor=ThreadPoolExecutor(max_workers=1),
        refresh_store=FakeDatabase(),
        rate_limiter=SlidingWindowRateLimiter(max_requests=10, window_seconds=60),
    )
    delivered: list[str] = []
    hook_running = threading.Event()
    release = threading.Event()
    runtime.event_bus.subscribe("MemberAdded", lambda event: delivered.append(event.username))

    def publish_after_release(_ctx):
        hook_running.set()
        release.wait(timeout=5)
        runtime.event_bus.publish(MemberAdded(username="alice"))

    runtime.transactor.within_transaction(
        RequestContext(), lambda tx_ctx, register: register(publish_after_release)
    )
    assert hook_running.wait(timeout=5)

    closer = threading.Thread(target=runtime.close)
    closer.start()
    # close is now blocked on the running hook
    closer.join(timeout=0.1)
    assert closer.is_alive()
    release.set()
    closer.join(timeout=5)

    assert not closer.is_alive()
    assert delivered == ["alice"]
    assert runtime.pool.closed


def test_close_shuts_down_both_executors(runtime):
    runtime.close()

    with pytest.raises(RuntimeError):
        runtime.executor.submit(lambda: None)
    with pytest.raises(RuntimeError):
        runtime.event_executor.submit(lambda: None)
    assert runtime.pool.closed
