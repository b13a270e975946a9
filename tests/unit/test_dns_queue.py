"""
tests/unit/test_dns_queue.py

Unit tests for dns_queue.ReconciliationQueue.
The handler is a plain coroutine that records what it was given; no provider
or database is involved.
"""

from __future__ import annotations

import asyncio
import inspect

import pytest

from dns_queue import ReconciliationQueue
from providers.cloudflare_client import DEFAULT_TIMEOUT
from services.dns_service import DnsUpdateRequest


def _req(domain: str, value: str = "1.2.3.4", node_id: int = 1) -> DnsUpdateRequest:
    return DnsUpdateRequest(node_id=node_id, domain=domain, type="A", value=value)


class _RecordingHandler:
    """Records call order and start times; optionally fails for chosen domains."""

    def __init__(self, delay: float = 0.0, fail_on: tuple[str, ...] = ()):
        self.delay = delay
        self.fail_on = fail_on
        self.seen: list[str] = []
        self.started_at: list[float] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, request: DnsUpdateRequest) -> bool:
        self.seen.append(request.domain)
        self.started_at.append(asyncio.get_running_loop().time())
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if request.domain in self.fail_on:
                raise RuntimeError(f"provider exploded for {request.domain}")
            return True
        finally:
            self.active -= 1


# ---------------------------------------------------------------------------
# Ordering and pacing
# ---------------------------------------------------------------------------


async def test_tasks_run_in_fifo_order():
    handler = _RecordingHandler()
    queue = ReconciliationQueue(handler, concurrency=1, interval=0)

    results = await queue.enqueue_many([_req("a.example.com"), _req("b.example.com"), _req("c.example.com")])

    assert results == [True, True, True]
    assert handler.seen == ["a.example.com", "b.example.com", "c.example.com"]
    await queue.shutdown()


async def test_interval_spaces_task_starts():
    handler = _RecordingHandler()
    queue = ReconciliationQueue(handler, concurrency=1, interval=0.2)

    await queue.enqueue_many([_req("a.example.com"), _req("b.example.com"), _req("c.example.com")])

    gaps = [b - a for a, b in zip(handler.started_at, handler.started_at[1:])]
    assert len(gaps) == 2
    # Small tolerance for event loop clock granularity
    assert all(gap >= 0.19 for gap in gaps)
    await queue.shutdown()


async def test_interval_applies_with_higher_concurrency():
    handler = _RecordingHandler(delay=0.5)
    queue = ReconciliationQueue(handler, concurrency=3, interval=0.1)

    await queue.enqueue_many([_req("a.example.com"), _req("b.example.com")])

    assert handler.max_active == 2
    assert handler.started_at[1] - handler.started_at[0] >= 0.09
    await queue.shutdown()


async def test_concurrency_one_never_overlaps():
    handler = _RecordingHandler(delay=0.02)
    queue = ReconciliationQueue(handler, concurrency=1, interval=0)

    await queue.enqueue_many([_req(f"n{i}.example.com") for i in range(5)])

    assert handler.max_active == 1
    await queue.shutdown()


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


async def test_handler_exception_settles_false_and_queue_continues():
    handler = _RecordingHandler(fail_on=("b.example.com",))
    queue = ReconciliationQueue(handler, concurrency=1, interval=0)

    results = await queue.enqueue_many([_req("a.example.com"), _req("b.example.com"), _req("c.example.com")])

    assert results == [True, False, True]
    await queue.shutdown()


async def test_handler_timeout_settles_false():
    handler = _RecordingHandler(delay=1.0)
    queue = ReconciliationQueue(handler, concurrency=1, interval=0, task_timeout=0.05)

    assert await queue.enqueue(_req("slow.example.com")) is False
    # The slot is released by a done-callback one loop iteration later
    await asyncio.sleep(0.01)
    assert queue.pending == 0
    await queue.shutdown()


async def test_false_from_handler_is_reported():
    async def handler(request):
        return False

    queue = ReconciliationQueue(handler, interval=0)
    assert await queue.enqueue(_req("a.example.com")) is False
    await queue.shutdown()


# ---------------------------------------------------------------------------
# Control operations
# ---------------------------------------------------------------------------


async def test_pause_holds_tasks_until_start():
    handler = _RecordingHandler()
    queue = ReconciliationQueue(handler, interval=0, autostart=False)

    future = queue.submit(_req("a.example.com"))
    await asyncio.sleep(0.05)

    assert queue.is_paused is True
    assert queue.size == 1
    assert queue.pending == 0
    assert handler.seen == []

    queue.start()
    assert await future is True
    assert queue.size == 0
    assert queue.status().is_paused is False
    await queue.shutdown()


async def test_pause_does_not_cancel_running_task():
    handler = _RecordingHandler(delay=0.1)
    queue = ReconciliationQueue(handler, interval=0)

    future = queue.submit(_req("a.example.com"))
    await asyncio.sleep(0.02)
    assert queue.pending == 1

    queue.pause()
    assert await future is True
    await queue.shutdown()


async def test_clear_drops_waiting_tasks_as_false():
    handler = _RecordingHandler()
    queue = ReconciliationQueue(handler, interval=0, autostart=False)

    futures = [queue.submit(_req(f"n{i}.example.com")) for i in range(3)]
    assert queue.clear() == 3
    assert queue.size == 0

    assert [await f for f in futures] == [False, False, False]
    assert handler.seen == []
    await queue.shutdown()


async def test_cancelled_future_is_skipped():
    handler = _RecordingHandler()
    queue = ReconciliationQueue(handler, interval=0, autostart=False)

    first = queue.submit(_req("a.example.com"))
    second = queue.submit(_req("b.example.com"))
    first.cancel()

    queue.start()
    assert await second is True
    assert handler.seen == ["b.example.com"]
    await queue.shutdown()


async def test_max_depth_rejects_overflow():
    handler = _RecordingHandler()
    queue = ReconciliationQueue(handler, interval=0, max_depth=2, autostart=False)

    queue.submit(_req("a.example.com"))
    queue.submit(_req("b.example.com"))
    overflow = queue.submit(_req("c.example.com"))

    assert overflow.done()
    assert overflow.result() is False
    assert queue.size == 2
    await queue.shutdown()


async def test_shutdown_waits_for_in_flight_and_rejects_new_work():
    handler = _RecordingHandler(delay=0.05)
    queue = ReconciliationQueue(handler, interval=0)

    running = queue.submit(_req("a.example.com"))
    await asyncio.sleep(0.01)
    waiting = queue.submit(_req("b.example.com"))

    await queue.shutdown(timeout=1)

    assert running.result() is True
    assert waiting.result() is False
    assert await queue.enqueue(_req("c.example.com")) is False
    assert handler.seen == ["a.example.com"]


def test_invalid_construction():
    async def handler(request):
        return True

    with pytest.raises(ValueError):
        ReconciliationQueue(handler, concurrency=0)
    with pytest.raises(ValueError):
        ReconciliationQueue(handler, interval=-1)


def test_request_rejects_unknown_record_type():
    with pytest.raises(ValueError):
        DnsUpdateRequest(node_id=1, domain="a.example.com", type="MX", value="x")


def test_request_normalises_record_type_case():
    assert DnsUpdateRequest(node_id=1, domain="a.example.com", type="aaaa", value="::1").type == "AAAA"


def test_default_task_timeout_outlasts_a_slow_provider_update():
    """Zone lookup, find and write may each take the full HTTP timeout."""
    default = inspect.signature(ReconciliationQueue).parameters["task_timeout"].default
    assert default > 3 * DEFAULT_TIMEOUT
