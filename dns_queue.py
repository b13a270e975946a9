"""
dns_queue.py

Responsibility: Serialises DNS update requests through a bounded-concurrency,
rate-limited asyncio task runner so bursts of node registrations neither
exceed the provider's rate limit nor race on the same record.
Does NOT: talk to the DNS provider or the database itself: the task body is
the injected handler (normally DnsService.apply_update).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from services.dns_service import DnsUpdateRequest

logger = logging.getLogger(__name__)

TaskHandler = Callable[[DnsUpdateRequest], Awaitable[bool]]


@dataclass
class QueueTask:
    request: DnsUpdateRequest
    enqueued_at: float
    future: asyncio.Future[bool]


@dataclass(frozen=True)
class QueueStatus:
    size: int
    pending: int
    is_paused: bool


class ReconciliationQueue:
    """
    FIFO task runner for DNS mutations.

    - concurrency bounds how many handler calls run at once (1 = fully
      serialised, the safe setting for a single provider account).
    - interval is the minimum number of seconds between the starts of two
      consecutive tasks, enforced even when concurrency > 1.
    - task_timeout bounds a single handler call; a timed-out task settles
      as False and frees its slot. This is the one case where an in-flight
      handler is cancelled, possibly after the provider write and before the
      store write. The default sits above three provider calls at the
      provider's 10s HTTP timeout.
    - max_depth optionally caps tasks waiting to start; admissions beyond it
      settle immediately as False. None means unbounded.

    Admission never blocks. Every task settles with a bool: exceptions
    raised by the handler are logged and reported as False without stopping
    the queue. pause()/clear() only affect tasks that have not started;
    pause() and clear() never cancel an in-flight handler call.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        handler: TaskHandler,
        concurrency: int = 1,
        interval: float = 1.0,
        task_timeout: float | None = 45.0,
        max_depth: int | None = None,
        autostart: bool = True,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if interval < 0:
            raise ValueError("interval must not be negative")

        self._handler = handler
        self._concurrency = concurrency
        self._interval = interval
        self._task_timeout = task_timeout
        self._max_depth = max_depth

        self._queue: deque[QueueTask] = deque()
        self._running: set[asyncio.Task[None]] = set()
        self._paused = not autostart
        self._closed = False
        self._last_start: float | None = None
        self._wakeup = asyncio.Event()
        self._dispatcher: asyncio.Task[None] | None = None

        logger.info(
            "DNS queue initialised (concurrency=%d, interval=%.3fs).", concurrency, interval
        )

    # ---------------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Tasks admitted but not yet started."""
        return len(self._queue)

    @property
    def pending(self) -> int:
        """Tasks currently executing."""
        return len(self._running)

    @property
    def is_paused(self) -> bool:
        return self._paused

    def status(self) -> QueueStatus:
        return QueueStatus(size=self.size, pending=self.pending, is_paused=self._paused)

    # ---------------------------------------------------------------------------
    # Admission
    # ---------------------------------------------------------------------------

    def submit(self, request: DnsUpdateRequest) -> asyncio.Future[bool]:
        """
        Admits a request without waiting for it to run.

        Args:
            request: The DNS update to perform.

        Returns:
            A future resolving to the task's success flag. Cancelling the
            future before the task starts removes the task.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()

        if self._closed:
            logger.warning("DNS queue is shut down; rejecting update for %s.", request.domain)
            future.set_result(False)
            return future

        if self._max_depth is not None and len(self._queue) >= self._max_depth:
            logger.warning(
                "DNS queue full (%d waiting); rejecting update for %s.",
                len(self._queue), request.domain,
            )
            future.set_result(False)
            return future

        self._queue.append(QueueTask(request=request, enqueued_at=time.time(), future=future))
        logger.debug("Queued DNS update for %s (depth=%d).", request.domain, len(self._queue))
        self._ensure_dispatcher()
        self._wakeup.set()
        return future

    async def enqueue(self, request: DnsUpdateRequest) -> bool:
        """
        Admits a request and waits for it to settle.

        Args:
            request: The DNS update to perform.

        Returns:
            True if the handler reported success, False otherwise.
        """
        return await self.submit(request)

    async def enqueue_many(self, requests: Iterable[DnsUpdateRequest]) -> list[bool]:
        """
        Admits requests in order and waits for all of them.

        Args:
            requests: DNS updates, admitted in iteration order.

        Returns:
            One success flag per request, in the same order.
        """
        futures = [self.submit(request) for request in requests]
        if not futures:
            return []
        return list(await asyncio.gather(*futures))

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    def pause(self) -> None:
        """Stops starting new tasks; in-flight tasks run to completion."""
        self._paused = True
        logger.info("DNS queue paused.")

    def start(self) -> None:
        """Resumes starting tasks."""
        self._paused = False
        self._closed = False
        with contextlib.suppress(RuntimeError):
            # No running loop yet: the dispatcher starts on the first submit().
            self._ensure_dispatcher()
        self._wakeup.set()
        logger.info("DNS queue started.")

    def clear(self) -> int:
        """
        Drops every task that has not started; their callers receive False.

        Returns:
            The number of tasks dropped.
        """
        dropped = 0
        while self._queue:
            task = self._queue.popleft()
            if not task.future.done():
                task.future.set_result(False)
            dropped += 1
        logger.info("DNS queue cleared (%d task(s) dropped).", dropped)
        return dropped

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Pauses, drops waiting tasks, lets in-flight tasks settle, then stops.

        Args:
            timeout: Optional seconds to wait for in-flight tasks.
        """
        self.pause()
        self.clear()
        self._closed = True

        if self._running:
            logger.info("Waiting for %d in-flight DNS task(s).", len(self._running))
            await asyncio.wait(set(self._running), timeout=timeout)

        if self._dispatcher is not None:
            self._dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._dispatcher
            self._dispatcher = None
        logger.info("DNS queue shut down.")

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _ensure_dispatcher(self) -> None:
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.get_running_loop().create_task(self._dispatch())

    def _can_start(self) -> bool:
        return (
            not self._paused
            and bool(self._queue)
            and len(self._running) < self._concurrency
        )

    async def _dispatch(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            if self._can_start():
                if self._last_start is not None:
                    delay = self._interval - (loop.time() - self._last_start)
                    if delay > 0:
                        # Re-check after sleeping: pause/clear may have happened.
                        await asyncio.sleep(delay)
                        continue
                self._start_next(loop)
                continue

            self._wakeup.clear()
            await self._wakeup.wait()

    def _start_next(self, loop: asyncio.AbstractEventLoop) -> None:
        task = self._queue.popleft()
        if task.future.done():
            # Caller cancelled before the task started.
            return

        self._last_start = loop.time()
        runner = loop.create_task(self._run(task))
        self._running.add(runner)
        runner.add_done_callback(self._on_done)

    def _on_done(self, runner: asyncio.Task[None]) -> None:
        self._running.discard(runner)
        self._wakeup.set()

    async def _run(self, task: QueueTask) -> None:
        request = task.request
        waited = time.time() - task.enqueued_at
        logger.debug("Starting DNS task for %s after %.3fs in queue.", request.domain, waited)

        result = False
        try:
            if self._task_timeout is not None:
                result = bool(await asyncio.wait_for(self._handler(request), self._task_timeout))
            else:
                result = bool(await self._handler(request))
        except asyncio.TimeoutError:
            logger.error(
                "DNS task for %s timed out after %.1fs.", request.domain, self._task_timeout
            )
        except Exception:
            logger.exception("DNS task for %s failed.", request.domain)
        finally:
            if not task.future.done():
                task.future.set_result(result)
