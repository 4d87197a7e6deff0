# riot/queue.py – Single serializer for every call to the Riot API
#
#  • enqueue() hands the request to the drain loop through an asyncio.Queue inbox
#  • only the drain loop touches the pending deque and the RateLimiter
#  • one request per tick, at most one in flight, FIFO
#  • a 429 puts the request back at the FRONT of the deque

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Mapping, Optional

from lolarena.riot.client import RiotClient
from lolarena.riot.clock import Clock, SYSTEM_CLOCK
from lolarena.riot.errors import BackpressureError, RateLimitedError, UpstreamUnavailableError
from lolarena.riot.rate_limiter import RateLimiter

log = logging.getLogger(__name__)


def _mark_retrieved(future: asyncio.Future) -> None:
    """Waiters may have given up; keep asyncio quiet about their unread errors."""
    if not future.cancelled():
        future.exception()


@dataclass
class QueuedRequest:
    id: int
    url: str
    headers: Optional[Mapping[str, str]]
    enqueued_at: float
    future: asyncio.Future = field(repr=False)
    attempt_count: int = 0
    requeue_count: int = 0


class RequestQueue:
    """FIFO request queue gated by a RateLimiter and executed by a RiotClient."""

    def __init__(
        self,
        client: RiotClient,
        rate_limiter: RateLimiter,
        clock: Clock = SYSTEM_CLOCK,
        tick_seconds: float = 3.0,
        max_pending: int = 100,
        max_requeues: int = 3,
        autostart: bool = True,
    ):
        self.client = client
        self.rate_limiter = rate_limiter
        self.tick_seconds = tick_seconds
        self.max_pending = max_pending
        self.max_requeues = max_requeues
        self.autostart = autostart
        self._clock = clock

        self._inbox: asyncio.Queue[QueuedRequest] = asyncio.Queue()
        self._pending: Deque[QueuedRequest] = deque()
        self._in_flight: Optional[QueuedRequest] = None
        self._ids = itertools.count(1)
        self._task: Optional[asyncio.Task] = None

        self._counters = {"completed": 0, "failed": 0, "requeued": 0, "rejected": 0}

    def __len__(self) -> int:
        return len(self._pending) + self._inbox.qsize()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ─── Lifecycle ───────────────────────────────────────────────────────────
    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="riot-request-queue")

    async def stop(self) -> None:
        """Stop the drain loop and fail whatever is still waiting."""
        in_flight = self._in_flight
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._absorb_inbox()
        leftovers = list(self._pending)
        if in_flight is not None:
            leftovers.insert(0, in_flight)
        self._pending.clear()
        for request in leftovers:
            self._reject(request, UpstreamUnavailableError("Request queue stopped"))
        if leftovers:
            log.info(f"Request queue stopped, {len(leftovers)} request(s) failed")

    # ─── Public API ──────────────────────────────────────────────────────────
    def submit(self, url: str, headers: Optional[Mapping[str, str]] = None) -> asyncio.Future:
        """Queue a GET and return the future the drain loop will settle."""
        if len(self) >= self.max_pending:
            self._counters["rejected"] += 1
            raise BackpressureError(f"Request queue full ({self.max_pending} pending)")

        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_mark_retrieved)
        request = QueuedRequest(
            id=next(self._ids),
            url=url,
            headers=headers,
            enqueued_at=self._clock.monotonic(),
            future=future,
        )
        self._inbox.put_nowait(request)
        log.debug(f"Queued request #{request.id}: {url}")

        if self.autostart:
            self.start()
        return future

    async def enqueue(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Any:
        """Queue a GET and wait for its JSON result (or its classified error)."""
        future = self.submit(url, headers)
        # Abandoning the wait must not cancel the queued call itself
        return await asyncio.shield(future)

    # ─── Drain loop ──────────────────────────────────────────────────────────
    def _absorb_inbox(self) -> None:
        while True:
            try:
                self._pending.append(self._inbox.get_nowait())
            except asyncio.QueueEmpty:
                return

    async def _wait_for_tick(self) -> None:
        """Sleep until the next tick, or until something new is enqueued."""
        try:
            request = await asyncio.wait_for(self._inbox.get(), timeout=self.tick_seconds)
        except asyncio.TimeoutError:
            return
        self._pending.append(request)

    async def _run(self) -> None:
        log.info(f"Request queue started (tick={self.tick_seconds}s, max_pending={self.max_pending})")
        while True:
            await self.drain_once()
            await self._wait_for_tick()

    async def drain_once(self) -> bool:
        """
        Handle at most one pending request.

        Returns True if an upstream call was made, False if the queue was empty
        or the rate limiter refused admission (the head request stays in place).
        """
        self._absorb_inbox()
        if not self._pending:
            return False

        if not self.rate_limiter.try_consume():
            log.debug(f"Rate limiter closed, {len(self._pending)} request(s) waiting")
            return False

        request = self._pending.popleft()
        request.attempt_count += 1
        self._in_flight = request
        try:
            result = await self.client.call(request.url, request.headers)
        except RateLimitedError as e:
            self.rate_limiter.poison()
            if request.requeue_count >= self.max_requeues:
                log.error(f"Request #{request.id} still rate limited after {request.requeue_count} requeues")
                self._reject(request, e)
            else:
                request.requeue_count += 1
                self._counters["requeued"] += 1
                self._pending.appendleft(request)
                log.warning(f"Request #{request.id} rate limited, requeued at front ({request.requeue_count}/{self.max_requeues})")
        except Exception as e:
            self._reject(request, e)
        else:
            self._resolve(request, result)
        finally:
            self._in_flight = None
        return True

    def _resolve(self, request: QueuedRequest, result: Any) -> None:
        self._counters["completed"] += 1
        waited = self._clock.monotonic() - request.enqueued_at
        log.debug(f"Request #{request.id} done in {waited:.1f}s ({request.attempt_count} pass(es))")
        if not request.future.done():
            request.future.set_result(result)

    def _reject(self, request: QueuedRequest, error: BaseException) -> None:
        self._counters["failed"] += 1
        log.info(f"Request #{request.id} failed: {error}")
        if not request.future.done():
            request.future.set_exception(error)

    def stats(self) -> Dict[str, Any]:
        return {
            "pending": len(self),
            "in_flight": self._in_flight is not None,
            "running": self.running,
            "max_pending": self.max_pending,
            **self._counters,
        }
