"""
Shared state of one crawl: visited registry, frontier, and result store.

All workers run as tasks on a single event loop. A method without an await
runs to completion before any other task is scheduled, so each synchronous
method below is one atomic step. Mutations never straddle an await.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Set

from .base import CrawlReport, FailureRecord, VisitRecord
from ..utils.urls import root_domain

logger = logging.getLogger(__name__)


class VisitedRegistry:
    """Every URL that has been, or is about to be, processed."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def try_mark_seen(self, url: str) -> bool:
        """Record url and return True, or return False if it was already recorded."""
        before = len(self._seen)
        self._seen.add(url)
        return len(self._seen) != before

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    def __len__(self) -> int:
        return len(self._seen)


class Frontier:
    """
    FIFO of URLs awaiting a fetch, plus the in-flight count used to detect
    termination.

    A URL handed out by get() or get_nowait() stays in flight until the worker
    calls task_done(), which it must do only after enqueueing every link it
    discovered. The crawl is finished when the queue is empty and nothing is
    in flight; both are read in the same synchronous step.

    Idle workers park on a plain future (the way asyncio.Queue does), released
    by put(), by the finish, or by a poll_interval timer. Cancelling a parked
    worker therefore leaves no helper task or lock behind.
    """

    def __init__(self, poll_interval: float = 0.1) -> None:
        self.poll_interval = poll_interval
        self._queue: Deque[str] = deque()
        self._queued: Set[str] = set()
        self._in_flight = 0
        self._finished = False
        self._waiters: Deque[asyncio.Future] = deque()

    # ---- Producers ----

    async def put(self, url: str) -> bool:
        """Enqueue url unless it is already waiting. Returns True if added."""
        if not self._enqueue(url):
            return False
        self._wake_one()
        return True

    def put_nowait(self, url: str) -> bool:
        """Enqueue without waking waiters; for seeding before workers start."""
        return self._enqueue(url)

    def _enqueue(self, url: str) -> bool:
        if self._finished:
            raise RuntimeError(f"Frontier already finished, cannot enqueue {url}")
        if url in self._queued:
            return False
        self._queue.append(url)
        self._queued.add(url)
        return True

    # ---- Consumers ----

    def get_nowait(self) -> Optional[str]:
        """Dequeue one URL and mark it in flight, or return None if the queue is empty."""
        if not self._queue:
            return None
        url = self._queue.popleft()
        self._queued.discard(url)
        self._in_flight += 1
        return url

    async def get(self) -> Optional[str]:
        """
        Wait for the next URL. Returns None once the crawl is finished, i.e.
        the queue is empty and no other worker can still add to it.
        """
        while True:
            url = self.get_nowait()
            if url is not None:
                return url
            if self._finished or self._in_flight == 0:
                self._finish()
                return None
            await self._park()

    async def _park(self) -> None:
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._waiters.append(waiter)
        timer = loop.call_later(self.poll_interval, _release, waiter)
        try:
            await waiter
        finally:
            timer.cancel()
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass

    async def task_done(self) -> None:
        """Release one in-flight URL. Wakes everybody when the crawl is finished."""
        if self._in_flight <= 0:
            raise ValueError("task_done() called more times than URLs were dequeued")
        self._in_flight -= 1
        if self._in_flight == 0 and not self._queue:
            self._finish()

    def _wake_one(self) -> None:
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)
                return

    def _finish(self) -> None:
        if not self._finished:
            self._finished = True
            logger.debug("Frontier drained, releasing idle workers")
        for waiter in self._waiters:
            _release(waiter)

    # ---- Introspection ----

    def empty(self) -> bool:
        return not self._queue

    def qsize(self) -> int:
        return len(self._queue)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def finished(self) -> bool:
        return self._finished

    def __contains__(self, url: object) -> bool:
        return url in self._queued


class ResultStore:
    """Terminal outcome per URL: exactly one visit or one failure, never both."""

    def __init__(self) -> None:
        self._visits: Dict[str, VisitRecord] = {}
        self._failures: Dict[str, FailureRecord] = {}

    def record_success(self, url: str, status_code: int) -> bool:
        if self._has_outcome(url):
            logger.warning("Ignoring second outcome for %s (status %s)", url, status_code)
            return False
        self._visits[url] = VisitRecord(url=url, status_code=status_code)
        return True

    def record_failure(self, url: str, reason: str) -> bool:
        if self._has_outcome(url):
            logger.warning("Ignoring second outcome for %s (%s)", url, reason)
            return False
        self._failures[url] = FailureRecord(url=url, reason=reason)
        return True

    def _has_outcome(self, url: str) -> bool:
        return url in self._visits or url in self._failures

    @property
    def visits(self) -> List[VisitRecord]:
        return list(self._visits.values())

    @property
    def failures(self) -> List[FailureRecord]:
        return list(self._failures.values())

    def __len__(self) -> int:
        return len(self._visits) + len(self._failures)


@dataclass
class CrawlState:
    """Everything one crawl shares between its workers. Built fresh per crawl."""
    root_domain: str
    registry: VisitedRegistry
    frontier: Frontier
    results: ResultStore

    @classmethod
    def start(cls, seed_url: str, poll_interval: float = 0.1) -> "CrawlState":
        """Create the state for a crawl and queue the seed (the root domain itself)."""
        root = root_domain(seed_url)
        state = cls(
            root_domain=root,
            registry=VisitedRegistry(),
            frontier=Frontier(poll_interval=poll_interval),
            results=ResultStore(),
        )
        state.registry.try_mark_seen(root)
        state.frontier.put_nowait(root)
        return state

    def report(self, elapsed_seconds: float) -> CrawlReport:
        return CrawlReport(
            root_domain=self.root_domain,
            visits=self.results.visits,
            failures=self.results.failures,
            elapsed_seconds=elapsed_seconds,
        )


def _release(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)
