from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from .base import CrawlEngine, CrawlReport, Fetcher
from .state import CrawlState
from ..config import CrawlConfig
from ..errors import FetchError
from ..utils.http import HttpFetcher, create_session
from ..utils.urls import is_valid, normalize_url

logger = logging.getLogger(__name__)


class PoolCrawlEngine(CrawlEngine):
    """
    Crawls every in-domain page reachable from the seed.
    - A fixed pool of worker tasks drains a shared frontier.
    - Each URL is fetched at most once (visited registry).
    - Workers stop together once the frontier is empty and nothing is in flight.
    """
    def __init__(self, config: CrawlConfig, fetcher: Optional[Fetcher] = None) -> None:
        self.config = config
        # None: build an HttpFetcher on a session owned by crawl()
        self.fetcher = fetcher

    async def crawl(self) -> CrawlReport:
        cfg = self.config
        state = CrawlState.start(cfg.seed_url, poll_interval=cfg.poll_interval)
        logger.info("Crawling %s with %d workers", state.root_domain, cfg.max_concurrency)

        started = time.perf_counter()
        if self.fetcher is not None:
            await self._run_pool(state, self.fetcher)
        else:
            session = create_session(limit=cfg.max_concurrency)
            try:
                fetcher = HttpFetcher(session, timeout=cfg.request_timeout, user_agent=cfg.user_agent)
                await self._run_pool(state, fetcher)
            finally:
                await session.close()
        elapsed = time.perf_counter() - started

        report = state.report(elapsed)
        logger.info("Crawl finished: %d visited, %d failed in %.2fs",
                    len(report.visits), len(report.failures), elapsed)
        return report

    async def _run_pool(self, state: CrawlState, fetcher: Fetcher) -> None:
        workers = [
            asyncio.create_task(self._worker(state, fetcher), name=f"crawl-worker-{i}")
            for i in range(self.config.max_concurrency)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for w in workers:
                w.cancel()
            # Wait for the cancellations so no worker outlives the crawl.
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self, state: CrawlState, fetcher: Fetcher) -> None:
        while True:
            url = await state.frontier.get()
            if url is None:
                return
            try:
                await self._process(state, fetcher, url)
            finally:
                # Released only after every discovered link is queued.
                await state.frontier.task_done()

    async def _process(self, state: CrawlState, fetcher: Fetcher, url: str) -> None:
        try:
            result = await fetcher.fetch(url)
        except FetchError as exc:
            logger.info("Failed %s: %s", url, exc)
            state.results.record_failure(url, str(exc))
            return
        except Exception as exc:  # broad catch to keep crawler moving
            logger.warning("Unexpected error fetching %s", url, exc_info=True)
            state.results.record_failure(url, f"{type(exc).__name__}: {exc}")
            return

        state.results.record_success(url, result.status_code)
        logger.debug("Fetched %s (%s, %d links)", url, result.status_code, len(result.links))

        added = 0
        for raw in result.links:
            try:
                target = normalize_url(raw, state.root_domain)
                valid = is_valid(target, state.root_domain)
            except Exception:  # broad catch to keep crawler moving
                logger.warning("Skipping unusable link %r on %s", raw, url, exc_info=True)
                continue
            if not valid:
                logger.debug("Rejected link %r on %s", raw, url)
                continue
            if not state.registry.try_mark_seen(target):
                continue
            if await state.frontier.put(target):
                added += 1
        if added:
            logger.debug("Queued %d new URLs from %s (queue=%d)", added, url, state.frontier.qsize())
