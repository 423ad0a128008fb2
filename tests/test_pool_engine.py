"""Tests for the worker-pool crawl engine against an in-memory link graph."""

from __future__ import annotations

import asyncio
import random

import pytest

from conftest import ROOT, FakeFetcher
from sitecrawler.engines.pool_engine import PoolCrawlEngine
from sitecrawler.errors import FetchTransportError, MalformedUrlError


async def crawl(pages, make_config, delays=None, **overrides):
    fetcher = FakeFetcher(pages, delays=delays)
    engine = PoolCrawlEngine(make_config(**overrides), fetcher=fetcher)
    report = await asyncio.wait_for(engine.crawl(), timeout=10)
    return report, fetcher


def _site_graph(size: int = 40, fanout: int = 4, seed: int = 7):
    """Finite cyclic site: every page links to a few others, back to the root, and off-site."""
    rng = random.Random(seed)
    pages = {ROOT: (200, ["/p0", "/p1", "/p2"])}
    for i in range(size):
        links = [f"/p{rng.randrange(size)}" for _ in range(fanout)]
        links += ["/", ROOT, "http://elsewhere.org/", f"/p{i}#top"]
        pages[f"{ROOT}/p{i}"] = (200, links)
    return pages


class TestScenarios:
    @pytest.mark.asyncio
    async def test_one_hop_filters_out_of_scope_and_junk(self, make_config):
        pages = {
            ROOT: (200, ["/about", "http://external.com/x", "/about#section", "mailto:a@b.com"]),
            f"{ROOT}/about": (200, []),
        }
        report, fetcher = await crawl(pages, make_config)

        assert set(report.visited_urls) == {ROOT, f"{ROOT}/about"}
        assert report.failures == []
        assert "http://external.com/x" not in fetcher.calls

    @pytest.mark.asyncio
    async def test_shared_page_fetched_once(self, make_config):
        pages = {
            ROOT: (200, ["/a", "/b"]),
            f"{ROOT}/a": (200, ["/shared"]),
            f"{ROOT}/b": (200, ["/shared", "shared"]),
            f"{ROOT}/shared": (200, ["/a", "/b"]),
        }
        delays = {f"{ROOT}/a": 0.02, f"{ROOT}/b": 0.02, f"{ROOT}/shared": 0.02}
        report, fetcher = await crawl(pages, make_config, delays=delays, max_concurrency=5)

        assert fetcher.calls[f"{ROOT}/shared"] == 1
        assert report.visited_urls.count(f"{ROOT}/shared") == 1
        assert set(report.visited_urls) == {ROOT, f"{ROOT}/a", f"{ROOT}/b", f"{ROOT}/shared"}

    @pytest.mark.asyncio
    async def test_transport_error_is_recorded_and_crawl_continues(self, make_config):
        pages = {
            ROOT: (200, ["/broken", "/ok"]),
            f"{ROOT}/broken": FetchTransportError(f"{ROOT}/broken", "Connection refused"),
            f"{ROOT}/ok": (200, ["/deeper"]),
            f"{ROOT}/deeper": (200, []),
        }
        report, _ = await crawl(pages, make_config)

        assert [(f.url, f.reason) for f in report.failures] == [(f"{ROOT}/broken", "Connection refused")]
        assert set(report.visited_urls) == {ROOT, f"{ROOT}/ok", f"{ROOT}/deeper"}

    @pytest.mark.asyncio
    async def test_trailing_slash_seed_is_root_domain(self, make_config):
        pages = {ROOT: (200, ["/about"]), f"{ROOT}/about": (200, [])}
        report, _ = await crawl(pages, make_config, seed="http://example.com/")

        assert report.root_domain == ROOT
        assert set(report.visited_urls) == {ROOT, f"{ROOT}/about"}


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_http_errors_are_visits(self, make_config):
        pages = {
            ROOT: (200, ["/missing", "/error"]),
            f"{ROOT}/error": (500, []),
        }
        report, _ = await crawl(pages, make_config)

        statuses = {v.url: v.status_code for v in report.visits}
        assert statuses == {ROOT: 200, f"{ROOT}/missing": 404, f"{ROOT}/error": 500}
        assert report.failures == []

    @pytest.mark.asyncio
    async def test_malformed_and_unexpected_errors_become_failures(self, make_config):
        pages = {
            ROOT: (200, ["/bad", "/crash"]),
            f"{ROOT}/bad": MalformedUrlError(f"{ROOT}/bad", "Invalid URL"),
            f"{ROOT}/crash": RuntimeError("parser exploded"),
        }
        report, _ = await crawl(pages, make_config)

        reasons = {f.url: f.reason for f in report.failures}
        assert reasons == {f"{ROOT}/bad": "Invalid URL", f"{ROOT}/crash": "RuntimeError: parser exploded"}
        assert report.visited_urls == [ROOT]

    @pytest.mark.asyncio
    async def test_failing_seed_still_terminates(self, make_config):
        pages = {ROOT: FetchTransportError(ROOT, "DNS lookup failed")}
        report, _ = await crawl(pages, make_config)

        assert report.visits == []
        assert report.failed_urls == [ROOT]

    @pytest.mark.asyncio
    async def test_unusable_link_is_skipped(self, make_config):
        pages = {
            ROOT: (200, [b"/bytes", "/good"]),
            f"{ROOT}/good": (200, []),
        }
        report, fetcher = await crawl(pages, make_config, max_concurrency=3)

        assert set(report.visited_urls) == {ROOT, f"{ROOT}/good"}
        assert report.failures == []
        assert fetcher.calls[f"{ROOT}/good"] == 1

    @pytest.mark.asyncio
    async def test_elapsed_time_is_measured(self, make_config):
        report, _ = await crawl({ROOT: (200, [])}, make_config, delays={ROOT: 0.05})
        assert report.elapsed_seconds >= 0.04


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_single_and_many_workers_visit_the_same_set(self, make_config):
        pages = _site_graph()
        single, _ = await crawl(pages, make_config, max_concurrency=1)
        many, fetcher = await crawl(pages, make_config, max_concurrency=10)

        assert set(single.visited_urls) == set(many.visited_urls)
        assert len(many.visited_urls) == len(set(many.visited_urls))
        assert all(count == 1 for count in fetcher.calls.values())

    @pytest.mark.asyncio
    async def test_links_found_late_by_a_slow_worker_are_not_lost(self, make_config):
        # Every other worker goes idle while /slow is still in flight; the page
        # it links to must still be crawled.
        pages = {
            ROOT: (200, ["/fast", "/slow"]),
            f"{ROOT}/fast": (200, []),
            f"{ROOT}/slow": (200, ["/late"]),
            f"{ROOT}/late": (200, ["/later"]),
            f"{ROOT}/later": (200, []),
        }
        report, _ = await crawl(
            pages, make_config, delays={f"{ROOT}/slow": 0.2}, max_concurrency=5, poll_interval=0.01
        )

        assert f"{ROOT}/late" in report.visited_urls
        assert f"{ROOT}/later" in report.visited_urls

    @pytest.mark.asyncio
    async def test_workers_fetch_in_parallel(self, make_config):
        pages = {ROOT: (200, [f"/p{i}" for i in range(8)])}
        delays = {f"{ROOT}/p{i}": 0.05 for i in range(8)}
        _, fetcher = await crawl(pages, make_config, delays=delays, max_concurrency=4)
        assert fetcher.max_active == 4

    @pytest.mark.asyncio
    async def test_every_recorded_url_is_in_scope(self, make_config):
        report, _ = await crawl(_site_graph(size=25), make_config, max_concurrency=6)
        for url in report.visited_urls + report.failed_urls:
            assert url.startswith(ROOT)
            assert "#" not in url
        assert not set(report.visited_urls) & set(report.failed_urls)


class WorkerKilled(BaseException):
    """Escapes the engine's per-URL error handling."""


class KillingFetcher(FakeFetcher):
    def __init__(self, pages, fatal_url, **kwargs):
        super().__init__(pages, **kwargs)
        self.fatal_url = fatal_url

    async def fetch(self, url):
        if url == self.fatal_url:
            await asyncio.sleep(0.05)
            raise WorkerKilled(url)
        return await super().fetch(url)


def _leftover_tasks():
    return [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]


class TestShutdown:
    # asyncio.run cancels stray tasks on exit, so leftovers are counted inside main().

    def test_cancelled_crawl_leaves_no_tasks(self, make_config):
        pages = {
            ROOT: (200, ["/slow", "/quick"]),
            f"{ROOT}/slow": (200, []),
            f"{ROOT}/quick": (200, []),
        }
        fetcher = FakeFetcher(pages, delays={f"{ROOT}/slow": 5.0})
        engine = PoolCrawlEngine(make_config(max_concurrency=4, poll_interval=1.0), fetcher=fetcher)

        async def main():
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(engine.crawl(), timeout=0.2)
            return _leftover_tasks()

        assert asyncio.run(main()) == []
        assert fetcher.active == 0

    def test_worker_crash_stops_pool_and_leaves_no_tasks(self, make_config):
        pages = {
            ROOT: (200, ["/fatal", "/slow"]),
            f"{ROOT}/slow": (200, []),
        }
        fetcher = KillingFetcher(pages, f"{ROOT}/fatal", delays={f"{ROOT}/slow": 5.0})
        engine = PoolCrawlEngine(make_config(max_concurrency=4, poll_interval=1.0), fetcher=fetcher)

        async def main():
            with pytest.raises(WorkerKilled):
                await asyncio.wait_for(engine.crawl(), timeout=2)
            return _leftover_tasks()

        assert asyncio.run(main()) == []
        assert fetcher.active == 0
