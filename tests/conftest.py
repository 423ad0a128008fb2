from __future__ import annotations

import asyncio
from collections import Counter
from typing import Dict, List, Mapping, Optional, Tuple, Union

import pytest

from sitecrawler.config import CrawlConfig
from sitecrawler.engines.base import FetchResult

ROOT = "http://example.com"

Page = Union[Tuple[int, List[str]], Exception]


class FakeFetcher:
    """
    In-memory link graph standing in for the HTTP layer.
    Unknown URLs answer 404 with no links. Optional per-URL delays force
    workers to interleave.
    """

    def __init__(self, pages: Mapping[str, Page], delays: Optional[Dict[str, float]] = None) -> None:
        self.pages = dict(pages)
        self.delays = delays or {}
        self.calls: Counter = Counter()
        self.active = 0
        self.max_active = 0

    async def fetch(self, url: str) -> FetchResult:
        self.calls[url] += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            page = self.pages.get(url, (404, []))
            if isinstance(page, Exception):
                raise page
            status, links = page
            return FetchResult(status_code=status, links=list(links))
        finally:
            self.active -= 1


@pytest.fixture
def make_config():
    def _make(seed: str = ROOT, **overrides) -> CrawlConfig:
        cfg = CrawlConfig(seed_url=seed, poll_interval=0.01)
        for key, value in overrides.items():
            setattr(cfg, key, value)
        return cfg
    return _make
