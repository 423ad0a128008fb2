from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol
from abc import ABC, abstractmethod


@dataclass(frozen=True)
class VisitRecord:
    """A URL that was fetched and answered, whatever the HTTP status."""
    url: str
    status_code: int


@dataclass(frozen=True)
class FailureRecord:
    """A URL whose fetch raised a malformed-URL or transport error."""
    url: str
    reason: str


@dataclass
class FetchResult:
    status_code: int
    links: List[str] = field(default_factory=list)  # raw hrefs, page order


class Fetcher(Protocol):
    """
    Fetch collaborator: one call per dequeued URL.
    Raises FetchError (or its subclasses) when the page cannot be retrieved.
    """
    async def fetch(self, url: str) -> FetchResult:
        ...


@dataclass
class CrawlReport:
    root_domain: str
    visits: List[VisitRecord] = field(default_factory=list)
    failures: List[FailureRecord] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def visited_urls(self) -> List[str]:
        return [v.url for v in self.visits]

    @property
    def failed_urls(self) -> List[str]:
        return [f.url for f in self.failures]


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
