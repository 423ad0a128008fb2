"""
Single-domain web crawler: visits every in-domain page reachable from a seed
URL with a pool of concurrent workers and summarizes status codes and failures.
"""
from sitecrawler.version import __version__
from sitecrawler.config import CrawlConfig
from sitecrawler.engines.base import CrawlReport, FailureRecord, VisitRecord
from sitecrawler.engines.pool_engine import PoolCrawlEngine

__all__ = ["__version__", "CrawlConfig", "CrawlReport", "FailureRecord", "VisitRecord", "PoolCrawlEngine"]
