from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Dict, List

from ..engines.base import CrawlReport, FailureRecord, VisitRecord


@dataclass
class CrawlSummary:
    root_domain: str
    total_visited: int = 0
    # Status code -> count, in the order each code was first seen.
    status_counts: Dict[int, int] = field(default_factory=dict)
    not_found: List[VisitRecord] = field(default_factory=list)
    failures: List[FailureRecord] = field(default_factory=list)
    elapsed_seconds: float = 0.0


def summarize(report: CrawlReport) -> CrawlSummary:
    """Tally a finished crawl. Read-only; call after the engine has stopped."""
    counts: Dict[int, int] = {}
    for visit in report.visits:
        counts[visit.status_code] = counts.get(visit.status_code, 0) + 1

    return CrawlSummary(
        root_domain=report.root_domain,
        total_visited=len(report.visits),
        status_counts=counts,
        not_found=[v for v in report.visits if v.status_code == HTTPStatus.NOT_FOUND],
        failures=list(report.failures),
        elapsed_seconds=report.elapsed_seconds,
    )


def format_elapsed(seconds: float) -> str:
    """HH:MM:SS.cc"""
    centis = int(max(seconds, 0.0) * 100)  # truncated, never rounded up
    hours, centis = divmod(centis, 360_000)
    minutes, centis = divmod(centis, 6_000)
    secs, centis = divmod(centis, 100)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{centis:02d}"
