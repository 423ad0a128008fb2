from __future__ import annotations

import csv
from typing import Optional

from .base import Exporter, open_output
from ..engines.base import CrawlReport


class CSVExporter:
    """
    One row per crawled URL: visits carry a status code, failures an error.
    """

    _headers = ["url", "status_code", "error"]

    def export(self, report: CrawlReport, path: Optional[str] = None) -> None:
        with open_output(path, newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for visit in report.visits:
                w.writerow([visit.url, visit.status_code, ""])
            for failure in report.failures:
                w.writerow([failure.url, "", failure.reason])
