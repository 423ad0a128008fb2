from __future__ import annotations

from typing import List, Optional

from tabulate import tabulate

from .base import Exporter, open_output
from .summary import CrawlSummary, format_elapsed, summarize
from ..engines.base import CrawlReport

TABLE_FORMAT = "grid"
RULE = "-" * 40


class ConsoleExporter:
    """
    Human-readable crawl summary: status code distribution, pages not found,
    failed URLs and total execution time.
    """

    def render(self, summary: CrawlSummary) -> str:
        lines: List[str] = [f"Parsed {summary.total_visited} Urls total", ""]

        status_rows = [[code, count] for code, count in summary.status_counts.items()]
        lines.append(tabulate(status_rows, headers=["Status Code", "Quantity"], tablefmt=TABLE_FORMAT))

        if summary.not_found:
            lines += ["", "URLs not found (404):", RULE]
            rows = [[v.url, v.status_code] for v in summary.not_found]
            lines.append(tabulate(rows, headers=["URL", "Status Code"], tablefmt=TABLE_FORMAT))

        if summary.failures:
            lines += ["", "Failed URLs:", RULE]
            rows = [[f.url, f.reason] for f in summary.failures]
            lines.append(tabulate(rows, headers=["URL", "Error"], tablefmt=TABLE_FORMAT))

        lines += ["", f"Total execution time: {format_elapsed(summary.elapsed_seconds)}"]
        return "\n".join(lines) + "\n"

    def export(self, report: CrawlReport, path: Optional[str] = None) -> None:
        text = self.render(summarize(report))
        with open_output(path) as out:
            out.write("\n" + text)
