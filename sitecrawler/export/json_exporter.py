from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, Optional

from .base import Exporter, open_output
from .summary import summarize
from ..engines.base import CrawlReport


class JSONExporter:
    def to_dict(self, report: CrawlReport) -> Dict[str, Any]:
        summary = summarize(report)
        return {
            "root_domain": report.root_domain,
            "elapsed_seconds": round(report.elapsed_seconds, 3),
            "total_visited": summary.total_visited,
            # JSON object keys are strings; insertion order is kept.
            "status_counts": {str(code): n for code, n in summary.status_counts.items()},
            "not_found": [v.url for v in summary.not_found],
            "failures": [asdict(f) for f in summary.failures],
            "visits": [asdict(v) for v in report.visits],
        }

    def export(self, report: CrawlReport, path: Optional[str] = None) -> None:
        with open_output(path) as f:
            json.dump(self.to_dict(report), f, indent=2, ensure_ascii=False)
            f.write("\n")
