from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Optional, Protocol

from ..engines.base import CrawlReport


class Exporter(Protocol):
    def export(self, report: CrawlReport, path: Optional[str] = None) -> None:
        ...


@contextmanager
def open_output(path: Optional[str], newline: Optional[str] = None) -> Iterator[IO[str]]:
    """Yield a text stream for path, or stdout when path is None or '-'."""
    if not path or path == "-":
        yield sys.stdout
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline=newline) as f:
        yield f
