from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List

from ..config import CrawlConfig
from ..errors import ConfigurationError
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..engines.base import CrawlReport

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sitecrawler",
        description="Crawl every page of a single domain and report status codes and failures",
    )
    # Optional at parse level so a missing seed gets our own message, not argparse's.
    p.add_argument("seed_url", nargs="?", default=None,
                   help="Seed URL; also the root domain limiting the crawl (e.g. https://example.com)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--max-concurrency", type=int, default=None,
                   help="Number of concurrent workers (default from config)")
    p.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    p.add_argument("--user-agent", type=str, default=None, help="User-Agent header")
    p.add_argument("--poll-interval", type=float, default=None,
                   help="Seconds an idle worker waits before re-checking for work")
    p.add_argument("--engine", type=str, default=None, help="Engine dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--output", type=str, default=None, help="Report file path (default: stdout)")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.seed_url:
        cfg.seed_url = args.seed_url
    if args.max_concurrency is not None:
        cfg.max_concurrency = args.max_concurrency
    if args.timeout is not None:
        cfg.request_timeout = args.timeout
    if args.user_agent:
        cfg.user_agent = args.user_agent
    if args.poll_interval is not None:
        cfg.poll_interval = args.poll_interval
    if args.engine:
        cfg.engine = args.engine
    if args.exporter:
        cfg.exporter = args.exporter
    if args.output:
        cfg.output_path = args.output

    cfg.validate()
    return cfg


def run_cli(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        cfg = _load_config(args)
        # Dynamic engine + exporter loading so upgrades don't require code edits.
        engine_cls = load_symbol(cfg.engine, kind="engine")
        exporter_cls = load_symbol(cfg.exporter, kind="exporter")
    except ConfigurationError as exc:
        sys.stderr.write(f"{exc}\n")
        parser.print_usage(sys.stderr)
        return 2

    async def _run() -> CrawlReport:
        engine = engine_cls(cfg)
        return await engine.crawl()

    report: CrawlReport = asyncio.run(_run())

    exporter = exporter_cls()
    exporter.export(report, cfg.output_path)

    logger.info("Visited: %s | Failed: %s | Output: %s",
                len(report.visits), len(report.failures), cfg.output_path or "stdout")
    return 0
