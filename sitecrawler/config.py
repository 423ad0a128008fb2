from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
from pathlib import Path
from urllib.parse import urlparse
import os
import json

from .errors import ConfigurationError
from .version import CONFIG_SCHEMA_VERSION, DEFAULT_USER_AGENT

MISSING_SEED_MESSAGE = "Missing URL to parse, unable to proceed"


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    # Seed address; with its trailing slash stripped it is also the root domain.
    seed_url: str = ""
    # Number of concurrent workers draining the frontier.
    max_concurrency: int = 10
    request_timeout: float = 15.0
    user_agent: str = DEFAULT_USER_AGENT
    # Upper bound on how long an idle worker waits before re-checking the frontier.
    poll_interval: float = 0.1
    # Dotted paths for engine/exporter to allow runtime swapping without code changes.
    engine: str = "sitecrawler.engines.pool_engine:PoolCrawlEngine"
    exporter: str = "sitecrawler.export.console_exporter:ConsoleExporter"
    # Where to write the report; None means stdout.
    output_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _number(name: str, default: str, kind: type) -> Any:
            raw = _get(name, default)
            try:
                return kind(raw)
            except ValueError:
                raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None

        return cls(
            seed_url=_get("CRAWLER_SEED_URL", "").strip(),
            max_concurrency=_number("CRAWLER_MAX_CONCURRENCY", "10", int),
            request_timeout=_number("CRAWLER_REQUEST_TIMEOUT", "15.0", float),
            user_agent=_get("CRAWLER_USER_AGENT", DEFAULT_USER_AGENT),
            poll_interval=_number("CRAWLER_POLL_INTERVAL", "0.1", float),
            engine=_get("CRAWLER_ENGINE", "sitecrawler.engines.pool_engine:PoolCrawlEngine"),
            exporter=_get("CRAWLER_EXPORTER", "sitecrawler.export.console_exporter:ConsoleExporter"),
            output_path=_get("CRAWLER_OUTPUT_PATH", "") or None,
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration for future versions.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
        data = migrate_config(data)
        try:
            return cls(**data)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid config file {path}: {exc}") from exc

    # ---------- Validation ----------

    def validate(self) -> None:
        if not self.seed_url:
            raise ConfigurationError(MISSING_SEED_MESSAGE)
        parsed = urlparse(self.seed_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"Seed URL must be an absolute http(s) URL, got {self.seed_url!r}"
            )
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be >= 1")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be > 0")
        if self.poll_interval <= 0:
            raise ConfigurationError("poll_interval must be > 0")
        # Validate output path parent exists or is creatable
        if self.output_path:
            Path(self.output_path).parent.mkdir(parents=True, exist_ok=True)


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("Config file must contain a JSON object")

    # Ensure a schema_version is present
    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
