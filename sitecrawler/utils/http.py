from __future__ import annotations

import asyncio
from typing import Optional
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

from ..engines.base import FetchResult
from ..errors import FetchTransportError, MalformedUrlError
from .parsing import extract_links, is_html

logger = logging.getLogger(__name__)


class HttpFetcher:
    """
    Fetch collaborator backed by a shared aiohttp session.
    Any HTTP status is a result; only unparseable URLs and transport
    problems raise.
    """
    def __init__(
        self,
        session: ClientSession,
        *,
        timeout: float = 15.0,
        user_agent: Optional[str] = None,
    ) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    async def fetch(self, url: str) -> FetchResult:
        try:
            async with self.session.get(url, headers=self.headers, timeout=self.timeout) as resp:
                if not is_html(resp.content_type):
                    return FetchResult(status_code=resp.status)
                html = await resp.text(errors="replace")
                return FetchResult(status_code=resp.status, links=extract_links(html))
        except (aiohttp.InvalidURL, ValueError) as exc:  # yarl raises plain ValueError too
            raise MalformedUrlError(url, f"Invalid URL: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise FetchTransportError(url, f"Timed out after {self.timeout.total}s") from exc
        except aiohttp.ClientError as exc:
            logger.debug("fetch failed for %s: %r", url, exc)
            raise FetchTransportError(url, f"{type(exc).__name__}: {exc}") from exc


def create_session(limit: int = 0) -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=limit)  # 0 = unlimited; concurrency bounded by worker count
    return aiohttp.ClientSession(connector=connector)
