from __future__ import annotations


class CrawlerError(Exception):
    """Base class for every error raised by the crawler."""


class ConfigurationError(CrawlerError):
    """Invalid or missing configuration. Fatal, raised before any crawling."""


class FetchError(CrawlerError):
    """
    A single URL could not be fetched.
    Never fatal: the engine turns it into a FailureRecord and moves on.
    """
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url

    @property
    def reason(self) -> str:
        return str(self)


class MalformedUrlError(FetchError):
    """The URL cannot be parsed or is not something the HTTP client can request."""


class FetchTransportError(FetchError):
    """Network failure, timeout, or protocol error while retrieving the page."""
