from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def is_html(content_type: str | None) -> bool:
    return (content_type or "").lower() in HTML_CONTENT_TYPES


def extract_links(html: str) -> List[str]:
    """
    Extract raw href values from <a> tags in document order.
    Resolution against the crawl root is left to the caller.
    """
    soup = BeautifulSoup(html, "html.parser")
    out: List[str] = []
    for a in soup.select("a[href]"):
        href = a.get("href")
        if not href or not href.strip():
            continue
        out.append(href.strip())
    return out
