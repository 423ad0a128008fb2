"""
URL normalization and scope rules for a single-domain crawl.

Every function here is pure: the result depends only on the arguments, so the
same link always normalizes the same way regardless of which worker sees it.
"""
from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import urljoin, urlsplit

# Link targets that never point at a fetchable page.
JUNK_PREFIXES: Tuple[str, ...] = ("mailto:", "tel:", "javascript:")
HTTP_PREFIXES: Tuple[str, ...] = ("http://", "https://")
FRAGMENT_MARKER = "#"


def root_domain(seed_url: str) -> str:
    """Root domain of a crawl: the seed with trailing slashes stripped."""
    return seed_url.strip().rstrip("/")


def normalize_url(raw: Optional[str], root: str) -> Optional[str]:
    """
    Turn a raw href into an absolute URL, or None when it cannot be classified.

    - already under the root domain: unchanged
    - absolute http(s): unchanged, scope is decided by is_valid
    - other schemes (mailto:, tel:, javascript:, ftp://...): unchanged, so
      is_valid rejects them
    - protocol-relative (//host/path): takes the root's scheme
    - everything else is resolved against the root domain
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None

    if raw.startswith(root):
        return raw
    lowered = raw.lower()
    if lowered.startswith(HTTP_PREFIXES):
        return raw
    if lowered.startswith(JUNK_PREFIXES) or "://" in raw:
        return raw
    if raw.startswith("//"):
        return f"{urlsplit(root).scheme}:{raw}"
    if raw.startswith("/"):
        return root + raw
    return urljoin(root + "/", raw)


def _origin(url: str) -> Tuple[str, str]:
    parsed = urlsplit(url)
    return parsed.scheme.lower(), parsed.netloc.lower()


def is_in_scope(url: str, root: str) -> bool:
    """
    True when url lives under root: same scheme and host, and a path that
    starts with the root's path on a segment boundary.
    """
    try:
        if _origin(url) != _origin(root):
            return False
        path = urlsplit(url).path
    except ValueError:
        return False
    root_path = urlsplit(root).path.rstrip("/")
    if not root_path:
        return True
    return path == root_path or path.startswith(root_path + "/")


def is_valid(url: Optional[str], root: str) -> bool:
    """Scope and junk filter applied after normalization and before enqueue."""
    if not url:
        return False
    if FRAGMENT_MARKER in url:
        return False
    if url.lower().startswith(JUNK_PREFIXES):
        return False
    if not url.startswith(root):
        return False
    return is_in_scope(url, root)
