"""URL helpers shared by the analyzer, the probes and the cache."""

from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

DEFAULT_PORTS = {"http": 80, "https": 443}


def _netloc(hostname: str, port: Optional[int], scheme: str) -> str:
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        return f"{host}:{port}"
    return host


def normalize_url(url: str) -> str:
    """Canonical form used for cache keys and URL comparisons.

    Lowercases scheme and host, drops default ports, credentials and the
    fragment, and turns an empty path into "/".

    Raises:
        ValueError: If the URL has an invalid port or IPv6 host
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    hostname = parsed.hostname or ""
    netloc = _netloc(hostname, parsed.port, scheme)
    path = parsed.path or "/"
    return urlunparse((scheme, netloc, path, parsed.params, parsed.query, ""))


def site_origin(url: str) -> str:
    """scheme://host[:port] of a URL."""
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    return f"{scheme}://{_netloc(parsed.hostname or '', parsed.port, scheme)}"


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Resolve `href` against `base_url`.

    Returns:
        Absolute http(s) URL, or None if href cannot become one
    """
    try:
        absolute = urljoin(base_url, href.strip())
        parsed = urlparse(absolute)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return absolute


def www_variant(hostname: str) -> str:
    """Swap the www. prefix: example.com <-> www.example.com."""
    if hostname.startswith("www."):
        return hostname[4:]
    return f"www.{hostname}"
