"""Shared fixtures: a simulated website, DNS resolver and performance scorer."""

import gzip
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Union

import dns.resolver
import httpx
import pytest

from seo_audit.config import AuditConfig
from seo_audit.document import ParsedDocument
from seo_audit.fetcher import FetchedPage, Fetcher
from seo_audit.probes import AuditContext
from seo_audit.retry import RetryPolicy, fixed_delay
from seo_audit.utils.urls import normalize_url

Handler = Callable[[httpx.Request], httpx.Response]


class FakeSite:
    """Serves canned responses through httpx.MockTransport.

    Unknown URLs return 404. Bodies are gzip-compressed when the route
    declares Content-Encoding: gzip, since httpx decodes them on read.
    """

    def __init__(self):
        self.routes: Dict[str, Union[Handler, tuple]] = {}
        self.unreachable_hosts = set()
        self.requests: List[str] = []

    def add(self, url: str, body: str = "", status: int = 200, headers: Optional[dict] = None):
        self.routes[normalize_url(url)] = (status, body, headers or {})
        return self

    def add_handler(self, url: str, handler: Handler):
        self.routes[normalize_url(url)] = handler
        return self

    def redirect(self, url: str, location: str, status: int = 301):
        return self.add(url, status=status, headers={"location": location})

    def refuse(self, host: str):
        """Every request to `host` fails to connect."""
        self.unreachable_hosts.add(host)
        return self

    def requests_to(self, url: str) -> int:
        target = normalize_url(url)
        return sum(1 for requested in self.requests if requested == target)

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = normalize_url(str(request.url))
        self.requests.append(url)

        if request.url.host in self.unreachable_hosts:
            raise httpx.ConnectError("Connection refused", request=request)

        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if callable(route):
            return route(request)

        status, body, headers = route
        content = body.encode("utf-8")
        encoding = {k.lower(): v for k, v in headers.items()}.get("content-encoding")
        if encoding == "gzip":
            content = gzip.compress(content)
        return httpx.Response(status, content=content, headers=headers)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def fetcher(self, config: Optional[AuditConfig] = None) -> Fetcher:
        config = config or AuditConfig()
        return Fetcher(
            config,
            client=Fetcher.build_client(config, transport=self.transport()),
            retry_policy=RetryPolicy(max_attempts=3, backoff=fixed_delay(0)),
        )


class FakeResolver:
    """Stands in for dns.asyncresolver.Resolver."""

    def __init__(self, records: Optional[dict] = None, failing: tuple = ()):
        self.records = records or {}
        self.failing = failing
        self.queries: List[tuple] = []

    async def resolve(self, qname, rdtype, lifetime=None):
        self.queries.append((qname, rdtype))
        if rdtype in self.failing:
            raise dns.resolver.NXDOMAIN()
        if rdtype not in self.records:
            raise dns.resolver.NoAnswer()
        return self.records[rdtype]


def a_record(address: str):
    return SimpleNamespace(address=address)


def mx_record(exchange: str, preference: int = 10):
    return SimpleNamespace(exchange=exchange, preference=preference)


def txt_record(text: str):
    return SimpleNamespace(strings=[text.encode("utf-8")])


class FakeScorer:
    """Performance collaborator returning a canned payload (or raising)."""

    def __init__(self, payload: Optional[dict] = None, error: Optional[Exception] = None):
        self.payload = payload or {"categories": {}, "audits": {}}
        self.error = error
        self.calls: List[tuple] = []

    async def analyze(self, url, strategy=None):
        self.calls.append((url, strategy))
        if self.error is not None:
            raise self.error
        return self.payload


def make_context(
    url: str = "https://example.com/",
    html: str = "",
    final_url: Optional[str] = None,
    headers: Optional[dict] = None,
) -> AuditContext:
    """An AuditContext for a page that has already been fetched."""
    final_url = final_url or url
    page = FetchedPage(
        url=url,
        final_url=final_url,
        status_code=200,
        html=html,
        headers=headers or {},
    )
    return AuditContext(url=url, page=page, document=ParsedDocument(html, final_url))


@pytest.fixture
def site():
    """An empty simulated website."""
    return FakeSite()


@pytest.fixture
def config():
    return AuditConfig(retry_delay=0)


@pytest.fixture
def fetcher(site, config):
    return site.fetcher(config)


@pytest.fixture
def resolver():
    return FakeResolver(records={"A": [a_record("93.184.216.34")]})


def html_page(
    head: str = "",
    body: str = "",
    lang: Optional[str] = "en",
) -> str:
    lang_attr = f' lang="{lang}"' if lang is not None else ""
    return f"<!DOCTYPE html><html{lang_attr}><head>{head}</head><body>{body}</body></html>"


GOOD_TITLE = "Example Store | Handmade Leather Goods"
GOOD_DESCRIPTION = (
    "Shop handmade leather wallets, belts and bags crafted by independent artisans, "
    "with free shipping on every order and a lifetime repair guarantee."
)

GOOD_HEAD = f"""
<meta charset="utf-8">
<title>{GOOD_TITLE}</title>
<meta name="description" content="{GOOD_DESCRIPTION}">
<meta name="viewport" content="width=device-width, initial-scale=1">
<link rel="canonical" href="https://example.com/">
<meta property="og:title" content="Example Store">
<meta property="og:description" content="Handmade leather goods">
<meta property="og:image" content="https://example.com/og.png">
<meta property="og:url" content="https://example.com/">
<meta name="twitter:card" content="summary_large_image">
"""

GOOD_BODY = """
<h1>Handmade Leather Goods</h1>
<img src="/images/wallet.jpg" alt="Brown leather wallet">
<h2>Best sellers</h2>
<a href="/wallets">Wallets</a>
<a href="/belts">Belts</a>
<a href="https://instagram.com/examplestore">Instagram</a>
"""

GOOD_HEADERS = {
    "content-type": "text/html; charset=utf-8",
    "content-encoding": "gzip",
    "cache-control": "max-age=3600",
    "strict-transport-security": "max-age=31536000",
}


def urlset(count: int) -> str:
    urls = "".join(
        f"<url><loc>https://example.com/page-{i}</loc><lastmod>2024-01-01</lastmod></url>"
        for i in range(count)
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{urls}</urlset>'
    )


@pytest.fixture
def healthy_site(site):
    """example.com with complete meta tags, a sitemap and no robots.txt."""
    site.add("https://example.com/", html_page(GOOD_HEAD, GOOD_BODY), headers=GOOD_HEADERS)
    site.add("https://example.com/sitemap.xml", urlset(50), headers={"content-type": "application/xml"})
    site.redirect("http://example.com/", "https://example.com/")
    site.redirect("http://www.example.com/", "https://example.com/")
    return site
