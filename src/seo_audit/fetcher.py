"""Page fetcher: browser-like requests with redirect following and bounded retry."""

import logging
import time
from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import urlparse

import httpx

from seo_audit.config import AuditConfig
from seo_audit.constants import ACCEPT_ENCODING, ACCEPT_HTML, ACCEPT_LANGUAGE
from seo_audit.exceptions import ConnectionFailedError, FetchError
from seo_audit.retry import RetryPolicy, exponential_backoff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedPage:
    """A retrieved page and its final response metadata."""

    url: str
    final_url: str
    status_code: int
    html: str
    headers: Mapping[str, str] = field(default_factory=dict)  # lowercased names
    elapsed: float = 0.0
    redirect_count: int = 0

    @property
    def is_https(self) -> bool:
        return urlparse(self.final_url).scheme == "https"


class Fetcher:
    """Retrieves pages and probe resources over one shared httpx client."""

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """Initialize the fetcher.

        Args:
            config: Audit configuration (timeouts, redirect cap, retries)
            client: Pre-built client; build it with Fetcher.build_client so the
                redirect cap applies
            retry_policy: Policy for transient failures (defaults from config)
        """
        self.config = config or AuditConfig()
        self.user_agent = self.config.user_agent
        self.headers = {
            "User-Agent": self.user_agent,
            "Accept": ACCEPT_HTML,
            "Accept-Language": ACCEPT_LANGUAGE,
            "Accept-Encoding": ACCEPT_ENCODING,
            "DNT": "1",
            "Upgrade-Insecure-Requests": "1",
        }
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.config.max_retries,
            backoff=exponential_backoff(initial=self.config.retry_delay),
        )
        self._client = client
        self._owns_client = client is None

    @staticmethod
    def build_client(
        config: Optional[AuditConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> httpx.AsyncClient:
        """Create an AsyncClient with the configured timeout and redirect cap."""
        config = config or AuditConfig()
        return httpx.AsyncClient(
            timeout=config.timeout,
            max_redirects=config.max_redirects,
            transport=transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self.build_client(self.config)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        url: str,
        follow_redirects: bool = True,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """GET a URL, retrying transient failures.

        Any response below 500 is returned as-is so callers can inspect
        4xx and 3xx statuses.

        Args:
            url: URL to request
            follow_redirects: Follow redirects up to the configured cap
            timeout: Per-attempt timeout in seconds (defaults to config.timeout)
            retry_policy: Override the fetcher's retry policy
            headers: Extra headers merged over the browser-like defaults

        Returns:
            The final httpx.Response

        Raises:
            ConnectionFailedError: The server could not be reached
            FetchError: Server errors after retries, redirect cap exceeded,
                invalid URL or any other transport failure
        """
        policy = retry_policy or self.retry_policy
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout if timeout is not None else self.config.timeout

        async def attempt(number: int) -> httpx.Response:
            response = await self.client.get(
                url,
                headers=request_headers,
                follow_redirects=follow_redirects,
                timeout=request_timeout,
            )
            if response.status_code >= 500:
                raise FetchError(
                    url,
                    f"Server error {response.status_code}",
                    status_code=response.status_code,
                    retryable=True,
                )
            return response

        try:
            return await policy.run(attempt, description=f"GET {url}")
        except FetchError:
            raise
        except httpx.TooManyRedirects as e:
            raise FetchError(url, f"Exceeded {self.config.max_redirects} redirects") from e
        except httpx.ConnectError as e:
            raise ConnectionFailedError(url, f"Connection error: {e}") from e
        except httpx.TimeoutException as e:
            raise FetchError(url, f"Request timeout after {request_timeout}s", retryable=True) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchedPage:
        """Fetch a page for analysis.

        4xx responses are terminal and not retried.

        Args:
            url: The URL to fetch
            timeout: Per-attempt timeout in seconds

        Returns:
            FetchedPage with the HTML, final URL and lowercased headers

        Raises:
            FetchError: If the page could not be retrieved
        """
        start_time = time.monotonic()
        try:
            response = await self.request(url, follow_redirects=True, timeout=timeout)
        except FetchError as e:
            logger.error(f"Fetch failed for {url}: {e.reason}")
            raise

        if response.status_code >= 400:
            logger.error(f"Fetch failed for {url}: HTTP {response.status_code}")
            raise FetchError(
                url, f"HTTP {response.status_code}", status_code=response.status_code
            )

        elapsed = time.monotonic() - start_time
        return FetchedPage(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            html=response.text,
            headers={k.lower(): v for k, v in response.headers.items()},
            elapsed=elapsed,
            redirect_count=len(response.history),
        )
