"""
Google PageSpeed Insights API Client

The performance-scoring collaborator: runs Lighthouse remotely and returns
category scores and per-audit results.
API Documentation: https://developers.google.com/speed/docs/insights/v5/get-started

Rate Limits:
- 400 requests per 100 seconds
- 25,000 requests per day (free tier)
"""

import asyncio
import logging
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx

from seo_audit.exceptions import PerformanceServiceError

logger = logging.getLogger(__name__)


class PageSpeedInsightsAPI:
    """Client for Google PageSpeed Insights API v5"""

    API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    RATE_LIMIT_REQUESTS = 400  # Max requests per 100 seconds
    RATE_LIMIT_WINDOW = 100  # Seconds
    MAX_CONCURRENT_REQUESTS = 4
    TIMEOUT = 120.0

    def __init__(
        self,
        api_key: Optional[str],
        strategy: str = "mobile",  # 'mobile' or 'desktop'
        categories: Optional[List[str]] = None,
        locale: str = "en",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize PageSpeed Insights API client.

        Args:
            api_key: Google API key with PageSpeed Insights API enabled
                (None uses the keyless quota)
            strategy: 'mobile' or 'desktop' analysis
            categories: List of categories to analyze (default: all four)
            locale: Locale for results (default: 'en')
            client: Shared httpx client (a short-lived one per call otherwise)
        """
        self.api_key = api_key
        self.strategy = strategy
        self.categories = categories or [
            'performance',
            'accessibility',
            'best-practices',
            'seo',
        ]
        self.locale = locale
        self._client = client

        # Rate limiting
        self.request_times: deque = deque()
        self.semaphore = asyncio.Semaphore(self.MAX_CONCURRENT_REQUESTS)
        self.total_requests = 0
        self.failed_requests = 0

    async def analyze(
        self,
        url: str,
        strategy: Optional[str] = None,
        categories: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Analyze a URL with PageSpeed Insights.

        Args:
            url: URL to analyze
            strategy: Override default strategy ('mobile' or 'desktop')
            categories: Override default categories

        Returns:
            {url, strategy, fetch_time, final_url,
             categories: {performance, seo, accessibility, best_practices},
             audits: {audit_id: {score, numericValue, displayValue}}}

        Raises:
            PerformanceServiceError: Timeout, rate limit or API error
        """
        await self._enforce_rate_limit()

        strategy = strategy or self.strategy
        params = {
            'url': url,
            'strategy': strategy,
            'category': categories or self.categories,
            'locale': self.locale
        }
        if self.api_key:
            params['key'] = self.api_key

        try:
            async with self.semaphore:
                logger.info(f"[PSI] Analyzing {url} ({strategy})")
                response = await self._get(params)
                response.raise_for_status()

                self.total_requests += 1
                data = response.json()

                return self._parse_response(data, url, strategy)

        except httpx.TimeoutException as e:
            self.failed_requests += 1
            logger.error(f"[PSI] Timeout analyzing {url} (>{self.TIMEOUT:.0f}s)")
            raise PerformanceServiceError(f"PageSpeed Insights timeout for {url}") from e

        except httpx.HTTPStatusError as e:
            self.failed_requests += 1
            status = e.response.status_code
            if status == 429:
                logger.error(f"[PSI] Rate limit exceeded for {url}")
                message = "PageSpeed Insights rate limit exceeded. Try again later."
            elif status == 400:
                logger.error(f"[PSI] Invalid URL or parameters: {url}")
                message = f"Invalid URL for PageSpeed Insights: {url}"
            else:
                logger.error(f"[PSI] API error {status} for {url}")
                message = f"PageSpeed Insights API error {status}"
            raise PerformanceServiceError(message, status_code=status) from e

        except (httpx.HTTPError, ValueError) as e:
            self.failed_requests += 1
            error_msg = str(e) if str(e) else type(e).__name__
            logger.error(f"[PSI] Error analyzing {url}: {error_msg}")
            raise PerformanceServiceError(f"PageSpeed Insights error: {error_msg}") from e

    async def _get(self, params: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(self.API_URL, params=params, timeout=self.TIMEOUT)
        async with httpx.AsyncClient(timeout=self.TIMEOUT) as client:
            return await client.get(self.API_URL, params=params)

    async def _enforce_rate_limit(self):
        """Enforce rate limit of 400 requests per 100 seconds"""
        now = datetime.now()
        window = timedelta(seconds=self.RATE_LIMIT_WINDOW)

        # Remove requests older than 100 seconds
        while self.request_times and (now - self.request_times[0]) > window:
            self.request_times.popleft()

        # Wait if at limit
        if len(self.request_times) >= self.RATE_LIMIT_REQUESTS:
            oldest_request = self.request_times[0]
            wait_time = self.RATE_LIMIT_WINDOW - (now - oldest_request).total_seconds()

            if wait_time > 0:
                logger.warning(f"[PSI] Rate limit reached. Waiting {wait_time:.1f}s...")
                await asyncio.sleep(wait_time)

                # Clear old requests after waiting
                now = datetime.now()
                while self.request_times and (now - self.request_times[0]) > window:
                    self.request_times.popleft()

        self.request_times.append(now)

    def _parse_response(self, data: Dict, url: str, strategy: str) -> Dict[str, Any]:
        """
        Parse PageSpeed Insights API response.

        Args:
            data: Raw API response
            url: URL that was analyzed
            strategy: Strategy the run used

        Returns:
            Category scores (0-100) and raw audit results (scores 0-1)
        """
        lighthouse = data.get('lighthouseResult') or {}

        # Extract category scores (0-1 scale, convert to 0-100)
        categories = lighthouse.get('categories') or {}
        scores = {
            'performance': self._extract_score(categories.get('performance')),
            'seo': self._extract_score(categories.get('seo')),
            'accessibility': self._extract_score(categories.get('accessibility')),
            'best_practices': self._extract_score(categories.get('best-practices')),
        }

        audits = {
            audit_id: {
                'score': audit.get('score'),
                'numericValue': audit.get('numericValue'),
                'displayValue': audit.get('displayValue'),
            }
            for audit_id, audit in (lighthouse.get('audits') or {}).items()
            if isinstance(audit, dict)
        }

        return {
            'url': url,
            'strategy': strategy,
            'fetch_time': lighthouse.get('fetchTime'),
            'final_url': lighthouse.get('finalUrl'),
            'categories': scores,
            'audits': audits,
        }

    def _extract_score(self, category: Optional[Dict]) -> Optional[float]:
        """Extract score from category (convert 0-1 to 0-100)"""
        if not category or 'score' not in category:
            return None
        score = category['score']
        if score is None:
            return None
        return round(score * 100, 1)

    def get_stats(self) -> Dict[str, int]:
        """Get API usage statistics"""
        return {
            'total_requests': self.total_requests,
            'failed_requests': self.failed_requests,
            'success_rate': (
                round((self.total_requests - self.failed_requests) / self.total_requests * 100, 1)
                if self.total_requests > 0 else 0
            ),
            'requests_in_window': len(self.request_times),
        }
