"""
Audit Engine.

Coordinates one audit: a single page fetch, then the structural analyzer,
every infrastructure probe and the mobile adapter concurrently, then
aggregation and scoring. Results are cached per normalized URL.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Dict, Optional, TypeVar

from seo_audit.cache import CacheKey, CheckKind, ResultCache
from seo_audit.config import AnalysisThresholds, AuditConfig, default_thresholds
from seo_audit.document import ParsedDocument
from seo_audit.exceptions import AuditTimeoutError, FetchError
from seo_audit.external import PageSpeedInsightsAPI
from seo_audit.fetcher import Fetcher
from seo_audit.mobile import MobileUsabilityAdapter, PerformanceScorer
from seo_audit.models import AuditResult, Scope, StructuralResult
from seo_audit.persistence import IssueSink
from seo_audit.probes import (
    AuditContext,
    DNSProbe,
    DNSResolver,
    InternationalProbe,
    Probe,
    RedirectProbe,
    RobotsProbe,
    SchemaProbe,
    SitemapProbe,
    SSLProbe,
)
from seo_audit.scoring import aggregate_issues, calculate_score, count_by_severity
from seo_audit.structural import StructuralAnalyzer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuditEngine:
    """Runs full and structural-only audits."""

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        thresholds: Optional[AnalysisThresholds] = None,
        fetcher: Optional[Fetcher] = None,
        cache: Optional[ResultCache] = None,
        performance_scorer: Optional[PerformanceScorer] = None,
        resolver: Optional[DNSResolver] = None,
        issue_sink: Optional[IssueSink] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Runtime configuration (defaults to the fetcher's, or defaults)
            thresholds: Check thresholds
            fetcher: Shared fetcher for the page and every probe
            cache: Result cache (a fresh one using config.cache_ttl_minutes otherwise)
            performance_scorer: Performance collaborator; when omitted a
                PageSpeed Insights client is used if an API key is configured
            resolver: DNS resolver for the DNS probe
            issue_sink: Receives detected issues after each fresh audit
        """
        self.config = config or (fetcher.config if fetcher else AuditConfig())
        self.thresholds = thresholds or default_thresholds
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(self.config)
        self.cache = cache if cache is not None else ResultCache(
            ttl_minutes=self.config.cache_ttl_minutes
        )

        if performance_scorer is None and self.config.google_psi_api_key:
            performance_scorer = PageSpeedInsightsAPI(
                api_key=self.config.google_psi_api_key,
                strategy=self.config.psi_strategy,
                locale=self.config.psi_locale,
            )

        self.analyzer = StructuralAnalyzer(self.thresholds)
        self.mobile = MobileUsabilityAdapter(performance_scorer, cache=self.cache)
        self.issue_sink = issue_sink

        probe_args = (self.fetcher, self.config, self.thresholds)
        self.probes: Dict[Scope, Probe] = {
            Scope.ROBOTS: RobotsProbe(*probe_args),
            Scope.SITEMAP: SitemapProbe(*probe_args),
            Scope.SSL: SSLProbe(*probe_args),
            Scope.DNS: DNSProbe(*probe_args, resolver=resolver),
            Scope.REDIRECTS: RedirectProbe(*probe_args),
            Scope.SCHEMA: SchemaProbe(*probe_args),
            Scope.INTERNATIONAL: InternationalProbe(*probe_args),
        }

    async def aclose(self) -> None:
        if self._owns_fetcher:
            await self.fetcher.aclose()

    async def __aenter__(self) -> "AuditEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def run_audit(self, url: str, use_cache: bool = True) -> AuditResult:
        """Full structural and infrastructure audit of `url`.

        A cache hit returns the stored result unchanged, timestamp included.

        Args:
            url: Page to audit
            use_cache: Serve and store through the result cache

        Returns:
            AuditResult

        Raises:
            FetchError: The page itself could not be fetched
            AuditTimeoutError: config.audit_timeout elapsed
        """
        key = self._cache_key(url, CheckKind.AUDIT)
        fresh = False

        async def compute() -> AuditResult:
            nonlocal fresh
            fresh = True
            return await self._with_timeout(url, self._audit(url))

        if use_cache:
            result = await self.cache.get_or_compute(key, compute)
        else:
            result = await compute()

        if fresh:
            await self._record_issues(result)
        return result

    async def analyze_page(self, url: str, use_cache: bool = True) -> StructuralResult:
        """Structural-only analysis of `url` (no infrastructure probes).

        Raises:
            FetchError: The page could not be fetched
            AuditTimeoutError: config.audit_timeout elapsed
        """
        key = self._cache_key(url, CheckKind.PAGE)

        async def compute() -> StructuralResult:
            return await self._with_timeout(url, self._analyze(url))

        if use_cache:
            return await self.cache.get_or_compute(key, compute)
        return await compute()

    @staticmethod
    def _cache_key(url: str, kind: CheckKind) -> CacheKey:
        try:
            return CacheKey.for_url(url, kind)
        except ValueError as e:
            raise FetchError(url, "Invalid URL") from e

    async def _with_timeout(self, url: str, operation: Awaitable[T]) -> T:
        if self.config.audit_timeout is None:
            return await operation
        try:
            return await asyncio.wait_for(operation, timeout=self.config.audit_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Audit of {url} timed out after {self.config.audit_timeout}s")
            raise AuditTimeoutError(url, self.config.audit_timeout) from None

    async def _analyze(self, url: str) -> StructuralResult:
        page = await self.fetcher.fetch(url)
        return self.analyzer.analyze(page, request_url=url)

    async def _audit(self, url: str) -> AuditResult:
        start_time = time.monotonic()
        logger.info(f"Starting audit of {url}")

        # The one fatal step: without the page there is nothing to analyze
        page = await self.fetcher.fetch(url)
        document = ParsedDocument(page.html, page.final_url)
        context = AuditContext(url=url, page=page, document=document)

        async def structural() -> StructuralResult:
            return self.analyzer.analyze(page, request_url=url, document=document)

        probe_scopes = list(self.probes)
        structural_result, mobile, *probe_outcomes = await asyncio.gather(
            structural(),
            self.mobile.run(url),
            *(self.probes[scope].run(context) for scope in probe_scopes),
        )
        outcomes = dict(zip(probe_scopes, probe_outcomes))

        scopes = structural_result.scopes()
        scopes.update(outcomes)
        scopes[Scope.MOBILE] = mobile
        issues = aggregate_issues(scopes)

        result = AuditResult(
            url=url,
            timestamp=datetime.now(timezone.utc),
            structural=structural_result,
            robots=outcomes[Scope.ROBOTS],
            sitemap=outcomes[Scope.SITEMAP],
            ssl=outcomes[Scope.SSL],
            dns=outcomes[Scope.DNS],
            redirects=outcomes[Scope.REDIRECTS],
            mobile=mobile,
            schema=outcomes[Scope.SCHEMA],
            international=outcomes[Scope.INTERNATIONAL],
            issues=tuple(issues),
            score=calculate_score(issues),
        )

        elapsed = time.monotonic() - start_time
        logger.info(
            f"Audit of {url} finished in {elapsed:.2f}s: score {result.score}, "
            f"issues {count_by_severity(issues)}"
        )
        degraded = result.degraded_scopes()
        if degraded:
            logger.info(f"Degraded scopes for {url}: {', '.join(s.value for s in degraded)}")
        return result

    async def _record_issues(self, result: AuditResult) -> None:
        if self.issue_sink is None:
            return
        try:
            await self.issue_sink.record_issues(result.issue_records())
        except Exception as e:
            logger.error(f"Failed to record issues for {result.url}: {e}")


async def run_audit(url: str, config: Optional[AuditConfig] = None) -> AuditResult:
    """One-off full audit with configuration from the environment."""
    async with AuditEngine(config or AuditConfig.from_env()) as engine:
        return await engine.run_audit(url)


async def analyze_page(url: str, config: Optional[AuditConfig] = None) -> StructuralResult:
    """One-off structural analysis with configuration from the environment."""
    async with AuditEngine(config or AuditConfig.from_env()) as engine:
        return await engine.analyze_page(url)
