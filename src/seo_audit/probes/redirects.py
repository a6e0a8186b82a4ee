"""Redirect chain probe for the HTTP->HTTPS and www/non-www transitions."""

import logging
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from seo_audit.exceptions import FetchError
from seo_audit.fetcher import Fetcher
from seo_audit.models import (
    Issue,
    RedirectChainLink,
    RedirectScenario,
    RedirectsResult,
    Scope,
    Severity,
)
from seo_audit.probes.base import AuditContext, Probe
from seo_audit.retry import RetryPolicy
from seo_audit.utils.urls import www_variant

logger = logging.getLogger(__name__)


async def follow_redirect_chain(
    fetcher: Fetcher,
    url: str,
    max_hops: int = 5,
    timeout: Optional[float] = None,
) -> Tuple[Tuple[RedirectChainLink, ...], str]:
    """Walk a redirect chain one request at a time.

    Each hop is a single attempt with redirect following disabled. The
    terminal response (anything that is not a 3xx with a Location header)
    is recorded as the last link. A hop that gets no response ends the
    chain early.

    Args:
        fetcher: Fetcher used for the hops
        url: Starting URL
        max_hops: Maximum requests to issue
        timeout: Per-hop timeout in seconds

    Returns:
        Tuple of (chain, final URL)

    Raises:
        FetchError: The very first request got no response
    """
    chain: List[RedirectChainLink] = []
    current_url = url
    policy = RetryPolicy.single_attempt()

    for _ in range(max_hops):
        try:
            response = await fetcher.request(
                current_url,
                follow_redirects=False,
                timeout=timeout,
                retry_policy=policy,
            )
        except FetchError as e:
            if not chain:
                raise
            logger.debug(f"Redirect chain from {url} stopped at {current_url}: {e.reason}")
            return tuple(chain), current_url

        location = response.headers.get('location')
        link = RedirectChainLink(
            url=current_url,
            status_code=response.status_code,
            location=location,
        )
        chain.append(link)

        if not link.is_redirect:
            return tuple(chain), current_url
        current_url = urljoin(current_url, location)

    # Truncated: report the last URL actually requested
    return tuple(chain), chain[-1].url if chain else url


class RedirectProbe(Probe):
    """Checks how the site redirects plain-HTTP and www-variant requests."""

    scope = Scope.REDIRECTS

    async def check(self, context: AuditContext) -> RedirectsResult:
        hostname = context.request_hostname
        path = urlparse(context.url).path or '/'
        scenarios = (
            ('http_to_https', f"http://{hostname}{path}"),
            ('www_redirect', f"http://{www_variant(hostname)}"),
        )

        chains: List[RedirectScenario] = []
        skipped: List[str] = []
        for scenario_type, from_url in scenarios:
            try:
                chain, final_url = await follow_redirect_chain(
                    self.fetcher,
                    from_url,
                    max_hops=self.thresholds.redirect_max_hops,
                    timeout=self.config.redirect_hop_timeout,
                )
            except FetchError as e:
                logger.debug(f"Skipping {scenario_type} redirect check for {from_url}: {e.reason}")
                skipped.append(scenario_type)
                continue

            chains.append(RedirectScenario(
                type=scenario_type,
                from_url=from_url,
                chain=chain,
                final_url=final_url,
            ))

        issues: List[Issue] = []
        for scenario in chains:
            if scenario.chain_length > self.thresholds.redirect_long_chain_threshold:
                issues.append(Issue(
                    type='long_redirect_chain',
                    severity=Severity.MEDIUM,
                    message=f'Redirect chain too long: {scenario.chain_length} redirects',
                    scope=self.scope,
                    count=scenario.chain_length,
                    element=scenario.from_url,
                    details=scenario.chain,
                ))

        for scenario in chains:
            if scenario.type == 'http_to_https' and not scenario.final_url.startswith('https://'):
                issues.append(Issue(
                    type='no_https_redirect',
                    severity=Severity.HIGH,
                    message='HTTP does not redirect to HTTPS',
                    scope=self.scope,
                    element=scenario.from_url,
                ))

        return RedirectsResult(
            chains=tuple(chains),
            skipped=tuple(skipped),
            issues=tuple(issues),
        )
