"""robots.txt probe."""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from seo_audit.constants import ROBOTS_MISSING_STATUS_CODES
from seo_audit.exceptions import FetchError
from seo_audit.models import Issue, RobotsResult, RobotsRule, Scope, Severity, UserAgentGroup
from seo_audit.probes.base import AuditContext, Probe

logger = logging.getLogger(__name__)


def parse_robots(content: str) -> Tuple[List[UserAgentGroup], List[str], Optional[float]]:
    """Parse robots.txt into user-agent groups, sitemap references and crawl delay.

    Consecutive User-agent lines form one group that shares the rules that
    follow them. Rules appearing before any User-agent line are ignored.

    Args:
        content: robots.txt body

    Returns:
        Tuple of (groups in first-seen order, sitemap URLs, crawl delay)
    """
    rules: Dict[str, List[RobotsRule]] = {}
    sitemaps: List[str] = []
    crawl_delay: Optional[float] = None
    current_agents: List[str] = []
    in_rules = False

    for raw_line in content.splitlines():
        line = raw_line.split('#', 1)[0].strip()
        if ':' not in line:
            continue

        key, value = line.split(':', 1)
        key = key.strip().lower()
        value = value.strip()

        if key == 'user-agent':
            if in_rules:
                current_agents = []
                in_rules = False
            current_agents.append(value)
            rules.setdefault(value, [])
        elif key in ('allow', 'disallow'):
            in_rules = True
            for agent in current_agents:
                rules[agent].append(RobotsRule(type=key, path=value))
        elif key == 'sitemap':
            # Sitemap lines are global and do not end a group
            sitemaps.append(value)
        elif key == 'crawl-delay':
            in_rules = True
            try:
                crawl_delay = float(value)
            except ValueError:
                logger.debug(f"Ignoring invalid Crawl-delay: {value!r}")

    groups = [UserAgentGroup(name=name, rules=tuple(r)) for name, r in rules.items()]
    return groups, sitemaps, crawl_delay


class RobotsProbe(Probe):
    """Fetches and checks /robots.txt."""

    scope = Scope.ROBOTS

    async def check(self, context: AuditContext) -> RobotsResult:
        robots_url = f"{context.origin}/robots.txt"
        response = await self.fetcher.request(
            robots_url, timeout=self.config.probe_timeout
        )

        if response.status_code in ROBOTS_MISSING_STATUS_CODES:
            return RobotsResult(
                exists=False,
                url=robots_url,
                issues=(Issue(
                    type='missing_robots_txt',
                    severity=Severity.LOW,
                    message='No robots.txt file found',
                    scope=self.scope,
                ),),
            )

        if not 200 <= response.status_code < 300:
            raise FetchError(
                robots_url, f"HTTP {response.status_code}", status_code=response.status_code
            )

        content = response.text
        groups, sitemaps, crawl_delay = parse_robots(content)
        size = len(content.encode('utf-8'))
        issues: List[Issue] = []

        if size > self.thresholds.robots_max_bytes:
            issues.append(Issue(
                type='large_robots_file',
                severity=Severity.LOW,
                message=f'Robots.txt file is very large ({size} bytes)',
                scope=self.scope,
                count=size,
            ))

        if not sitemaps:
            issues.append(Issue(
                type='no_sitemap_reference',
                severity=Severity.MEDIUM,
                message='No sitemap reference found in robots.txt',
                scope=self.scope,
            ))

        result = RobotsResult(
            exists=True,
            url=robots_url,
            size=size,
            line_count=len(content.split('\n')),
            user_agents=tuple(groups),
            sitemap_references=tuple(sitemaps),
            crawl_delay=crawl_delay,
        )

        # Entire site blocked for every crawler
        if any(
            rule.type == 'disallow' and rule.path == '/'
            for rule in result.rules_for('*')
        ):
            issues.append(Issue(
                type='site_blocked',
                severity=Severity.CRITICAL,
                message='Entire site is blocked for all crawlers',
                scope=self.scope,
            ))

        return replace(result, issues=tuple(issues))
