"""XML sitemap probe."""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from xml.etree import ElementTree as ET

from seo_audit.constants import ACCEPT_XML, SITEMAP_CANDIDATE_PATHS, SITEMAP_SAMPLE_SIZE
from seo_audit.exceptions import FetchError
from seo_audit.models import Issue, Scope, Severity, SitemapEntry, SitemapResult
from seo_audit.probes.base import AuditContext, Probe

logger = logging.getLogger(__name__)


@dataclass
class ParsedSitemap:
    type: str  # index or urlset
    url_count: int = 0
    entries: List[SitemapEntry] = field(default_factory=list)


def _local_name(tag: str) -> str:
    return tag.split('}')[-1] if '}' in tag else tag


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name and child.text:
            return child.text.strip()
    return None


def _clean_xml_content(content: str) -> str:
    """Strip DOCTYPE and any HTML wrapper around the sitemap XML."""
    content = re.sub(r'<!DOCTYPE[^>]*>', '', content)

    if '<html' in content.lower():
        match = re.search(r'(<\?xml.*?</(?:urlset|sitemapindex)>)', content, re.DOTALL)
        if match:
            return match.group(1)

        match = re.search(r'(<(?:urlset|sitemapindex).*?</(?:urlset|sitemapindex)>)', content, re.DOTALL)
        if match:
            return match.group(1)

    return content.strip()


def parse_sitemap(content: str, sample_size: int = SITEMAP_SAMPLE_SIZE) -> ParsedSitemap:
    """Parse sitemap XML.

    Args:
        content: Sitemap body
        sample_size: urlset entries kept in the result

    Returns:
        ParsedSitemap. For an index, entries are every child sitemap; for a
        urlset, the first `sample_size` URLs.

    Raises:
        ET.ParseError: The body is not well-formed XML
        ValueError: The root element is neither urlset nor sitemapindex
    """
    root = ET.fromstring(_clean_xml_content(content))
    root_tag = _local_name(root.tag)

    if root_tag == 'sitemapindex':
        sitemaps = [
            SitemapEntry(loc=_child_text(child, 'loc') or '', lastmod=_child_text(child, 'lastmod'))
            for child in root
            if _local_name(child.tag) == 'sitemap'
        ]
        return ParsedSitemap(type='index', url_count=len(sitemaps), entries=sitemaps)

    if root_tag == 'urlset':
        count = 0
        sample: List[SitemapEntry] = []
        for child in root:
            if _local_name(child.tag) != 'url':
                continue
            count += 1
            if len(sample) < sample_size:
                sample.append(SitemapEntry(
                    loc=_child_text(child, 'loc') or '',
                    lastmod=_child_text(child, 'lastmod'),
                    changefreq=_child_text(child, 'changefreq'),
                    priority=_child_text(child, 'priority'),
                ))
        return ParsedSitemap(type='urlset', url_count=count, entries=sample)

    raise ValueError(f"Unknown sitemap root element: {root_tag}")


class SitemapProbe(Probe):
    """Locates the site's sitemap at its conventional paths and checks it."""

    scope = Scope.SITEMAP

    async def check(self, context: AuditContext) -> SitemapResult:
        for path in SITEMAP_CANDIDATE_PATHS:
            sitemap_url = f"{context.origin}{path}"
            try:
                response = await self.fetcher.request(
                    sitemap_url,
                    timeout=self.config.probe_timeout,
                    headers={'Accept': ACCEPT_XML},
                )
            except FetchError as e:
                logger.debug(f"Sitemap candidate {sitemap_url} failed: {e.reason}")
                continue

            if 200 <= response.status_code < 300:
                return self._analyze(sitemap_url, response.text)
            logger.debug(f"Sitemap candidate {sitemap_url} returned {response.status_code}")

        return SitemapResult(
            exists=False,
            issues=(Issue(
                type='missing_sitemap',
                severity=Severity.HIGH,
                message='No sitemap.xml file found',
                scope=self.scope,
            ),),
        )

    def _analyze(self, sitemap_url: str, content: str) -> SitemapResult:
        try:
            parsed = parse_sitemap(content)
        except (ET.ParseError, ValueError) as e:
            logger.debug(f"Failed to parse sitemap {sitemap_url}: {e}")
            return SitemapResult(
                exists=True,
                url=sitemap_url,
                issues=(Issue(
                    type='sitemap_parse_error',
                    severity=Severity.HIGH,
                    message='Error parsing sitemap XML',
                    scope=self.scope,
                    details=str(e),
                ),),
            )

        issues: List[Issue] = []
        if parsed.url_count == 0:
            issues.append(Issue(
                type='empty_sitemap',
                severity=Severity.HIGH,
                message='Sitemap contains no URLs',
                scope=self.scope,
            ))
        elif parsed.url_count > self.thresholds.sitemap_max_urls:
            issues.append(Issue(
                type='large_sitemap',
                severity=Severity.MEDIUM,
                message=(
                    f'Sitemap contains {parsed.url_count} URLs '
                    f'(limit is {self.thresholds.sitemap_max_urls:,})'
                ),
                scope=self.scope,
                count=parsed.url_count,
            ))

        is_index = parsed.type == 'index'
        return SitemapResult(
            exists=True,
            url=sitemap_url,
            type=parsed.type,
            url_count=parsed.url_count,
            sitemaps=tuple(parsed.entries) if is_index else (),
            sample_urls=() if is_index else tuple(parsed.entries),
            issues=tuple(issues),
        )
