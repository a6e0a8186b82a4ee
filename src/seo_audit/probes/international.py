"""International SEO probe: html lang and hreflang alternates."""

import logging
from typing import List

from seo_audit.document import HREFLANG_LINKS, ParsedDocument
from seo_audit.models import HreflangEntry, InternationalResult, Issue, Scope, Severity
from seo_audit.probes.base import AuditContext, Probe
from seo_audit.utils.urls import normalize_url, resolve_url

logger = logging.getLogger(__name__)


def _normalized(href: str, base_url: str) -> str:
    resolved = resolve_url(href, base_url)
    if resolved is None:
        return ''
    try:
        return normalize_url(resolved)
    except ValueError:
        return ''


class InternationalProbe(Probe):

    scope = Scope.INTERNATIONAL

    async def check(self, context: AuditContext) -> InternationalResult:
        document = context.document
        hreflang = tuple(
            HreflangEntry(
                lang=(ParsedDocument.attribute(link, 'hreflang') or '').strip(),
                url=(ParsedDocument.attribute(link, 'href') or '').strip(),
            )
            for link in document.select(HREFLANG_LINKS)
        )
        html_lang = (document.root_attribute('lang') or '').strip() or None

        issues: List[Issue] = []
        if not html_lang:
            issues.append(Issue(
                type='missing_html_lang',
                severity=Severity.MEDIUM,
                message='HTML lang attribute is missing',
                scope=self.scope,
            ))

        if hreflang:
            if not any(entry.lang.lower() == 'x-default' for entry in hreflang):
                issues.append(Issue(
                    type='missing_hreflang_default',
                    severity=Severity.LOW,
                    message='No x-default hreflang tag found',
                    scope=self.scope,
                ))

            page_urls = {
                _normalized(context.url, context.url),
                _normalized(context.page.final_url, context.page.final_url),
            }
            page_urls.discard('')
            if not any(_normalized(entry.url, document.url) in page_urls for entry in hreflang):
                issues.append(Issue(
                    type='missing_self_hreflang',
                    severity=Severity.MEDIUM,
                    message='No self-referencing hreflang tag found',
                    scope=self.scope,
                ))

        return InternationalResult(
            html_lang=html_lang,
            hreflang=hreflang,
            issues=tuple(issues),
        )
