"""HTTPS availability and mixed-content probe."""

import logging
import re

from seo_audit.exceptions import ConnectionFailedError
from seo_audit.models import Issue, Scope, Severity, SSLResult
from seo_audit.probes.base import AuditContext, Probe

logger = logging.getLogger(__name__)

# http:// resources referenced from src/href attributes
MIXED_CONTENT_PATTERN = re.compile(r'(?:src|href)=["\']http://', re.IGNORECASE)


class SSLProbe(Probe):
    """Requests https://host without following redirects."""

    scope = Scope.SSL

    async def check(self, context: AuditContext) -> SSLResult:
        https_url = f"https://{context.request_hostname}"
        try:
            response = await self.fetcher.request(
                https_url,
                follow_redirects=False,
                timeout=self.config.probe_timeout,
            )
        except ConnectionFailedError as e:
            logger.debug(f"HTTPS connection to {context.request_hostname} failed: {e.reason}")
            return SSLResult(
                enabled=False,
                issues=(Issue(
                    type='no_ssl',
                    severity=Severity.CRITICAL,
                    message='HTTPS is not enabled or accessible',
                    scope=self.scope,
                ),),
            )

        mixed_content = (
            response.status_code == 200
            and MIXED_CONTENT_PATTERN.search(response.text) is not None
        )
        issues = ()
        if mixed_content:
            issues = (Issue(
                type='mixed_content',
                severity=Severity.HIGH,
                message='Page contains mixed content (HTTP resources on HTTPS page)',
                scope=self.scope,
            ),)

        return SSLResult(
            enabled=True,
            status_code=response.status_code,
            mixed_content=mixed_content,
            issues=issues,
        )
