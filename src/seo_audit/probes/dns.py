"""DNS records probe."""

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Protocol

import dns.asyncresolver
import dns.exception

from seo_audit.constants import DNS_RECORD_TYPES, SPF_MARKER
from seo_audit.models import DNSResult, Issue, MXRecord, Scope, Severity
from seo_audit.probes.base import AuditContext, Probe

logger = logging.getLogger(__name__)


class DNSResolver(Protocol):
    """Anything with dnspython's async ``resolve`` signature."""

    async def resolve(self, qname: str, rdtype: str, lifetime: Optional[float] = None) -> Iterable[Any]:
        ...


def _name(value) -> str:
    return value.to_text().rstrip('.') if hasattr(value, 'to_text') else str(value).rstrip('.')


def _txt(rdata) -> str:
    strings = getattr(rdata, 'strings', None)
    if strings is None:
        return str(rdata).strip('"')
    return b''.join(
        s if isinstance(s, bytes) else s.encode('utf-8') for s in strings
    ).decode('utf-8', errors='replace')


class DNSProbe(Probe):
    """Resolves A, AAAA, CNAME, MX and TXT records concurrently."""

    scope = Scope.DNS

    def __init__(self, fetcher=None, config=None, thresholds=None, resolver: Optional[DNSResolver] = None):
        super().__init__(fetcher, config, thresholds)
        self.resolver = resolver or dns.asyncresolver.Resolver()

    async def _resolve(self, hostname: str, rdtype: str) -> List[Any]:
        """One record type; a resolution failure is an empty result."""
        try:
            answer = await self.resolver.resolve(
                hostname, rdtype, lifetime=self.config.dns_timeout
            )
            return list(answer)
        except dns.exception.DNSException as e:
            logger.debug(f"{rdtype} lookup for {hostname} failed: {type(e).__name__}: {e}")
            return []

    async def check(self, context: AuditContext) -> DNSResult:
        hostname = context.request_hostname
        answers = await asyncio.gather(
            *(self._resolve(hostname, rdtype) for rdtype in DNS_RECORD_TYPES)
        )
        records = dict(zip(DNS_RECORD_TYPES, answers))

        a_records = tuple(r.address for r in records['A'])
        mx_records = tuple(
            MXRecord(exchange=_name(r.exchange), priority=int(r.preference))
            for r in records['MX']
        )
        txt_records = tuple(_txt(r) for r in records['TXT'])
        has_spf = any(SPF_MARKER in txt for txt in txt_records)

        issues = ()
        if mx_records and not has_spf:
            issues = (Issue(
                type='missing_spf',
                severity=Severity.LOW,
                message='No SPF record found (email deliverability)',
                scope=self.scope,
            ),)

        return DNSResult(
            hostname=hostname,
            a_records=a_records,
            aaaa_records=tuple(r.address for r in records['AAAA']),
            cname_records=tuple(_name(r.target) for r in records['CNAME']),
            mx_records=mx_records,
            txt_records=txt_records,
            has_spf=has_spf,
            load_balanced=len(a_records) > 1,
            issues=issues,
        )
