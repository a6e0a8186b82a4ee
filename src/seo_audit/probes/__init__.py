"""
Infrastructure Probes.

Each probe checks one site-level concern and reports it as a tagged outcome:
``Ok(result)`` when the check completed, ``Degraded(reason)`` when it could
not. A probe failure never propagates to its siblings.
"""

from .base import AuditContext, Probe
from .dns import DNSProbe, DNSResolver
from .international import InternationalProbe
from .redirects import RedirectProbe, follow_redirect_chain
from .robots import RobotsProbe, parse_robots
from .schema import SchemaProbe
from .sitemap import SitemapProbe, parse_sitemap
from .ssl import SSLProbe

__all__ = [
    "AuditContext",
    "Probe",
    "DNSProbe",
    "DNSResolver",
    "InternationalProbe",
    "RedirectProbe",
    "follow_redirect_chain",
    "RobotsProbe",
    "parse_robots",
    "SchemaProbe",
    "SitemapProbe",
    "parse_sitemap",
    "SSLProbe",
]
