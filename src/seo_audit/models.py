"""Data models for SEO audits."""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Generic, Mapping, Optional, TypeVar, Union

from seo_audit.exceptions import InvalidIssueError


class Severity(str, Enum):
    """Fixed four-level severity set."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Scope(str, Enum):
    """The sub-check an issue came from."""

    META = "meta"
    HEADINGS = "headings"
    IMAGES = "images"
    LINKS = "links"
    STRUCTURED_DATA = "structuredData"
    SOCIAL = "social"
    TECHNICAL = "technical"
    ROBOTS = "robots"
    SITEMAP = "sitemap"
    SSL = "ssl"
    DNS = "dns"
    REDIRECTS = "redirects"
    MOBILE = "mobile"
    SCHEMA = "schema"
    INTERNATIONAL = "international"


@dataclass(frozen=True)
class Issue:
    """A single detected problem.

    Issues are value objects: two issues are the same issue when all of
    their fields are equal.
    """

    type: str
    severity: Severity
    message: str
    scope: Scope
    count: Optional[int] = None
    element: Optional[str] = None
    details: Any = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "severity", Severity(self.severity))
        except ValueError:
            raise InvalidIssueError(
                f"Issue {self.type!r} has unknown severity {self.severity!r}"
            ) from None
        try:
            object.__setattr__(self, "scope", Scope(self.scope))
        except ValueError:
            raise InvalidIssueError(
                f"Issue {self.type!r} has unknown scope {self.scope!r}"
            ) from None
        # Keep issues hashable so aggregation can dedupe them
        if isinstance(self.details, list):
            object.__setattr__(self, "details", tuple(self.details))

    def to_dict(self) -> dict:
        return serialize(self)


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A check that completed; `value` is its scope result."""

    value: T
    ok: ClassVar[bool] = True
    reason: ClassVar[None] = None

    @property
    def issues(self) -> tuple:
        return self.value.issues


@dataclass(frozen=True)
class Degraded:
    """A check that failed; the audit carries on without its data."""

    reason: str
    issues: tuple = ()
    ok: ClassVar[bool] = False
    value: ClassVar[None] = None


ProbeOutcome = Union[Ok, Degraded]


# =============================================================================
# Structural scopes
# =============================================================================

@dataclass(frozen=True)
class MetaResult:
    title: str = ""
    description: str = ""
    keywords: str = ""
    robots: str = ""
    canonical: str = ""
    lang: str = ""
    charset: str = ""
    viewport: str = ""
    issues: tuple = ()


@dataclass(frozen=True)
class HeadingEntry:
    tag: str
    level: int
    text: str
    position: int


@dataclass(frozen=True)
class HeadingsResult:
    h1: tuple = ()
    h2: tuple = ()
    h3: tuple = ()
    h4: tuple = ()
    h5: tuple = ()
    h6: tuple = ()
    structure: tuple = ()  # HeadingEntry, document order
    issues: tuple = ()


@dataclass(frozen=True)
class ImageInfo:
    src: str
    alt: str = ""
    title: str = ""
    width: Optional[str] = None
    height: Optional[str] = None
    loading: Optional[str] = None
    has_alt: bool = False


@dataclass(frozen=True)
class ImagesResult:
    total: int = 0
    images: tuple = ()  # first MAX_IMAGES_IN_RESULT ImageInfo
    missing_alt: int = 0
    issues: tuple = ()


@dataclass(frozen=True)
class LinkInfo:
    url: str
    text: str
    rel: str = ""
    target: Optional[str] = None
    nofollow: bool = False


@dataclass(frozen=True)
class BrokenLink:
    href: str
    text: str
    error: str


@dataclass(frozen=True)
class LinksResult:
    internal_count: int = 0
    internal: tuple = ()
    external_count: int = 0
    external: tuple = ()
    broken: tuple = ()
    nofollow_count: int = 0
    nofollow: tuple = ()
    issues: tuple = ()


@dataclass(frozen=True)
class StructuredDataItem:
    format: str  # JSON-LD, Microdata or RDFa
    data: Any = None
    count: int = 1
    schema_types: tuple = ()


@dataclass(frozen=True)
class StructuredDataResult:
    found: bool = False
    types: tuple = ()  # formats present
    schema_types: tuple = ()  # schema.org @type values
    items: tuple = ()
    issues: tuple = ()


@dataclass(frozen=True)
class SocialResult:
    open_graph: Mapping[str, str] = field(default_factory=dict)
    twitter: Mapping[str, str] = field(default_factory=dict)
    issues: tuple = ()


@dataclass(frozen=True)
class TechnicalResult:
    https: bool = False
    server: Optional[str] = None
    content_type: Optional[str] = None
    content_length: Optional[str] = None
    compression: Optional[str] = None
    cache_control: Optional[str] = None
    expires: Optional[str] = None
    etag: Optional[str] = None
    hsts: Optional[str] = None
    x_frame_options: Optional[str] = None
    x_content_type_options: Optional[str] = None
    x_xss_protection: Optional[str] = None
    issues: tuple = ()


# =============================================================================
# Infrastructure scopes
# =============================================================================

@dataclass(frozen=True)
class RobotsRule:
    type: str  # allow or disallow
    path: str


@dataclass(frozen=True)
class UserAgentGroup:
    name: str
    rules: tuple = ()


@dataclass(frozen=True)
class RobotsResult:
    exists: bool
    url: Optional[str] = None
    size: int = 0
    line_count: int = 0
    user_agents: tuple = ()
    sitemap_references: tuple = ()
    crawl_delay: Optional[float] = None
    issues: tuple = ()

    def rules_for(self, agent: str) -> tuple:
        for group in self.user_agents:
            if group.name == agent:
                return group.rules
        return ()


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[str] = None


@dataclass(frozen=True)
class SitemapResult:
    exists: bool
    url: Optional[str] = None
    type: Optional[str] = None  # index or urlset
    url_count: int = 0
    sitemaps: tuple = ()
    sample_urls: tuple = ()
    issues: tuple = ()


@dataclass(frozen=True)
class SSLResult:
    enabled: bool
    status_code: Optional[int] = None
    mixed_content: bool = False
    issues: tuple = ()


@dataclass(frozen=True)
class MXRecord:
    exchange: str
    priority: int


@dataclass(frozen=True)
class DNSResult:
    hostname: str
    a_records: tuple = ()
    aaaa_records: tuple = ()
    cname_records: tuple = ()
    mx_records: tuple = ()
    txt_records: tuple = ()
    has_spf: bool = False
    load_balanced: bool = False
    issues: tuple = ()


@dataclass(frozen=True)
class RedirectChainLink:
    """One response in a redirect chain."""

    url: str
    status_code: int
    location: Optional[str] = None

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400 and bool(self.location)


@dataclass(frozen=True)
class RedirectScenario:
    type: str  # http_to_https or www_redirect
    from_url: str
    chain: tuple = ()
    final_url: str = ""

    @property
    def chain_length(self) -> int:
        return len(self.chain)


@dataclass(frozen=True)
class RedirectsResult:
    chains: tuple = ()
    skipped: tuple = ()  # scenario types that got no response
    issues: tuple = ()


@dataclass(frozen=True)
class SchemaValidation:
    schema_type: str
    missing_required: tuple = ()
    missing_recommended: tuple = ()


@dataclass(frozen=True)
class SchemaResult:
    has_schema: bool = False
    types: tuple = ()
    validations: tuple = ()
    issues: tuple = ()


@dataclass(frozen=True)
class HreflangEntry:
    lang: str
    url: str


@dataclass(frozen=True)
class InternationalResult:
    html_lang: Optional[str] = None
    hreflang: tuple = ()
    issues: tuple = ()


@dataclass(frozen=True)
class MobileResult:
    strategy: str = "mobile"
    score: Optional[float] = None
    has_viewport: Optional[bool] = None
    font_size_score: Optional[float] = None
    tap_targets_score: Optional[float] = None
    categories: Mapping[str, Optional[float]] = field(default_factory=dict)
    issues: tuple = ()


# =============================================================================
# Composite results
# =============================================================================

@dataclass(frozen=True)
class StructuralResult:
    """Output of the HTML structural analyzer for one page."""

    url: str
    final_url: str
    timestamp: datetime
    meta: ProbeOutcome
    headings: ProbeOutcome
    images: ProbeOutcome
    links: ProbeOutcome
    structured_data: ProbeOutcome
    social: ProbeOutcome
    technical: ProbeOutcome

    def scopes(self) -> dict:
        return {
            Scope.META: self.meta,
            Scope.HEADINGS: self.headings,
            Scope.IMAGES: self.images,
            Scope.LINKS: self.links,
            Scope.STRUCTURED_DATA: self.structured_data,
            Scope.SOCIAL: self.social,
            Scope.TECHNICAL: self.technical,
        }

    @property
    def issues(self) -> tuple:
        return tuple(
            issue for outcome in self.scopes().values() for issue in outcome.issues
        )

    def to_dict(self) -> dict:
        return serialize(self)


@dataclass(frozen=True)
class IssueRecord:
    """An issue tagged for the persistence collaborator."""

    subject_url: str
    detected_at: datetime
    issue: Issue


@dataclass(frozen=True)
class AuditResult:
    """The full audit of one URL at one point in time."""

    url: str
    timestamp: datetime
    structural: StructuralResult
    robots: ProbeOutcome
    sitemap: ProbeOutcome
    ssl: ProbeOutcome
    dns: ProbeOutcome
    redirects: ProbeOutcome
    mobile: ProbeOutcome
    schema: ProbeOutcome
    international: ProbeOutcome
    issues: tuple  # aggregated across every scope
    score: int

    def scopes(self) -> dict:
        scopes = self.structural.scopes()
        scopes.update({
            Scope.ROBOTS: self.robots,
            Scope.SITEMAP: self.sitemap,
            Scope.SSL: self.ssl,
            Scope.DNS: self.dns,
            Scope.REDIRECTS: self.redirects,
            Scope.MOBILE: self.mobile,
            Scope.SCHEMA: self.schema,
            Scope.INTERNATIONAL: self.international,
        })
        return scopes

    def degraded_scopes(self) -> list:
        return [scope for scope, outcome in self.scopes().items() if not outcome.ok]

    def issue_records(self) -> list:
        return [
            IssueRecord(subject_url=self.url, detected_at=self.timestamp, issue=issue)
            for issue in self.issues
        ]

    def to_dict(self) -> dict:
        return serialize(self)


def serialize(value: Any) -> Any:
    """Convert models into JSON-compatible structures."""
    if isinstance(value, Ok):
        data = serialize(value.value)
        data["ok"] = True
        return data
    if isinstance(value, Degraded):
        return {
            "ok": False,
            "error": value.reason,
            "issues": [serialize(issue) for issue in value.issues],
        }
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value
