# src/seo_audit/constants.py
"""Centralized constants for the SEO audit engine.

This module contains magic numbers and fixed values that are used across
multiple modules. For user-configurable thresholds, see config.py and
AnalysisThresholds.
"""

# =============================================================================
# Request Constants
# =============================================================================

# Auditor user agent (identifies the bot, browser-compatible prefix)
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEOAuditBot/1.0)"

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_XML = "application/xml, text/xml, */*"
ACCEPT_LANGUAGE = "en-US,en;q=0.5"
ACCEPT_ENCODING = "gzip, deflate"

# Primary page fetch timeout in seconds
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30

# Robots, sitemap and SSL probe timeout in seconds
DEFAULT_PROBE_TIMEOUT_SECONDS = 10

# Timeout for a single hop while walking a redirect chain
DEFAULT_REDIRECT_HOP_TIMEOUT_SECONDS = 5

# Per-record-type DNS resolution timeout
DEFAULT_DNS_TIMEOUT_SECONDS = 5

# Redirects followed transparently by the fetcher
DEFAULT_MAX_REDIRECTS = 5


# =============================================================================
# Retry Constants
# =============================================================================

# Default maximum attempts for transient failures
DEFAULT_MAX_RETRIES = 3

# Base for exponential backoff calculation
EXPONENTIAL_BACKOFF_BASE = 2

# Initial backoff delay in seconds
INITIAL_BACKOFF_DELAY_SECONDS = 1.0

# Maximum backoff delay in seconds (cap for exponential growth)
MAX_BACKOFF_DELAY_SECONDS = 30.0


# =============================================================================
# Cache Constants
# =============================================================================

DEFAULT_CACHE_TTL_MINUTES = 30


# =============================================================================
# Scoring Constants
# =============================================================================

MAX_SCORE = 100
MIN_SCORE = 0


# =============================================================================
# Structural Analysis Constants
# =============================================================================

# Samples kept in result objects
MAX_IMAGES_IN_RESULT = 50
MAX_LINKS_IN_RESULT = 20
MAX_NOFOLLOW_LINKS_IN_RESULT = 10

# href prefixes that are not navigable links
SKIPPED_LINK_PREFIXES = ("#", "mailto:", "tel:", "javascript:")

# Open Graph properties every page should declare
ESSENTIAL_OG_TAGS = ("title", "description", "image", "url")

# `property` namespaces that belong to social tags rather than RDFa
SOCIAL_PROPERTY_PREFIXES = ("og:", "fb:", "article:", "twitter:")

# Product properties required for rich results
PRODUCT_REQUIRED_PROPERTIES = ("name", "image", "description")


# =============================================================================
# Infrastructure Probe Constants
# =============================================================================

# Conventional sitemap locations, probed in order
SITEMAP_CANDIDATE_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap/sitemap.xml",
)

# Sitemap entries kept as a sample in urlset results
SITEMAP_SAMPLE_SIZE = 10

# robots.txt statuses meaning "no file"
ROBOTS_MISSING_STATUS_CODES = (404, 410)

# DNS record types resolved concurrently
DNS_RECORD_TYPES = ("A", "AAAA", "CNAME", "MX", "TXT")

SPF_MARKER = "v=spf1"

# Lighthouse audit ids used for mobile usability
MOBILE_VIEWPORT_AUDIT = "viewport"
MOBILE_FONT_SIZE_AUDIT = "font-size"
MOBILE_TAP_TARGETS_AUDIT = "tap-targets"
