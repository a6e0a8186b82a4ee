"""Technical and on-page SEO audit engine."""

__version__ = "0.1.0"

from seo_audit.engine import AuditEngine, run_audit, analyze_page
from seo_audit.fetcher import Fetcher, FetchedPage
from seo_audit.structural import StructuralAnalyzer
from seo_audit.mobile import MobileUsabilityAdapter, PerformanceScorer
from seo_audit.cache import ResultCache, CacheKey, CheckKind
from seo_audit.persistence import IssueSink
from seo_audit.retry import RetryPolicy
from seo_audit.scoring import calculate_score, aggregate_issues, count_by_severity
from seo_audit.models import (
    Severity,
    Scope,
    Issue,
    IssueRecord,
    Ok,
    Degraded,
    RedirectChainLink,
    StructuralResult,
    AuditResult,
)
from seo_audit.exceptions import (
    SEOAuditError,
    FetchError,
    ConnectionFailedError,
    InvalidIssueError,
    UnknownSeverityError,
    PerformanceServiceError,
    AuditTimeoutError,
)
from seo_audit.config import AuditConfig, AnalysisThresholds

__all__ = [
    # Engine
    "AuditEngine",
    "run_audit",
    "analyze_page",
    "Fetcher",
    "FetchedPage",
    "StructuralAnalyzer",
    "MobileUsabilityAdapter",
    "PerformanceScorer",
    "ResultCache",
    "CacheKey",
    "CheckKind",
    "IssueSink",
    "RetryPolicy",
    # Scoring
    "calculate_score",
    "aggregate_issues",
    "count_by_severity",
    # Models
    "Severity",
    "Scope",
    "Issue",
    "IssueRecord",
    "Ok",
    "Degraded",
    "RedirectChainLink",
    "StructuralResult",
    "AuditResult",
    # Errors
    "SEOAuditError",
    "FetchError",
    "ConnectionFailedError",
    "InvalidIssueError",
    "UnknownSeverityError",
    "PerformanceServiceError",
    "AuditTimeoutError",
    # Config
    "AuditConfig",
    "AnalysisThresholds",
]
