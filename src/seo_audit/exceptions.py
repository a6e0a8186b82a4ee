"""Exception types raised by the audit engine."""

from typing import Optional


class SEOAuditError(Exception):
    """Base class for all audit engine errors."""


class FetchError(SEOAuditError):
    """Raised when a URL could not be retrieved."""

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(f"Failed to fetch {url}: {reason}")


class ConnectionFailedError(FetchError):
    """The transport never reached the server (DNS, refused, TLS handshake)."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, reason, retryable=True)


class InvalidIssueError(SEOAuditError, ValueError):
    """Raised when an Issue is built outside the closed severity/scope sets."""


class UnknownSeverityError(SEOAuditError):
    """Scoring met a severity it has no penalty for."""

    def __init__(self, severity):
        self.severity = severity
        super().__init__(f"Unknown issue severity: {severity!r}")


class PerformanceServiceError(SEOAuditError):
    """The performance-scoring service failed or refused the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AuditTimeoutError(SEOAuditError):
    """The whole audit exceeded the caller-level timeout."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Audit of {url} exceeded {timeout}s")
