"""Probe base class and the shared audit context."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from seo_audit.config import AnalysisThresholds, AuditConfig, default_thresholds
from seo_audit.document import ParsedDocument
from seo_audit.fetcher import FetchedPage, Fetcher
from seo_audit.models import Degraded, Ok, ProbeOutcome, Scope
from seo_audit.utils.urls import site_origin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditContext:
    """Read-only inputs shared by every probe of one audit."""

    url: str  # URL the caller asked for
    page: FetchedPage
    document: ParsedDocument

    @property
    def origin(self) -> str:
        return site_origin(self.page.final_url)

    @property
    def hostname(self) -> str:
        return urlparse(self.page.final_url).hostname or ""

    @property
    def request_hostname(self) -> str:
        return urlparse(self.url).hostname or ""


class Probe(ABC):
    """Base class for infrastructure checks."""

    scope: Scope

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        config: Optional[AuditConfig] = None,
        thresholds: Optional[AnalysisThresholds] = None,
    ):
        self.config = config or (fetcher.config if fetcher else AuditConfig())
        self.fetcher = fetcher or Fetcher(self.config)
        self.thresholds = thresholds or default_thresholds

    async def run(self, context: AuditContext) -> ProbeOutcome:
        """Run the check, converting any failure into a Degraded outcome."""
        try:
            return Ok(await self.check(context))
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning(f"{self.scope.value} probe degraded for {context.url}: {reason}")
            return Degraded(reason=reason)

    @abstractmethod
    async def check(self, context: AuditContext):
        """Perform the check and return the scope's result object."""
