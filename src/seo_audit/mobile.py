"""Mobile usability from the performance-scoring collaborator."""

import logging
from typing import Any, Dict, List, Optional, Protocol

from seo_audit.cache import CacheKey, CheckKind, ResultCache
from seo_audit.constants import (
    MOBILE_FONT_SIZE_AUDIT,
    MOBILE_TAP_TARGETS_AUDIT,
    MOBILE_VIEWPORT_AUDIT,
)
from seo_audit.models import Degraded, Issue, MobileResult, Ok, ProbeOutcome, Scope, Severity

logger = logging.getLogger(__name__)


class PerformanceScorer(Protocol):
    """The collaborator contract (PageSpeedInsightsAPI satisfies it)."""

    async def analyze(self, url: str, strategy: Optional[str] = None) -> Dict[str, Any]:
        """Return {categories: {...}, audits: {audit_id: {score, numericValue, displayValue}}}.

        Category keys are performance, seo, accessibility and best_practices
        (bestPractices is also accepted).
        """
        ...


# audit id -> (issue type, message)
FAILED_AUDIT_ISSUES = {
    MOBILE_VIEWPORT_AUDIT: (
        'missing_viewport', 'Viewport meta tag is missing or incorrectly configured',
    ),
    MOBILE_FONT_SIZE_AUDIT: (
        'small_text', 'Text is too small for mobile devices',
    ),
    MOBILE_TAP_TARGETS_AUDIT: (
        'small_tap_targets', 'Tap targets are too small for mobile devices',
    ),
}


def _audit_score(audits: Dict[str, Any], audit_id: str) -> Optional[float]:
    audit = audits.get(audit_id)
    if not isinstance(audit, dict):
        return None
    score = audit.get('score')
    if not isinstance(score, (int, float)):
        return None
    return score


def _category_score(categories: Dict[str, Any], name: str) -> Optional[float]:
    # PSI-style camelCase keys are accepted too (bestPractices)
    if name in categories:
        return categories[name]
    head, *rest = name.split('_')
    return categories.get(head + ''.join(part.title() for part in rest))


class MobileUsabilityAdapter:
    """Requests a mobile-strategy run and translates it into a MobileResult."""

    STRATEGY = 'mobile'

    def __init__(
        self,
        scorer: Optional[PerformanceScorer] = None,
        cache: Optional[ResultCache] = None,
    ):
        self.scorer = scorer
        self.cache = cache

    async def _analyze(self, url: str) -> Dict[str, Any]:
        async def compute() -> Dict[str, Any]:
            return await self.scorer.analyze(url, strategy=self.STRATEGY)

        if self.cache is None:
            return await compute()
        return await self.cache.get_or_compute(
            CacheKey.for_url(url, CheckKind.PERFORMANCE), compute
        )

    async def run(self, url: str) -> ProbeOutcome:
        """Mobile outcome for `url`; collaborator failures degrade, never raise."""
        if self.scorer is None:
            return Degraded(reason='unavailable: no performance scorer configured')

        try:
            payload = await self._analyze(url)
        except Exception as e:
            logger.warning(f"Performance service unavailable for {url}: {e}")
            return Degraded(reason=f'unavailable: {e}')

        try:
            return Ok(self.translate(payload))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Malformed performance payload for {url}: {e}")
            return Degraded(reason=f'unavailable: malformed payload: {e}')

    def translate(self, payload: Dict[str, Any]) -> MobileResult:
        """Map a collaborator payload to a MobileResult.

        Raises:
            ValueError: payload, categories or audits is not a mapping
        """
        if not isinstance(payload, dict):
            raise ValueError(f"expected a mapping, got {type(payload).__name__}")
        categories = payload.get('categories') or {}
        audits = payload.get('audits') or {}
        if not isinstance(categories, dict) or not isinstance(audits, dict):
            raise ValueError("categories and audits must be mappings")

        issues: List[Issue] = []
        for audit_id, (issue_type, message) in FAILED_AUDIT_ISSUES.items():
            score = _audit_score(audits, audit_id)
            if score is not None and score < 1:
                issues.append(Issue(
                    type=issue_type,
                    severity=Severity.MEDIUM,
                    message=message,
                    scope=Scope.MOBILE,
                    details=score,
                ))

        viewport_score = _audit_score(audits, MOBILE_VIEWPORT_AUDIT)
        return MobileResult(
            strategy=self.STRATEGY,
            score=categories.get('performance'),
            has_viewport=None if viewport_score is None else viewport_score == 1,
            font_size_score=_audit_score(audits, MOBILE_FONT_SIZE_AUDIT),
            tap_targets_score=_audit_score(audits, MOBILE_TAP_TARGETS_AUDIT),
            categories={
                name: _category_score(categories, name)
                for name in ('performance', 'seo', 'accessibility', 'best_practices')
            },
            issues=tuple(issues),
        )
