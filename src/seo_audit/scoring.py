"""Issue aggregation and severity-weighted scoring."""

from typing import Dict, Iterable, List, Mapping

from seo_audit.constants import MAX_SCORE, MIN_SCORE
from seo_audit.exceptions import UnknownSeverityError
from seo_audit.models import Issue, ProbeOutcome, Severity

# Points deducted per issue
SEVERITY_PENALTIES: Dict[Severity, int] = {
    Severity.CRITICAL: 20,
    Severity.HIGH: 10,
    Severity.MEDIUM: 5,
    Severity.LOW: 2,
}


def severity_penalty(severity) -> int:
    """Penalty for a severity.

    Raises:
        UnknownSeverityError: For anything outside the four levels
    """
    try:
        return SEVERITY_PENALTIES[Severity(severity)]
    except (ValueError, KeyError):
        raise UnknownSeverityError(severity) from None


def calculate_score(issues: Iterable[Issue]) -> int:
    """100 minus the summed penalties, clamped at 0.

    The sum is order-independent, so concurrent probes completing in any
    order yield the same score.
    """
    total = sum(severity_penalty(issue.severity) for issue in issues)
    return int(round(max(MIN_SCORE, MAX_SCORE - total)))


def aggregate_issues(outcomes: Mapping[object, ProbeOutcome]) -> List[Issue]:
    """Merge issue lists from every scope.

    Identical issues within one scope collapse to one; the same issue
    reported by two scopes is kept twice.
    """
    issues: List[Issue] = []
    for outcome in outcomes.values():
        seen = set()
        for issue in outcome.issues:
            if issue in seen:
                continue
            seen.add(issue)
            issues.append(issue)
    return issues


def count_by_severity(issues: Iterable[Issue]) -> Dict[str, int]:
    counts = {severity.value: 0 for severity in Severity}
    for issue in issues:
        try:
            counts[Severity(issue.severity).value] += 1
        except ValueError:
            raise UnknownSeverityError(issue.severity) from None
    return counts
