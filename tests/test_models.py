# tests/test_models.py
"""Tests for the issue and outcome models."""

from datetime import datetime, timezone

import pytest

from seo_audit.exceptions import InvalidIssueError
from seo_audit.models import (
    Degraded,
    Issue,
    MetaResult,
    Ok,
    RedirectChainLink,
    Scope,
    Severity,
    serialize,
)


class TestIssue:
    """Tests for Issue construction."""

    def test_string_severity_and_scope_are_coerced(self):
        issue = Issue(type="missing_title", severity="critical", message="m", scope="meta")

        assert issue.severity is Severity.CRITICAL
        assert issue.scope is Scope.META

    def test_unknown_severity_rejected(self):
        """Severity is a closed set."""
        with pytest.raises(InvalidIssueError):
            Issue(type="x", severity="urgent", message="m", scope=Scope.META)

    def test_unknown_scope_rejected(self):
        with pytest.raises(InvalidIssueError):
            Issue(type="x", severity=Severity.LOW, message="m", scope="performance")

    def test_issues_are_value_objects(self):
        a = Issue(type="missing_og_tags", severity=Severity.MEDIUM, message="m",
                  scope=Scope.SOCIAL, details=["title", "url"])
        b = Issue(type="missing_og_tags", severity=Severity.MEDIUM, message="m",
                  scope=Scope.SOCIAL, details=["title", "url"])

        assert a == b
        assert len({a, b}) == 1
        assert a.details == ("title", "url")

    def test_to_dict(self):
        issue = Issue(type="broken_links", severity=Severity.HIGH, message="Found 2 broken links",
                      scope=Scope.LINKS, count=2)

        assert issue.to_dict() == {
            "type": "broken_links",
            "severity": "high",
            "message": "Found 2 broken links",
            "scope": "links",
            "count": 2,
            "element": None,
            "details": None,
        }


class TestOutcomes:
    """Tests for Ok / Degraded."""

    def test_ok_exposes_value_issues(self):
        issue = Issue(type="missing_viewport", severity=Severity.HIGH, message="m", scope=Scope.META)
        outcome = Ok(MetaResult(issues=(issue,)))

        assert outcome.ok
        assert outcome.reason is None
        assert outcome.issues == (issue,)

    def test_degraded_has_no_value(self):
        outcome = Degraded(reason="ConnectError: refused")

        assert not outcome.ok
        assert outcome.value is None
        assert outcome.issues == ()

    def test_serialize_outcomes(self):
        assert serialize(Degraded(reason="timeout")) == {"ok": False, "error": "timeout", "issues": []}

        data = serialize(Ok(MetaResult(title="Home")))
        assert data["ok"] is True
        assert data["title"] == "Home"

    def test_serialize_datetime(self):
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert serialize({"at": moment}) == {"at": "2024-01-01T00:00:00+00:00"}


class TestRedirectChainLink:

    def test_is_redirect(self):
        assert RedirectChainLink("http://a/", 301, "https://a/").is_redirect
        assert not RedirectChainLink("https://a/", 200).is_redirect
        # 3xx without a Location header ends the chain
        assert not RedirectChainLink("http://a/", 302).is_redirect
