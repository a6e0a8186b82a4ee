"""Persistence collaborator contract.

Storage, deduplication over time and resolution state live outside the
engine; it only hands over the issues it detected.
"""

from typing import Protocol, Sequence

from seo_audit.models import IssueRecord


class IssueSink(Protocol):
    async def record_issues(self, records: Sequence[IssueRecord]) -> None:
        """Store a batch of issues detected for one URL at one time."""
        ...
