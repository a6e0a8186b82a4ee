# tests/test_robots.py
"""Tests for the robots.txt probe."""

import httpx
import pytest

from conftest import make_context
from seo_audit.config import AnalysisThresholds
from seo_audit.models import Degraded, Severity
from seo_audit.probes import RobotsProbe, parse_robots

ROBOTS = """\
# Example robots
User-agent: Googlebot
User-agent: Bingbot
Disallow: /private  # staff only
Allow: /private/press

User-agent: *
Disallow: /tmp
Crawl-delay: 2

Sitemap: https://example.com/sitemap.xml
"""


class TestParseRobots:
    """Tests for parse_robots."""

    def test_groups_share_rules(self):
        groups, sitemaps, crawl_delay = parse_robots(ROBOTS)

        names = [g.name for g in groups]
        assert names == ["Googlebot", "Bingbot", "*"]
        googlebot, bingbot, everyone = groups
        assert googlebot.rules == bingbot.rules
        assert [(r.type, r.path) for r in googlebot.rules] == [
            ("disallow", "/private"), ("allow", "/private/press"),
        ]
        assert [(r.type, r.path) for r in everyone.rules] == [("disallow", "/tmp")]
        assert sitemaps == ["https://example.com/sitemap.xml"]
        assert crawl_delay == 2.0

    def test_repeated_agent_merges(self):
        content = "User-agent: *\nDisallow: /a\n\nUser-agent: *\nDisallow: /b\n"
        groups, _, _ = parse_robots(content)

        assert len(groups) == 1
        assert [r.path for r in groups[0].rules] == ["/a", "/b"]

    def test_rules_before_any_agent_ignored(self):
        groups, _, _ = parse_robots("Disallow: /\nUser-agent: *\nAllow: /\n")
        assert [(r.type, r.path) for r in groups[0].rules] == [("allow", "/")]

    def test_invalid_crawl_delay(self):
        _, _, crawl_delay = parse_robots("User-agent: *\nCrawl-delay: soon\n")
        assert crawl_delay is None

    def test_empty(self):
        assert parse_robots("") == ([], [], None)


class TestRobotsProbe:
    """Tests for RobotsProbe against a simulated site."""

    @pytest.mark.asyncio
    async def test_healthy_robots(self, site, fetcher):
        site.add("https://example.com/robots.txt", ROBOTS)

        outcome = await RobotsProbe(fetcher).run(make_context())

        assert outcome.ok
        assert outcome.issues == ()
        result = outcome.value
        assert result.exists
        assert result.url == "https://example.com/robots.txt"
        assert result.size == len(ROBOTS.encode("utf-8"))
        assert result.sitemap_references == ("https://example.com/sitemap.xml",)

    @pytest.mark.asyncio
    async def test_missing(self, site, fetcher):
        outcome = await RobotsProbe(fetcher).run(make_context())

        assert outcome.ok
        assert not outcome.value.exists
        issue, = outcome.issues
        assert issue.type == "missing_robots_txt"
        assert issue.severity is Severity.LOW

    @pytest.mark.asyncio
    async def test_gone_counts_as_missing(self, site, fetcher):
        site.add("https://example.com/robots.txt", status=410)

        outcome = await RobotsProbe(fetcher).run(make_context())
        assert [i.type for i in outcome.issues] == ["missing_robots_txt"]

    @pytest.mark.asyncio
    async def test_site_blocked(self, site, fetcher):
        site.add(
            "https://example.com/robots.txt",
            "User-agent: *\nDisallow: /\n\nSitemap: https://example.com/sitemap.xml\n",
        )

        outcome = await RobotsProbe(fetcher).run(make_context())

        issue, = outcome.issues
        assert issue.type == "site_blocked"
        assert issue.severity is Severity.CRITICAL

    @pytest.mark.asyncio
    async def test_blocking_one_bot_is_not_site_blocked(self, site, fetcher):
        site.add(
            "https://example.com/robots.txt",
            "User-agent: BadBot\nDisallow: /\n\nSitemap: https://example.com/sitemap.xml\n",
        )

        outcome = await RobotsProbe(fetcher).run(make_context())
        assert outcome.issues == ()

    @pytest.mark.asyncio
    async def test_no_sitemap_reference(self, site, fetcher):
        site.add("https://example.com/robots.txt", "User-agent: *\nDisallow: /tmp\n")

        outcome = await RobotsProbe(fetcher).run(make_context())
        assert [(i.type, i.severity) for i in outcome.issues] == [
            ("no_sitemap_reference", Severity.MEDIUM),
        ]

    @pytest.mark.asyncio
    async def test_large_file(self, site, fetcher):
        site.add("https://example.com/robots.txt", ROBOTS)
        probe = RobotsProbe(fetcher, thresholds=AnalysisThresholds(robots_max_bytes=100))

        outcome = await probe.run(make_context())

        issue, = outcome.issues
        assert issue.type == "large_robots_file"
        assert issue.count == len(ROBOTS.encode("utf-8"))

    @pytest.mark.asyncio
    async def test_uses_final_origin(self, site, fetcher):
        site.add("https://www.example.com/robots.txt", ROBOTS)
        context = make_context("https://example.com/", final_url="https://www.example.com/")

        outcome = await RobotsProbe(fetcher).run(context)
        assert outcome.value.exists

    @pytest.mark.asyncio
    async def test_forbidden_degrades(self, site, fetcher):
        site.add("https://example.com/robots.txt", status=403)

        outcome = await RobotsProbe(fetcher).run(make_context())

        assert isinstance(outcome, Degraded)
        assert "HTTP 403" in outcome.reason

    @pytest.mark.asyncio
    async def test_unreachable_degrades(self, site, fetcher):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        site.add_handler("https://example.com/robots.txt", refuse)

        outcome = await RobotsProbe(fetcher).run(make_context())

        assert not outcome.ok
        assert outcome.issues == ()
