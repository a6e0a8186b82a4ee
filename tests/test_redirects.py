# tests/test_redirects.py
"""Tests for redirect chain following and the redirect probe."""

import pytest

from conftest import make_context
from seo_audit.exceptions import FetchError
from seo_audit.models import Severity
from seo_audit.probes import RedirectProbe, follow_redirect_chain


class TestFollowRedirectChain:
    """Tests for follow_redirect_chain."""

    @pytest.mark.asyncio
    async def test_single_hop(self, site, fetcher):
        site.redirect("http://example.com/", "https://example.com/")
        site.add("https://example.com/", "<html></html>")

        chain, final_url = await follow_redirect_chain(fetcher, "http://example.com/")

        assert [(link.url, link.status_code) for link in chain] == [
            ("http://example.com/", 301),
            ("https://example.com/", 200),
        ]
        assert chain[0].location == "https://example.com/"
        assert final_url == "https://example.com/"

    @pytest.mark.asyncio
    async def test_relative_location(self, site, fetcher):
        site.redirect("https://example.com/old", "/new", status=302)
        site.add("https://example.com/new", "<html></html>")

        chain, final_url = await follow_redirect_chain(fetcher, "https://example.com/old")

        assert final_url == "https://example.com/new"
        assert len(chain) == 2

    @pytest.mark.asyncio
    async def test_hop_limit(self, site, fetcher):
        for i in range(10):
            site.redirect(f"https://example.com/{i}", f"https://example.com/{i + 1}")

        chain, final_url = await follow_redirect_chain(fetcher, "https://example.com/0", max_hops=5)

        assert len(chain) == 5
        # The sixth URL was never requested
        assert final_url == "https://example.com/4"

    @pytest.mark.asyncio
    async def test_client_error_ends_chain(self, site, fetcher):
        site.redirect("http://example.com/", "https://example.com/gone")

        chain, final_url = await follow_redirect_chain(fetcher, "http://example.com/")

        assert chain[-1].status_code == 404
        assert final_url == "https://example.com/gone"

    @pytest.mark.asyncio
    async def test_unreachable_later_hop_truncates(self, site, fetcher):
        site.redirect("http://example.com/", "https://down.example.com/")
        site.refuse("down.example.com")

        chain, final_url = await follow_redirect_chain(fetcher, "http://example.com/")

        assert len(chain) == 1
        assert final_url == "https://down.example.com/"
        # Each hop is a single attempt
        assert site.requests_to("https://down.example.com/") == 1

    @pytest.mark.asyncio
    async def test_unreachable_first_hop_raises(self, site, fetcher):
        site.refuse("example.com")

        with pytest.raises(FetchError):
            await follow_redirect_chain(fetcher, "http://example.com/")


class TestRedirectProbe:
    """Tests for RedirectProbe against a simulated site."""

    @pytest.mark.asyncio
    async def test_clean_redirects(self, healthy_site, fetcher):
        outcome = await RedirectProbe(fetcher).run(make_context())

        assert outcome.ok
        assert outcome.issues == ()
        scenarios = {s.type: s for s in outcome.value.chains}
        assert scenarios["http_to_https"].from_url == "http://example.com/"
        assert scenarios["http_to_https"].chain_length == 2
        assert scenarios["www_redirect"].from_url == "http://www.example.com"
        assert scenarios["www_redirect"].final_url == "https://example.com/"

    @pytest.mark.asyncio
    async def test_long_chain_reported_once(self, site, fetcher):
        site.redirect("http://example.com/", "https://example.com/start")
        site.redirect("https://example.com/start", "https://example.com/")
        site.add("https://example.com/", "<html></html>")
        site.redirect("http://www.example.com/", "https://example.com/")

        outcome = await RedirectProbe(fetcher).run(make_context())

        long_chains = [i for i in outcome.issues if i.type == "long_redirect_chain"]
        assert len(long_chains) == 1
        issue = long_chains[0]
        assert issue.severity is Severity.MEDIUM
        assert issue.count == 3
        assert issue.message == "Redirect chain too long: 3 redirects"
        assert [link.url for link in issue.details] == [
            "http://example.com/", "https://example.com/start", "https://example.com/",
        ]

    @pytest.mark.asyncio
    async def test_no_https_redirect(self, site, fetcher):
        site.add("http://example.com/", "<html></html>")
        site.redirect("http://www.example.com/", "http://example.com/")

        outcome = await RedirectProbe(fetcher).run(make_context("http://example.com/"))

        issue, = outcome.issues
        assert issue.type == "no_https_redirect"
        assert issue.severity is Severity.HIGH
        assert issue.element == "http://example.com/"

    @pytest.mark.asyncio
    async def test_truncated_chain_has_not_reached_https(self, site, fetcher):
        site.redirect("http://example.com/", "http://example.com/1")
        for i in range(1, 4):
            site.redirect(f"http://example.com/{i}", f"http://example.com/{i + 1}")
        site.redirect("http://example.com/4", "https://example.com/")
        site.add("https://example.com/", "<html></html>")
        site.redirect("http://www.example.com/", "https://example.com/")

        outcome = await RedirectProbe(fetcher).run(make_context())

        scenario = outcome.value.chains[0]
        assert scenario.chain_length == 5
        assert scenario.final_url == "http://example.com/4"
        assert "no_https_redirect" in [i.type for i in outcome.issues]

    @pytest.mark.asyncio
    async def test_path_is_preserved(self, site, fetcher):
        site.redirect("http://example.com/shop", "https://example.com/shop")
        site.add("https://example.com/shop", "<html></html>")

        outcome = await RedirectProbe(fetcher).run(make_context("https://example.com/shop"))

        scenario = outcome.value.chains[0]
        assert scenario.from_url == "http://example.com/shop"
        assert scenario.final_url == "https://example.com/shop"

    @pytest.mark.asyncio
    async def test_unreachable_variant_skipped(self, site, fetcher):
        site.redirect("http://example.com/", "https://example.com/")
        site.add("https://example.com/", "<html></html>")
        site.refuse("www.example.com")

        outcome = await RedirectProbe(fetcher).run(make_context())

        assert outcome.ok
        assert outcome.value.skipped == ("www_redirect",)
        assert [s.type for s in outcome.value.chains] == ["http_to_https"]
        assert outcome.issues == ()
