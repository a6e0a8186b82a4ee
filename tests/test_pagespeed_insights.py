# tests/test_pagespeed_insights.py
"""Tests for the PageSpeed Insights client."""

import httpx
import pytest

from seo_audit.exceptions import PerformanceServiceError
from seo_audit.external import PageSpeedInsightsAPI

LIGHTHOUSE_RESPONSE = {
    "lighthouseResult": {
        "fetchTime": "2024-01-01T00:00:00.000Z",
        "finalUrl": "https://example.com/",
        "categories": {
            "performance": {"score": 0.72},
            "accessibility": {"score": 0.88},
            "best-practices": {"score": 0.95},
            "seo": {"score": None},
        },
        "audits": {
            "viewport": {"score": 1, "title": "Has a viewport tag"},
            "font-size": {"score": 0.5, "displayValue": "62% legible text"},
            "first-contentful-paint": {"score": 0.9, "numericValue": 1234.5, "displayValue": "1.2 s"},
        },
    }
}


def psi_client(handler, api_key="test-key"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PageSpeedInsightsAPI(api_key=api_key, client=client)


class TestPageSpeedInsightsAPI:

    @pytest.mark.asyncio
    async def test_analyze(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=LIGHTHOUSE_RESPONSE)

        api = psi_client(handler)
        result = await api.analyze("https://example.com/", strategy="mobile")

        assert result["strategy"] == "mobile"
        assert result["final_url"] == "https://example.com/"
        assert result["categories"] == {
            "performance": 72.0,
            "seo": None,
            "accessibility": 88.0,
            "best_practices": 95.0,
        }
        assert result["audits"]["font-size"]["score"] == 0.5
        assert result["audits"]["first-contentful-paint"]["numericValue"] == 1234.5

        params = requests[0].url.params
        assert params["url"] == "https://example.com/"
        assert params["key"] == "test-key"
        assert params.get_list("category") == ["performance", "accessibility", "best-practices", "seo"]

    @pytest.mark.asyncio
    async def test_keyless(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={})

        result = await psi_client(handler, api_key=None).analyze("https://example.com/")

        assert "key" not in requests[0].url.params
        assert result["audits"] == {}

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        api = psi_client(lambda request: httpx.Response(429))

        with pytest.raises(PerformanceServiceError) as exc_info:
            await api.analyze("https://example.com/")

        assert exc_info.value.status_code == 429
        assert api.get_stats()["failed_requests"] == 1

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PerformanceServiceError):
            await psi_client(handler).analyze("https://example.com/")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        api = psi_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(PerformanceServiceError):
            await api.analyze("https://example.com/")

    @pytest.mark.asyncio
    async def test_stats(self):
        api = psi_client(lambda request: httpx.Response(200, json=LIGHTHOUSE_RESPONSE))

        await api.analyze("https://example.com/")
        await api.analyze("https://example.com/about")

        stats = api.get_stats()
        assert stats["total_requests"] == 2
        assert stats["success_rate"] == 100.0
        assert stats["requests_in_window"] == 2
