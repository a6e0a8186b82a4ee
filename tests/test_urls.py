# tests/test_urls.py
"""Tests for URL helpers."""

import pytest

from seo_audit.utils.urls import normalize_url, resolve_url, site_origin, www_variant


class TestNormalizeUrl:

    @pytest.mark.parametrize("url,expected", [
        ("https://example.com", "https://example.com/"),
        ("HTTPS://Example.COM/Path", "https://example.com/Path"),
        ("https://example.com:443/", "https://example.com/"),
        ("http://example.com:8080/a", "http://example.com:8080/a"),
        ("https://example.com/a?q=1#top", "https://example.com/a?q=1"),
    ])
    def test_normalize(self, url, expected):
        assert normalize_url(url) == expected

    def test_invalid_port(self):
        with pytest.raises(ValueError):
            normalize_url("https://example.com:99999/")


class TestResolveUrl:

    def test_relative(self):
        assert resolve_url("/about", "https://example.com/shop/") == "https://example.com/about"

    def test_protocol_relative(self):
        assert resolve_url("//cdn.example.com/x.js", "https://example.com/") == "https://cdn.example.com/x.js"

    @pytest.mark.parametrize("href", [
        "ftp://example.com/file",
        "http://",
        "https://example.com:notaport/",
        "data:text/plain,hello",
    ])
    def test_unresolvable(self, href):
        assert resolve_url(href, "https://example.com/") is None


def test_site_origin():
    assert site_origin("https://Example.com:443/a/b?c") == "https://example.com"
    assert site_origin("http://example.com:8080/") == "http://example.com:8080"


def test_www_variant():
    assert www_variant("example.com") == "www.example.com"
    assert www_variant("www.example.com") == "example.com"
