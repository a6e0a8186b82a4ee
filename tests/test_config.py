# tests/test_config.py
"""Tests for configuration loading."""

import json

from seo_audit.config import AnalysisThresholds, AuditConfig


class TestAuditConfig:

    def test_defaults(self):
        config = AuditConfig()

        assert config.timeout == 30
        assert config.max_redirects == 5
        assert config.max_retries == 3
        assert config.cache_ttl_minutes == 30
        assert config.audit_timeout is None
        assert config.google_psi_api_key is None

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TIMEOUT", "12.5")
        monkeypatch.setenv("MAX_RETRIES", "5")
        monkeypatch.setenv("CACHE_TTL_MINUTES", "60")
        monkeypatch.setenv("AUDIT_TIMEOUT", "90")
        monkeypatch.setenv("GOOGLE_PSI_API_KEY", "abc123")

        config = AuditConfig.from_env()

        assert config.timeout == 12.5
        assert config.max_retries == 5
        assert config.cache_ttl_minutes == 60
        assert config.audit_timeout == 90.0
        assert config.google_psi_api_key == "abc123"

    def test_empty_audit_timeout_means_none(self, monkeypatch):
        monkeypatch.setenv("AUDIT_TIMEOUT", "")
        assert AuditConfig.from_env().audit_timeout is None


class TestAnalysisThresholds:

    def test_defaults(self):
        thresholds = AnalysisThresholds()

        assert (thresholds.title_min, thresholds.title_max) == (30, 60)
        assert (thresholds.meta_description_min, thresholds.meta_description_max) == (120, 160)
        assert thresholds.sitemap_max_urls == 50_000
        assert thresholds.robots_max_bytes == 500_000

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SEO_THRESHOLD_TITLE_MAX", "65")
        monkeypatch.setenv("SEO_THRESHOLD_LAZY_LOAD_THRESHOLD", "not-a-number")

        thresholds = AnalysisThresholds.from_env()

        assert thresholds.title_max == 65
        assert thresholds.lazy_load_threshold == 3

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "thresholds.json"
        AnalysisThresholds(title_max=70).save_to_file(str(path))

        assert json.loads(path.read_text())["thresholds"]["title_max"] == 70
        assert AnalysisThresholds.from_file(str(path)).title_max == 70

    def test_missing_file_gives_defaults(self, tmp_path):
        assert AnalysisThresholds.from_file(str(tmp_path / "nope.json")) == AnalysisThresholds()
