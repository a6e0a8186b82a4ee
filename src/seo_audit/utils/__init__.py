"""Shared helpers for the audit engine."""

from seo_audit.utils.urls import (
    normalize_url,
    site_origin,
    resolve_url,
    www_variant,
)

__all__ = [
    "normalize_url",
    "site_origin",
    "resolve_url",
    "www_variant",
]
