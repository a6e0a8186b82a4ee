"""
External API Clients.

Clients for services the audit engine consults but does not own.
"""

from .pagespeed_insights import PageSpeedInsightsAPI

__all__ = ["PageSpeedInsightsAPI"]
