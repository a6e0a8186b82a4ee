"""Example usage of the SEO audit engine - single URL audit."""

import asyncio

from seo_audit import AuditConfig, AuditEngine, FetchError
from seo_audit.logging_config import setup_logging


async def main():
    """Run an example audit."""

    setup_logging(level="INFO")

    # Configuration from .env / environment
    config = AuditConfig.from_env()

    if not config.google_psi_api_key:
        print("Note: GOOGLE_PSI_API_KEY not set, mobile usability will be unavailable")

    url = "https://example.com"
    print(f"Auditing {url}...")

    async with AuditEngine(config) as engine:
        try:
            result = await engine.run_audit(url)
        except FetchError as e:
            print(f"Failed to fetch: {e.reason}")
            return

        # Second call within the TTL is served from the cache
        cached = await engine.run_audit(url)
        assert cached is result

    print(f"\nOverall Score: {result.score}/100")

    print("\nIssues:")
    for issue in result.issues:
        print(f"  • [{issue.severity.value}] {issue.scope.value}: {issue.message}")

    degraded = result.degraded_scopes()
    if degraded:
        print("\nUnavailable checks:")
        for scope in degraded:
            print(f"  • {scope.value}")

    print(f"\nCache: {engine.cache.get_stats()}")


if __name__ == "__main__":
    asyncio.run(main())
