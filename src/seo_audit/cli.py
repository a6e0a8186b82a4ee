"""Command-line interface for the SEO audit engine."""

import asyncio
import json
import sys
from typing import List, Optional

from seo_audit.config import AuditConfig, AnalysisThresholds
from seo_audit.engine import AuditEngine
from seo_audit.exceptions import SEOAuditError
from seo_audit.logging_config import setup_logging
from seo_audit.models import AuditResult, StructuralResult
from seo_audit.scoring import count_by_severity

SEVERITY_ICONS = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🔵",
}


def print_issues(issues) -> None:
    if not issues:
        print(f"\n✅ No issues found")
        return

    print(f"\n⚠️  Issues ({len(issues)}):")
    for issue in issues:
        icon = SEVERITY_ICONS.get(issue.severity.value, "•")
        print(f"  {icon} [{issue.severity.value}] {issue.scope.value}: {issue.message}")


def print_audit(result: AuditResult) -> None:
    """Print a full audit in a formatted way.

    Args:
        result: AuditResult to print
    """
    print(f"\n{'=' * 60}")
    print(f"SEO Audit for: {result.url}")
    print(f"{'=' * 60}")
    print(f"\n📊 Overall Score: {result.score}/100")

    counts = count_by_severity(result.issues)
    print(f"\nIssues by severity:")
    for severity, count in counts.items():
        print(f"  {SEVERITY_ICONS[severity]} {severity}: {count}")

    degraded = result.degraded_scopes()
    if degraded:
        print(f"\n❌ Unavailable checks:")
        for scope in degraded:
            print(f"  • {scope.value}: {result.scopes()[scope].reason}")

    print_issues(result.issues)
    print(f"\n{'=' * 60}\n")


def print_structural(result: StructuralResult) -> None:
    print(f"\n{'=' * 60}")
    print(f"Page Analysis for: {result.url}")
    print(f"{'=' * 60}")
    print_issues(result.issues)
    print(f"\n{'=' * 60}\n")


async def _run(urls: List[str], structural_only: bool, thresholds: AnalysisThresholds):
    results = []
    async with AuditEngine(AuditConfig.from_env(), thresholds=thresholds) as engine:
        for url in urls:
            if structural_only:
                results.append(await engine.analyze_page(url))
            else:
                results.append(await engine.run_audit(url))
    return results


def audit_command(args) -> None:
    """Audit one or more URLs."""
    thresholds = (
        AnalysisThresholds.from_file(args.thresholds_file)
        if args.thresholds_file else AnalysisThresholds.from_env()
    )

    try:
        results = asyncio.run(_run(args.urls, args.structural_only, thresholds))
    except SEOAuditError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output == "text":
        for result in results:
            if args.structural_only:
                print_structural(result)
            else:
                print_audit(result)
        return

    payload = [result.to_dict() for result in results]
    output = json.dumps(payload[0] if len(payload) == 1 else payload, indent=2, default=str)
    if args.output_file:
        with open(args.output_file, "w") as f:
            f.write(output)
        print(f"Results written to {args.output_file}", file=sys.stderr)
    else:
        print(output)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="SEO Audit - Technical and on-page SEO health checks"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    audit_parser = subparsers.add_parser(
        "audit", help="Audit one or more URLs."
    )
    audit_parser.add_argument(
        "urls", nargs="+", help="URLs to audit (one or more)"
    )
    audit_parser.add_argument(
        "--structural-only",
        action="store_true",
        help="Only analyze the page HTML and headers (skip infrastructure probes)",
    )
    audit_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    audit_parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )
    audit_parser.add_argument(
        "--thresholds-file",
        help="JSON file overriding check thresholds",
    )
    audit_parser.set_defaults(func=audit_command)

    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
