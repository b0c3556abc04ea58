"""Command-line interface for the SEO audit pipeline."""

import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import Optional

from seoaudit.analytics_comparison import AnalyticsComparison, AnalyticsSnapshot, build_comparison
from seoaudit.analytics_parser import AnalyticsParser
from seoaudit.async_site_crawler import AsyncSiteCrawler
from seoaudit.config import CrawlConfig, settings
from seoaudit.database import AbstractDatabase, get_database
from seoaudit.fix_generator import get_fix_generator
from seoaudit.logging_config import parse_module_levels, setup_logging
from seoaudit.models import CrawlOutcome, PageScore, PageSignal, SnapshotLabel
from seoaudit.orchestrator import CrawlOrchestrator
from seoaudit.renderer import PlaywrightRenderer
from seoaudit.scorer import SEOScorer
from seoaudit.url_normalizer import get_origin

LOWEST_PAGES_SHOWN = 5


def _crawl_config(args) -> CrawlConfig:
    config = CrawlConfig.from_env()
    overrides = {}
    if getattr(args, "max_pages", None) is not None:
        overrides["max_pages"] = args.max_pages
    if getattr(args, "concurrency", None) is not None:
        overrides["concurrency"] = args.concurrency
    return dataclasses.replace(config, **overrides) if overrides else config


def _get_or_create_site(db: AbstractDatabase, url: str) -> dict:
    site = db.find_site_by_url(url)
    if site is None:
        site = db.create_site(url, name=get_origin(url))
    return site


def _require_site(db: AbstractDatabase, url: str) -> dict:
    site = db.find_site_by_url(url)
    if site is None:
        raise LookupError(f"No site registered for {url}")
    return site


def print_page_score(signal: PageSignal, score: PageScore):
    """Print a page score in a formatted way.

    Args:
        signal: Signals of the scored page
        score: PageScore object
    """
    print(f"\n{'=' * 60}")
    print(f"SEO Score for: {signal.url}")
    print(f"{'=' * 60}")
    print(f"\n📊 Overall Score: {score.overall}/100")
    print(f"\nDetailed Scores:")
    for category, value in score.breakdown.items():
        print(f"  • {category.replace('_', ' ').title()}: {value}/100")

    if score.issues:
        print(f"\n⚠️  Issues:")
        for issue in score.issues_by_severity():
            print(f"  • [{issue.severity.value.upper()}] {issue.message}")
    else:
        print(f"\n✅ No issues found")

    print(f"\n{'=' * 60}\n")


def print_crawl_outcome(outcome: CrawlOutcome, pages: list[dict]):
    """Print the terminal state of a crawl and its lowest-scoring pages."""
    print(f"\n{'=' * 60}")
    print(f"Crawl {outcome.crawl_id}: {outcome.status.value}")
    print(f"{'=' * 60}")

    if not outcome.succeeded:
        print(f"\n❌ {outcome.error_message}")
        print(f"\n{'=' * 60}\n")
        return

    print(f"\n📊 Site Score: {outcome.overall_score}/100")
    if outcome.previous_score is not None:
        delta = outcome.overall_score - outcome.previous_score
        print(f"   Previous: {outcome.previous_score}/100 ({delta:+d})")
    print(f"📄 Pages crawled: {outcome.page_count}")

    checks = outcome.technical_checks
    if checks:
        print(f"\nTechnical Checks:")
        print(f"  • robots.txt: {'✅' if checks.has_robots_txt else '❌'}")
        print(f"  • Sitemap: {'✅ ' + checks.sitemap_url if checks.has_sitemap else '❌'}")
        print(f"  • SSL: {'✅' if checks.ssl_valid else '❌'}")

    if outcome.errors:
        print(f"\n⚠️  Pages that failed to load:")
        for error in outcome.errors:
            print(f"  • {error.url}: {error.error}")

    if pages:
        print(f"\n💡 Lowest scoring pages:")
        for page in pages[:LOWEST_PAGES_SHOWN]:
            print(f"  • {page['seo_score']}/100  {page['url']} ({len(page['issues'])} issues)")

    print(f"\n{'=' * 60}\n")


def print_comparison(comparison: AnalyticsComparison, limit: Optional[int] = None):
    """Print a before/after analytics comparison, biggest movers first."""
    before, after = comparison.before, comparison.after
    print(f"\n{'=' * 60}")
    print(f"Analytics Comparison")
    print(f"{'=' * 60}")
    print(f"  BEFORE: {before.date_range or 'unknown range'} ({before.row_count} rows)")
    print(f"  AFTER:  {after.date_range or 'unknown range'} ({after.row_count} rows)\n")

    rows = comparison.rows[:limit] if limit else comparison.rows
    print(f"  {'Path':<40} {'Before':>8} {'After':>8} {'Change':>8} {'%':>8} {'Users':>7}")
    for row in rows:
        print(
            f"  {row.path[:40]:<40} {row.before_views:>8} {row.after_views:>8} "
            f"{row.views_change:>+8} {row.views_change_pct:>+7.1f}% {row.users_change:>+7}"
        )
    print(f"\n{'=' * 60}\n")


async def _run_crawl(db: AbstractDatabase, crawl_id: str, url: str, config: CrawlConfig) -> CrawlOutcome:
    orchestrator = CrawlOrchestrator(
        db,
        crawler=AsyncSiteCrawler(config),
        fix_generator=get_fix_generator(),
    )
    return await orchestrator.execute_crawl(crawl_id, url, config.max_pages)


async def _score_url(url: str, config: CrawlConfig) -> PageSignal:
    async with PlaywrightRenderer(config) as renderer:
        return await renderer.render(url, get_origin(url))


def crawl_command(args):
    """Crawl a site, score its pages and persist the results."""
    db = get_database(args.db)
    try:
        config = _crawl_config(args)
        site = _get_or_create_site(db, args.url)
        crawl = db.create_crawl(site["id"], config.max_pages)
        print(f"Crawling {args.url} (max_pages={config.max_pages}, concurrency={config.concurrency})...")

        outcome = asyncio.run(_run_crawl(db, crawl["id"], args.url, config))

        if args.output == "json":
            print(json.dumps(dataclasses.asdict(outcome), indent=2, default=str))
        else:
            print_crawl_outcome(outcome, db.get_pages(crawl["id"]))
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    if not outcome.succeeded:
        sys.exit(1)


def score_command(args):
    """Render and score a single URL."""
    if get_origin(args.url) is None:
        print(f"Error: Invalid URL: {args.url}")
        sys.exit(1)
    try:
        signal = asyncio.run(_score_url(args.url, CrawlConfig.from_env()))
        score = SEOScorer().score_page(signal)
    except Exception as e:
        print(f"\n❌ Failed to analyze {args.url}: {e}")
        sys.exit(1)

    if args.output == "json":
        print(json.dumps({"page": signal.to_dict(), "score": score.to_dict()}, indent=2))
    else:
        print_page_score(signal, score)


def analytics_import_command(args):
    """Import a GA4 CSV export as the BEFORE or AFTER snapshot of a site."""
    db = get_database(args.db)
    try:
        parsed = AnalyticsParser().parse(Path(args.file).read_text(encoding="utf-8"))
        site = _get_or_create_site(db, args.site_url)
        snapshot = db.save_snapshot(
            site["id"],
            AnalyticsSnapshot(
                label=SnapshotLabel(args.label),
                rows=parsed.rows,
                date_range=parsed.date_range,
            ),
            crawl_id=args.crawl,
        )
        print(
            f"✅ Imported {snapshot.label.value} snapshot {snapshot.id}: "
            f"{snapshot.row_count} rows ({snapshot.date_range or 'unknown range'})"
        )
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()


def analytics_compare_command(args):
    """Compare the latest BEFORE and AFTER snapshots stored for a site."""
    db = get_database(args.db)
    try:
        site = _require_site(db, args.site_url)
        comparison = build_comparison(
            db.get_latest_snapshot(site["id"], SnapshotLabel.BEFORE),
            db.get_latest_snapshot(site["id"], SnapshotLabel.AFTER),
        )
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    _output_comparison(comparison, args)


def analytics_diff_command(args):
    """Compare two GA4 CSV exports without touching the database."""
    parser = AnalyticsParser()
    try:
        snapshots = []
        for label, path in ((SnapshotLabel.BEFORE, args.before), (SnapshotLabel.AFTER, args.after)):
            parsed = parser.parse(Path(path).read_text(encoding="utf-8"))
            snapshots.append(AnalyticsSnapshot(label=label, rows=parsed.rows, date_range=parsed.date_range))
        comparison = build_comparison(*snapshots)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)

    _output_comparison(comparison, args)


def _output_comparison(comparison: AnalyticsComparison, args):
    if args.output == "json":
        data = comparison.to_dict()
        if args.limit:
            data["rows"] = data["rows"][:args.limit]
        print(json.dumps(data, indent=2))
    else:
        print_comparison(comparison, limit=args.limit)


def _add_output_argument(parser):
    parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )


def _add_db_argument(parser):
    parser.add_argument(
        "--db",
        default=None,
        help=f"Database URL (default: {settings.DATABASE_URL})",
    )


def build_parser():
    """Build the argument parser for all sub-commands."""
    import argparse

    parser = argparse.ArgumentParser(
        description="SEO Audit - Crawl websites, score their SEO quality and compare traffic snapshots"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL,
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Crawl command parser
    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl a site, score every page and store the results."
    )
    crawl_parser.add_argument("url", help="URL to start crawling from")
    crawl_parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help=f"Maximum pages to crawl (default: {settings.CRAWL_DEPTH_DEFAULT})",
    )
    crawl_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Pages rendered concurrently (default: {settings.CRAWL_CONCURRENCY})",
    )
    _add_db_argument(crawl_parser)
    _add_output_argument(crawl_parser)
    crawl_parser.set_defaults(func=crawl_command)

    # Score command parser
    score_parser = subparsers.add_parser("score", help="Render and score a single URL.")
    score_parser.add_argument("url", help="URL to score")
    _add_output_argument(score_parser)
    score_parser.set_defaults(func=score_command)

    # Analytics command parsers
    analytics_parser = subparsers.add_parser(
        "analytics", help="Import and compare GA4 traffic snapshots."
    )
    analytics_subparsers = analytics_parser.add_subparsers(dest="analytics_command")

    import_parser = analytics_subparsers.add_parser(
        "import", help="Import a GA4 CSV export as a BEFORE or AFTER snapshot."
    )
    import_parser.add_argument("site_url", help="Site the snapshot belongs to")
    import_parser.add_argument("file", help="Path to the GA4 CSV export")
    import_parser.add_argument(
        "--label",
        required=True,
        choices=[label.value for label in SnapshotLabel],
        help="Snapshot label",
    )
    import_parser.add_argument("--crawl", default=None, help="Crawl id to link the snapshot to")
    _add_db_argument(import_parser)
    import_parser.set_defaults(func=analytics_import_command)

    compare_parser = analytics_subparsers.add_parser(
        "compare", help="Compare the stored BEFORE and AFTER snapshots of a site."
    )
    compare_parser.add_argument("site_url", help="Site to compare")
    compare_parser.add_argument("--limit", type=int, default=None, help="Show only the top N movers")
    _add_db_argument(compare_parser)
    _add_output_argument(compare_parser)
    compare_parser.set_defaults(func=analytics_compare_command)

    diff_parser = analytics_subparsers.add_parser(
        "diff", help="Compare two GA4 CSV exports directly."
    )
    diff_parser.add_argument("before", help="BEFORE CSV export")
    diff_parser.add_argument("after", help="AFTER CSV export")
    diff_parser.add_argument("--limit", type=int, default=None, help="Show only the top N movers")
    _add_output_argument(diff_parser)
    diff_parser.set_defaults(func=analytics_diff_command)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
        module_levels=parse_module_levels(settings.LOG_MODULE_LEVELS),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
