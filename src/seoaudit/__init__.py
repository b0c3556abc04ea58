"""SEO site auditor: crawl, score, fix and compare traffic snapshots."""

__version__ = "0.1.0"

from seoaudit.analytics_comparison import (
    AnalyticsComparison,
    AnalyticsSnapshot,
    IncompleteDataError,
    build_comparison,
    compare_snapshots,
)
from seoaudit.analytics_parser import (
    AnalyticsParseError,
    AnalyticsParser,
    AnalyticsRow,
    ParseResult,
)
from seoaudit.async_site_crawler import AsyncSiteCrawler
from seoaudit.config import CrawlConfig, settings
from seoaudit.database import (
    AbstractDatabase,
    CrawlInProgressError,
    CrawlNotFoundError,
    LocalSqliteDatabase,
    SiteNotFoundError,
    get_database,
)
from seoaudit.fix_generator import FixGenerator, LLMFixGenerator, NullFixGenerator, get_fix_generator
from seoaudit.frontier import CrawlFrontier
from seoaudit.models import (
    ComparisonRow,
    CrawledPage,
    CrawlError,
    CrawlOutcome,
    CrawlResult,
    CrawlStatus,
    Fix,
    FixPriority,
    Issue,
    IssueCategory,
    PageScore,
    PageSignal,
    Severity,
    SnapshotLabel,
    TechnicalCheckResult,
)
from seoaudit.orchestrator import CrawlOrchestrator
from seoaudit.renderer import PageRenderer, PlaywrightRenderer
from seoaudit.scorer import SEOScorer
from seoaudit.technical_checks import TechnicalChecker, run_technical_checks

__all__ = [
    # Crawl pipeline
    "AsyncSiteCrawler",
    "CrawlFrontier",
    "CrawlOrchestrator",
    "PageRenderer",
    "PlaywrightRenderer",
    "SEOScorer",
    "TechnicalChecker",
    "run_technical_checks",
    "FixGenerator",
    "LLMFixGenerator",
    "NullFixGenerator",
    "get_fix_generator",
    # Analytics
    "AnalyticsParser",
    "AnalyticsRow",
    "ParseResult",
    "AnalyticsSnapshot",
    "AnalyticsComparison",
    "compare_snapshots",
    "build_comparison",
    # Persistence
    "AbstractDatabase",
    "LocalSqliteDatabase",
    "get_database",
    # Models
    "PageSignal",
    "Issue",
    "IssueCategory",
    "Severity",
    "PageScore",
    "Fix",
    "FixPriority",
    "TechnicalCheckResult",
    "CrawlError",
    "CrawlResult",
    "CrawledPage",
    "CrawlOutcome",
    "CrawlStatus",
    "SnapshotLabel",
    "ComparisonRow",
    # Errors
    "AnalyticsParseError",
    "IncompleteDataError",
    "SiteNotFoundError",
    "CrawlNotFoundError",
    "CrawlInProgressError",
    # Config
    "CrawlConfig",
    "settings",
]
