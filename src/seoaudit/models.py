"""Data models for SEO auditing."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


class IssueCategory(str, Enum):
    """Scoring category an issue belongs to."""
    TITLE = "title"
    META_DESCRIPTION = "meta_description"
    HEADINGS = "headings"
    CONTENT = "content"
    IMAGES = "images"
    LINKS = "links"
    MOBILE = "mobile"
    TECHNICAL = "technical"


class Severity(str, Enum):
    """Issue severity, ranked critical < warning < info."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class FixPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CrawlStatus(str, Enum):
    """Lifecycle of a crawl: PENDING -> RUNNING -> COMPLETE | FAILED."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlStatus.COMPLETE, CrawlStatus.FAILED)


class SnapshotLabel(str, Enum):
    BEFORE = "BEFORE"
    AFTER = "AFTER"


@dataclass
class PageSignal:
    """Structural facts extracted from one rendered page."""

    url: str
    http_status: int = 0
    title: Optional[str] = None
    meta_description: Optional[str] = None
    h1: Optional[str] = None
    h2s: list[str] = field(default_factory=list)
    word_count: int = 0
    image_count: int = 0
    images_without_alt: int = 0
    internal_links: int = 0
    external_links: int = 0
    canonical_url: Optional[str] = None
    og_tags: dict[str, str] = field(default_factory=dict)
    structured_data: list[Any] = field(default_factory=list)
    has_viewport_meta: bool = False
    is_indexable: bool = True
    redirect_chain: list[str] = field(default_factory=list)
    internal_link_urls: list[str] = field(default_factory=list)

    def __post_init__(self):
        for name in ("word_count", "image_count", "images_without_alt",
                     "internal_links", "external_links"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative for {self.url}")
        if self.images_without_alt > self.image_count:
            raise ValueError(
                f"images_without_alt ({self.images_without_alt}) exceeds "
                f"image_count ({self.image_count}) for {self.url}"
            )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Issue:
    """A detected SEO defect. Immutable once emitted."""

    category: IssueCategory
    severity: Severity
    message: str
    impact: int
    current_value: Optional[str] = None
    recommended_value: Optional[str] = None

    def __post_init__(self):
        if not 1 <= self.impact <= 10:
            raise ValueError(f"impact must be within 1-10, got {self.impact}")

    @property
    def is_actionable(self) -> bool:
        """Critical and warning issues warrant a fix request."""
        return self.severity != Severity.INFO

    def to_dict(self) -> dict:
        data = {
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "impact": self.impact,
        }
        if self.current_value is not None:
            data["current_value"] = self.current_value
        if self.recommended_value is not None:
            data["recommended_value"] = self.recommended_value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Issue":
        return cls(
            category=IssueCategory(data["category"]),
            severity=Severity(data["severity"]),
            message=data["message"],
            impact=data["impact"],
            current_value=data.get("current_value"),
            recommended_value=data.get("recommended_value"),
        )


@dataclass
class PageScore:
    """Weighted score of one page, derived entirely from its PageSignal."""

    overall: int
    breakdown: dict[str, int]
    issues: list[Issue] = field(default_factory=list)

    @property
    def actionable_issues(self) -> list[Issue]:
        return [issue for issue in self.issues if issue.is_actionable]

    def issues_by_severity(self) -> list[Issue]:
        """Issues ranked critical first; emission order kept within a severity."""
        return sorted(self.issues, key=lambda issue: issue.severity.rank)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "breakdown": dict(self.breakdown),
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class Fix:
    """An AI-authored remediation for one issue."""

    issue: str
    current_state: str
    recommendation: str
    ai_generated_fix: str
    priority: FixPriority

    def to_dict(self) -> dict:
        return {
            "issue": self.issue,
            "current_state": self.current_state,
            "recommendation": self.recommendation,
            "ai_generated_fix": self.ai_generated_fix,
            "priority": self.priority.value,
        }


@dataclass
class TechnicalCheckResult:
    """Site-level probe results. SSL expiry is not computed."""

    has_robots_txt: bool = False
    robots_txt_content: Optional[str] = None
    has_sitemap: bool = False
    sitemap_url: Optional[str] = None
    ssl_valid: bool = False
    ssl_expires_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CrawlError:
    """A page that could not be rendered."""

    url: str
    error: str


@dataclass
class CrawlResult:
    """Output of one frontier traversal."""

    pages: list[PageSignal] = field(default_factory=list)
    technical_checks: TechnicalCheckResult = field(default_factory=TechnicalCheckResult)
    errors: list[CrawlError] = field(default_factory=list)


@dataclass
class CrawledPage:
    """A page signal together with its score and fixes."""

    signal: PageSignal
    score: PageScore
    fixes: list[Fix] = field(default_factory=list)


@dataclass
class CrawlOutcome:
    """Terminal result of an orchestrated crawl."""

    crawl_id: str
    status: CrawlStatus
    page_count: int = 0
    overall_score: Optional[int] = None
    previous_score: Optional[int] = None
    error_message: Optional[str] = None
    technical_checks: Optional[TechnicalCheckResult] = None
    errors: list[CrawlError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == CrawlStatus.COMPLETE


@dataclass
class ComparisonRow:
    """Before/after traffic delta for one path."""

    path: str
    before_views: int
    after_views: int
    views_change: int
    views_change_pct: float
    before_users: int
    after_users: int
    users_change: int
    before_engagement: float = 0.0
    after_engagement: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)
