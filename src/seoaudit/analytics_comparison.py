"""Before/after diff of two analytics snapshots."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from seoaudit.analytics_parser import AnalyticsRow
from seoaudit.models import ComparisonRow, SnapshotLabel

logger = logging.getLogger(__name__)


class IncompleteDataError(ValueError):
    """Raised when a comparison lacks its BEFORE or AFTER snapshot."""


@dataclass
class AnalyticsSnapshot:
    """One labeled set of analytics rows for a site."""

    label: SnapshotLabel
    rows: list[AnalyticsRow] = field(default_factory=list)
    date_range: Optional[str] = None
    id: Optional[str] = None
    site_id: Optional[str] = None
    crawl_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def summary(self) -> dict:
        """Snapshot metadata without its rows."""
        return {
            'id': self.id,
            'site_id': self.site_id,
            'crawl_id': self.crawl_id,
            'label': self.label.value,
            'date_range': self.date_range,
            'row_count': self.row_count,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class AnalyticsComparison:
    """A BEFORE/AFTER snapshot pair and its per-path deltas."""

    before: AnalyticsSnapshot
    after: AnalyticsSnapshot
    rows: list[ComparisonRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'before': self.before.summary(),
            'after': self.after.summary(),
            'rows': [row.to_dict() for row in self.rows],
        }


def _round_one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def _views_change_pct(before_views: int, after_views: int) -> float:
    if before_views > 0:
        return _round_one_decimal((after_views - before_views) / before_views * 100)
    return 100.0 if after_views > 0 else 0.0


def compare_snapshots(
    before_rows: Iterable[AnalyticsRow],
    after_rows: Iterable[AnalyticsRow],
) -> list[ComparisonRow]:
    """Diff two snapshots path by path.

    Paths are taken from BEFORE in input order, then AFTER-only paths in
    input order. A path missing on one side counts as zero. When a path
    repeats within one side, its last row wins. Rows are sorted by
    descending absolute views change; ties keep path order.

    Args:
        before_rows: Rows of the BEFORE snapshot
        after_rows: Rows of the AFTER snapshot

    Returns:
        Comparison rows, biggest movers first
    """
    before_map = {row.path: row for row in before_rows}
    after_map = {row.path: row for row in after_rows}

    paths = list(before_map)
    paths.extend(path for path in after_map if path not in before_map)

    rows = []
    for path in paths:
        before = before_map.get(path)
        after = after_map.get(path)

        before_views = before.views if before else 0
        after_views = after.views if after else 0
        before_users = before.active_users if before else 0
        after_users = after.active_users if after else 0

        rows.append(ComparisonRow(
            path=path,
            before_views=before_views,
            after_views=after_views,
            views_change=after_views - before_views,
            views_change_pct=_views_change_pct(before_views, after_views),
            before_users=before_users,
            after_users=after_users,
            users_change=after_users - before_users,
            before_engagement=before.avg_engagement_time if before else 0.0,
            after_engagement=after.avg_engagement_time if after else 0.0,
        ))

    rows.sort(key=lambda row: abs(row.views_change), reverse=True)
    return rows


def build_comparison(
    before: Optional[AnalyticsSnapshot],
    after: Optional[AnalyticsSnapshot],
) -> AnalyticsComparison:
    """Compare a BEFORE and an AFTER snapshot.

    Raises:
        IncompleteDataError: If either snapshot is missing
        ValueError: If the snapshots carry the wrong labels
    """
    if before is None or after is None:
        raise IncompleteDataError("Both BEFORE and AFTER snapshots are required for comparison")
    if before.label != SnapshotLabel.BEFORE or after.label != SnapshotLabel.AFTER:
        raise ValueError(
            f"Expected BEFORE and AFTER snapshots, got {before.label.value} and {after.label.value}"
        )

    rows = compare_snapshots(before.rows, after.rows)
    logger.info(f"Compared {before.row_count} BEFORE rows with {after.row_count} AFTER rows: {len(rows)} paths")
    return AnalyticsComparison(before=before, after=after, rows=rows)
