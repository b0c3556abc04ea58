# src/seoaudit/database.py
"""Persistence of sites, crawls, page records and analytics snapshots."""

import json
import sqlite3
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import logging

from seoaudit.analytics_comparison import AnalyticsSnapshot
from seoaudit.analytics_parser import AnalyticsRow
from seoaudit.config import settings
from seoaudit.models import CrawledPage, CrawlStatus, SnapshotLabel

logger = logging.getLogger(__name__)

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS sites (
    id TEXT PRIMARY KEY,
    url TEXT NOT NULL UNIQUE,
    name TEXT,
    created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS crawls (
    id TEXT PRIMARY KEY,
    site_id TEXT NOT NULL REFERENCES sites(id) ON DELETE CASCADE,
    status TEXT NOT NULL,
    max_pages INTEGER NOT NULL,
    page_count INTEGER NOT NULL DEFAULT 0,
    overall_score INTEGER,
    previous_score INTEGER,
    error_message TEXT,
    created_at TIMESTAMP NOT NULL,
    started_at TIMESTAMP,
    completed_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS crawl_pages (
    id TEXT PRIMARY KEY,
    crawl_id TEXT NOT NULL REFERENCES crawls(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    http_status INTEGER,

    -- Signals
    title TEXT,
    meta_description TEXT,
    h1 TEXT,
    h2s TEXT,
    word_count INTEGER,
    image_count INTEGER,
    images_without_alt INTEGER,
    internal_links INTEGER,
    external_links INTEGER,
    canonical_url TEXT,
    og_tags TEXT,
    structured_data TEXT,
    has_viewport_meta INTEGER,
    is_indexable INTEGER,
    redirect_chain TEXT,

    -- Score
    seo_score INTEGER,
    score_breakdown TEXT,
    issues TEXT,
    fixes TEXT
);

CREATE TABLE IF NOT EXISTS analytics_snapshots (
    id TEXT PRIMARY KEY,
    site_id TEXT NOT NULL REFERENCES sites(id) ON DELETE CASCADE,
    crawl_id TEXT REFERENCES crawls(id) ON DELETE SET NULL,
    label TEXT NOT NULL,
    date_range TEXT,
    rows TEXT NOT NULL,
    row_count INTEGER NOT NULL,
    created_at TIMESTAMP NOT NULL
);
"""

# Columns of crawl_pages holding JSON-encoded values
_JSON_PAGE_COLUMNS = (
    'h2s', 'og_tags', 'structured_data', 'redirect_chain',
    'score_breakdown', 'issues', 'fixes',
)

_ACTIVE_STATUSES = (CrawlStatus.PENDING.value, CrawlStatus.RUNNING.value)


class SiteNotFoundError(LookupError):
    """Raised when a site id is unknown."""


class CrawlNotFoundError(LookupError):
    """Raised when a crawl id is unknown (or belongs to another site)."""


class CrawlInProgressError(RuntimeError):
    """Raised when a site already has a PENDING or RUNNING crawl."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AbstractDatabase(ABC):
    """Abstract base class defining the persistence interface."""

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def create_schema(self) -> None:
        """Create the necessary database tables."""
        pass

    # Sites

    @abstractmethod
    def create_site(self, url: str, name: Optional[str] = None) -> Dict[str, Any]:
        """Register a site and return its record."""
        pass

    @abstractmethod
    def get_site(self, site_id: str) -> Dict[str, Any]:
        """Return a site record.

        Raises:
            SiteNotFoundError: If the site does not exist.
        """
        pass

    @abstractmethod
    def find_site_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Return the site registered for a URL, or None."""
        pass

    # Crawls

    @abstractmethod
    def create_crawl(self, site_id: str, max_pages: int) -> Dict[str, Any]:
        """Create a PENDING crawl for a site.

        Raises:
            SiteNotFoundError: If the site does not exist.
            CrawlInProgressError: If the site already has an active crawl.
        """
        pass

    @abstractmethod
    def get_crawl(self, crawl_id: str) -> Dict[str, Any]:
        """Return a crawl record.

        Raises:
            CrawlNotFoundError: If the crawl does not exist.
        """
        pass

    @abstractmethod
    def get_active_crawl(self, site_id: str) -> Optional[Dict[str, Any]]:
        """Return the PENDING or RUNNING crawl of a site, if any."""
        pass

    @abstractmethod
    def mark_crawl_running(self, crawl_id: str) -> None:
        pass

    @abstractmethod
    def update_crawl_page_count(self, crawl_id: str, page_count: int) -> None:
        pass

    @abstractmethod
    def mark_crawl_complete(
        self,
        crawl_id: str,
        page_count: int,
        overall_score: int,
        previous_score: Optional[int],
    ) -> None:
        pass

    @abstractmethod
    def mark_crawl_failed(self, crawl_id: str, error_message: str) -> None:
        pass

    @abstractmethod
    def get_previous_score(self, crawl_id: str) -> Optional[int]:
        """Overall score of the most recently completed other crawl of the same site."""
        pass

    # Pages

    @abstractmethod
    def save_page(self, crawl_id: str, page: CrawledPage) -> str:
        """Persist a scored page and return its record id."""
        pass

    @abstractmethod
    def get_pages(self, crawl_id: str, worst_first: bool = True) -> List[Dict[str, Any]]:
        """Return the page records of a crawl."""
        pass

    # Analytics snapshots

    @abstractmethod
    def save_snapshot(
        self,
        site_id: str,
        snapshot: AnalyticsSnapshot,
        crawl_id: Optional[str] = None,
    ) -> AnalyticsSnapshot:
        """Store a snapshot, replacing any snapshot with the same label for the site."""
        pass

    @abstractmethod
    def get_latest_snapshot(self, site_id: str, label: SnapshotLabel) -> Optional[AnalyticsSnapshot]:
        pass

    @abstractmethod
    def list_snapshots(self, site_id: str) -> List[AnalyticsSnapshot]:
        """Return the snapshots of a site, newest first."""
        pass

    @abstractmethod
    def delete_snapshot(self, site_id: str, snapshot_id: str) -> bool:
        """Delete a snapshot. Returns False if it was not found for the site."""
        pass


class LocalSqliteDatabase(AbstractDatabase):
    """SQLite database implementation for local storage."""

    def __init__(self, db_url: Optional[str] = None):
        """Initialize local SQLite database.

        Args:
            db_url: Database URL (sqlite:///path/to/db.db or sqlite:///:memory:).
                Defaults to settings.DATABASE_URL.
        """
        self.db_url = db_url or settings.DATABASE_URL
        self.db_path = self.db_url.replace("sqlite:///", "")
        self.conn: Optional[sqlite3.Connection] = None
        self.connect()
        self.create_schema()

    def connect(self) -> None:
        """Establish SQLite connection."""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON;")
        logger.debug(f"Connected to local SQLite database: {self.db_path}")

    def close(self) -> None:
        """Close SQLite connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed local SQLite connection")

    def create_schema(self) -> None:
        """Create the tables if they don't exist."""
        with self.conn:
            self.conn.executescript(CREATE_TABLES_SQL)
        logger.debug("Schema verified/created for local SQLite")

    def _fetch_one(self, query: str, params: tuple) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(query, params).fetchone()
        return dict(row) if row else None

    # Sites

    def create_site(self, url: str, name: Optional[str] = None) -> Dict[str, Any]:
        site_id = str(uuid.uuid4())
        with self.conn:
            self.conn.execute(
                "INSERT INTO sites (id, url, name, created_at) VALUES (?, ?, ?, ?)",
                (site_id, url, name, _now()),
            )
        logger.debug(f"Created site {site_id} for {url}")
        return self.get_site(site_id)

    def get_site(self, site_id: str) -> Dict[str, Any]:
        site = self._fetch_one("SELECT * FROM sites WHERE id = ?", (site_id,))
        if site is None:
            raise SiteNotFoundError(f"Site with id '{site_id}' not found")
        return site

    def find_site_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM sites WHERE url = ?", (url,))

    # Crawls

    def create_crawl(self, site_id: str, max_pages: int) -> Dict[str, Any]:
        self.get_site(site_id)
        active = self.get_active_crawl(site_id)
        if active is not None:
            raise CrawlInProgressError(
                f"Site '{site_id}' already has a crawl in progress ({active['id']})"
            )

        crawl_id = str(uuid.uuid4())
        with self.conn:
            self.conn.execute(
                "INSERT INTO crawls (id, site_id, status, max_pages, created_at) VALUES (?, ?, ?, ?, ?)",
                (crawl_id, site_id, CrawlStatus.PENDING.value, max_pages, _now()),
            )
        logger.debug(f"Created crawl {crawl_id} for site {site_id}")
        return self.get_crawl(crawl_id)

    def get_crawl(self, crawl_id: str) -> Dict[str, Any]:
        crawl = self._fetch_one("SELECT * FROM crawls WHERE id = ?", (crawl_id,))
        if crawl is None:
            raise CrawlNotFoundError(f"Crawl with id '{crawl_id}' not found")
        return crawl

    def get_active_crawl(self, site_id: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one(
            "SELECT * FROM crawls WHERE site_id = ? AND status IN (?, ?) "
            "ORDER BY created_at DESC LIMIT 1",
            (site_id, *_ACTIVE_STATUSES),
        )

    def _update_crawl(self, crawl_id: str, **fields: Any) -> None:
        assignments = ', '.join(f"{column} = ?" for column in fields)
        with self.conn:
            cursor = self.conn.execute(
                f"UPDATE crawls SET {assignments} WHERE id = ?",
                (*fields.values(), crawl_id),
            )
        if cursor.rowcount == 0:
            raise CrawlNotFoundError(f"Crawl with id '{crawl_id}' not found")

    def mark_crawl_running(self, crawl_id: str) -> None:
        self._update_crawl(crawl_id, status=CrawlStatus.RUNNING.value, started_at=_now())

    def update_crawl_page_count(self, crawl_id: str, page_count: int) -> None:
        self._update_crawl(crawl_id, page_count=page_count)

    def mark_crawl_complete(
        self,
        crawl_id: str,
        page_count: int,
        overall_score: int,
        previous_score: Optional[int],
    ) -> None:
        self._update_crawl(
            crawl_id,
            status=CrawlStatus.COMPLETE.value,
            completed_at=_now(),
            page_count=page_count,
            overall_score=overall_score,
            previous_score=previous_score,
        )

    def mark_crawl_failed(self, crawl_id: str, error_message: str) -> None:
        self._update_crawl(
            crawl_id,
            status=CrawlStatus.FAILED.value,
            completed_at=_now(),
            error_message=error_message,
        )

    def get_previous_score(self, crawl_id: str) -> Optional[int]:
        crawl = self.get_crawl(crawl_id)
        previous = self._fetch_one(
            "SELECT overall_score FROM crawls "
            "WHERE site_id = ? AND status = ? AND id != ? "
            "ORDER BY completed_at DESC LIMIT 1",
            (crawl['site_id'], CrawlStatus.COMPLETE.value, crawl_id),
        )
        return previous['overall_score'] if previous else None

    # Pages

    def save_page(self, crawl_id: str, page: CrawledPage) -> str:
        signal = page.signal
        record = {
            'id': str(uuid.uuid4()),
            'crawl_id': crawl_id,
            'url': signal.url,
            'http_status': signal.http_status,
            'title': signal.title,
            'meta_description': signal.meta_description,
            'h1': signal.h1,
            'h2s': json.dumps(signal.h2s),
            'word_count': signal.word_count,
            'image_count': signal.image_count,
            'images_without_alt': signal.images_without_alt,
            'internal_links': signal.internal_links,
            'external_links': signal.external_links,
            'canonical_url': signal.canonical_url,
            'og_tags': json.dumps(signal.og_tags),
            'structured_data': json.dumps(signal.structured_data),
            'has_viewport_meta': int(signal.has_viewport_meta),
            'is_indexable': int(signal.is_indexable),
            'redirect_chain': json.dumps(signal.redirect_chain),
            'seo_score': page.score.overall,
            'score_breakdown': json.dumps(page.score.breakdown),
            'issues': json.dumps([issue.to_dict() for issue in page.score.issues]),
            'fixes': json.dumps([fix.to_dict() for fix in page.fixes]),
        }

        columns = ', '.join(record.keys())
        placeholders = ', '.join('?' for _ in record)
        with self.conn:
            self.conn.execute(
                f"INSERT INTO crawl_pages ({columns}) VALUES ({placeholders})",
                tuple(record.values()),
            )
        logger.debug(f"Saved page {signal.url} for crawl {crawl_id}")
        return record['id']

    def get_pages(self, crawl_id: str, worst_first: bool = True) -> List[Dict[str, Any]]:
        order = "seo_score ASC" if worst_first else "rowid ASC"
        cursor = self.conn.execute(
            f"SELECT * FROM crawl_pages WHERE crawl_id = ? ORDER BY {order}, rowid ASC",
            (crawl_id,),
        )
        pages = []
        for row in cursor.fetchall():
            page = dict(row)
            for column in _JSON_PAGE_COLUMNS:
                page[column] = json.loads(page[column]) if page[column] else []
            page['has_viewport_meta'] = bool(page['has_viewport_meta'])
            page['is_indexable'] = bool(page['is_indexable'])
            pages.append(page)
        return pages

    # Analytics snapshots

    def _row_to_snapshot(self, row: sqlite3.Row) -> AnalyticsSnapshot:
        return AnalyticsSnapshot(
            id=row['id'],
            site_id=row['site_id'],
            crawl_id=row['crawl_id'],
            label=SnapshotLabel(row['label']),
            date_range=row['date_range'],
            rows=[AnalyticsRow(**item) for item in json.loads(row['rows'])],
            created_at=datetime.fromisoformat(row['created_at']),
        )

    def save_snapshot(
        self,
        site_id: str,
        snapshot: AnalyticsSnapshot,
        crawl_id: Optional[str] = None,
    ) -> AnalyticsSnapshot:
        self.get_site(site_id)
        if crawl_id is not None:
            crawl = self._fetch_one("SELECT site_id FROM crawls WHERE id = ?", (crawl_id,))
            if crawl is None or crawl['site_id'] != site_id:
                raise CrawlNotFoundError(f"Crawl '{crawl_id}' not found for this site")

        snapshot_id = str(uuid.uuid4())
        rows_json = json.dumps([row.model_dump() for row in snapshot.rows])
        with self.conn:
            self.conn.execute(
                "DELETE FROM analytics_snapshots WHERE site_id = ? AND label = ?",
                (site_id, snapshot.label.value),
            )
            self.conn.execute(
                "INSERT INTO analytics_snapshots "
                "(id, site_id, crawl_id, label, date_range, rows, row_count, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    snapshot_id, site_id, crawl_id, snapshot.label.value,
                    snapshot.date_range, rows_json, snapshot.row_count, _now(),
                ),
            )
        logger.info(
            f"Saved {snapshot.label.value} analytics snapshot {snapshot_id} "
            f"for site {site_id} ({snapshot.row_count} rows)"
        )

        row = self.conn.execute(
            "SELECT * FROM analytics_snapshots WHERE id = ?", (snapshot_id,)
        ).fetchone()
        return self._row_to_snapshot(row)

    def get_latest_snapshot(self, site_id: str, label: SnapshotLabel) -> Optional[AnalyticsSnapshot]:
        row = self.conn.execute(
            "SELECT * FROM analytics_snapshots WHERE site_id = ? AND label = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (site_id, label.value),
        ).fetchone()
        return self._row_to_snapshot(row) if row else None

    def list_snapshots(self, site_id: str) -> List[AnalyticsSnapshot]:
        cursor = self.conn.execute(
            "SELECT * FROM analytics_snapshots WHERE site_id = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (site_id,),
        )
        return [self._row_to_snapshot(row) for row in cursor.fetchall()]

    def delete_snapshot(self, site_id: str, snapshot_id: str) -> bool:
        with self.conn:
            cursor = self.conn.execute(
                "DELETE FROM analytics_snapshots WHERE id = ? AND site_id = ?",
                (snapshot_id, site_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted analytics snapshot {snapshot_id} for site {site_id}")
        return deleted


def get_database(db_url: Optional[str] = None) -> AbstractDatabase:
    """Factory returning the configured database backend.

    Raises:
        ValueError: If the URL scheme is not supported.
    """
    db_url = db_url or settings.DATABASE_URL
    if not db_url.startswith("sqlite:///"):
        raise ValueError(f"Unsupported database URL: {db_url}")
    return LocalSqliteDatabase(db_url)
