# src/seoaudit/constants.py
"""Centralized constants for the SEO auditor.

This module contains the fixed scoring heuristics and the default values
shared by the crawler, the technical probes and the analytics parser. For
values that can be overridden at runtime, see config.py.
"""

# =============================================================================
# Crawler Constants
# =============================================================================

# Default page budget for a single crawl
DEFAULT_MAX_PAGES_TO_CRAWL = 50

# Default number of pages rendered concurrently per batch
DEFAULT_CRAWL_CONCURRENCY = 3

# Default navigation timeout in seconds
DEFAULT_NAVIGATION_TIMEOUT_SECONDS = 30

# Wait after navigation so late DOM updates are captured
DEFAULT_SETTLE_DELAY_SECONDS = 1.0

# Extra slack on top of navigation timeout + settle delay for a whole render
RENDER_TIMEOUT_GRACE_SECONDS = 5.0

DEFAULT_USER_AGENT = "SEO-Audit-Crawler/1.0"

DESKTOP_VIEWPORT_WIDTH = 1280
DESKTOP_VIEWPORT_HEIGHT = 720

# Query parameters dropped when building de-duplication keys
TRACKING_QUERY_PARAMS = ("utm_source", "utm_medium", "utm_campaign")


# =============================================================================
# Technical Check Constants
# =============================================================================

# Each probe is bounded independently
TECHNICAL_PROBE_TIMEOUT_SECONDS = 10.0

ROBOTS_TXT_PATH = "/robots.txt"

# Probed in order; the first successful path wins
SITEMAP_CANDIDATE_PATHS = ("/sitemap.xml", "/sitemap_index.xml")

# HEAD responses below this status count as a reachable HTTPS origin
SSL_SERVER_ERROR_STATUS = 500


# =============================================================================
# Scoring Constants
# =============================================================================

# Category weights, summing to 100
SCORING_WEIGHTS = {
    "title": 20,
    "meta_description": 15,
    "headings": 10,
    "content": 20,
    "images": 10,
    "links": 10,
    "mobile": 10,
    "technical": 5,
}

MAX_CATEGORY_SCORE = 100

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60
GENERIC_TITLES = frozenset({"home", "untitled"})

META_DESCRIPTION_MIN_LENGTH = 120
META_DESCRIPTION_MAX_LENGTH = 160

THIN_CONTENT_CRITICAL_WORDS = 100
THIN_CONTENT_WARNING_WORDS = 300

# Share of images without alt text above which the issue is critical
MISSING_ALT_CRITICAL_RATIO = 0.5

HTTP_ERROR_STATUS = 400
HTTP_REDIRECT_STATUS = 300

# Redirect chains longer than this are penalized
MAX_REDIRECT_HOPS = 1


# =============================================================================
# Fix Generation Constants
# =============================================================================

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
DEFAULT_OPENAI_MODEL = "gpt-4o"
FIX_GENERATION_MAX_TOKENS = 2000
FIX_GENERATION_MAX_RETRIES = 2
FIX_GENERATION_RETRY_DELAY_SECONDS = 2.0


# =============================================================================
# Analytics Constants
# =============================================================================

# Header aliases (lower-cased) of GA4 page exports mapped to row fields
ANALYTICS_COLUMN_MAP = {
    "page path and screen class": "path",
    "page path": "path",
    "views": "views",
    "active users": "active_users",
    "average engagement time": "avg_engagement_time",
    "average engagement time per active user": "avg_engagement_time",
    "event count": "event_count",
    "key events": "key_events",
    "conversions": "key_events",
    "total revenue": "total_revenue",
}

ANALYTICS_NUMERIC_FIELDS = frozenset({
    "views",
    "active_users",
    "avg_engagement_time",
    "event_count",
    "key_events",
    "total_revenue",
})

# Stripped from numeric cells before parsing
CURRENCY_SYMBOLS = ("$", "€", "£", "¥")
THOUSANDS_SEPARATOR = ","
