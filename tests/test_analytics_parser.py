"""Tests for GA4 CSV parsing."""

import pytest

from seoaudit.analytics_parser import (
    AnalyticsParseError,
    AnalyticsParser,
    AnalyticsRow,
    clean_numeric,
    parse_analytics_csv,
    parse_engagement_time,
)

GA4_EXPORT = """# ----------------------------------------
# Pages and screens: Page path and screen class
# Account: Example
# Date range: 20240101-20240131
# ----------------------------------------

Page path and screen class,Views,Active users,Average engagement time,Event count,Key events,Total revenue
/,"1,234",800,1m 05s,5000,12,"$1,250.50"
/about,300,250,45s,900,0,0
/blog,12.5,10,30,100,0,0
/contact,-5,10,30,100,0,0

/pricing,80,60,2m,200,3,€99
"""


@pytest.fixture
def parser():
    return AnalyticsParser()


class TestParseEngagementTime:
    """Tests for parse_engagement_time."""

    @pytest.mark.parametrize("value,expected", [
        ("2m 30s", 150),
        ("45", 45),
        ("garbage", 0),
        ("3m", 180),
        ("12s", 12),
        ("", 0),
        ("37.5", 37.5),
    ])
    def test_formats(self, value, expected):
        assert parse_engagement_time(value) == expected


class TestCleanNumeric:
    """Tests for clean_numeric."""

    @pytest.mark.parametrize("value,expected", [
        ("1,234", 1234),
        ("$1,250.50", 1250.5),
        ("€99", 99),
        ("£5", 5),
        ("¥1000", 1000),
        ("12 visits", 12),
        ("abc", 0),
        ("", 0),
    ])
    def test_values(self, value, expected):
        assert clean_numeric(value) == expected


class TestAnalyticsParser:
    """Tests for AnalyticsParser.parse."""

    def test_parses_ga4_export(self, parser):
        result = parser.parse(GA4_EXPORT)

        assert result.date_range == "20240101-20240131"
        assert [row.path for row in result.rows] == ["/", "/about", "/pricing"]
        assert result.row_count == 3

        home = result.rows[0]
        assert home.views == 1234
        assert home.active_users == 800
        assert home.avg_engagement_time == 65
        assert home.event_count == 5000
        assert home.key_events == 12
        assert home.total_revenue == 1250.5

        pricing = result.rows[2]
        assert pricing.avg_engagement_time == 120
        assert pricing.total_revenue == 99

    def test_header_aliases_case_insensitive(self, parser):
        csv = " PAGE PATH , views ,Conversions\n/a,10,2\n"
        row = parser.parse(csv).rows[0]

        assert row.path == "/a"
        assert row.views == 10
        assert row.key_events == 2
        assert row.active_users == 0

    def test_missing_columns_default_to_zero(self, parser):
        row = parser.parse("Page path,Views\n/a,10\n").rows[0]

        assert row == AnalyticsRow(path="/a", views=10)

    def test_ragged_rows_tolerated(self, parser):
        csv = "Page path,Views,Active users\n/a,10\n/b,20,5,extra\n"
        rows = parser.parse(csv).rows

        assert rows[0].active_users == 0
        assert rows[1].active_users == 5

    def test_empty_path_dropped(self, parser):
        rows = parser.parse("Page path,Views\n,10\n/b,5\n").rows
        assert [row.path for row in rows] == ["/b"]

    def test_no_date_range(self, parser):
        assert parser.parse("Page path,Views\n/a,1\n").date_range is None

    def test_empty_input(self, parser):
        with pytest.raises(AnalyticsParseError, match="empty or contains only comments"):
            parser.parse("")

    def test_only_comments(self, parser):
        with pytest.raises(AnalyticsParseError, match="empty or contains only comments"):
            parser.parse("# Date range: 20240101-20240131\n# nothing else\n")

    def test_header_only(self, parser):
        with pytest.raises(AnalyticsParseError, match="header row and at least one data row"):
            parser.parse("Page path,Views\n")

    def test_missing_required_columns(self, parser):
        with pytest.raises(AnalyticsParseError, match="Found columns: landing page, sessions"):
            parser.parse("Landing page,Sessions\n/a,10\n")

    def test_missing_views_column(self, parser):
        with pytest.raises(AnalyticsParseError):
            parser.parse("Page path,Active users\n/a,10\n")

    def test_no_valid_rows(self, parser):
        with pytest.raises(AnalyticsParseError, match="No valid data rows"):
            parser.parse("Page path,Views\n/a,1.5\n/b,-1\n")

    def test_parse_error_is_value_error(self, parser):
        with pytest.raises(ValueError):
            parser.parse("")

    def test_convenience_wrapper(self):
        assert parse_analytics_csv("Page path,Views\n/a,1\n").row_count == 1


class TestAnalyticsRow:
    """Tests for AnalyticsRow validation."""

    def test_rejects_fractional_counts(self):
        with pytest.raises(ValueError):
            AnalyticsRow(path="/a", views=1.5)

    def test_accepts_integral_floats(self):
        assert AnalyticsRow(path="/a", views=3.0).views == 3

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError):
            AnalyticsRow(path="/a", views=1, total_revenue=-1)

    def test_rows_are_immutable(self):
        row = AnalyticsRow(path="/a", views=1)
        with pytest.raises(ValueError):
            row.views = 2
