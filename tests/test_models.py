"""Tests for data models."""

import pytest

from seoaudit.models import (
    CrawlStatus,
    Issue,
    IssueCategory,
    PageSignal,
    Severity,
)


class TestPageSignal:
    """Tests for PageSignal invariants."""

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError, match="word_count"):
            PageSignal(url="https://example.com/", word_count=-1)

    def test_alt_count_bounded_by_images(self):
        with pytest.raises(ValueError, match="images_without_alt"):
            PageSignal(url="https://example.com/", image_count=1, images_without_alt=2)

    def test_to_dict(self):
        data = PageSignal(url="https://example.com/", h2s=["a"]).to_dict()

        assert data["url"] == "https://example.com/"
        assert data["h2s"] == ["a"]
        assert data["is_indexable"] is True


class TestIssue:
    """Tests for Issue."""

    def test_impact_range(self):
        with pytest.raises(ValueError):
            Issue(category=IssueCategory.TITLE, severity=Severity.CRITICAL, message="x", impact=11)
        with pytest.raises(ValueError):
            Issue(category=IssueCategory.TITLE, severity=Severity.CRITICAL, message="x", impact=0)

    def test_actionable(self):
        warning = Issue(category=IssueCategory.LINKS, severity=Severity.WARNING, message="x", impact=5)
        info = Issue(category=IssueCategory.TECHNICAL, severity=Severity.INFO, message="x", impact=1)

        assert warning.is_actionable
        assert not info.is_actionable

    def test_dict_round_trip(self):
        issue = Issue(
            category=IssueCategory.TITLE,
            severity=Severity.WARNING,
            message="Title tag is too short",
            impact=6,
            current_value="Hi",
        )
        data = issue.to_dict()

        assert data["category"] == "title"
        assert "recommended_value" not in data
        assert Issue.from_dict(data) == issue


class TestEnums:
    """Tests for enum helpers."""

    def test_severity_rank(self):
        assert Severity.CRITICAL.rank < Severity.WARNING.rank < Severity.INFO.rank

    def test_terminal_statuses(self):
        assert CrawlStatus.COMPLETE.is_terminal
        assert CrawlStatus.FAILED.is_terminal
        assert not CrawlStatus.PENDING.is_terminal
        assert not CrawlStatus.RUNNING.is_terminal
