"""Deterministic multi-factor SEO scoring of page signals."""

import logging
import math
from typing import Iterable

from seoaudit.constants import (
    GENERIC_TITLES,
    HTTP_ERROR_STATUS,
    HTTP_REDIRECT_STATUS,
    MAX_CATEGORY_SCORE,
    MAX_REDIRECT_HOPS,
    META_DESCRIPTION_MAX_LENGTH,
    META_DESCRIPTION_MIN_LENGTH,
    MISSING_ALT_CRITICAL_RATIO,
    SCORING_WEIGHTS,
    THIN_CONTENT_CRITICAL_WORDS,
    THIN_CONTENT_WARNING_WORDS,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from seoaudit.models import Issue, IssueCategory, PageScore, PageSignal, Severity

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return math.floor(value + 0.5)


class SEOScorer:
    """Scores a page against fixed heuristics.

    Each of the eight categories starts at 100, subtracts fixed penalties
    (floored at 0) and appends its issues. The overall score is the
    weighted mean of the category scores. Scoring is a pure function of the
    PageSignal: the scorer holds no state between calls.
    """

    WEIGHTS = SCORING_WEIGHTS

    def score_page(self, page: PageSignal) -> PageScore:
        """Score a single page.

        Args:
            page: Signals extracted from the rendered page

        Returns:
            PageScore with overall score, per-category breakdown and issues
        """
        issues: list[Issue] = []

        breakdown = {
            IssueCategory.TITLE.value: self._score_title(page, issues),
            IssueCategory.META_DESCRIPTION.value: self._score_meta_description(page, issues),
            IssueCategory.HEADINGS.value: self._score_headings(page, issues),
            IssueCategory.CONTENT.value: self._score_content(page, issues),
            IssueCategory.IMAGES.value: self._score_images(page, issues),
            IssueCategory.LINKS.value: self._score_links(page, issues),
            IssueCategory.MOBILE.value: self._score_mobile(page, issues),
            IssueCategory.TECHNICAL.value: self._score_technical(page, issues),
        }

        overall = round_half_up(
            sum(score * self.WEIGHTS[category] for category, score in breakdown.items()) / 100
        )

        logger.debug(f"Page scored: {page.url} -> {overall}")

        return PageScore(overall=overall, breakdown=breakdown, issues=issues)

    def calculate_site_score(self, page_scores: Iterable[PageScore]) -> int:
        """Site score: rounded mean of page overall scores, 0 with no pages."""
        overall_scores = [score.overall for score in page_scores]
        if not overall_scores:
            return 0
        return round_half_up(sum(overall_scores) / len(overall_scores))

    def _score_title(self, page: PageSignal, issues: list[Issue]) -> int:
        if not page.title:
            issues.append(Issue(
                category=IssueCategory.TITLE,
                severity=Severity.CRITICAL,
                message="Page is missing a title tag",
                impact=10,
            ))
            return 0

        score = MAX_CATEGORY_SCORE
        length = len(page.title)

        if length < TITLE_MIN_LENGTH:
            score -= 30
            issues.append(Issue(
                category=IssueCategory.TITLE,
                severity=Severity.WARNING,
                message=f"Title tag is too short ({length} characters). Recommended: 50-60 characters.",
                current_value=page.title,
                impact=6,
            ))
        elif length > TITLE_MAX_LENGTH:
            score -= 20
            issues.append(Issue(
                category=IssueCategory.TITLE,
                severity=Severity.WARNING,
                message=(
                    f"Title tag is too long ({length} characters). It may be truncated "
                    "in search results. Recommended: 50-60 characters."
                ),
                current_value=page.title,
                impact=4,
            ))

        if page.title.lower() in GENERIC_TITLES:
            score -= 40
            issues.append(Issue(
                category=IssueCategory.TITLE,
                severity=Severity.CRITICAL,
                message="Title tag is generic and not descriptive.",
                current_value=page.title,
                impact=8,
            ))

        return max(0, score)

    def _score_meta_description(self, page: PageSignal, issues: list[Issue]) -> int:
        if not page.meta_description:
            issues.append(Issue(
                category=IssueCategory.META_DESCRIPTION,
                severity=Severity.CRITICAL,
                message="Page is missing a meta description.",
                impact=8,
            ))
            return 0

        score = MAX_CATEGORY_SCORE
        length = len(page.meta_description)

        if length < META_DESCRIPTION_MIN_LENGTH:
            score -= 25
            issues.append(Issue(
                category=IssueCategory.META_DESCRIPTION,
                severity=Severity.WARNING,
                message=f"Meta description is too short ({length} characters). Recommended: 150-160 characters.",
                current_value=page.meta_description,
                impact=5,
            ))
        elif length > META_DESCRIPTION_MAX_LENGTH:
            score -= 15
            issues.append(Issue(
                category=IssueCategory.META_DESCRIPTION,
                severity=Severity.INFO,
                message=(
                    f"Meta description is too long ({length} characters). It may be "
                    "truncated. Recommended: 150-160 characters."
                ),
                current_value=page.meta_description,
                impact=3,
            ))

        return max(0, score)

    def _score_headings(self, page: PageSignal, issues: list[Issue]) -> int:
        score = MAX_CATEGORY_SCORE

        if not page.h1:
            score -= 50
            issues.append(Issue(
                category=IssueCategory.HEADINGS,
                severity=Severity.CRITICAL,
                message="Page is missing an H1 heading.",
                impact=7,
            ))

        if not page.h2s:
            score -= 20
            issues.append(Issue(
                category=IssueCategory.HEADINGS,
                severity=Severity.WARNING,
                message="Page has no H2 subheadings. Use H2s to structure content.",
                impact=4,
            ))

        return max(0, score)

    def _score_content(self, page: PageSignal, issues: list[Issue]) -> int:
        score = MAX_CATEGORY_SCORE

        if page.word_count < THIN_CONTENT_CRITICAL_WORDS:
            score -= 60
            issues.append(Issue(
                category=IssueCategory.CONTENT,
                severity=Severity.CRITICAL,
                message=f"Very thin content ({page.word_count} words). Minimum recommended: 300 words.",
                impact=9,
            ))
        elif page.word_count < THIN_CONTENT_WARNING_WORDS:
            score -= 30
            issues.append(Issue(
                category=IssueCategory.CONTENT,
                severity=Severity.WARNING,
                message=f"Content is thin ({page.word_count} words). Recommended: 300+ words for better ranking.",
                impact=6,
            ))

        return max(0, score)

    def _score_images(self, page: PageSignal, issues: list[Issue]) -> int:
        if page.image_count == 0:
            return MAX_CATEGORY_SCORE

        score = MAX_CATEGORY_SCORE
        missing_alt_ratio = page.images_without_alt / page.image_count
        message = f"{page.images_without_alt} of {page.image_count} images are missing alt text."

        if missing_alt_ratio > MISSING_ALT_CRITICAL_RATIO:
            score -= 50
            issues.append(Issue(
                category=IssueCategory.IMAGES,
                severity=Severity.CRITICAL,
                message=message,
                impact=6,
            ))
        elif page.images_without_alt > 0:
            score -= 20
            issues.append(Issue(
                category=IssueCategory.IMAGES,
                severity=Severity.WARNING,
                message=message,
                impact=4,
            ))

        return max(0, score)

    def _score_links(self, page: PageSignal, issues: list[Issue]) -> int:
        score = MAX_CATEGORY_SCORE

        if page.internal_links == 0:
            score -= 40
            issues.append(Issue(
                category=IssueCategory.LINKS,
                severity=Severity.WARNING,
                message=(
                    "Page has no internal links. Internal linking helps search engines "
                    "discover and rank pages."
                ),
                impact=5,
            ))

        return max(0, score)

    def _score_mobile(self, page: PageSignal, issues: list[Issue]) -> int:
        score = MAX_CATEGORY_SCORE

        if not page.has_viewport_meta:
            score -= 70
            issues.append(Issue(
                category=IssueCategory.MOBILE,
                severity=Severity.CRITICAL,
                message=(
                    "Page is missing the viewport meta tag. This is required for "
                    "mobile-friendly rendering."
                ),
                impact=9,
            ))

        return max(0, score)

    def _score_technical(self, page: PageSignal, issues: list[Issue]) -> int:
        score = MAX_CATEGORY_SCORE

        if page.http_status >= HTTP_ERROR_STATUS:
            score -= 80
            issues.append(Issue(
                category=IssueCategory.TECHNICAL,
                severity=Severity.CRITICAL,
                message=f"Page returned HTTP {page.http_status} error.",
                impact=10,
            ))
        elif page.http_status >= HTTP_REDIRECT_STATUS:
            score -= 20
            issues.append(Issue(
                category=IssueCategory.TECHNICAL,
                severity=Severity.WARNING,
                message=f"Page has a redirect (HTTP {page.http_status}).",
                impact=3,
            ))

        if len(page.redirect_chain) > MAX_REDIRECT_HOPS:
            score -= 15
            issues.append(Issue(
                category=IssueCategory.TECHNICAL,
                severity=Severity.WARNING,
                message=(
                    f"Page has a redirect chain of {len(page.redirect_chain)} hops. "
                    "Keep redirects to a single hop."
                ),
                impact=4,
            ))

        if not page.is_indexable:
            issues.append(Issue(
                category=IssueCategory.TECHNICAL,
                severity=Severity.INFO,
                message="Page is marked as noindex and will not appear in search results.",
                impact=1,
            ))

        return max(0, score)
