"""Crawl lifecycle: render, score, generate fixes, persist, finalize."""

import logging
from typing import Optional

from seoaudit.async_site_crawler import AsyncSiteCrawler
from seoaudit.database import AbstractDatabase
from seoaudit.fix_generator import FixGenerator, NullFixGenerator
from seoaudit.models import (
    CrawledPage,
    CrawlOutcome,
    CrawlStatus,
    Fix,
    PageScore,
    PageSignal,
)
from seoaudit.scorer import SEOScorer

logger = logging.getLogger(__name__)


def describe_exception(error: BaseException) -> str:
    """Message of an exception, or its class name when the message is empty."""
    return str(error) or type(error).__name__


class CrawlOrchestrator:
    """Drives one crawl through PENDING -> RUNNING -> COMPLETE | FAILED.

    Pages are scored and persisted one at a time so that fix generation,
    the slowest step, never runs concurrently. The running page count is
    persisted after every page for progress polling.
    """

    def __init__(
        self,
        db: AbstractDatabase,
        crawler: Optional[AsyncSiteCrawler] = None,
        scorer: Optional[SEOScorer] = None,
        fix_generator: Optional[FixGenerator] = None,
    ):
        """Initialize the orchestrator.

        Args:
            db: Persistence collaborator
            crawler: Site crawler; defaults to a Playwright-backed AsyncSiteCrawler
            scorer: Page scorer
            fix_generator: Fix generator; defaults to no fix generation
        """
        self.db = db
        self.crawler = crawler or AsyncSiteCrawler()
        self.scorer = scorer or SEOScorer()
        self.fix_generator = fix_generator or NullFixGenerator()

    async def execute_crawl(self, crawl_id: str, site_url: str, max_pages: int) -> CrawlOutcome:
        """Run a crawl to a terminal state.

        Args:
            crawl_id: Id of a PENDING crawl record
            site_url: URL the crawl starts from
            max_pages: Page budget

        Returns:
            CrawlOutcome with status COMPLETE or FAILED
        """
        self.db.mark_crawl_running(crawl_id)
        logger.info(f"Crawl {crawl_id} started for {site_url} (max {max_pages} pages)")

        try:
            result = await self.crawler.crawl_site(site_url, max_pages=max_pages)

            page_scores: list[PageScore] = []
            for processed, signal in enumerate(result.pages, start=1):
                score = self.scorer.score_page(signal)
                page_scores.append(score)

                fixes = await self._generate_fixes(signal, score)
                self.db.save_page(crawl_id, CrawledPage(signal=signal, score=score, fixes=fixes))
                self.db.update_crawl_page_count(crawl_id, processed)

            overall_score = self.scorer.calculate_site_score(page_scores)
            previous_score = self.db.get_previous_score(crawl_id)

            self.db.mark_crawl_complete(
                crawl_id,
                page_count=len(result.pages),
                overall_score=overall_score,
                previous_score=previous_score,
            )
        except Exception as e:
            message = describe_exception(e)
            logger.error(f"Crawl {crawl_id} failed: {message}")
            self.db.mark_crawl_failed(crawl_id, message)
            return CrawlOutcome(
                crawl_id=crawl_id,
                status=CrawlStatus.FAILED,
                error_message=message,
            )

        logger.info(
            f"Crawl {crawl_id} complete: {len(result.pages)} pages, "
            f"score {overall_score} (previous: {previous_score})"
        )
        return CrawlOutcome(
            crawl_id=crawl_id,
            status=CrawlStatus.COMPLETE,
            page_count=len(result.pages),
            overall_score=overall_score,
            previous_score=previous_score,
            technical_checks=result.technical_checks,
            errors=result.errors,
        )

    async def _generate_fixes(self, signal: PageSignal, score: PageScore) -> list[Fix]:
        """Request fixes for actionable issues; any failure means no fixes."""
        actionable = score.actionable_issues
        if not actionable:
            return []
        try:
            return await self.fix_generator.generate_fixes(signal, actionable)
        except Exception as e:
            logger.error(f"Fix generation failed for {signal.url}: {describe_exception(e)}")
            return []
